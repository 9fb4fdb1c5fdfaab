"""Provider-specific extraction rules for auth-gateway payloads.

Each provider gets an entry in _PROVIDERS supplying how to read the display
name, the username and the avatar. Unlisted providers use DEFAULT_PROFILE.
"""
from dataclasses import dataclass
from typing import Callable

from app.schemas.omniauth import AuthInfo


def _info_name(info: AuthInfo) -> str | None:
    return info.name


def _info_display_name(info: AuthInfo) -> str | None:
    return info.display_name


def _info_nickname(info: AuthInfo) -> str | None:
    return info.nickname


def _info_username(info: AuthInfo) -> str | None:
    return info.username


def _email_local_part(info: AuthInfo) -> str | None:
    if not info.email:
        return None
    return info.email.split("@")[0]


def _info_image(info: AuthInfo) -> str | None:
    return info.image


def _no_image(info: AuthInfo) -> str | None:
    return None


def _twitter_image(info: AuthInfo) -> str | None:
    """Full-size avatar over https: twitter serves "_normal" thumbnails by default."""
    if not info.image:
        return info.image
    image = info.image.replace("_normal", "")
    if image.startswith("http://"):
        image = "https://" + image[len("http://"):]
    return image


@dataclass(frozen=True)
class ProviderProfile:
    """How to read account fields from one provider's auth info.

    Attributes:
        name: Extracts the account display name.
        username: Extracts the account username.
        image: Extracts the avatar URL (None when the provider has none).
    """

    name: Callable[[AuthInfo], str | None] = _info_name
    username: Callable[[AuthInfo], str | None] = _info_nickname
    image: Callable[[AuthInfo], str | None] = _info_image


DEFAULT_PROFILE = ProviderProfile()

# Provider tag sent by the load balancer; its payloads carry a username field
DEFAULT_LOADBALANCER_PROVIDER = "bn_launcher"
LOADBALANCER_PROFILE = ProviderProfile(username=_info_username)

_PROVIDERS: dict[str, ProviderProfile] = {
    "google": ProviderProfile(username=_email_local_part),
    "twitter": ProviderProfile(image=_twitter_image),
    "microsoft_office365": ProviderProfile(name=_info_display_name, image=_no_image),
}


def get_provider_profile(provider: str, loadbalancer_provider: str = DEFAULT_LOADBALANCER_PROVIDER) -> ProviderProfile:
    """Extraction rules for a raw provider tag, falling back to the generic fields."""
    if provider == loadbalancer_provider:
        return LOADBALANCER_PROFILE
    return _PROVIDERS.get(provider, DEFAULT_PROFILE)
