"""Application configuration from environment."""
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

# Load .env from project root (parent of app/) so env vars are available everywhere
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)

BCRYPT_MIN_COST = 4
BCRYPT_DEFAULT_COST = 12


class Settings(BaseSettings):
    app_name: str = "Greenlight Accounts"
    app_env: str = "development"
    debug: bool = True
    app_base_url: str = "http://localhost:8000"

    database_url: str = "sqlite:///./greenlight.db"

    jwt_secret_key: str = "jwt-secret-change-me"
    jwt_algorithm: str = "HS256"

    @field_validator("jwt_secret_key")
    @classmethod
    def strip_jwt_secret(cls, v: str) -> str:
        return (v or "").strip()

    jwt_access_token_expire_minutes: int = 60

    # Require local sign-ups to accept the terms of service
    terms_enabled: bool = False
    # Use the cheapest bcrypt work factor (tests, local dev)
    bcrypt_min_cost: bool = False

    # Provider tag sent by the load balancer; the tenant name becomes the provider
    loadbalancer_provider: str = "bn_launcher"
    home_room_name: str = "Home Room"
    password_reset_expire_hours: int = 2

    mailgun_api_key: str = ""
    mailgun_domain: str = ""
    mailgun_base_url: str = "https://api.mailgun.net"
    mailgun_from_email: str = "noreply@greenlight.local"
    mailgun_from_name: str = "Greenlight"

    @field_validator("mailgun_api_key", "mailgun_domain", "mailgun_base_url", "mailgun_from_email", mode="before")
    @classmethod
    def strip_mailgun(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("app_base_url", mode="before")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")

    class Config:
        env_file = str(_env_path)
        extra = "ignore"


def bcrypt_cost(settings: Settings) -> int:
    """Work factor for new digests: minimal outside production-like envs that ask for it."""
    if settings.bcrypt_min_cost or settings.app_env == "test":
        return BCRYPT_MIN_COST
    return BCRYPT_DEFAULT_COST


@lru_cache
def get_settings() -> Settings:
    return Settings()
