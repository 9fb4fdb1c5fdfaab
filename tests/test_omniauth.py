"""Tests for federated account resolution from auth-gateway payloads."""
import pytest

from app.exceptions import ValidationError
from app.models.user import User
from app.schemas.omniauth import AuthInfo, AuthPayload
from app.services import accounts
from app.services.omniauth import DEFAULT_PROFILE, get_provider_profile
from tests.conftest import COST


def _auth(provider="github", uid="123", **info):
    base = {"name": "Octo Cat", "nickname": "octocat", "email": "Octo@Example.com", "image": "https://x.test/o.png"}
    base.update(info)
    return {"provider": provider, "uid": uid, "info": base}


class TestFromOmniauth:
    def test_creates_verified_account_with_main_room(self, db):
        user = accounts.from_omniauth(db, _auth(), cost=COST)

        assert user.id is not None
        assert user.provider == "github"
        assert user.social_uid == "123"
        assert user.name == "Octo Cat"
        assert user.username == "octocat"
        assert user.email == "octo@example.com"
        assert user.image == "https://x.test/o.png"
        assert user.email_verified is True
        assert user.password_digest is None
        assert user.main_room is not None

    def test_second_sign_in_updates_existing_account(self, db):
        first = accounts.from_omniauth(db, _auth(), cost=COST)
        second = accounts.from_omniauth(
            db, _auth(name="New Name", email="new@example.com", image="https://x.test/new.jpg"), cost=COST
        )

        assert second.id == first.id
        assert db.query(User).count() == 1
        assert second.email == "new@example.com"
        assert second.image == "https://x.test/new.jpg"
        # name is only filled when unset
        assert second.name == "Octo Cat"

    def test_same_uid_other_provider_is_another_account(self, db):
        accounts.from_omniauth(db, _auth(provider="github"), cost=COST)
        accounts.from_omniauth(db, _auth(provider="gitlab"), cost=COST)
        assert db.query(User).count() == 2

    def test_numeric_uid_accepted(self, db):
        payload = _auth()
        payload["uid"] = 42
        user = accounts.from_omniauth(db, payload, cost=COST)
        assert user.social_uid == "42"

    def test_accepts_parsed_payload(self, db):
        payload = AuthPayload(provider="github", uid="9", info=AuthInfo(name="P", nickname="p"))
        user = accounts.from_omniauth(db, payload, cost=COST)
        assert user.username == "p"
        assert user.email is None

    def test_blank_emails_do_not_collide(self, db):
        first = accounts.from_omniauth(db, _auth(provider="twitter", uid="1", email="", image=None), cost=COST)
        second = accounts.from_omniauth(db, _auth(provider="twitter", uid="2", email="", image=None), cost=COST)

        assert first.id != second.id
        assert first.email is None
        assert second.email is None

    def test_invalid_image_fails_and_writes_nothing(self, db):
        with pytest.raises(ValidationError) as exc:
            accounts.from_omniauth(db, _auth(image="https://x.test/o.gif"), cost=COST)
        assert exc.value.field == "image"
        assert db.query(User).count() == 0


class TestProviderRules:
    def test_google_username_from_email(self, db):
        user = accounts.from_omniauth(db, _auth(provider="google", email="jane.doe@gmail.com"), cost=COST)
        assert user.username == "jane.doe"

    def test_twitter_image_forced_https_full_size(self, db):
        user = accounts.from_omniauth(
            db, _auth(provider="twitter", image="http://pbs.twimg.com/profile_images/1/me_normal.png"), cost=COST
        )
        assert user.image == "https://pbs.twimg.com/profile_images/1/me.png"

    def test_twitter_https_image_left_https(self, db):
        user = accounts.from_omniauth(
            db, _auth(provider="twitter", image="https://pbs.twimg.com/profile_images/1/me_normal.jpg"), cost=COST
        )
        assert user.image == "https://pbs.twimg.com/profile_images/1/me.jpg"

    def test_office365_display_name_and_no_image(self, db):
        user = accounts.from_omniauth(
            db, _auth(provider="microsoft_office365", name="ignored", display_name="Jane Office"), cost=COST
        )
        assert user.name == "Jane Office"
        assert user.image is None

    def test_loadbalancer_uses_customer_as_provider(self, db):
        user = accounts.from_omniauth(
            db, _auth(provider="bn_launcher", customer="acme", username="jdoe"), cost=COST
        )
        assert user.provider == "acme"
        assert user.username == "jdoe"

    def test_loadbalancer_sentinel_is_configurable(self, db):
        user = accounts.from_omniauth(
            db, _auth(provider="lb", customer="acme", username="jdoe"), loadbalancer_provider="lb", cost=COST
        )
        assert user.provider == "acme"
        assert user.username == "jdoe"

    def test_default_sentinel_is_an_ordinary_provider_when_reconfigured(self, db):
        user = accounts.from_omniauth(
            db, _auth(provider="bn_launcher", username="jdoe"), loadbalancer_provider="lb", cost=COST
        )
        assert user.provider == "bn_launcher"
        assert user.username == "octocat"

    def test_unknown_provider_uses_generic_fields(self):
        assert get_provider_profile("some_new_idp") is DEFAULT_PROFILE
