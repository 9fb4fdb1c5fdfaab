"""Tests for the pure User helpers: token checks, reset expiry, room ordering, slug chunk."""
from datetime import datetime, timedelta, timezone

import pytest

from app.models.room import Room
from app.models.user import NAME_CHUNK_CHARSET, User
from app.services.auth import digest, new_token
from tests.conftest import COST

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class TestGreenlightAccount:
    def test_local_provider(self):
        assert User(provider="greenlight").greenlight_account() is True

    def test_federated_provider(self):
        assert User(provider="google").greenlight_account() is False


class TestAuthenticated:
    def test_false_without_digest(self):
        user = User(provider="greenlight")
        assert user.authenticated("activation", "anything") is False
        assert user.authenticated("reset", "anything") is False

    def test_matches_stored_digest(self):
        token = new_token()
        user = User(provider="greenlight", reset_digest=digest(token, cost=COST))
        assert user.authenticated("reset", token) is True
        assert user.authenticated("reset", new_token()) is False

    def test_kinds_are_independent(self):
        token = new_token()
        user = User(provider="greenlight", activation_digest=digest(token, cost=COST))
        assert user.authenticated("activation", token) is True
        assert user.authenticated("reset", token) is False

    def test_create_activation_digest_keeps_raw_token_in_memory(self):
        user = User(provider="greenlight")
        user.create_activation_digest(COST)
        assert user.activation_token
        assert user.activation_digest != user.activation_token
        assert user.authenticated("activation", user.activation_token) is True

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            User(provider="greenlight").authenticated("password", "x")


class TestPasswordResetExpired:
    def test_fresh_reset_not_expired(self):
        user = User(reset_sent_at=NOW)
        assert user.password_reset_expired(now=NOW) is False
        assert user.password_reset_expired(now=NOW + timedelta(hours=2)) is False

    def test_expires_after_two_hours(self):
        user = User(reset_sent_at=NOW)
        assert user.password_reset_expired(now=NOW + timedelta(hours=2, seconds=1)) is True

    def test_naive_timestamps_treated_as_utc(self):
        user = User(reset_sent_at=NOW.replace(tzinfo=None))
        assert user.password_reset_expired(now=NOW + timedelta(minutes=30)) is False

    def test_never_issued_counts_as_expired(self):
        assert User().password_reset_expired(now=NOW) is True

    def test_custom_window(self):
        user = User(reset_sent_at=NOW)
        assert user.password_reset_expired(now=NOW + timedelta(hours=2), expire_hours=1) is True


class TestSecondaryRooms:
    def test_orders_used_rooms_then_unused_and_skips_main(self):
        t1 = NOW - timedelta(days=2)
        t2 = NOW - timedelta(days=1)
        main = Room(name="Home Room", uid="m", bbb_id="m")
        a = Room(name="A", uid="a", bbb_id="a", last_session=t2)
        b = Room(name="B", uid="b", bbb_id="b")
        c = Room(name="C", uid="c", bbb_id="c", last_session=t1)
        user = User(name="Alice", provider="greenlight")
        user.rooms = [main, a, b, c]
        user.main_room = main

        assert user.secondary_rooms() == [c, a, b]

    def test_unused_rooms_keep_relation_order(self):
        first = Room(name="first", uid="f", bbb_id="f")
        second = Room(name="second", uid="s", bbb_id="s")
        user = User(name="Alice", provider="greenlight")
        user.rooms = [first, second]

        assert user.secondary_rooms() == [first, second]

    def test_no_rooms(self):
        assert User(name="Alice", provider="greenlight").secondary_rooms() == []


class TestNameChunk:
    def test_takes_first_three_slug_characters(self):
        assert User(name="Johnathan Smith").name_chunk() == "joh"

    def test_slugifies_before_slicing(self):
        assert User(name="  Éva Ng").name_chunk() == "eva"

    def test_untransliterable_characters_become_separators(self):
        assert User(name="ab\u65e5c").name_chunk() == "ab-"

    @pytest.mark.parametrize("name, prefix", [("Jo", "jo"), ("J", "j"), ("!!!", ""), ("", "")])
    def test_pads_short_names_with_safe_characters(self, name, prefix):
        for _ in range(50):
            chunk = User(name=name).name_chunk()
            assert len(chunk) == 3
            assert chunk.startswith(prefix)
            assert all(c in NAME_CHUNK_CHARSET for c in chunk[len(prefix):])

    def test_charset_excludes_confusable_characters(self):
        for c in "bilos58":
            assert c not in NAME_CHUNK_CHARSET
        assert "a" in NAME_CHUNK_CHARSET
        assert "2" in NAME_CHUNK_CHARSET
