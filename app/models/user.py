"""Accounts: local (greenlight) and federated identities."""
import random
import re
import string
import unicodedata
from datetime import datetime, timezone, timedelta

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.services.auth import new_token, digest, verify_digest, verify_password

GREENLIGHT_PROVIDER = "greenlight"
PASSWORD_RESET_EXPIRE_HOURS = 2

# Room slug padding: no b/i/l/o/s and no 5/8, they read too much alike
NAME_CHUNK_CHARSET = [c for c in string.ascii_lowercase if c not in "bilos"] + [c for c in "23456789" if c not in "58"]
NAME_CHUNK_LENGTH = 3

TOKEN_KINDS = ("activation", "reset")


def _parameterize(value: str) -> str:
    """URL-safe slug: ascii, lowercase, runs of other characters collapsed to '-'."""
    decomposed = unicodedata.normalize("NFKD", value or "")
    # Accents fall away; characters with no ascii form become separators
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    slug = re.sub(r"[^a-z0-9\-_]+", "-", stripped.lower(), flags=re.ASCII)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", "provider", name="uq_users_email_provider"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(256), nullable=False)
    email = Column(String(256), nullable=True, index=True)
    username = Column(String(256), nullable=True)
    provider = Column(String(64), nullable=False)
    social_uid = Column(String(255), nullable=True, index=True)
    image = Column(String(1024), nullable=True)

    # Conferencing server user id, assigned once after the first insert
    uid = Column(String(32), nullable=True, unique=True)

    password_digest = Column(String(255), nullable=True)
    accepted_terms = Column(Boolean, default=False, nullable=False)

    email_verified = Column(Boolean, default=False, nullable=False)
    activation_digest = Column(String(255), nullable=True)
    activated_at = Column(DateTime(timezone=True), nullable=True)

    reset_digest = Column(String(255), nullable=True)
    reset_sent_at = Column(DateTime(timezone=True), nullable=True)

    room_id = Column(Integer, ForeignKey("rooms.id", use_alter=True, name="fk_users_main_room"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    rooms = relationship("Room", back_populates="owner", foreign_keys="Room.user_id", order_by="Room.id")
    main_room = relationship("Room", foreign_keys=[room_id], post_update=True)

    # Transient, never persisted: raw tokens live only for the current request
    activation_token = None
    reset_token = None
    # Set on sign-up / reset; hashed into password_digest on save
    password = None
    password_confirmation = None

    def greenlight_account(self) -> bool:
        return self.provider == GREENLIGHT_PROVIDER

    def authenticate(self, password: str) -> bool:
        """True if the password matches this local account's digest."""
        return verify_password(password, self.password_digest)

    def authenticated(self, attribute: str, token: str) -> bool:
        """True if token matches the stored digest for attribute ("activation" or "reset")."""
        if attribute not in TOKEN_KINDS:
            raise ValueError(f"Unknown token kind: {attribute}")
        stored = getattr(self, f"{attribute}_digest")
        if stored is None:
            return False
        return verify_digest(token, stored)

    def create_activation_digest(self, cost: int) -> None:
        self.activation_token = new_token()
        self.activation_digest = digest(self.activation_token, cost=cost)

    def password_reset_expired(self, now: datetime | None = None, expire_hours: int = PASSWORD_RESET_EXPIRE_HOURS) -> bool:
        """True once more than expire_hours have passed since the reset was issued."""
        if self.reset_sent_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return _as_utc(self.reset_sent_at) < _as_utc(now) - timedelta(hours=expire_hours)

    def secondary_rooms(self) -> list:
        """Rooms other than the main room: used ones by last session, then never-used ones."""
        secondary = [room for room in self.rooms if room is not self.main_room]
        session = [room for room in secondary if room.last_session is not None]
        no_session = [room for room in secondary if room.last_session is None]
        return sorted(session, key=lambda room: _as_utc(room.last_session)) + no_session

    def name_chunk(self) -> str:
        """Three-character room slug prefix from the name, padded with random safe characters."""
        chunk = _parameterize(self.name)[:NAME_CHUNK_LENGTH]
        padding = NAME_CHUNK_LENGTH - len(chunk)
        return chunk + "".join(random.choice(NAME_CHUNK_CHARSET) for _ in range(padding))
