"""Account lifecycle: validation, persistence, reset/activation tokens, federated sign-in.

Environment-dependent behavior (bcrypt cost, terms-of-service toggle, home room
name, load balancer provider tag) is passed in by the caller; nothing here reads
settings.
"""
import logging
import random
import re
import string
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import BCRYPT_DEFAULT_COST
from app.exceptions import NotFoundError, PersistenceError, ValidationError
from app.models.user import User, GREENLIGHT_PROVIDER
from app.schemas.omniauth import AuthPayload
from app.services.auth import new_token, digest, get_password_hash
from app.services.omniauth import DEFAULT_LOADBALANCER_PROVIDER, get_provider_profile
from app.services.rooms import create_room, destroy_rooms

logger = logging.getLogger("uvicorn.error")

NAME_MAX_LENGTH = 256
EMAIL_MAX_LENGTH = 256
PASSWORD_MIN_LENGTH = 6
EMAIL_PATTERN = re.compile(r"\A[\w+\-.]+@[a-z\d\-.]+\.[a-z]+\Z", re.IGNORECASE | re.ASCII)
IMAGE_PATTERN = re.compile(r"\.(png|jpg)\Z", re.IGNORECASE)

DEFAULT_HOME_ROOM_NAME = "Home Room"
USER_UID_PREFIX = "gl-"
USER_UID_LENGTH = 12


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _generate_user_uid() -> str:
    return USER_UID_PREFIX + "".join(random.choices(string.ascii_lowercase, k=USER_UID_LENGTH))


def _commit(db: Session) -> None:
    """Commit, translating store failures. The session is rolled back on error."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        msg = str(getattr(e, "orig", None) or e)
        if "email" in msg.lower():
            raise ValidationError("email", "uniqueness", "Email has already been taken") from e
        raise PersistenceError(msg) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(str(e)) from e


def _validate_password(password: str | None, confirmation: str | None) -> None:
    if password is None or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            "password", "too_short", f"Password is too short (minimum is {PASSWORD_MIN_LENGTH} characters)"
        )
    if confirmation is not None and confirmation != password:
        raise ValidationError("password_confirmation", "confirmation", "Password confirmation doesn't match Password")


def email_taken(db: Session, email: str, provider: str, exclude_id: int | None = None) -> bool:
    """Case-insensitive (email, provider) lookup."""
    q = db.query(User.id).filter(func.lower(User.email) == email.lower(), User.provider == provider)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


def validate_user(db: Session, user: User, *, creating: bool, terms_required: bool = False) -> None:
    """Raise ValidationError for the first failing rule. Expects email already lowercased."""
    if not (user.name or "").strip():
        raise ValidationError("name", "blank", "Name can't be blank")
    if len(user.name) > NAME_MAX_LENGTH:
        raise ValidationError("name", "too_long", f"Name is too long (maximum is {NAME_MAX_LENGTH} characters)")

    if not (user.provider or "").strip():
        raise ValidationError("provider", "blank", "Provider can't be blank")

    if user.image and not IMAGE_PATTERN.search(user.image):
        raise ValidationError("image", "invalid", "Image must be a .png or .jpg")

    if user.email:
        if len(user.email) > EMAIL_MAX_LENGTH:
            raise ValidationError("email", "too_long", f"Email is too long (maximum is {EMAIL_MAX_LENGTH} characters)")
        if not EMAIL_PATTERN.match(user.email):
            raise ValidationError("email", "invalid", "Email is invalid")
        if email_taken(db, user.email, user.provider, exclude_id=user.id):
            raise ValidationError("email", "uniqueness", "Email has already been taken")

    if creating and user.greenlight_account():
        _validate_password(user.password, user.password_confirmation)
        if terms_required and not user.accepted_terms:
            raise ValidationError("accepted_terms", "accepted", "Terms must be accepted")

    room = user.main_room
    if room is not None and room.owner is not user and (user.id is None or room.user_id != user.id):
        raise ValidationError("main_room", "ownership", "Main room must belong to the account")


def initialize_main_room(db: Session, user: User, home_room_name: str = DEFAULT_HOME_ROOM_NAME) -> None:
    """Create and link the account's main room. Caller commits."""
    user.main_room = create_room(db, user, home_room_name)


def save_user(
    db: Session,
    user: User,
    *,
    cost: int = BCRYPT_DEFAULT_COST,
    terms_required: bool = False,
    home_room_name: str = DEFAULT_HOME_ROOM_NAME,
) -> User:
    """Validate and persist. First insert also issues the activation digest,
    assigns the conferencing uid and, for verified accounts, the main room."""
    creating = user.id is None
    # Blank emails are stored as NULL so (email, provider) uniqueness ignores them
    user.email = user.email.lower() if user.email else None

    with db.no_autoflush:
        validate_user(db, user, creating=creating, terms_required=terms_required)

    if user.password is not None:
        user.password_digest = get_password_hash(user.password, cost=cost)
        user.password = None
        user.password_confirmation = None
    if creating:
        user.create_activation_digest(cost)

    db.add(user)
    _commit(db)

    if creating:
        user.uid = _generate_user_uid()
        if user.email_verified:
            initialize_main_room(db, user, home_room_name)
        _commit(db)
        logger.info("Account created: id=%s provider=%s verified=%s", user.id, user.provider, user.email_verified)
    return user


def register_user(
    db: Session,
    *,
    name: str,
    email: str | None,
    password: str,
    password_confirmation: str | None = None,
    accepted_terms: bool = False,
    cost: int = BCRYPT_DEFAULT_COST,
    terms_required: bool = False,
    home_room_name: str = DEFAULT_HOME_ROOM_NAME,
) -> User:
    """Create a local (greenlight) account. It stays unverified until activated."""
    user = User(
        name=name,
        email=email,
        provider=GREENLIGHT_PROVIDER,
        accepted_terms=accepted_terms,
        email_verified=False,
    )
    user.password = password
    user.password_confirmation = password_confirmation
    return save_user(db, user, cost=cost, terms_required=terms_required, home_room_name=home_room_name)


def get_local_user_by_email(db: Session, email: str) -> User:
    user = (
        db.query(User)
        .filter(func.lower(User.email) == (email or "").strip().lower(), User.provider == GREENLIGHT_PROVIDER)
        .first()
    )
    if user is None:
        raise NotFoundError(f"No local account for {email}")
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def reissue_activation_digest(db: Session, user: User, *, cost: int = BCRYPT_DEFAULT_COST) -> User:
    """Fresh activation token for a resend; the previous link stops working."""
    user.create_activation_digest(cost)
    _commit(db)
    return user


def activate(db: Session, user: User, *, home_room_name: str = DEFAULT_HOME_ROOM_NAME) -> User:
    """Mark verified, stamp activated_at and create the main room, all in one transaction."""
    try:
        user.email_verified = True
        user.activated_at = _now()
        if user.main_room is None:
            initialize_main_room(db, user, home_room_name)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Activation failed for user {user.id}: {e}") from e
    logger.info("Account activated: id=%s", user.id)
    return user


def create_reset_digest(db: Session, user: User, *, cost: int = BCRYPT_DEFAULT_COST) -> User:
    """Issue a reset token; digest and timestamp are two separate writes."""
    user.reset_token = new_token()
    user.reset_digest = digest(user.reset_token, cost=cost)
    _commit(db)
    user.reset_sent_at = _now()
    _commit(db)
    logger.info("Password reset issued: id=%s", user.id)
    return user


def reset_password(
    db: Session,
    user: User,
    password: str,
    password_confirmation: str | None = None,
    *,
    cost: int = BCRYPT_DEFAULT_COST,
) -> User:
    """Set a new password and burn the reset digest."""
    _validate_password(password, password_confirmation)
    user.password_digest = get_password_hash(password, cost=cost)
    user.reset_digest = None
    _commit(db)
    logger.info("Password reset completed: id=%s", user.id)
    return user


def from_omniauth(
    db: Session,
    auth: AuthPayload | dict,
    *,
    loadbalancer_provider: str = DEFAULT_LOADBALANCER_PROVIDER,
    cost: int = BCRYPT_DEFAULT_COST,
    home_room_name: str = DEFAULT_HOME_ROOM_NAME,
) -> User:
    """Find or create the federated account for an auth-gateway payload and refresh it."""
    if isinstance(auth, dict):
        auth = AuthPayload.from_raw(auth)
    info = auth.info
    # Behind the load balancer the tenant name stands in for the provider
    provider = info.customer if auth.provider == loadbalancer_provider else auth.provider

    user = db.query(User).filter(User.social_uid == auth.uid, User.provider == provider).first()
    if user is None:
        user = User(social_uid=auth.uid, provider=provider)

    profile = get_provider_profile(auth.provider, loadbalancer_provider=loadbalancer_provider)
    if user.name is None:
        user.name = profile.name(info)
    if user.username is None:
        user.username = profile.username(info)
    user.email = info.email
    user.image = profile.image(info)
    user.email_verified = True

    save_user(db, user, cost=cost, home_room_name=home_room_name)
    logger.info("Federated sign-in: id=%s provider=%s", user.id, user.provider)
    return user


def destroy_user(db: Session, user: User) -> None:
    """Delete the account's rooms, then the account."""
    user_id = user.id
    user.main_room = None
    db.flush()
    removed = destroy_rooms(db, user.rooms)
    db.expire(user, ["rooms"])
    db.delete(user)
    _commit(db)
    logger.info("Account destroyed: id=%s rooms=%d", user_id, removed)
