"""Token issuance, bcrypt digests and session JWTs."""
import secrets
from datetime import datetime, timezone, timedelta

import bcrypt
import jwt
from app.config import BCRYPT_DEFAULT_COST, get_settings

# 16 random bytes -> 128-bit URL-safe token (22 chars)
TOKEN_BYTES = 16


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def new_token() -> str:
    """Random URL-safe token. Not checked against stored digests."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def digest(secret: str, cost: int = BCRYPT_DEFAULT_COST) -> str:
    """Salted bcrypt digest of a token or password."""
    return bcrypt.hashpw(_pwd_bytes(secret), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_digest(secret: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_pwd_bytes(secret or ""), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash
        return False


def get_password_hash(password: str, cost: int = BCRYPT_DEFAULT_COST) -> str:
    return digest(password, cost=cost)


def verify_password(plain: str, hashed: str | None) -> bool:
    return verify_digest(plain, hashed)


def create_access_token(user_id: int, email: str | None, provider: str) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    # PyJWT expects "sub" to be a string
    payload = {"sub": str(user_id), "email": email, "provider": provider, "exp": expire}
    raw = jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return raw if isinstance(raw, str) else raw.decode("utf-8")


def decode_token(token: str) -> dict | None:
    payload, _ = decode_token_with_error(token)
    return payload


def decode_token_with_error(token: str) -> tuple[dict | None, str | None]:
    """Decode JWT; returns (payload, error_message)."""
    if not token or not isinstance(token, str):
        return None, "empty token"
    token = token.strip()
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload, None
    except jwt.ExpiredSignatureError as e:
        return None, str(e)
    except jwt.PyJWTError as e:
        return None, str(e)
