import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from phoneshop.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(user_id: int, role: str) -> str:
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "role": role,
        "type": "access",
        "iss": settings.issuer,
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm], issuer=settings.issuer)


def new_refresh_token() -> tuple[str, str]:
    """Return ``(session_id, raw_token)``; the raw token is ``<session_id>.<secret>``."""
    session_id = secrets.token_urlsafe(24)
    return session_id, f"{session_id}.{secrets.token_urlsafe(48)}"


def hash_token(raw_token: str) -> str:
    return hashlib.sha256(f"{raw_token}:{settings.secret_key}".encode("utf-8")).hexdigest()
