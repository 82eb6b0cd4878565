"""
Session credentials and password hashing.

Credentials are HS256 JWTs signed with ``JWT_SECRET``. The embedded role is
informational only: verification re-resolves the user from the directory so a
role change takes effect before the token expires. Tokens cannot be revoked
individually; they stay valid until ``exp``.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFound, Unauthenticated
from app.services import directory
from app.services.directory import Identity

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(BCRYPT_ROUNDS)).decode("utf-8")


def check_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def _require_secret() -> str:
    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET is not configured; refusing to sign or verify credentials")
        raise Unauthenticated("Server configuration error: JWT secret not set")
    return settings.JWT_SECRET


def create_access_token(user_id: int, role: int, now: Optional[datetime] = None) -> str:
    """Sign a credential binding {user id, role, issued-at, expiry}."""
    secret = _require_secret()
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "role": int(role),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Check signature and expiry and return the claims.

    Raises:
        Unauthenticated: empty token, bad signature, expired, or no signing secret.
    """
    if not token:
        raise Unauthenticated("Access token required")
    secret = _require_secret()
    try:
        return jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except JWTError as e:
        logger.info("Rejected credential: %s", e)
        raise Unauthenticated("Invalid or expired token")


def verify(db: Session, token: str) -> Identity:
    """
    Resolve a bearer token to the caller's *current* identity.

    The user id comes from the token; the role comes from the directory.
    """
    payload = decode_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token")

    try:
        return directory.resolve(db, user_id)
    except NotFound:
        logger.info("Credential for unknown user %s rejected", user_id)
        raise Unauthenticated("Invalid token")
