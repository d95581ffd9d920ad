"""PIN hashing and session tokens"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from majubersama_pos.config import settings

pin_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SESSION_SUBJECT = "kasir"


def hash_pin(pin: str) -> str:
    return pin_context.hash(pin)


def verify_pin(plain_pin: str, hashed_pin: str) -> bool:
    return pin_context.verify(plain_pin, hashed_pin)


def create_access_token(expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode(
        {"sub": SESSION_SUBJECT, "exp": expire},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a session token.

    Returns:
        Token payload, or None when the signature is wrong or the token expired
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("sub") != SESSION_SUBJECT:
        return None
    return payload
