# sevadaan/core/security.py
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from sevadaan.core.config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
ALGORITHM = "HS256"

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# ------------------------------------------------------------
# PASSWORDS
# ------------------------------------------------------------
def _pre_hash_password(password: str) -> str:
    """
    bcrypt only looks at the first 72 bytes. Longer passwords are
    SHA-256 hashed first so every character still matters.
    """
    if len(password.encode("utf-8")) <= 72:
        return password
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def hash_password(password: str) -> str:
    return pwd_context.hash(_pre_hash_password(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_pre_hash_password(plain_password), hashed_password)


def generate_otp(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


# ------------------------------------------------------------
# TOKENS
# ------------------------------------------------------------
def _encode(
    subject: Any,
    secret: str,
    token_type: str,
    expires_delta: timedelta,
    data: Optional[dict] = None,
) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": str(subject),
        "type": token_type,
        "exp": now + expires_delta,
        "iat": now,
        "nbf": now,
        # unique per token so rotation always yields a new value
        "jti": secrets.token_hex(8),
    }
    if data:
        to_encode.update(data)
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def create_access_token(
    settings: Settings,
    subject: Any,
    expires_delta: Optional[timedelta] = None,
    data: Optional[dict] = None,
) -> str:
    return _encode(
        subject,
        settings.SECRET_KEY,
        ACCESS_TOKEN_TYPE,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        data,
    )


def create_refresh_token(settings: Settings, subject: Any) -> str:
    return _encode(
        subject,
        settings.REFRESH_SECRET_KEY,
        REFRESH_TOKEN_TYPE,
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(settings: Settings, token: str) -> dict:
    """
    Decodes an access token. Raises jwt.InvalidTokenError (including
    ExpiredSignatureError) when the token cannot be trusted.
    """
    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[ALGORITHM],
        options={"verify_exp": True},
    )
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an access token")
    return payload


def decode_refresh_token(settings: Settings, token: str) -> dict:
    payload = jwt.decode(
        token,
        settings.REFRESH_SECRET_KEY,
        algorithms=[ALGORITHM],
        options={"verify_exp": True},
    )
    if payload.get("type") != REFRESH_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not a refresh token")
    return payload
