# sevadaan/services/auth_service.py

import uuid
from datetime import timedelta
from typing import Iterable, Optional

import jwt
from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.config import Settings
from sevadaan.core.errors import BadRequestError, ConflictError, UnauthorizedError
from sevadaan.core.permissions import Role
from sevadaan.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_otp,
    hash_password,
    verify_password,
)
from sevadaan.models.common import utcnow
from sevadaan.models.user import User
from sevadaan.schemas.auth import TokenWithUser
from sevadaan.schemas.user import UserRead


def as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


# ============================================================================
# FETCH USER BY EMAIL
# ============================================================================
async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


# ============================================================================
# FETCH USER BY ID
# ============================================================================
async def get_user_by_id(session: AsyncSession, user_id) -> User | None:
    parsed = as_uuid(user_id)
    if parsed is None:
        return None
    return await session.get(User, parsed)


# ============================================================================
# CREATE USER
# ============================================================================
async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: Role,
    phone: str | None = None,
    ngo_id: uuid.UUID | None = None,
    permissions: Iterable[str] | None = None,
) -> User:

    # NGO_MANAGER accounts only exist inside an NGO
    if role == Role.NGO_MANAGER and ngo_id is None:
        raise BadRequestError("NGO managers must belong to an NGO")

    if await get_user_by_email(session, email):
        raise ConflictError("A user with this email already exists")

    user = User(
        name=name.strip(),
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=role,
        phone=phone,
        ngo_id=ngo_id,
        permissions=list(permissions or []),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    logger.info(f"Created {role.value} account {user.email}")
    return user


# ============================================================================
# TOKENS
# ============================================================================
async def issue_tokens(session: AsyncSession, settings: Settings, user: User) -> TokenWithUser:
    access_token = create_access_token(
        settings,
        subject=user.id,
        data={
            "role": user.role.value,
            "email": user.email,
            "ngo_id": str(user.ngo_id) if user.ngo_id else None,
        },
    )
    refresh_token = create_refresh_token(settings, subject=user.id)

    # Only the latest refresh token is honoured
    user.refresh_token = refresh_token
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return TokenWithUser(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=int(timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES).total_seconds()),
        user=UserRead.model_validate(user),
    )


async def authenticate(session: AsyncSession, settings: Settings, email: str, password: str) -> TokenWithUser:
    user = await get_user_by_email(session, email)

    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    if not user.is_active:
        raise UnauthorizedError("Account is deactivated")

    user.last_login = utcnow()
    return await issue_tokens(session, settings, user)


async def refresh_session(session: AsyncSession, settings: Settings, refresh_token: str) -> TokenWithUser:
    try:
        payload = decode_refresh_token(settings, refresh_token)
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid or expired refresh token")

    user = await get_user_by_id(session, payload.get("sub"))
    if not user or not user.is_active:
        raise UnauthorizedError("Invalid refresh token")
    if user.refresh_token != refresh_token:
        # An older (already rotated) token is being replayed
        raise UnauthorizedError("Refresh token has been revoked")

    return await issue_tokens(session, settings, user)


async def logout(session: AsyncSession, user: User) -> None:
    user.refresh_token = None
    session.add(user)
    await session.commit()


# ============================================================================
# PASSWORDS
# ============================================================================
async def change_password(session: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise BadRequestError("Current password is incorrect")
    if current_password == new_password:
        raise BadRequestError("New password must be different from the current password")

    user.password_hash = hash_password(new_password)
    user.refresh_token = None
    session.add(user)
    await session.commit()


async def request_password_reset(session: AsyncSession, settings: Settings, email: str) -> tuple[User, str] | None:
    """
    Stores a fresh OTP on the user. Returns None for unknown emails so the
    endpoint can answer identically either way.
    """
    user = await get_user_by_email(session, email)
    if not user or not user.is_active:
        return None

    otp = generate_otp()
    user.otp_code = hash_password(otp)
    user.otp_expires_at = utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
    session.add(user)
    await session.commit()
    return user, otp


async def reset_password(session: AsyncSession, email: str, otp: str, new_password: str) -> None:
    user = await get_user_by_email(session, email)

    if (
        not user
        or not user.otp_code
        or not user.otp_expires_at
        or user.otp_expires_at < utcnow()
        or not verify_password(otp, user.otp_code)
    ):
        raise BadRequestError("Invalid or expired OTP")

    user.password_hash = hash_password(new_password)
    user.otp_code = None
    user.otp_expires_at = None
    user.refresh_token = None
    session.add(user)
    await session.commit()
