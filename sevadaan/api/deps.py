# sevadaan/api/deps.py

from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.config import Settings
from sevadaan.core.database import get_session
from sevadaan.core.security import decode_token
from sevadaan.models.user import User
from sevadaan.services.auth_service import get_user_by_id


# ------------------------------------------------------------
# HTTP Bearer Authentication
# ------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------
# Settings (stored on the app by create_app)
# ------------------------------------------------------------
def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# ------------------------------------------------------------
# DB Session
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# ------------------------------------------------------------
# Resolve a user from a raw access token
# ------------------------------------------------------------
async def resolve_user(session: AsyncSession, settings: Settings, token: str) -> User:
    try:
        payload = decode_token(settings, token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(401, "Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(401, "Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(401, "Invalid token payload")

    user = await get_user_by_id(session, user_id)
    if not user:
        raise HTTPException(401, "User not found")
    if not user.is_active:
        raise HTTPException(401, "Account is deactivated")

    return user


# ------------------------------------------------------------
# Get current logged-in user from JWT
# ------------------------------------------------------------
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> User:
    if credentials is None or not credentials.credentials:
        raise HTTPException(401, "Authentication required", headers={"WWW-Authenticate": "Bearer"})
    return await resolve_user(session, settings, credentials.credentials)


# ------------------------------------------------------------
# Same as above but anonymous callers get None
# ------------------------------------------------------------
async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await resolve_user(session, settings, credentials.credentials)
    except HTTPException:
        return None
