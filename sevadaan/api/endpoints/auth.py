# sevadaan/api/endpoints/auth.py

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_app_settings, get_current_user, get_db_session
from sevadaan.core.config import Settings
from sevadaan.core.rate_limiter import AUTH_LIMIT, limiter
from sevadaan.core.responses import ok
from sevadaan.models.user import User
from sevadaan.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from sevadaan.schemas.user import ProfileUpdate, UserRead
from sevadaan.services import auth_service, user_service
from sevadaan.services.email_service import send_password_reset_email, send_welcome_email

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


# -------------------------------------------------------------------
# REGISTER
# -------------------------------------------------------------------
@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request,
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
):
    user = await auth_service.create_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        phone=payload.phone,
    )
    tokens = await auth_service.issue_tokens(session, settings, user)

    background_tasks.add_task(
        send_welcome_email, settings, {"email": user.email, "name": user.name, "role": user.role.value}
    )
    return ok(tokens, "Registration successful")


# -------------------------------------------------------------------
# LOGIN / REFRESH / LOGOUT
# -------------------------------------------------------------------
@router.post("/login")
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
):
    tokens = await auth_service.authenticate(session, settings, payload.email, payload.password)
    return ok(tokens, "Login successful")


@router.post("/refresh")
async def refresh(
    payload: RefreshRequest,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
):
    tokens = await auth_service.refresh_session(session, settings, payload.refresh_token)
    return ok(tokens, "Token refreshed")


@router.post("/logout")
async def logout(
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    await auth_service.logout(session, current_user)
    return ok(message="Logged out")


# -------------------------------------------------------------------
# PROFILE
# -------------------------------------------------------------------
@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return ok(UserRead.model_validate(current_user))


@router.put("/me")
async def update_me(
    payload: ProfileUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    user = await user_service.update_profile(session, current_user, payload)
    return ok(UserRead.model_validate(user), "Profile updated")


# -------------------------------------------------------------------
# PASSWORDS
# -------------------------------------------------------------------
@router.post("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    await auth_service.change_password(session, current_user, payload.current_password, payload.new_password)
    return ok(message="Password changed. Please log in again.")


@router.post("/forgot-password")
@limiter.limit(AUTH_LIMIT)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
):
    issued = await auth_service.request_password_reset(session, settings, payload.email)
    if issued:
        user, otp = issued
        background_tasks.add_task(
            send_password_reset_email, settings, {"email": user.email, "name": user.name, "otp": otp}
        )
    # Same answer for unknown emails
    return ok(message="If the email is registered, a reset code has been sent")


@router.post("/reset-password")
@limiter.limit(AUTH_LIMIT)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    session: AsyncSession = Depends(get_db_session),
):
    await auth_service.reset_password(session, payload.email, payload.otp, payload.new_password)
    return ok(message="Password reset successful")
