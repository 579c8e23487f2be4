"""Operator authentication endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel, EmailStr, Field

from supportdesk.api.dependencies import AuthServiceDep, CurrentUserDep
from supportdesk.models import AuthSession, AuthTokens, UserPublic

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ==================== Pydantic Schemas ====================


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=128)


class MessageResponse(BaseModel):
    message: str


# ==================== Endpoints ====================


@router.post("/register", response_model=AuthSession, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, auth: AuthServiceDep) -> AuthSession:
    return await auth.register(data.email, data.password, data.name)


@router.post("/login", response_model=AuthSession)
async def login(data: LoginRequest, auth: AuthServiceDep) -> AuthSession:
    return await auth.login(data.email, data.password)


@router.post("/refresh-token", response_model=AuthTokens)
async def refresh_token(data: RefreshRequest, auth: AuthServiceDep) -> AuthTokens:
    return await auth.refresh(data.refresh_token)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(data: ForgotPasswordRequest, auth: AuthServiceDep) -> MessageResponse:
    """Always succeeds so callers cannot probe which emails are registered."""
    await auth.forgot_password(data.email)
    return MessageResponse(message="If the email exists, a reset link has been sent")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, auth: AuthServiceDep) -> MessageResponse:
    await auth.reset_password(data.token, data.password)
    return MessageResponse(message="Password reset successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(user: CurrentUserDep, auth: AuthServiceDep) -> MessageResponse:
    await auth.logout(user.id)
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=UserPublic)
async def profile(user: CurrentUserDep) -> UserPublic:
    return user
