"""Operator account models."""

from datetime import datetime

from pydantic import BaseModel, Field

from supportdesk.core.timeutils import utcnow


class User(BaseModel):
    """Operator account as stored."""

    id: str
    email: str
    password_hash: str
    name: str
    is_active: bool = True

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_public(self) -> "UserPublic":
        return UserPublic(id=self.id, email=self.email, name=self.name)


class UserPublic(BaseModel):
    """Minimal user projection returned to callers."""

    id: str
    email: str
    name: str


class AuthTokens(BaseModel):
    """Access/refresh token pair."""

    access_token: str
    refresh_token: str


class AuthSession(BaseModel):
    """Result of a successful register or login."""

    user: UserPublic
    tokens: AuthTokens
