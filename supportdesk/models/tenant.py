"""Tenant models for multi-tenancy support."""

from datetime import datetime

from pydantic import BaseModel, Field

from supportdesk.core.timeutils import utcnow


class Tenant(BaseModel):
    """Tenant (customer organization) model, called "client" on the wire."""

    id: str = Field(..., description="Unique tenant identifier")
    name: str = Field(..., description="Tenant display name")
    domain: str = Field(..., description="Domain the chat widget is embedded on")
    website: str | None = None
    user_id: str | None = Field(default=None, description="Owning operator account")
    is_active: bool = True

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TenantCreate(BaseModel):
    """Schema for creating a tenant."""

    name: str = Field(..., min_length=1, max_length=100)
    domain: str = Field(..., min_length=1)
    website: str | None = None
