"""Knowledge base models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from supportdesk.core.timeutils import utcnow


class KnowledgeType(str, Enum):
    FAQ = "faq"
    DOCUMENT = "document"
    TEXT = "text"
    URL = "url"


class KnowledgeItem(BaseModel):
    """Tenant-authored snippet used as context for AI replies."""

    id: str
    tenant_id: str
    title: str
    content: str
    type: KnowledgeType = KnowledgeType.TEXT
    source: str | None = None
    is_active: bool = True  # False means soft-deleted

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class KnowledgeCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    type: KnowledgeType
    source: str | None = None


class KnowledgeUpdate(BaseModel):
    """Partial update; empty values leave the field unchanged."""

    title: str | None = None
    content: str | None = None
    type: KnowledgeType | None = None
    source: str | None = None
