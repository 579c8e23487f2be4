"""Conversation models and paginated views."""

import math
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from supportdesk.core.timeutils import utcnow
from supportdesk.models.message import Message


class ConversationType(str, Enum):
    """Channel a conversation arrived on."""

    CHAT = "chat"
    EMAIL = "email"


class ConversationStatus(str, Enum):
    """Status of a conversation.

    Any status may follow any other; only CLOSED has a side effect
    (it stamps ``closed_at``).
    """

    OPEN = "open"  # Waiting on the support team
    IN_PROGRESS = "in_progress"  # Answered by an agent or the AI
    CLOSED = "closed"
    ARCHIVED = "archived"


class ConversationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Conversation(BaseModel):
    """A thread of messages between an end customer and a tenant."""

    id: str = Field(..., description="Unique conversation identifier")
    tenant_id: str = Field(..., description="Tenant this conversation belongs to")

    type: ConversationType = ConversationType.CHAT
    status: ConversationStatus = ConversationStatus.OPEN
    subject: str | None = None
    priority: ConversationPriority = ConversationPriority.MEDIUM

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    closed_at: datetime | None = None


class ConversationSummary(Conversation):
    """Conversation row as shown in listings."""

    last_message: Message | None = None
    message_count: int = 0


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class ConversationPage(BaseModel):
    conversations: list[ConversationSummary]
    pagination: Pagination


class MessagePage(BaseModel):
    messages: list[Message]
    pagination: Pagination


class ConversationStats(BaseModel):
    """Per-tenant conversation counters."""

    total: int = 0
    open: int = 0
    in_progress: int = 0
    closed: int = 0
    today_count: int = 0


class ConversationCreate(BaseModel):
    """Schema for creating a conversation from the dashboard."""

    client_id: str = Field(..., min_length=1)
    type: ConversationType = ConversationType.CHAT
    subject: str | None = None
    priority: ConversationPriority = ConversationPriority.MEDIUM
