"""Email records kept per tenant."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, EmailStr, Field

from supportdesk.core.timeutils import utcnow
from supportdesk.models.conversation import ConversationPriority, Pagination


class EmailStatus(str, Enum):
    RECEIVED = "received"  # Inbound and not yet opened
    READ = "read"
    REPLIED = "replied"
    FORWARDED = "forwarded"
    SENT = "sent"  # Outbound copy
    ARCHIVED = "archived"
    DELETED = "deleted"  # Soft delete; the row is kept


class EmailRecord(BaseModel):
    """A stored inbound or outbound email."""

    id: str
    tenant_id: str

    subject: str
    body: str
    html_body: str | None = None

    from_email: str
    from_name: str | None = None
    to_email: str
    to_name: str | None = None
    cc_emails: list[str] = Field(default_factory=list)
    bcc_emails: list[str] = Field(default_factory=list)

    status: EmailStatus = EmailStatus.RECEIVED
    priority: ConversationPriority = ConversationPriority.MEDIUM

    # Threading headers
    message_id: str | None = None
    thread_id: str | None = None
    in_reply_to: str | None = None

    attachments: list[dict[str, Any]] | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class OutgoingEmail(BaseModel):
    """Payload for sending an email on behalf of a tenant."""

    to: EmailStr
    to_name: str | None = None
    subject: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    html_body: str | None = None
    cc: list[EmailStr] = Field(default_factory=list)
    bcc: list[EmailStr] = Field(default_factory=list)
    attachments: list[dict[str, Any]] | None = None


class EmailReply(BaseModel):
    """Reply body; recipient and subject come from the original email."""

    body: str = Field(..., min_length=1)
    html_body: str | None = None
    cc: list[EmailStr] = Field(default_factory=list)
    bcc: list[EmailStr] = Field(default_factory=list)
    attachments: list[dict[str, Any]] | None = None


class InboundEmail(BaseModel):
    """An email delivered to a tenant's support address."""

    from_email: EmailStr
    from_name: str | None = None
    to_email: EmailStr
    to_name: str | None = None
    subject: str = ""
    body: str = ""
    html_body: str | None = None
    cc: list[EmailStr] = Field(default_factory=list)
    priority: ConversationPriority = ConversationPriority.MEDIUM
    message_id: str | None = None
    thread_id: str | None = None
    in_reply_to: str | None = None
    attachments: list[dict[str, Any]] | None = None


class EmailPage(BaseModel):
    emails: list[EmailRecord]
    pagination: Pagination


class EmailStats(BaseModel):
    """Per-tenant email counters. ``unread`` counts RECEIVED emails."""

    total: int = 0
    unread: int = 0
    replied: int = 0
    archived: int = 0
    today_count: int = 0
