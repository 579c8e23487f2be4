"""Message models for conversations."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from supportdesk.core.timeutils import utcnow


class MessageType(str, Enum):
    """Type of message content."""

    TEXT = "text"
    FILE = "file"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


class MessageSender(str, Enum):
    """Who authored the message."""

    USER = "user"  # End customer
    AGENT = "agent"  # Human operator
    AI = "ai"
    SYSTEM = "system"


class Message(BaseModel):
    """A single message inside a conversation. Immutable once stored."""

    id: str = Field(..., description="Unique message identifier")
    conversation_id: str = Field(..., description="Parent conversation ID")

    # Content
    content: str
    type: MessageType = MessageType.TEXT

    # Author
    sender: MessageSender
    sender_name: str | None = None
    sender_email: str | None = None
    is_from_ai: bool = False

    # Opaque attachment payload, stored as JSON
    attachments: list[dict[str, Any]] | None = None

    created_at: datetime = Field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        """Serialize for JSON transports (HTTP and Socket.IO)."""
        return self.model_dump(mode="json")

    def to_history_line(self) -> str:
        """Render as one line of conversational memory for the LLM."""
        author = self.sender_name or self.sender.value
        return f"{author}: {self.content}"


class NewMessage(BaseModel):
    """Payload for appending a message to a conversation."""

    content: str = Field(..., min_length=1)
    type: MessageType = MessageType.TEXT
    sender: MessageSender
    sender_name: str | None = None
    sender_email: str | None = None
    is_from_ai: bool = False
    attachments: list[dict[str, Any]] | None = None
