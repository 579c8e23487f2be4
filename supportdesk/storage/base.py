"""Abstract base class for storage backends."""

from abc import ABC, abstractmethod
from datetime import datetime

from supportdesk.models import (
    Conversation,
    ConversationStatus,
    ConversationSummary,
    EmailRecord,
    EmailStatus,
    KnowledgeItem,
    Message,
    Tenant,
    User,
)


class StorageBackend(ABC):
    """Abstract storage backend interface.

    Lookups return ``None`` (or ``False`` for deletes) when nothing matches;
    raising typed errors is left to the services.
    """

    # ==================== User Operations ====================

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None:
        """Get a user by email."""
        ...

    @abstractmethod
    async def save_user(self, user: User) -> User:
        """Save or update a user."""
        ...

    # ==================== Tenant Operations ====================

    @abstractmethod
    async def get_tenant(self, tenant_id: str) -> Tenant | None:
        """Get a tenant by ID."""
        ...

    @abstractmethod
    async def save_tenant(self, tenant: Tenant) -> Tenant:
        """Save or update a tenant."""
        ...

    @abstractmethod
    async def list_tenants(self, user_id: str | None = None) -> list[Tenant]:
        """List tenants, optionally only those owned by a user."""
        ...

    # ==================== Conversation Operations ====================

    @abstractmethod
    async def get_conversation(
        self,
        conversation_id: str,
        tenant_id: str | None = None,
    ) -> Conversation | None:
        """Get a conversation by ID, scoped to a tenant when one is given."""
        ...

    @abstractmethod
    async def save_conversation(self, conversation: Conversation) -> Conversation:
        """Save or update a conversation, refreshing ``updated_at``."""
        ...

    @abstractmethod
    async def touch_conversation(
        self,
        conversation_id: str,
        status: ConversationStatus,
        closed_at: datetime | None = None,
    ) -> bool:
        """Set the status (and ``closed_at`` when given) and refresh ``updated_at``.

        Only those columns are written, so concurrent changes to the rest
        of the record survive. Returns ``False`` if nothing matched.
        """
        ...

    @abstractmethod
    async def list_conversations(
        self,
        tenant_id: str,
        offset: int = 0,
        limit: int = 10,
        search: str | None = None,
    ) -> tuple[list[ConversationSummary], int]:
        """List a tenant's conversations, newest activity first.

        ``search`` matches the subject or any message content,
        case-insensitively. Returns the page and the total match count.
        """
        ...

    @abstractmethod
    async def count_conversations(
        self,
        tenant_id: str,
        status: ConversationStatus | None = None,
        created_since: datetime | None = None,
    ) -> int:
        """Count a tenant's conversations."""
        ...

    @abstractmethod
    async def delete_conversation(
        self,
        conversation_id: str,
        tenant_id: str | None = None,
    ) -> bool:
        """Delete a conversation and its messages."""
        ...

    # ==================== Message Operations ====================

    @abstractmethod
    async def save_message(self, message: Message) -> Message:
        """Save a message."""
        ...

    @abstractmethod
    async def get_messages(
        self,
        conversation_id: str,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Message], int]:
        """Get messages for a conversation in chronological order, with the total."""
        ...

    @abstractmethod
    async def get_recent_messages(
        self,
        conversation_id: str,
        limit: int = 10,
    ) -> list[Message]:
        """Get the most recent messages, oldest first."""
        ...

    # ==================== Knowledge Operations ====================

    @abstractmethod
    async def get_knowledge_item(
        self,
        knowledge_id: str,
        tenant_id: str,
    ) -> KnowledgeItem | None:
        """Get a knowledge item belonging to a tenant, active or not."""
        ...

    @abstractmethod
    async def save_knowledge_item(self, item: KnowledgeItem) -> KnowledgeItem:
        """Save or update a knowledge item."""
        ...

    @abstractmethod
    async def list_knowledge(
        self,
        tenant_id: str,
        active_only: bool = True,
    ) -> list[KnowledgeItem]:
        """List a tenant's knowledge items, newest first."""
        ...

    # ==================== Email Operations ====================

    @abstractmethod
    async def get_email(self, email_id: str, tenant_id: str) -> EmailRecord | None:
        """Get an email belonging to a tenant, whatever its status."""
        ...

    @abstractmethod
    async def save_email(self, email: EmailRecord) -> EmailRecord:
        """Save or update an email."""
        ...

    @abstractmethod
    async def set_email_status(self, email_id: str, status: EmailStatus) -> bool:
        """Set only the status and ``updated_at`` of an email."""
        ...

    @abstractmethod
    async def list_emails(
        self,
        tenant_id: str,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[EmailRecord], int]:
        """List a tenant's emails that are not deleted, newest first, with the total."""
        ...

    @abstractmethod
    async def count_emails(
        self,
        tenant_id: str,
        status: EmailStatus | None = None,
        created_since: datetime | None = None,
    ) -> int:
        """Count a tenant's emails. Deleted emails only count when asked for by status."""
        ...

    # ==================== Health Check ====================

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if storage is healthy."""
        ...

    async def close(self) -> None:
        """Release connections held by the backend."""
        return None
