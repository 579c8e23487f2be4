"""In-memory storage backend for development and testing."""

from datetime import datetime

from supportdesk.core.timeutils import utcnow
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
from supportdesk.storage.base import StorageBackend


class InMemoryStorage(StorageBackend):
    """In-memory storage implementation for development.

    Records are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._tenants: dict[str, Tenant] = {}
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, Message] = {}
        self._knowledge: dict[str, KnowledgeItem] = {}
        self._emails: dict[str, EmailRecord] = {}

    # ==================== User Operations ====================

    async def get_user(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_email(self, email: str) -> User | None:
        for user in self._users.values():
            if user.email == email:
                return user.model_copy()
        return None

    async def save_user(self, user: User) -> User:
        user.updated_at = utcnow()
        self._users[user.id] = user.model_copy()
        return user

    # ==================== Tenant Operations ====================

    async def get_tenant(self, tenant_id: str) -> Tenant | None:
        tenant = self._tenants.get(tenant_id)
        return tenant.model_copy() if tenant else None

    async def save_tenant(self, tenant: Tenant) -> Tenant:
        tenant.updated_at = utcnow()
        self._tenants[tenant.id] = tenant.model_copy()
        return tenant

    async def list_tenants(self, user_id: str | None = None) -> list[Tenant]:
        tenants = list(self._tenants.values())
        if user_id:
            tenants = [t for t in tenants if t.user_id == user_id]
        return [t.model_copy() for t in tenants]

    # ==================== Conversation Operations ====================

    async def get_conversation(
        self,
        conversation_id: str,
        tenant_id: str | None = None,
    ) -> Conversation | None:
        conv = self._conversations.get(conversation_id)
        if conv is None or (tenant_id and conv.tenant_id != tenant_id):
            return None
        return conv.model_copy()

    async def save_conversation(self, conversation: Conversation) -> Conversation:
        conversation.updated_at = utcnow()
        self._conversations[conversation.id] = conversation.model_copy()
        return conversation

    async def touch_conversation(
        self,
        conversation_id: str,
        status: ConversationStatus,
        closed_at: datetime | None = None,
    ) -> bool:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            return False
        conv.status = status
        if closed_at is not None:
            conv.closed_at = closed_at
        conv.updated_at = utcnow()
        return True

    async def list_conversations(
        self,
        tenant_id: str,
        offset: int = 0,
        limit: int = 10,
        search: str | None = None,
    ) -> tuple[list[ConversationSummary], int]:
        convs = [c for c in self._conversations.values() if c.tenant_id == tenant_id]
        if search:
            convs = [c for c in convs if self._matches(c, search.lower())]
        convs.sort(key=lambda x: x.updated_at, reverse=True)

        page = []
        for conv in convs[offset:offset + limit]:
            messages = self._conversation_messages(conv.id)
            page.append(
                ConversationSummary(
                    **conv.model_dump(),
                    last_message=messages[-1].model_copy() if messages else None,
                    message_count=len(messages),
                )
            )
        return page, len(convs)

    async def count_conversations(
        self,
        tenant_id: str,
        status: ConversationStatus | None = None,
        created_since: datetime | None = None,
    ) -> int:
        count = 0
        for conv in self._conversations.values():
            if conv.tenant_id != tenant_id:
                continue
            if status and conv.status != status:
                continue
            if created_since and conv.created_at < created_since:
                continue
            count += 1
        return count

    async def delete_conversation(
        self,
        conversation_id: str,
        tenant_id: str | None = None,
    ) -> bool:
        conv = self._conversations.get(conversation_id)
        if conv is None or (tenant_id and conv.tenant_id != tenant_id):
            return False

        del self._conversations[conversation_id]
        for message in self._conversation_messages(conversation_id):
            del self._messages[message.id]
        return True

    def _conversation_messages(self, conversation_id: str) -> list[Message]:
        messages = [m for m in self._messages.values() if m.conversation_id == conversation_id]
        messages.sort(key=lambda x: x.created_at)
        return messages

    def _matches(self, conversation: Conversation, needle: str) -> bool:
        if conversation.subject and needle in conversation.subject.lower():
            return True
        return any(
            needle in m.content.lower() for m in self._conversation_messages(conversation.id)
        )

    # ==================== Message Operations ====================

    async def save_message(self, message: Message) -> Message:
        self._messages[message.id] = message.model_copy()
        return message

    async def get_messages(
        self,
        conversation_id: str,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Message], int]:
        messages = self._conversation_messages(conversation_id)
        page = [m.model_copy() for m in messages[offset:offset + limit]]
        return page, len(messages)

    async def get_recent_messages(
        self,
        conversation_id: str,
        limit: int = 10,
    ) -> list[Message]:
        messages = self._conversation_messages(conversation_id)
        return [m.model_copy() for m in messages[-limit:]]

    # ==================== Knowledge Operations ====================

    async def get_knowledge_item(
        self,
        knowledge_id: str,
        tenant_id: str,
    ) -> KnowledgeItem | None:
        item = self._knowledge.get(knowledge_id)
        if item is None or item.tenant_id != tenant_id:
            return None
        return item.model_copy()

    async def save_knowledge_item(self, item: KnowledgeItem) -> KnowledgeItem:
        self._knowledge[item.id] = item.model_copy()
        return item

    async def list_knowledge(
        self,
        tenant_id: str,
        active_only: bool = True,
    ) -> list[KnowledgeItem]:
        items = [k for k in self._knowledge.values() if k.tenant_id == tenant_id]
        if active_only:
            items = [k for k in items if k.is_active]
        items.sort(key=lambda x: x.created_at, reverse=True)
        return [k.model_copy() for k in items]

    # ==================== Email Operations ====================

    async def get_email(self, email_id: str, tenant_id: str) -> EmailRecord | None:
        email = self._emails.get(email_id)
        if email is None or email.tenant_id != tenant_id:
            return None
        return email.model_copy(deep=True)

    async def save_email(self, email: EmailRecord) -> EmailRecord:
        email.updated_at = utcnow()
        self._emails[email.id] = email.model_copy(deep=True)
        return email

    async def set_email_status(self, email_id: str, status: EmailStatus) -> bool:
        email = self._emails.get(email_id)
        if email is None:
            return False
        email.status = status
        email.updated_at = utcnow()
        return True

    async def list_emails(
        self,
        tenant_id: str,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[EmailRecord], int]:
        emails = [
            e for e in self._emails.values()
            if e.tenant_id == tenant_id and e.status != EmailStatus.DELETED
        ]
        emails.sort(key=lambda x: x.created_at, reverse=True)
        page = [e.model_copy(deep=True) for e in emails[offset:offset + limit]]
        return page, len(emails)

    async def count_emails(
        self,
        tenant_id: str,
        status: EmailStatus | None = None,
        created_since: datetime | None = None,
    ) -> int:
        count = 0
        for email in self._emails.values():
            if email.tenant_id != tenant_id:
                continue
            if status is None and email.status == EmailStatus.DELETED:
                continue
            if status and email.status != status:
                continue
            if created_since and email.created_at < created_since:
                continue
            count += 1
        return count

    # ==================== Health Check ====================

    async def health_check(self) -> bool:
        return True

    # ==================== Development Helpers ====================

    async def clear_all(self) -> None:
        """Clear all data (for testing)."""
        self._users.clear()
        self._tenants.clear()
        self._conversations.clear()
        self._messages.clear()
        self._knowledge.clear()
        self._emails.clear()
