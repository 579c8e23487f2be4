"""Conversation store - conversation and message records with their status rules."""

from uuid import uuid4

import structlog

from supportdesk.core.exceptions import ConversationNotFound
from supportdesk.core.timeutils import local_midnight_utc, utcnow
from supportdesk.models import (
    Conversation,
    ConversationPage,
    ConversationPriority,
    ConversationStats,
    ConversationStatus,
    ConversationType,
    Message,
    MessagePage,
    MessageSender,
    NewMessage,
    Pagination,
)
from supportdesk.storage.base import StorageBackend

logger = structlog.get_logger()


class ConversationStore:
    """Owns conversations and their messages.

    Status is a free-form field: any status may follow any other. Appending
    a message moves the conversation to OPEN (customer wrote) or
    IN_PROGRESS (anyone else wrote), and CLOSED stamps ``closed_at``.
    """

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    async def create_conversation(
        self,
        tenant_id: str,
        type: ConversationType = ConversationType.CHAT,
        subject: str | None = None,
        priority: ConversationPriority = ConversationPriority.MEDIUM,
    ) -> Conversation:
        """Create an open conversation.

        The caller is responsible for checking that the tenant exists.
        """
        conversation = Conversation(
            id=str(uuid4()),
            tenant_id=tenant_id,
            type=type,
            status=ConversationStatus.OPEN,
            subject=subject,
            priority=priority,
        )
        await self.storage.save_conversation(conversation)

        logger.info(
            "Created conversation",
            conversation_id=conversation.id,
            tenant_id=tenant_id,
            type=type.value,
        )

        return conversation

    async def list_conversations(
        self,
        tenant_id: str,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
    ) -> ConversationPage:
        """List a tenant's conversations, most recently updated first."""
        conversations, total = await self.storage.list_conversations(
            tenant_id=tenant_id,
            offset=(page - 1) * limit,
            limit=limit,
            search=search or None,
        )
        return ConversationPage(
            conversations=conversations,
            pagination=Pagination.build(page, limit, total),
        )

    async def get_conversation(
        self,
        conversation_id: str,
        tenant_id: str | None = None,
    ) -> Conversation:
        """Get a conversation.

        Without ``tenant_id`` the lookup is not scoped to any tenant.

        Raises:
            ConversationNotFound: If no conversation matches.
        """
        conversation = await self.storage.get_conversation(conversation_id, tenant_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)
        return conversation

    async def append_message(
        self,
        conversation_id: str,
        new_message: NewMessage,
    ) -> Message:
        """Store a message and update the conversation status.

        Raises:
            ConversationNotFound: If the conversation does not exist.
        """
        await self.get_conversation(conversation_id)

        message = Message(
            id=str(uuid4()),
            conversation_id=conversation_id,
            **new_message.model_dump(),
        )
        await self.storage.save_message(message)

        if new_message.sender == MessageSender.USER:
            status = ConversationStatus.OPEN
        else:
            status = ConversationStatus.IN_PROGRESS
        await self.storage.touch_conversation(conversation_id, status)

        logger.debug(
            "Appended message",
            conversation_id=conversation_id,
            message_id=message.id,
            sender=new_message.sender.value,
        )

        return message

    async def list_messages(
        self,
        conversation_id: str,
        page: int = 1,
        limit: int = 50,
    ) -> MessagePage:
        """List messages oldest first."""
        messages, total = await self.storage.get_messages(
            conversation_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return MessagePage(
            messages=messages,
            pagination=Pagination.build(page, limit, total),
        )

    async def update_status(
        self,
        conversation_id: str,
        status: ConversationStatus,
        tenant_id: str | None = None,
    ) -> Conversation:
        """Overwrite the status. Closing also stamps ``closed_at``."""
        conversation = await self.get_conversation(conversation_id, tenant_id)

        closed_at = utcnow() if status == ConversationStatus.CLOSED else None
        await self.storage.touch_conversation(conversation_id, status, closed_at=closed_at)

        conversation.status = status
        conversation.closed_at = closed_at or conversation.closed_at
        conversation.updated_at = utcnow()

        logger.info(
            "Conversation status updated",
            conversation_id=conversation_id,
            status=status.value,
        )

        return conversation

    async def delete_conversation(
        self,
        conversation_id: str,
        tenant_id: str | None = None,
    ) -> None:
        """Delete a conversation together with its messages."""
        deleted = await self.storage.delete_conversation(conversation_id, tenant_id)
        if not deleted:
            raise ConversationNotFound(conversation_id)

        logger.info("Deleted conversation", conversation_id=conversation_id)

    async def get_recent_messages(
        self,
        conversation_id: str,
        limit: int = 10,
    ) -> list[Message]:
        return await self.storage.get_recent_messages(conversation_id, limit=limit)

    async def get_stats(self, tenant_id: str) -> ConversationStats:
        """Count a tenant's conversations by status, plus those created today."""
        count = self.storage.count_conversations
        return ConversationStats(
            total=await count(tenant_id),
            open=await count(tenant_id, status=ConversationStatus.OPEN),
            in_progress=await count(tenant_id, status=ConversationStatus.IN_PROGRESS),
            closed=await count(tenant_id, status=ConversationStatus.CLOSED),
            today_count=await count(tenant_id, created_since=local_midnight_utc()),
        )
