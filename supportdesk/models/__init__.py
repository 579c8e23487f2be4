"""Data models for the application."""

from supportdesk.models.conversation import (
    Conversation,
    ConversationCreate,
    ConversationPage,
    ConversationPriority,
    ConversationStats,
    ConversationStatus,
    ConversationSummary,
    ConversationType,
    MessagePage,
    Pagination,
)
from supportdesk.models.email import (
    EmailPage,
    EmailRecord,
    EmailReply,
    EmailStats,
    EmailStatus,
    InboundEmail,
    OutgoingEmail,
)
from supportdesk.models.knowledge import (
    KnowledgeCreate,
    KnowledgeItem,
    KnowledgeType,
    KnowledgeUpdate,
)
from supportdesk.models.message import Message, MessageSender, MessageType, NewMessage
from supportdesk.models.tenant import Tenant, TenantCreate
from supportdesk.models.user import AuthSession, AuthTokens, User, UserPublic

__all__ = [
    # Tenant
    "Tenant",
    "TenantCreate",
    # User
    "User",
    "UserPublic",
    "AuthSession",
    "AuthTokens",
    # Conversation
    "Conversation",
    "ConversationCreate",
    "ConversationPage",
    "ConversationPriority",
    "ConversationStats",
    "ConversationStatus",
    "ConversationSummary",
    "ConversationType",
    "MessagePage",
    "Pagination",
    # Message
    "Message",
    "MessageSender",
    "MessageType",
    "NewMessage",
    # Knowledge
    "KnowledgeCreate",
    "KnowledgeItem",
    "KnowledgeType",
    "KnowledgeUpdate",
    # Email
    "EmailPage",
    "EmailRecord",
    "EmailReply",
    "EmailStats",
    "EmailStatus",
    "InboundEmail",
    "OutgoingEmail",
]
