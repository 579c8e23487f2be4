"""Conversation service - conversation and message records."""

from supportdesk.services.conversation.store import ConversationStore

__all__ = ["ConversationStore"]
