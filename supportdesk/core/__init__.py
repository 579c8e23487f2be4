"""Core module - configuration and utilities."""

from supportdesk.core.config import settings
from supportdesk.core.exceptions import (
    AppException,
    ConfigurationError,
    ConversationNotFound,
    EmailAlreadyRegistered,
    EmailNotFound,
    KnowledgeNotFound,
    NotFound,
    TenantNotFound,
    Unauthorized,
)

__all__ = [
    "settings",
    "AppException",
    "ConfigurationError",
    "ConversationNotFound",
    "EmailAlreadyRegistered",
    "EmailNotFound",
    "KnowledgeNotFound",
    "NotFound",
    "TenantNotFound",
    "Unauthorized",
]
