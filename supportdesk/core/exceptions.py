"""Custom exceptions for the application."""

from typing import Any


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 400

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ConfigurationError(AppException):
    """Raised when there's a configuration problem."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


# ==================== Not Found ====================


class NotFound(AppException):
    """Base class for missing rows."""

    status_code = 404


class TenantNotFound(NotFound):
    """Raised when a tenant is not found."""

    def __init__(self, tenant_id: str) -> None:
        super().__init__(
            f"Tenant not found: {tenant_id}",
            code="CLIENT_NOT_FOUND",
            details={"tenant_id": tenant_id},
        )


class ConversationNotFound(NotFound):
    """Raised when a conversation is missing or outside the requested tenant."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(
            "Conversation not found",
            code="CONVERSATION_NOT_FOUND",
            details={"conversation_id": conversation_id},
        )


class KnowledgeNotFound(NotFound):
    """Raised when a knowledge item is not found."""

    def __init__(self, knowledge_id: str) -> None:
        super().__init__(
            "Knowledge item not found",
            code="KNOWLEDGE_NOT_FOUND",
            details={"knowledge_id": knowledge_id},
        )


class EmailNotFound(NotFound):
    """Raised when an email is missing, deleted or outside the tenant."""

    def __init__(self, email_id: str) -> None:
        super().__init__(
            "Email not found",
            code="EMAIL_NOT_FOUND",
            details={"email_id": email_id},
        )


# ==================== Conflict ====================


class EmailAlreadyRegistered(AppException):
    """Raised when registering an email that already has an account."""

    status_code = 409

    def __init__(self, email: str) -> None:
        super().__init__(
            "User already exists with this email",
            code="EMAIL_EXISTS",
            details={"email": email},
        )


# ==================== Unauthorized ====================


class Unauthorized(AppException):
    """Base class for authentication failures."""

    status_code = 401


class TokenRequired(Unauthorized):
    def __init__(self) -> None:
        super().__init__("Access token required", code="TOKEN_REQUIRED")


class InvalidCredentials(Unauthorized):
    def __init__(self) -> None:
        super().__init__("Invalid credentials", code="INVALID_CREDENTIALS")


class AccountDisabled(Unauthorized):
    def __init__(self) -> None:
        super().__init__("Account is disabled", code="ACCOUNT_DISABLED")


class InvalidToken(Unauthorized):
    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message, code="INVALID_TOKEN")


class InvalidRefreshToken(Unauthorized):
    def __init__(self) -> None:
        super().__init__("Invalid refresh token", code="INVALID_REFRESH_TOKEN")


class InvalidResetToken(AppException):
    """Raised when a password reset token is malformed, expired or superseded."""

    def __init__(self) -> None:
        super().__init__("Invalid or expired reset token", code="INVALID_RESET_TOKEN")


# ==================== Unavailable ====================


class EmailDeliveryError(AppException):
    """Raised when the mail server rejects or cannot take a message."""

    status_code = 503

    def __init__(self, message: str) -> None:
        super().__init__(message, code="EMAIL_DELIVERY_FAILED")


class LLMError(AppException):
    """Raised when LLM provider fails."""

    status_code = 503

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(
            message,
            code="LLM_ERROR",
            details={"provider": provider} if provider else {},
        )
