"""Auth service - operator accounts and session tokens."""

from supportdesk.services.auth.service import AuthService

__all__ = ["AuthService"]
