"""API routes."""

from supportdesk.api.routes.agent import router as agent_router
from supportdesk.api.routes.auth import router as auth_router
from supportdesk.api.routes.chat import router as chat_router
from supportdesk.api.routes.email import router as email_router
from supportdesk.api.routes.health import router as health_router
from supportdesk.api.routes.tenants import router as tenants_router

__all__ = [
    "agent_router",
    "auth_router",
    "chat_router",
    "email_router",
    "health_router",
    "tenants_router",
]
