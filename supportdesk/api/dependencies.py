"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from supportdesk.core.config import Settings
from supportdesk.core.container import ServiceContainer
from supportdesk.core.exceptions import TokenRequired
from supportdesk.models import UserPublic
from supportdesk.realtime.gateway import MessagingGateway
from supportdesk.services.ai.completion import CompletionAdapter
from supportdesk.services.auth.service import AuthService
from supportdesk.services.conversation.store import ConversationStore
from supportdesk.services.email.service import EmailService
from supportdesk.services.knowledge.service import KnowledgeService
from supportdesk.services.tenants.service import TenantService
from supportdesk.storage.base import StorageBackend
from supportdesk.storage.keyvalue import KeyValueStore


def get_container(request: Request) -> ServiceContainer:
    """Get the service container the application was built with."""
    return request.app.state.container


ContainerDep = Annotated[ServiceContainer, Depends(get_container)]


def get_settings_dep(container: ContainerDep) -> Settings:
    return container.settings


def get_storage(container: ContainerDep) -> StorageBackend:
    return container.storage


def get_kv_store(container: ContainerDep) -> KeyValueStore:
    return container.kv_store


def get_conversation_store(container: ContainerDep) -> ConversationStore:
    return container.conversations


def get_knowledge_service(container: ContainerDep) -> KnowledgeService:
    return container.knowledge


def get_tenant_service(container: ContainerDep) -> TenantService:
    return container.tenants


def get_completion_adapter(container: ContainerDep) -> CompletionAdapter:
    return container.completion


def get_auth_service(container: ContainerDep) -> AuthService:
    return container.auth


def get_gateway(container: ContainerDep) -> MessagingGateway:
    return container.gateway


def get_email_service(container: ContainerDep) -> EmailService:
    return container.emails


# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
StorageDep = Annotated[StorageBackend, Depends(get_storage)]
KVStoreDep = Annotated[KeyValueStore, Depends(get_kv_store)]
ConversationStoreDep = Annotated[ConversationStore, Depends(get_conversation_store)]
KnowledgeDep = Annotated[KnowledgeService, Depends(get_knowledge_service)]
TenantServiceDep = Annotated[TenantService, Depends(get_tenant_service)]
CompletionDep = Annotated[CompletionAdapter, Depends(get_completion_adapter)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
GatewayDep = Annotated[MessagingGateway, Depends(get_gateway)]
EmailServiceDep = Annotated[EmailService, Depends(get_email_service)]


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    auth: AuthServiceDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> UserPublic:
    """Resolve the bearer access token to a user.

    Raises:
        TokenRequired: No bearer token was sent.
        InvalidToken: The token failed verification.
    """
    if credentials is None or not credentials.credentials:
        raise TokenRequired()
    return await auth.verify(credentials.credentials)


CurrentUserDep = Annotated[UserPublic, Depends(get_current_user)]
