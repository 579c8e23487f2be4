"""Explicitly constructed service graph.

Nothing here is a module-level singleton: the API factory builds one
container per application and tests build their own.
"""

from dataclasses import dataclass

import structlog

from supportdesk.core.config import Settings, get_settings
from supportdesk.realtime.gateway import MessagingGateway
from supportdesk.services.ai.completion import CompletionAdapter
from supportdesk.services.auth.service import AuthService
from supportdesk.services.conversation.store import ConversationStore
from supportdesk.services.email import EmailService, EmailTransport, SMTPTransport
from supportdesk.services.knowledge.service import KnowledgeService
from supportdesk.services.llm.provider import LLMProvider, configure_litellm
from supportdesk.services.tenants.service import TenantService
from supportdesk.storage.base import StorageBackend
from supportdesk.storage.keyvalue import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from supportdesk.storage.memory import InMemoryStorage
from supportdesk.storage.sql import SQLStorage

logger = structlog.get_logger()


@dataclass
class ServiceContainer:
    settings: Settings
    storage: StorageBackend
    kv_store: KeyValueStore
    llm: LLMProvider
    conversations: ConversationStore
    knowledge: KnowledgeService
    tenants: TenantService
    completion: CompletionAdapter
    auth: AuthService
    gateway: MessagingGateway
    emails: EmailService

    async def startup(self) -> None:
        if isinstance(self.storage, SQLStorage):
            await self.storage.create_all()

    async def shutdown(self) -> None:
        await self.storage.close()
        await self.kv_store.close()


def build_storage(settings: Settings) -> StorageBackend:
    """Pick the storage backend from settings."""
    if settings.storage_backend == "sql":
        return SQLStorage(database_url=settings.database_url, echo=settings.database_echo)
    return InMemoryStorage()


def build_kv_store(settings: Settings) -> KeyValueStore:
    if settings.kv_backend == "redis":
        return RedisKeyValueStore(url=settings.redis_url)
    return InMemoryKeyValueStore()


def build_container(
    settings: Settings | None = None,
    storage: StorageBackend | None = None,
    kv_store: KeyValueStore | None = None,
    llm: LLMProvider | None = None,
    email_transport: EmailTransport | None = None,
) -> ServiceContainer:
    """Wire every service from settings; explicit arguments take precedence."""
    settings = settings or get_settings()
    storage = storage or build_storage(settings)
    kv_store = kv_store or build_kv_store(settings)

    if llm is None:
        configure_litellm(settings)
        llm = LLMProvider(
            primary_model=settings.litellm_primary_model,
            fallback_models=[settings.litellm_fallback_model],
            default_temperature=settings.llm_temperature,
            default_max_tokens=settings.llm_max_tokens,
            timeout=settings.llm_timeout_seconds,
            enabled=settings.llm_configured,
        )

    conversations = ConversationStore(storage)
    knowledge = KnowledgeService(storage)
    tenants = TenantService(storage)

    completion = CompletionAdapter(
        knowledge_service=knowledge,
        llm_provider=llm,
        history_window=settings.history_window,
        max_sources=settings.max_source_knowledge,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )

    auth = AuthService(
        storage=storage,
        kv_store=kv_store,
        jwt_secret=settings.jwt_secret,
        jwt_algorithm=settings.jwt_algorithm,
        access_token_ttl=settings.access_token_expire_seconds,
        refresh_token_ttl=settings.refresh_token_expire_seconds,
        reset_token_ttl=settings.reset_token_expire_seconds,
        bcrypt_rounds=settings.bcrypt_rounds,
    )

    gateway = MessagingGateway(
        store=conversations,
        tenants=tenants,
        auth_service=auth,
        cors_origins=settings.allowed_origins,
    )

    if email_transport is None and settings.smtp_configured:
        email_transport = SMTPTransport(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    emails = EmailService(
        storage=storage,
        transport=email_transport,
        from_email=settings.smtp_from_email,
        from_name=settings.smtp_from_name,
    )

    logger.info(
        "Service container built",
        storage=type(storage).__name__,
        kv_store=type(kv_store).__name__,
        email_transport=type(email_transport).__name__ if email_transport else None,
    )

    return ServiceContainer(
        settings=settings,
        storage=storage,
        kv_store=kv_store,
        llm=llm,
        conversations=conversations,
        knowledge=knowledge,
        tenants=tenants,
        completion=completion,
        auth=auth,
        gateway=gateway,
        emails=emails,
    )
