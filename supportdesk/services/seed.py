"""Demo data for local development."""

import structlog

from supportdesk.core.container import ServiceContainer
from supportdesk.models import (
    ConversationType,
    KnowledgeCreate,
    KnowledgeType,
    MessageSender,
    NewMessage,
    TenantCreate,
)

logger = structlog.get_logger()

DEMO_EMAIL = "demo@supportdesk.dev"
DEMO_PASSWORD = "demo123"
DEMO_TENANT_ID = "demo-client"


async def seed_demo_data(container: ServiceContainer) -> bool:
    """Create a demo operator, tenant, knowledge item and conversation.

    Returns False without changes when the demo user already exists.
    """
    if await container.storage.get_user_by_email(DEMO_EMAIL):
        logger.info("Demo data already present")
        return False

    session = await container.auth.register(DEMO_EMAIL, DEMO_PASSWORD, "Demo User")

    tenant = await container.tenants.create_tenant(
        session.user,
        TenantCreate(name="Demo Company", domain="demo.com", website="https://demo.com"),
        tenant_id=DEMO_TENANT_ID,
    )

    await container.knowledge.add_knowledge(
        tenant.id,
        KnowledgeCreate(
            title="FAQ - Getting started",
            content="Welcome to our support desk. Here you can find help for the most common questions.",
            type=KnowledgeType.FAQ,
            source="manual",
        ),
    )

    conversation = await container.conversations.create_conversation(
        tenant_id=tenant.id,
        type=ConversationType.CHAT,
        subject="Demo conversation",
    )
    await container.conversations.append_message(
        conversation.id,
        NewMessage(
            content="Hello! How can I help you today?",
            sender=MessageSender.AI,
            sender_name="AI Assistant",
            is_from_ai=True,
        ),
    )
    await container.conversations.append_message(
        conversation.id,
        NewMessage(
            content="I need help with my account",
            sender=MessageSender.USER,
            sender_name="Customer",
            sender_email="customer@example.com",
        ),
    )

    logger.info("Demo data seeded", tenant_id=tenant.id, email=DEMO_EMAIL)
    return True
