"""Pytest configuration and fixtures."""

import os

# Use litellm's bundled model cost map instead of fetching it over the network
# at import time (the fetch fails offline and deadlocks under log capture).
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from supportdesk.api.main import create_app
from supportdesk.core.config import Settings
from supportdesk.core.container import build_container
from supportdesk.models import Tenant
from supportdesk.services.auth.service import AuthService
from supportdesk.services.conversation.store import ConversationStore
from supportdesk.services.email import EmailService, EmailTransport
from supportdesk.services.knowledge.service import KnowledgeService
from supportdesk.services.llm.provider import LLMProvider, LLMResponse
from supportdesk.storage.keyvalue import InMemoryKeyValueStore
from supportdesk.storage.memory import InMemoryStorage


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        app_env="development",
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        log_format="text",
    )


@pytest.fixture
def storage():
    """Create in-memory storage for tests."""
    return InMemoryStorage()


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def llm():
    """LLM provider double that answers every prompt with the same text."""
    provider = MagicMock(spec=LLMProvider)
    provider.complete = AsyncMock(
        return_value=LLMResponse(content="You can reset it from the settings page.", model="test-model")
    )
    return provider


@pytest.fixture
def email_transport():
    """Mail transport double that accepts every message."""
    transport = MagicMock(spec=EmailTransport)
    transport.send = AsyncMock(return_value="<sent-1@supportdesk.test>")
    return transport


@pytest.fixture
def store(storage):
    return ConversationStore(storage)


@pytest.fixture
def knowledge(storage):
    return KnowledgeService(storage)


@pytest.fixture
def emails(storage, email_transport):
    return EmailService(storage, transport=email_transport, from_email="help@test.com", from_name="Test Support")


@pytest.fixture
def auth_service(storage, kv_store):
    return AuthService(
        storage=storage,
        kv_store=kv_store,
        jwt_secret="test-secret",
        bcrypt_rounds=4,
    )


@pytest_asyncio.fixture
async def demo_tenant(storage):
    """Create a demo tenant for tests."""
    tenant = Tenant(
        id="test-tenant",
        name="Test Company",
        domain="test.com",
    )
    await storage.save_tenant(tenant)
    return tenant


@pytest_asyncio.fixture
async def other_tenant(storage):
    tenant = Tenant(id="other-tenant", name="Other Company", domain="other.com")
    await storage.save_tenant(tenant)
    return tenant


@pytest.fixture
def container(test_settings, storage, kv_store, llm, email_transport):
    return build_container(
        test_settings,
        storage=storage,
        kv_store=kv_store,
        llm=llm,
        email_transport=email_transport,
    )


@pytest.fixture
def app(container):
    """Create test application."""
    return create_app(container)


@pytest_asyncio.fixture
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def operator(container):
    """Registered operator account with a fresh token pair."""
    return await container.auth.register("operator@example.com", "secret123", "Operator")


@pytest.fixture
def auth_headers(operator):
    return {"Authorization": f"Bearer {operator.tokens.access_token}"}
