"""Tests for storage backends."""

from datetime import timedelta

import pytest
import pytest_asyncio

from supportdesk.core.timeutils import utcnow
from supportdesk.models import (
    Conversation,
    ConversationPriority,
    ConversationStatus,
    EmailRecord,
    EmailStatus,
    KnowledgeItem,
    Message,
    MessageSender,
    Tenant,
    User,
)
from supportdesk.storage.keyvalue import InMemoryKeyValueStore
from supportdesk.storage.memory import InMemoryStorage
from supportdesk.storage.sql import SQLStorage


@pytest_asyncio.fixture(params=["memory", "sql"])
async def backend(request, tmp_path):
    """Every storage test runs against both backends."""
    if request.param == "memory":
        yield InMemoryStorage()
        return

    sql_storage = SQLStorage(database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await sql_storage.create_all()
    yield sql_storage
    await sql_storage.close()


async def add_conversation(backend, conv_id, tenant_id="t1", subject=None, **kwargs):
    conv = Conversation(id=conv_id, tenant_id=tenant_id, subject=subject, **kwargs)
    return await backend.save_conversation(conv)


async def add_message(backend, msg_id, conv_id, content, sender=MessageSender.USER):
    message = Message(id=msg_id, conversation_id=conv_id, content=content, sender=sender)
    return await backend.save_message(message)


@pytest.mark.asyncio
async def test_user_crud(backend):
    """Test user save and lookups."""
    user = User(id="u1", email="ana@example.com", password_hash="hash", name="Ana")
    await backend.save_user(user)

    assert (await backend.get_user("u1")).email == "ana@example.com"
    assert (await backend.get_user_by_email("ana@example.com")).id == "u1"
    assert await backend.get_user_by_email("nobody@example.com") is None
    assert await backend.get_user("missing") is None


@pytest.mark.asyncio
async def test_tenant_crud(backend):
    """Test tenant save, get and owner filter."""
    await backend.save_user(User(id="owner", email="o@example.com", password_hash="h", name="O"))
    await backend.save_tenant(Tenant(id="t1", name="One", domain="one.com", user_id="owner"))
    await backend.save_tenant(Tenant(id="t2", name="Two", domain="two.com"))

    retrieved = await backend.get_tenant("t1")
    assert retrieved is not None
    assert retrieved.name == "One"

    owned = await backend.list_tenants(user_id="owner")
    assert [t.id for t in owned] == ["t1"]
    assert len(await backend.list_tenants()) == 2
    assert await backend.get_tenant("missing") is None


@pytest.mark.asyncio
async def test_conversation_tenant_scoping(backend):
    """Test lookups honour the optional tenant filter."""
    await add_conversation(backend, "c1", tenant_id="t1")

    assert await backend.get_conversation("c1") is not None
    assert await backend.get_conversation("c1", tenant_id="t1") is not None
    assert await backend.get_conversation("c1", tenant_id="t2") is None


@pytest.mark.asyncio
async def test_list_conversations_summary_and_order(backend):
    """Test listings are tenant-scoped, newest activity first, with last message."""
    await add_conversation(backend, "a", subject="Billing")
    await add_conversation(backend, "b", subject="Shipping")
    await add_conversation(backend, "foreign", tenant_id="t2", subject="Billing")

    await add_message(backend, "m1", "a", "first")
    await add_message(backend, "m2", "a", "second")

    # Touch "a" so it becomes the most recently updated
    conv_a = await backend.get_conversation("a")
    await backend.save_conversation(conv_a)

    page, total = await backend.list_conversations("t1")
    assert total == 2
    assert [c.id for c in page] == ["a", "b"]

    assert page[0].message_count == 2
    assert page[0].last_message.content == "second"
    assert page[1].message_count == 0
    assert page[1].last_message is None


@pytest.mark.asyncio
async def test_list_conversations_search(backend):
    """Test search matches subject or message content, case-insensitively."""
    await add_conversation(backend, "subject-hit", subject="Refund request")
    await add_conversation(backend, "content-hit", subject="Hello")
    await add_conversation(backend, "miss", subject="Other")
    await add_message(backend, "m1", "content-hit", "Where is my REFUND?")
    await add_message(backend, "m2", "miss", "Nothing to see")

    page, total = await backend.list_conversations("t1", search="refund")
    assert total == 2
    assert {c.id for c in page} == {"subject-hit", "content-hit"}

    # Wildcards are matched literally
    page, total = await backend.list_conversations("t1", search="%")
    assert total == 0
    assert page == []


@pytest.mark.asyncio
async def test_list_conversations_pagination(backend):
    """Test offset/limit paging keeps the full total."""
    for i in range(5):
        await add_conversation(backend, f"c{i}")

    page, total = await backend.list_conversations("t1", offset=2, limit=2)
    assert total == 5
    assert len(page) == 2

    page, total = await backend.list_conversations("t1", offset=4, limit=2)
    assert len(page) == 1


@pytest.mark.asyncio
async def test_count_conversations(backend):
    """Test counting by status and creation time."""
    await add_conversation(backend, "open", status=ConversationStatus.OPEN)
    await add_conversation(backend, "closed", status=ConversationStatus.CLOSED)
    await add_conversation(
        backend,
        "old",
        status=ConversationStatus.OPEN,
        created_at=utcnow() - timedelta(days=3),
    )
    await add_conversation(backend, "foreign", tenant_id="t2")

    assert await backend.count_conversations("t1") == 3
    assert await backend.count_conversations("t1", status=ConversationStatus.OPEN) == 2
    assert await backend.count_conversations("t1", status=ConversationStatus.CLOSED) == 1
    assert await backend.count_conversations("t1", created_since=utcnow() - timedelta(days=1)) == 2


@pytest.mark.asyncio
async def test_delete_conversation_cascades(backend):
    """Test deleting a conversation removes its messages."""
    await add_conversation(backend, "c1")
    await add_message(backend, "m1", "c1", "hello")

    assert await backend.delete_conversation("c1", tenant_id="t2") is False
    assert await backend.delete_conversation("c1", tenant_id="t1") is True

    assert await backend.get_conversation("c1") is None
    messages, total = await backend.get_messages("c1")
    assert total == 0
    assert messages == []

    assert await backend.delete_conversation("c1") is False


@pytest.mark.asyncio
async def test_touch_conversation_writes_only_status(backend):
    """Test touching a conversation leaves its other fields alone."""
    closed_at = utcnow() - timedelta(hours=1)
    stale = await add_conversation(backend, "c1", subject="Old subject")

    current = await backend.get_conversation("c1")
    current.subject = "New subject"
    current.priority = ConversationPriority.URGENT
    current.closed_at = closed_at
    await backend.save_conversation(current)

    assert await backend.touch_conversation(stale.id, ConversationStatus.IN_PROGRESS) is True

    conv = await backend.get_conversation("c1")
    assert conv.status == ConversationStatus.IN_PROGRESS
    assert conv.subject == "New subject"
    assert conv.priority == ConversationPriority.URGENT
    assert conv.closed_at == closed_at
    assert conv.updated_at >= current.updated_at

    assert await backend.touch_conversation("missing", ConversationStatus.OPEN) is False


@pytest.mark.asyncio
async def test_touch_conversation_sets_closed_at(backend):
    """Test closing through a touch stamps closed_at."""
    await add_conversation(backend, "c1")
    closed_at = utcnow()

    await backend.touch_conversation("c1", ConversationStatus.CLOSED, closed_at=closed_at)
    await backend.touch_conversation("c1", ConversationStatus.OPEN)

    conv = await backend.get_conversation("c1")
    assert conv.status == ConversationStatus.OPEN
    assert conv.closed_at == closed_at


@pytest.mark.asyncio
async def test_message_ordering(backend):
    """Test messages come back oldest first."""
    await add_conversation(backend, "c1")
    for i in range(5):
        await add_message(backend, f"m{i}", "c1", f"message {i}")

    messages, total = await backend.get_messages("c1", offset=1, limit=2)
    assert total == 5
    assert [m.content for m in messages] == ["message 1", "message 2"]

    recent = await backend.get_recent_messages("c1", limit=3)
    assert [m.content for m in recent] == ["message 2", "message 3", "message 4"]


@pytest.mark.asyncio
async def test_message_attachments_round_trip(backend):
    """Test the opaque attachment payload survives storage."""
    await add_conversation(backend, "c1")
    message = Message(
        id="m1",
        conversation_id="c1",
        content="see file",
        sender=MessageSender.USER,
        attachments=[{"name": "invoice.pdf", "size": 1024}],
    )
    await backend.save_message(message)

    messages, _ = await backend.get_messages("c1")
    assert messages[0].attachments == [{"name": "invoice.pdf", "size": 1024}]
    assert messages[0].sender == MessageSender.USER


@pytest.mark.asyncio
async def test_knowledge_listing(backend):
    """Test knowledge listings filter inactive items on request."""
    await backend.save_knowledge_item(KnowledgeItem(id="k1", tenant_id="t1", title="A", content="a"))
    await backend.save_knowledge_item(
        KnowledgeItem(id="k2", tenant_id="t1", title="B", content="b", is_active=False)
    )
    await backend.save_knowledge_item(KnowledgeItem(id="k3", tenant_id="t2", title="C", content="c"))

    active = await backend.list_knowledge("t1")
    assert [k.id for k in active] == ["k1"]

    everything = await backend.list_knowledge("t1", active_only=False)
    assert {k.id for k in everything} == {"k1", "k2"}

    assert await backend.get_knowledge_item("k2", "t1") is not None
    assert await backend.get_knowledge_item("k3", "t1") is None


def make_email(email_id, tenant_id="t1", status=EmailStatus.RECEIVED, **kwargs):
    return EmailRecord(
        id=email_id,
        tenant_id=tenant_id,
        subject=f"Subject {email_id}",
        body="Body",
        from_email="maria@example.com",
        to_email="help@test.com",
        status=status,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_email_round_trip_and_scoping(backend):
    """Test emails keep their recipient lists and are tenant-scoped."""
    await backend.save_email(make_email("e1", cc_emails=["a@example.com", "b@example.com"]))

    email = await backend.get_email("e1", "t1")
    assert email.cc_emails == ["a@example.com", "b@example.com"]
    assert email.bcc_emails == []
    assert email.status == EmailStatus.RECEIVED
    assert await backend.get_email("e1", "t2") is None

    assert await backend.set_email_status("e1", EmailStatus.READ) is True
    assert (await backend.get_email("e1", "t1")).status == EmailStatus.READ
    assert await backend.set_email_status("missing", EmailStatus.READ) is False


@pytest.mark.asyncio
async def test_list_and_count_emails(backend):
    """Test email listings are newest first and skip deleted emails."""
    now = utcnow()
    await backend.save_email(make_email("old", created_at=now - timedelta(days=2)))
    await backend.save_email(make_email("new", created_at=now))
    await backend.save_email(make_email("gone", status=EmailStatus.DELETED, created_at=now))
    await backend.save_email(make_email("foreign", tenant_id="t2"))

    page, total = await backend.list_emails("t1")
    assert total == 2
    assert [e.id for e in page] == ["new", "old"]

    page, total = await backend.list_emails("t1", offset=1, limit=1)
    assert [e.id for e in page] == ["old"]

    assert await backend.count_emails("t1") == 2
    assert await backend.count_emails("t1", status=EmailStatus.DELETED) == 1
    assert await backend.count_emails("t1", status=EmailStatus.RECEIVED) == 2
    assert await backend.count_emails("t1", created_since=now - timedelta(days=1)) == 1


@pytest.mark.asyncio
async def test_health_check(backend):
    assert await backend.health_check() is True


# ==================== Key-value store ====================


@pytest.mark.asyncio
async def test_kv_set_get_delete(kv_store):
    """Test basic key-value operations."""
    await kv_store.set("key", "value")
    assert await kv_store.get("key") == "value"

    await kv_store.set("key", "newer")
    assert await kv_store.get("key") == "newer"

    assert await kv_store.delete("key") is True
    assert await kv_store.delete("key") is False
    assert await kv_store.get("key") is None


@pytest.mark.asyncio
async def test_kv_expiry(monkeypatch):
    """Test values disappear once their TTL has passed."""
    kv = InMemoryKeyValueStore()
    await kv.set("token", "abc", ttl_seconds=60)
    assert await kv.get("token") == "abc"

    later = utcnow() + timedelta(seconds=61)
    monkeypatch.setattr("supportdesk.storage.keyvalue.utcnow", lambda: later)

    assert await kv.get("token") is None
