"""Tests for the Socket.IO messaging gateway."""

from unittest.mock import AsyncMock

import pytest
import socketio

from supportdesk.models import ConversationStatus, MessageSender, NewMessage
from supportdesk.realtime.gateway import MessagingGateway
from supportdesk.services.tenants.service import TenantService


@pytest.fixture
def sio():
    server = socketio.AsyncServer(async_mode="asgi")
    server.emit = AsyncMock()
    server.enter_room = AsyncMock()
    server.leave_room = AsyncMock()
    return server


@pytest.fixture
def gateway(store, storage, auth_service, sio):
    return MessagingGateway(store, TenantService(storage), auth_service=auth_service, sio=sio)


def emitted(sio, event):
    """(data, kwargs) for every emit of ``event``."""
    return [(c.args[1], c.kwargs) for c in sio.emit.call_args_list if c.args[0] == event]


# ==================== Connection ====================


@pytest.mark.asyncio
async def test_connect_joins_tenant_room(gateway, sio, demo_tenant):
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})

    assert "sid-1" in gateway.registry
    sio.enter_room.assert_awaited_once_with("sid-1", "tenant:test-tenant")


@pytest.mark.asyncio
async def test_connect_requires_client_id(gateway):
    with pytest.raises(socketio.exceptions.ConnectionRefusedError):
        await gateway.handle_connect("sid-1", {}, None)

    with pytest.raises(socketio.exceptions.ConnectionRefusedError):
        await gateway.handle_connect("sid-1", {}, {"clientId": ""})

    assert len(gateway.registry) == 0


@pytest.mark.asyncio
async def test_connect_rejects_unknown_client(gateway):
    with pytest.raises(socketio.exceptions.ConnectionRefusedError):
        await gateway.handle_connect("sid-1", {}, {"clientId": "no-such-tenant"})


@pytest.mark.asyncio
async def test_connect_with_token(gateway, auth_service, demo_tenant):
    session = await auth_service.register("op@example.com", "secret123", "Op")

    await gateway.handle_connect(
        "sid-1",
        {},
        {"clientId": demo_tenant.id, "token": session.tokens.access_token},
    )
    assert gateway.registry.get("sid-1").user_id == session.user.id

    with pytest.raises(socketio.exceptions.ConnectionRefusedError):
        await gateway.handle_connect("sid-2", {}, {"clientId": demo_tenant.id, "token": "bad"})


@pytest.mark.asyncio
async def test_disconnect_drops_session(gateway, demo_tenant):
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})

    await gateway.handle_disconnect("sid-1", "client disconnect")

    assert "sid-1" not in gateway.registry
    # Unknown sids are ignored
    await gateway.handle_disconnect("sid-1")


# ==================== Chat messages ====================


@pytest.mark.asyncio
async def test_first_chat_message_creates_conversation(gateway, sio, store, demo_tenant):
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})

    await gateway.handle_chat_message("sid-1", {"message": "Preciso de ajuda"})

    page = await store.list_conversations(demo_tenant.id)
    assert page.pagination.total == 1
    conversation = page.conversations[0]
    assert conversation.subject == "Chat via Widget"
    assert conversation.status == ConversationStatus.OPEN
    assert conversation.last_message.sender_name == "Visitor"

    deliveries = emitted(sio, "new_message")
    assert [kwargs["room"] for _, kwargs in deliveries] == [
        f"conversation:{conversation.id}",
        "tenant:test-tenant",
    ]
    payload = deliveries[0][0]
    assert payload["conversationId"] == conversation.id
    assert payload["message"]["content"] == "Preciso de ajuda"
    assert payload["message"]["sender"] == "user"

    [(ack, ack_kwargs)] = emitted(sio, "message_sent")
    assert ack["success"] is True
    assert ack["conversationId"] == conversation.id
    assert ack_kwargs == {"to": "sid-1"}


@pytest.mark.asyncio
async def test_chat_message_to_existing_conversation(gateway, sio, store, demo_tenant):
    conversation = await store.create_conversation(demo_tenant.id)
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})

    await gateway.handle_chat_message(
        "sid-1",
        {"conversationId": conversation.id, "message": "Hello", "senderName": "Maria"},
    )

    messages = (await store.list_messages(conversation.id)).messages
    assert [(m.content, m.sender_name) for m in messages] == [("Hello", "Maria")]
    assert emitted(sio, "error") == []


@pytest.mark.asyncio
async def test_chat_message_to_other_tenants_conversation(gateway, sio, store, demo_tenant, other_tenant):
    """A socket cannot write into another tenant's conversation."""
    foreign = await store.create_conversation(other_tenant.id)
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})

    await gateway.handle_chat_message("sid-1", {"conversationId": foreign.id, "message": "Hi"})

    [(error, kwargs)] = emitted(sio, "error")
    assert error == {"message": "Failed to send message"}
    assert kwargs == {"to": "sid-1"}
    assert (await store.list_messages(foreign.id)).messages == []


@pytest.mark.asyncio
async def test_empty_chat_message_reports_error(gateway, sio, demo_tenant):
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})

    await gateway.handle_chat_message("sid-1", {"message": ""})

    assert emitted(sio, "error") == [({"message": "Failed to send message"}, {"to": "sid-1"})]
    assert emitted(sio, "new_message") == []


@pytest.mark.asyncio
async def test_chat_message_without_session(gateway, sio):
    await gateway.handle_chat_message("ghost", {"message": "Hi"})

    assert emitted(sio, "error") == [({"message": "Failed to send message"}, {"to": "ghost"})]


# ==================== Rooms and typing ====================


@pytest.mark.asyncio
async def test_join_and_leave_conversation(gateway, sio, demo_tenant):
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})

    await gateway.handle_join_conversation("sid-1", {"conversationId": "c1"})
    sio.enter_room.assert_awaited_with("sid-1", "conversation:c1")
    assert gateway.registry.get("sid-1").conversations == {"c1"}

    await gateway.handle_leave_conversation("sid-1", {"conversationId": "c1"})
    sio.leave_room.assert_awaited_once_with("sid-1", "conversation:c1")
    assert gateway.registry.get("sid-1").conversations == set()


@pytest.mark.asyncio
async def test_join_ignored_without_conversation_id(gateway, sio, demo_tenant):
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})
    sio.enter_room.reset_mock()

    await gateway.handle_join_conversation("sid-1", {})
    await gateway.handle_join_conversation("unknown-sid", {"conversationId": "c1"})

    sio.enter_room.assert_not_awaited()


@pytest.mark.asyncio
async def test_typing_skips_sender(gateway, sio, demo_tenant):
    await gateway.handle_connect("sid-1", {}, {"clientId": demo_tenant.id})

    await gateway.handle_typing_start("sid-1", {"conversationId": "c1"})
    await gateway.handle_typing_stop("sid-1", {"conversationId": "c1"})

    events = emitted(sio, "user_typing")
    assert [data["isTyping"] for data, _ in events] == [True, False]
    assert events[0][0] == {"userId": None, "conversationId": "c1", "isTyping": True}
    assert events[0][1] == {"room": "conversation:c1", "skip_sid": "sid-1"}


# ==================== Server initiated ====================


@pytest.mark.asyncio
async def test_send_operator_message(gateway, sio, store, demo_tenant):
    conversation = await store.create_conversation(demo_tenant.id)

    message = await gateway.send_operator_message(
        conversation.id,
        NewMessage(content="How can I help?", sender=MessageSender.AGENT, sender_name="Operator"),
    )

    [(payload, kwargs)] = emitted(sio, "new_message")
    assert payload["message"]["id"] == message.id
    assert kwargs == {"room": f"conversation:{conversation.id}"}
    assert (await store.get_conversation(conversation.id)).status == ConversationStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_send_ai_response(gateway, sio, store, demo_tenant):
    conversation = await store.create_conversation(demo_tenant.id)

    message = await gateway.send_ai_response(conversation.id, "Try restarting the app.")

    assert message.sender == MessageSender.AI
    assert message.sender_name == "AI Assistant"
    assert message.is_from_ai is True

    [(payload, kwargs)] = emitted(sio, "ai_response")
    assert payload["conversationId"] == conversation.id
    assert kwargs == {"room": f"conversation:{conversation.id}"}


@pytest.mark.asyncio
async def test_notify_status_change(gateway, sio):
    await gateway.notify_status_change("c1", {"status": "closed"})

    sio.emit.assert_awaited_once_with(
        "conversation_updated",
        {"conversationId": "c1", "update": {"status": "closed"}},
        room="conversation:c1",
    )
