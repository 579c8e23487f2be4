"""Socket.IO messaging gateway for the chat widget and the operator dashboard."""

from typing import Any

import socketio
import structlog

from supportdesk.core.exceptions import AppException, NotFound
from supportdesk.models import ConversationType, Message, MessageSender, NewMessage
from supportdesk.realtime.sessions import (
    ConnectionRegistry,
    ConnectionSession,
    conversation_room,
    tenant_room,
)
from supportdesk.services.auth.service import AuthService
from supportdesk.services.conversation.store import ConversationStore
from supportdesk.services.tenants.service import TenantService

logger = structlog.get_logger()

WIDGET_SUBJECT = "Chat via Widget"
DEFAULT_SENDER_NAME = "Visitor"
AI_SENDER_NAME = "AI Assistant"
SEND_FAILED = "Failed to send message"


class MessagingGateway:
    """Relays chat events between sockets and the conversation store.

    Every connection joins its tenant room on connect and may join
    conversation rooms on request. Delivery is best effort: events are
    emitted once, without acknowledgement or retry.
    """

    def __init__(
        self,
        store: ConversationStore,
        tenants: TenantService,
        auth_service: AuthService | None = None,
        sio: socketio.AsyncServer | None = None,
        cors_origins: list[str] | str = "*",
    ) -> None:
        self.store = store
        self.tenants = tenants
        self.auth = auth_service
        self.sio = sio or socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins=cors_origins,
        )
        self.registry = ConnectionRegistry()
        self._register_handlers()

    def _register_handlers(self) -> None:
        self.sio.on("connect", self.handle_connect)
        self.sio.on("disconnect", self.handle_disconnect)
        self.sio.on("chat_message", self.handle_chat_message)
        self.sio.on("join_conversation", self.handle_join_conversation)
        self.sio.on("leave_conversation", self.handle_leave_conversation)
        self.sio.on("typing_start", self.handle_typing_start)
        self.sio.on("typing_stop", self.handle_typing_stop)

    # ==================== Connection lifecycle ====================

    async def handle_connect(
        self,
        sid: str,
        environ: dict[str, Any],
        auth: dict[str, Any] | None = None,
    ) -> None:
        """Accept a socket that names an existing tenant.

        Raises:
            ConnectionRefusedError: No ``clientId``, an unknown tenant, or a
                token that fails verification.
        """
        auth = auth or {}
        tenant_id = auth.get("clientId")
        if not tenant_id:
            logger.warning("Socket connection refused: missing client id", sid=sid)
            raise socketio.exceptions.ConnectionRefusedError("Client ID required")

        try:
            await self.tenants.get_tenant(tenant_id)
        except NotFound:
            logger.warning("Socket connection refused: unknown client", sid=sid, tenant_id=tenant_id)
            raise socketio.exceptions.ConnectionRefusedError("Unknown client")

        user_id = None
        token = auth.get("token")
        if token and self.auth is not None:
            try:
                user = await self.auth.verify(token)
            except AppException as e:
                logger.warning("Socket authentication failed", sid=sid, error=e.message)
                raise socketio.exceptions.ConnectionRefusedError("Authentication failed")
            user_id = user.id

        session = self.registry.open(sid, tenant_id=tenant_id, user_id=user_id)
        await self.sio.enter_room(sid, tenant_room(tenant_id))

        logger.info("Client connected", **session.to_dict())

    async def handle_disconnect(self, sid: str, reason: Any = None) -> None:
        session = self.registry.close(sid)
        logger.info(
            "Client disconnected",
            sid=sid,
            tenant_id=session.tenant_id if session else None,
            reason=str(reason) if reason is not None else None,
        )

    # ==================== Inbound events ====================

    async def handle_chat_message(self, sid: str, data: dict[str, Any] | None) -> None:
        """Store a customer message and fan it out.

        Failures are reported to the sender only, as an ``error`` event.
        """
        try:
            session = self._require_session(sid)
            await self._relay_chat_message(sid, session, data or {})
        except Exception as e:
            logger.error("Error handling chat message", sid=sid, error=str(e))
            await self.sio.emit("error", {"message": SEND_FAILED}, to=sid)

    async def _relay_chat_message(
        self,
        sid: str,
        session: ConnectionSession,
        data: dict[str, Any],
    ) -> None:
        conversation_id = data.get("conversationId")

        if not conversation_id:
            conversation = await self.store.create_conversation(
                tenant_id=session.tenant_id,
                type=ConversationType.CHAT,
                subject=WIDGET_SUBJECT,
            )
        else:
            conversation = await self.store.get_conversation(conversation_id, session.tenant_id)

        message = await self.store.append_message(
            conversation.id,
            NewMessage(
                content=data.get("message") or "",
                sender=MessageSender.USER,
                sender_name=data.get("senderName") or DEFAULT_SENDER_NAME,
                sender_email=data.get("senderEmail"),
                is_from_ai=False,
            ),
        )

        payload = {"message": message.to_payload(), "conversationId": conversation.id}
        await self.sio.emit("new_message", payload, room=conversation_room(conversation.id))
        await self.sio.emit("new_message", payload, room=tenant_room(session.tenant_id))
        await self.sio.emit(
            "message_sent",
            {"success": True, **payload},
            to=sid,
        )

    async def handle_join_conversation(self, sid: str, data: dict[str, Any] | None) -> None:
        conversation_id = (data or {}).get("conversationId")
        if not conversation_id or self.registry.join(sid, conversation_id) is None:
            return

        await self.sio.enter_room(sid, conversation_room(conversation_id))
        logger.info("Socket joined conversation", sid=sid, conversation_id=conversation_id)

    async def handle_leave_conversation(self, sid: str, data: dict[str, Any] | None) -> None:
        conversation_id = (data or {}).get("conversationId")
        if not conversation_id or self.registry.leave(sid, conversation_id) is None:
            return

        await self.sio.leave_room(sid, conversation_room(conversation_id))
        logger.info("Socket left conversation", sid=sid, conversation_id=conversation_id)

    async def handle_typing_start(self, sid: str, data: dict[str, Any] | None) -> None:
        await self._relay_typing(sid, data, is_typing=True)

    async def handle_typing_stop(self, sid: str, data: dict[str, Any] | None) -> None:
        await self._relay_typing(sid, data, is_typing=False)

    async def _relay_typing(self, sid: str, data: dict[str, Any] | None, is_typing: bool) -> None:
        conversation_id = (data or {}).get("conversationId")
        session = self.registry.get(sid)
        if not conversation_id or session is None:
            return

        await self.sio.emit(
            "user_typing",
            {"userId": session.user_id, "conversationId": conversation_id, "isTyping": is_typing},
            room=conversation_room(conversation_id),
            skip_sid=sid,
        )

    # ==================== Outbound (server initiated) ====================

    async def send_operator_message(self, conversation_id: str, new_message: NewMessage) -> Message:
        """Store a message from the dashboard and push it to the conversation room."""
        message = await self.store.append_message(conversation_id, new_message)

        await self.sio.emit(
            "new_message",
            {"message": message.to_payload(), "conversationId": conversation_id},
            room=conversation_room(conversation_id),
        )
        return message

    async def send_ai_response(self, conversation_id: str, content: str) -> Message:
        """Store an AI reply and push it to the conversation room."""
        message = await self.store.append_message(
            conversation_id,
            NewMessage(
                content=content,
                sender=MessageSender.AI,
                sender_name=AI_SENDER_NAME,
                is_from_ai=True,
            ),
        )

        await self.sio.emit(
            "ai_response",
            {"message": message.to_payload(), "conversationId": conversation_id},
            room=conversation_room(conversation_id),
        )
        return message

    async def notify_status_change(self, conversation_id: str, update: dict[str, Any]) -> None:
        await self.sio.emit(
            "conversation_updated",
            {"conversationId": conversation_id, "update": update},
            room=conversation_room(conversation_id),
        )

    def _require_session(self, sid: str) -> ConnectionSession:
        session = self.registry.get(sid)
        if session is None:
            raise RuntimeError(f"No session for socket {sid}")
        return session
