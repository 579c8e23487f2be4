"""Conversation and message endpoints for the operator dashboard."""

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from supportdesk.api.dependencies import (
    CompletionDep,
    ConversationStoreDep,
    CurrentUserDep,
    GatewayDep,
    TenantServiceDep,
)
from supportdesk.models import (
    Conversation,
    ConversationCreate,
    ConversationPage,
    ConversationStats,
    ConversationStatus,
    Message,
    MessagePage,
    MessageSender,
    NewMessage,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/chat", tags=["Chat"])


# ==================== Pydantic Schemas ====================


class StatusUpdate(BaseModel):
    status: ConversationStatus


class MessageCreate(NewMessage):
    sender: MessageSender = MessageSender.USER


class AIReplyRequest(BaseModel):
    """Question to answer; defaults to the latest customer message."""

    message: str | None = Field(default=None, min_length=1)


class AIReplyResponse(BaseModel):
    reply: dict[str, Any]
    outcome: str
    message: Message


class DeleteResponse(BaseModel):
    message: str


# ==================== Conversations ====================


@router.post("/conversations", response_model=Conversation, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: ConversationCreate,
    user: CurrentUserDep,
    tenants: TenantServiceDep,
    store: ConversationStoreDep,
) -> Conversation:
    """Open a conversation for an existing tenant."""
    await tenants.get_tenant(data.client_id)
    return await store.create_conversation(
        tenant_id=data.client_id,
        type=data.type,
        subject=data.subject,
        priority=data.priority,
    )


@router.get("/conversations/{tenant_id}", response_model=ConversationPage)
async def list_conversations(
    tenant_id: str,
    user: CurrentUserDep,
    store: ConversationStoreDep,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None),
) -> ConversationPage:
    return await store.list_conversations(tenant_id, page=page, limit=limit, search=search)


@router.get("/conversations/{conversation_id}/details", response_model=Conversation)
async def get_conversation(
    conversation_id: str,
    user: CurrentUserDep,
    store: ConversationStoreDep,
    client_id: str | None = Query(None),
) -> Conversation:
    """Get one conversation; ``client_id`` scopes the lookup to a tenant."""
    return await store.get_conversation(conversation_id, client_id)


@router.patch("/conversations/{conversation_id}/status", response_model=Conversation)
async def update_conversation_status(
    conversation_id: str,
    data: StatusUpdate,
    user: CurrentUserDep,
    store: ConversationStoreDep,
    gateway: GatewayDep,
    client_id: str | None = Query(None),
) -> Conversation:
    conversation = await store.update_status(conversation_id, data.status, client_id)

    await gateway.notify_status_change(
        conversation_id,
        {
            "status": conversation.status.value,
            "closedAt": conversation.closed_at.isoformat() if conversation.closed_at else None,
        },
    )

    return conversation


@router.delete("/conversations/{conversation_id}", response_model=DeleteResponse)
async def delete_conversation(
    conversation_id: str,
    user: CurrentUserDep,
    store: ConversationStoreDep,
    client_id: str | None = Query(None),
) -> DeleteResponse:
    await store.delete_conversation(conversation_id, client_id)
    return DeleteResponse(message="Conversation deleted successfully")


# ==================== Messages ====================


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    data: MessageCreate,
    user: CurrentUserDep,
    gateway: GatewayDep,
) -> Message:
    """Store a dashboard message and push it to connected sockets."""
    return await gateway.send_operator_message(conversation_id, data)


@router.get("/conversations/{conversation_id}/messages", response_model=MessagePage)
async def list_messages(
    conversation_id: str,
    user: CurrentUserDep,
    store: ConversationStoreDep,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
) -> MessagePage:
    return await store.list_messages(conversation_id, page=page, limit=limit)


@router.post("/conversations/{conversation_id}/ai-reply", response_model=AIReplyResponse)
async def ai_reply(
    conversation_id: str,
    user: CurrentUserDep,
    store: ConversationStoreDep,
    completion: CompletionDep,
    gateway: GatewayDep,
    data: AIReplyRequest | None = None,
) -> AIReplyResponse:
    """Answer the conversation with the AI and deliver the reply over the socket."""
    conversation = await store.get_conversation(conversation_id)
    recent = await store.get_recent_messages(conversation_id, limit=completion.history_window)

    question = data.message if data and data.message else None
    if question is None:
        customer_messages = [m for m in recent if m.sender == MessageSender.USER]
        if not customer_messages:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No customer message to answer",
            )
        # The answered message is the question, not part of the history
        asked = customer_messages[-1]
        question = asked.content
        recent = [m for m in recent if m.id != asked.id]

    result = await completion.generate_response(
        question,
        conversation.tenant_id,
        history=[m.to_history_line() for m in recent],
    )
    message = await gateway.send_ai_response(conversation_id, result.message)

    logger.info(
        "AI reply delivered",
        conversation_id=conversation_id,
        outcome=result.outcome.value,
    )

    return AIReplyResponse(reply=result.to_payload(), outcome=result.outcome.value, message=message)


# ==================== Stats ====================


@router.get("/stats/{tenant_id}", response_model=ConversationStats)
async def get_stats(
    tenant_id: str,
    user: CurrentUserDep,
    store: ConversationStoreDep,
) -> ConversationStats:
    return await store.get_stats(tenant_id)
