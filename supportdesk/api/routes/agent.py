"""AI agent endpoints: direct chat, knowledge base and conversation analysis."""

from typing import Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from supportdesk.api.dependencies import CompletionDep, CurrentUserDep, KnowledgeDep
from supportdesk.models import KnowledgeCreate, KnowledgeItem, KnowledgeUpdate, Pagination

router = APIRouter(prefix="/api/agent", tags=["Agent"])


# ==================== Pydantic Schemas ====================


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    conversation_history: list[str] | None = None


class ChatResponse(BaseModel):
    response: dict[str, Any]
    outcome: str


class KnowledgePage(BaseModel):
    knowledge: list[KnowledgeItem]
    pagination: Pagination


class AnalyzeRequest(BaseModel):
    messages: list[str] = Field(..., min_length=1)


class AnalyzeResponse(BaseModel):
    sentiment: str
    topics: list[str]
    summary: str


class DeleteResponse(BaseModel):
    message: str


# ==================== Chat ====================


@router.post("/chat", response_model=ChatResponse)
async def chat(
    data: ChatRequest,
    user: CurrentUserDep,
    completion: CompletionDep,
) -> ChatResponse:
    """Generate an AI answer without storing it.

    Provider failures come back as the fallback reply, never as an error.
    """
    result = await completion.generate_response(
        data.message,
        data.client_id,
        history=data.conversation_history,
    )
    return ChatResponse(response=result.to_payload(), outcome=result.outcome.value)


# ==================== Knowledge ====================


@router.post(
    "/knowledge/{tenant_id}",
    response_model=KnowledgeItem,
    status_code=status.HTTP_201_CREATED,
)
async def add_knowledge(
    tenant_id: str,
    data: KnowledgeCreate,
    user: CurrentUserDep,
    knowledge: KnowledgeDep,
) -> KnowledgeItem:
    return await knowledge.add_knowledge(tenant_id, data)


@router.get("/knowledge/{tenant_id}", response_model=KnowledgePage)
async def list_knowledge(
    tenant_id: str,
    user: CurrentUserDep,
    knowledge: KnowledgeDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> KnowledgePage:
    items, pagination = await knowledge.get_knowledge_page(tenant_id, page=page, limit=limit)
    return KnowledgePage(knowledge=items, pagination=pagination)


@router.put("/knowledge/{tenant_id}/{knowledge_id}", response_model=KnowledgeItem)
async def update_knowledge(
    tenant_id: str,
    knowledge_id: str,
    data: KnowledgeUpdate,
    user: CurrentUserDep,
    knowledge: KnowledgeDep,
) -> KnowledgeItem:
    return await knowledge.update_knowledge(knowledge_id, tenant_id, data)


@router.delete("/knowledge/{tenant_id}/{knowledge_id}", response_model=DeleteResponse)
async def delete_knowledge(
    tenant_id: str,
    knowledge_id: str,
    user: CurrentUserDep,
    knowledge: KnowledgeDep,
) -> DeleteResponse:
    await knowledge.delete_knowledge(knowledge_id, tenant_id)
    return DeleteResponse(message="Knowledge deleted successfully")


# ==================== Analysis ====================


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_conversation(
    data: AnalyzeRequest,
    user: CurrentUserDep,
    completion: CompletionDep,
) -> AnalyzeResponse:
    analysis = await completion.analyze_conversation(data.messages)
    return AnalyzeResponse(**analysis.to_payload())
