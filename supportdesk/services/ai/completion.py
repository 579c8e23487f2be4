"""Completion adapter - knowledge-grounded replies and conversation analysis."""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

import structlog

from supportdesk.core.exceptions import LLMError
from supportdesk.models import KnowledgeItem
from supportdesk.services.knowledge.service import KnowledgeService
from supportdesk.services.llm.provider import LLMProvider

logger = structlog.get_logger()


SYSTEM_PROMPT = """You are a smart and helpful customer support assistant.

Your responsibilities:
1. Answer customer questions based on the knowledge provided
2. Be courteous and professional
3. If you don't know the answer, say so and suggest talking to a human agent
4. Keep answers concise but complete

Important:
- Always prioritize information from the company's knowledge base
- If the question is unrelated to the knowledge base, answer generally and suggest talking to an agent
- Be direct and objective, but always polite"""

ANALYSIS_PROMPT = (
    "Analyze the conversation and return a JSON object with: "
    "sentiment (positive/neutral/negative), topics (array of main topics), "
    "and summary (a one-sentence summary)."
)

FALLBACK_MESSAGE = (
    "Sorry, I'm having technical difficulties right now. "
    "Please wait, one of our agents will assist you shortly."
)

CONFIDENCE_WITH_KNOWLEDGE = 0.8
CONFIDENCE_WITHOUT_KNOWLEDGE = 0.6
CONFIDENCE_FALLBACK = 0.1


class CompletionOutcome(str, Enum):
    ANSWERED = "answered"
    FALLBACK = "fallback"  # Provider unavailable; message is the fixed apology


@dataclass
class CompletionResult:
    """Reply produced for a customer message."""

    message: str
    confidence: float
    source_knowledge: list[str] | None = None
    outcome: CompletionOutcome = CompletionOutcome.ANSWERED
    error: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.outcome == CompletionOutcome.FALLBACK

    def to_payload(self) -> dict[str, Any]:
        """Wire shape shared by both outcomes."""
        payload: dict[str, Any] = {"message": self.message, "confidence": self.confidence}
        if self.source_knowledge is not None:
            payload["sourceKnowledge"] = self.source_knowledge
        return payload


@dataclass
class ConversationAnalysis:
    sentiment: str = "neutral"
    topics: list[str] = field(default_factory=list)
    summary: str = ""

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


def find_relevant_sources(
    message: str,
    items: list[KnowledgeItem],
    limit: int = 3,
) -> list[KnowledgeItem]:
    """Pick items whose title or content contains the message, or vice versa.

    Matching is case-insensitive substring containment; empty strings never
    match.
    """
    needle = message.strip().lower()
    if not needle:
        return []

    relevant = []
    for item in items:
        for text in (item.title, item.content):
            haystack = text.strip().lower()
            if haystack and (needle in haystack or haystack in needle):
                relevant.append(item)
                break
        if len(relevant) >= limit:
            break
    return relevant


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


class CompletionAdapter:
    """Formats prompts from a tenant's knowledge base and calls the LLM.

    Provider failures never raise: ``generate_response`` returns a
    FALLBACK result and ``analyze_conversation`` a neutral analysis.
    """

    def __init__(
        self,
        knowledge_service: KnowledgeService,
        llm_provider: LLMProvider,
        history_window: int = 10,
        max_sources: int = 3,
        max_tokens: int = 500,
        temperature: float = 0.7,
    ) -> None:
        self.knowledge = knowledge_service
        self.llm = llm_provider
        self.history_window = history_window
        self.max_sources = max_sources
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def generate_response(
        self,
        message: str,
        tenant_id: str,
        history: list[str] | None = None,
    ) -> CompletionResult:
        """Answer a customer message using the tenant's knowledge base.

        Args:
            message: Customer message
            tenant_id: Tenant whose knowledge grounds the answer
            history: Earlier conversation lines, oldest first

        Returns:
            CompletionResult, with outcome FALLBACK if the provider failed
        """
        knowledge = await self._load_knowledge(tenant_id)

        knowledge_context = "\n\n".join(f"{k.title}: {k.content}" for k in knowledge)
        history_context = "\n".join((history or [])[-self.history_window:])

        try:
            response = await self.llm.complete(
                messages=[
                    {
                        "role": "user",
                        "content": self._build_user_prompt(message, knowledge_context, history_context),
                    }
                ],
                system_prompt=SYSTEM_PROMPT,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )

            content = response.content.strip()
            if not content:
                raise LLMError("No response from AI", provider=response.model)

        except Exception as e:
            logger.error(
                "Failed to generate AI response",
                tenant_id=tenant_id,
                error=str(e),
            )
            return CompletionResult(
                message=FALLBACK_MESSAGE,
                confidence=CONFIDENCE_FALLBACK,
                outcome=CompletionOutcome.FALLBACK,
                error=str(e),
            )

        confidence = CONFIDENCE_WITH_KNOWLEDGE if knowledge_context else CONFIDENCE_WITHOUT_KNOWLEDGE
        sources = find_relevant_sources(message, knowledge, limit=self.max_sources)

        logger.info(
            "AI response generated",
            tenant_id=tenant_id,
            confidence=confidence,
            sources=len(sources),
        )

        return CompletionResult(
            message=content,
            confidence=confidence,
            source_knowledge=[k.title for k in sources],
        )

    async def analyze_conversation(self, messages: list[str]) -> ConversationAnalysis:
        """Ask the provider for sentiment, topics and a summary.

        Unparseable output yields summary "not available"; a failed call
        yields an empty summary.
        """
        try:
            response = await self.llm.complete(
                messages=[{"role": "user", "content": "\n".join(messages)}],
                system_prompt=ANALYSIS_PROMPT,
                temperature=0.3,
                max_tokens=300,
            )
        except Exception as e:
            logger.error("Failed to analyze conversation", error=str(e))
            return ConversationAnalysis(sentiment="neutral", topics=[], summary="")

        try:
            data = json.loads(_strip_code_fence(response.content))
            if not isinstance(data, dict):
                raise ValueError("Analysis is not a JSON object")
            return ConversationAnalysis(
                sentiment=str(data.get("sentiment") or "neutral"),
                topics=[str(t) for t in data.get("topics") or []],
                summary=str(data.get("summary") or ""),
            )
        except (ValueError, TypeError):
            logger.warning("Failed to parse analysis response", content=response.content)
            return ConversationAnalysis(sentiment="neutral", topics=[], summary="not available")

    async def _load_knowledge(self, tenant_id: str) -> list[KnowledgeItem]:
        try:
            return await self.knowledge.get_knowledge(tenant_id)
        except Exception as e:
            logger.error("Failed to get tenant knowledge", tenant_id=tenant_id, error=str(e))
            return []

    @staticmethod
    def _build_user_prompt(message: str, knowledge_context: str, history_context: str) -> str:
        sections = [f"Knowledge base:\n{knowledge_context}"]
        if history_context:
            sections.append(f"Conversation history:\n{history_context}")
        sections.append(f"Question: {message}")
        return "\n\n".join(sections)
