"""AI service - completion adapter over the LLM provider."""

from supportdesk.services.ai.completion import (
    FALLBACK_MESSAGE,
    CompletionAdapter,
    CompletionOutcome,
    CompletionResult,
    ConversationAnalysis,
)

__all__ = [
    "FALLBACK_MESSAGE",
    "CompletionAdapter",
    "CompletionOutcome",
    "CompletionResult",
    "ConversationAnalysis",
]
