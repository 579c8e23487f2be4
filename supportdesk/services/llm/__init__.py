"""LLM service - multi-provider abstraction using LiteLLM."""

from supportdesk.services.llm.provider import LLMProvider, LLMResponse, configure_litellm

__all__ = ["LLMProvider", "LLMResponse", "configure_litellm"]
