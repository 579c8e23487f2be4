"""LLM Provider using LiteLLM for multi-provider abstraction."""

import time
from dataclasses import dataclass, field
from typing import Any

import litellm
import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from supportdesk.core.config import Settings, settings
from supportdesk.core.exceptions import ConfigurationError, LLMError

logger = structlog.get_logger()


def configure_litellm(config: Settings) -> None:
    """Push API keys and verbosity from settings into LiteLLM."""
    litellm.set_verbose = config.app_debug
    if config.openai_api_key:
        litellm.openai_key = config.openai_api_key
    if config.anthropic_api_key:
        litellm.anthropic_key = config.anthropic_api_key


@dataclass
class LLMResponse:
    """Response from LLM completion."""

    content: str
    model: str
    tokens_input: int = 0
    tokens_output: int = 0
    finish_reason: str = "stop"
    latency_ms: float = 0.0
    cost_usd: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


class LLMProvider:
    """LLM provider with multi-model support and fallbacks.

    Uses LiteLLM for unified API across OpenAI, Anthropic, and more. Each
    model is retried with exponential backoff before moving on to the next
    fallback model.
    """

    def __init__(
        self,
        primary_model: str | None = None,
        fallback_models: list[str] | None = None,
        default_temperature: float | None = None,
        default_max_tokens: int | None = None,
        timeout: float | None = None,
        retry_attempts: int = 3,
        enabled: bool | None = None,
    ) -> None:
        self.primary_model = primary_model or settings.litellm_primary_model
        self.fallback_models = fallback_models if fallback_models is not None else [settings.litellm_fallback_model]
        self.default_temperature = (
            default_temperature if default_temperature is not None else settings.llm_temperature
        )
        self.default_max_tokens = default_max_tokens or settings.llm_max_tokens
        self.timeout = timeout or settings.llm_timeout_seconds
        self.retry_attempts = retry_attempts
        self.enabled = settings.llm_configured if enabled is None else enabled

        logger.info(
            "LLM Provider initialized",
            primary=self.primary_model,
            fallbacks=self.fallback_models,
            enabled=self.enabled,
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        model: str | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a completion using the LLM.

        Args:
            messages: List of message dicts with 'role' and 'content'
            system_prompt: Optional system prompt to prepend
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate
            model: Override model selection
            **kwargs: Additional parameters passed to LiteLLM

        Returns:
            LLMResponse with generated content and metadata

        Raises:
            ConfigurationError: If no provider credentials are configured.
            LLMError: If the primary and every fallback model failed.
        """
        if not self.enabled:
            raise ConfigurationError("No LLM provider configured")

        model_to_use = model or self.primary_model
        temp = temperature if temperature is not None else self.default_temperature
        max_tok = max_tokens or self.default_max_tokens

        # Prepare messages with system prompt
        full_messages = []
        if system_prompt:
            full_messages.append({"role": "system", "content": system_prompt})
        full_messages.extend(messages)

        candidates = [model_to_use] + [m for m in self.fallback_models if m != model_to_use]
        last_error: Exception | None = None

        for candidate in candidates:
            try:
                return await self._complete_with_model(candidate, full_messages, temp, max_tok, **kwargs)
            except Exception as e:
                last_error = e
                logger.warning(
                    "LLM completion failed, trying fallback",
                    model=candidate,
                    error=str(e),
                )

        raise LLMError(f"All LLM providers failed: {last_error}", provider=model_to_use)

    async def _complete_with_model(
        self,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
        **kwargs: Any,
    ) -> LLMResponse:
        start_time = time.perf_counter()

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        ):
            with attempt:
                response = await litellm.acompletion(
                    model=model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    timeout=self.timeout,
                    **kwargs,
                )

        latency_ms = (time.perf_counter() - start_time) * 1000

        # Extract usage info
        usage = getattr(response, "usage", None)
        tokens_input = getattr(usage, "prompt_tokens", 0) or 0
        tokens_output = getattr(usage, "completion_tokens", 0) or 0

        # Calculate cost using LiteLLM's cost tracking
        try:
            cost = float(litellm.completion_cost(completion_response=response))
        except Exception:
            cost = 0.0

        content = response.choices[0].message.content or ""
        finish_reason = response.choices[0].finish_reason or "stop"

        logger.info(
            "LLM completion successful",
            model=model,
            tokens_in=tokens_input,
            tokens_out=tokens_output,
            latency_ms=round(latency_ms, 2),
            cost_usd=round(cost, 6),
        )

        return LLMResponse(
            content=content,
            model=model,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            finish_reason=finish_reason,
            latency_ms=latency_ms,
            cost_usd=cost,
            metadata={"raw_response_id": getattr(response, "id", None)},
        )
