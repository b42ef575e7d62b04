"""Model provider interface and the Claude implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

import anthropic
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from career_orchestrator.errors import ProviderError

logger = logging.getLogger(__name__)

ModelTier = Literal["fast", "quality"]


@dataclass
class Completion:
    """Text returned by the provider with usage metadata when it reports it."""

    text: str
    input_tokens: int | None = None
    output_tokens: int | None = None

    @property
    def reported_tokens(self) -> int | None:
        if self.input_tokens is None or self.output_tokens is None:
            return None
        return self.input_tokens + self.output_tokens


class ProviderClient(Protocol):
    async def complete(
        self,
        model: ModelTier,
        max_tokens: int,
        system_prompt: str,
        user_content: str,
    ) -> Completion:
        """Run one completion. Raises ProviderError on transport/auth failure."""
        ...


class AnthropicProvider:
    """Async Claude client mapping model tiers to configured model ids.

    Transport errors are retried with exponential backoff only when
    ``max_attempts`` is above 1; the default is a single attempt.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        *,
        fast_model: str = "claude-haiku-4-5-20251001",
        quality_model: str = "claude-sonnet-4-5-20250929",
        max_attempts: int = 1,
    ):
        kwargs: dict = {}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = anthropic.AsyncAnthropic(**kwargs)
        self.models: dict[str, str] = {"fast": fast_model, "quality": quality_model}
        self.max_attempts = max_attempts
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    async def _call_api(self, **kwargs) -> anthropic.types.Message:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=1, max=10),
            retry=retry_if_exception_type((anthropic.APIConnectionError, anthropic.RateLimitError)),
            reraise=True,
        ):
            with attempt:
                return await self.client.messages.create(**kwargs)
        raise ProviderError("provider call was not attempted")  # pragma: no cover

    async def complete(
        self,
        model: ModelTier,
        max_tokens: int,
        system_prompt: str,
        user_content: str,
    ) -> Completion:
        model_id = self.models.get(model, model)
        logger.debug("LLM call: model=%s max_tokens=%d", model_id, max_tokens)
        try:
            message = await self._call_api(
                model=model_id,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_content}],
            )
        except anthropic.AnthropicError as e:
            logger.error("LLM call failed: %s", e)
            raise ProviderError(f"{type(e).__name__}: {e}") from e
        except TypeError as e:
            # raised by the SDK when no API key or auth token can be resolved
            raise ProviderError(f"provider is not configured: {e}") from e

        content = message.content[0] if message.content else None
        if content is None or getattr(content, "type", "text") != "text":
            raise ProviderError("unexpected non-text response from provider")

        usage = getattr(message, "usage", None)
        input_tokens = getattr(usage, "input_tokens", None)
        output_tokens = getattr(usage, "output_tokens", None)
        if input_tokens is not None and output_tokens is not None:
            logger.debug("LLM response: %d input, %d output tokens", input_tokens, output_tokens)
            self._token_log.append((model_id, input_tokens, output_tokens))
        return Completion(text=content.text, input_tokens=input_tokens, output_tokens=output_tokens)

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        summary = {
            "input": sum(t[1] for t in self._token_log),
            "output": sum(t[2] for t in self._token_log),
            "calls": list(self._token_log),
        }
        self._token_log.clear()
        return summary
