"""Shared call path for the specialist agents."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from career_orchestrator.clients.llm_client import Completion, ModelTier, ProviderClient
from career_orchestrator.errors import ProviderError, SchemaViolation
from career_orchestrator.pipeline.schema_gate import ROOT, SchemaKind, validate
from career_orchestrator.utils.json_parser import extract_json
from career_orchestrator.utils.tokens import estimate_tokens

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class AgentResult(Generic[T]):
    data: T
    token_estimate: int
    reported: bool = False  # True when token_estimate is provider-reported usage


def usage_for(completion: Completion, system_prompt: str, user_content: str) -> tuple[int, bool]:
    """Provider-reported usage when both counts are present, else ceil(chars/4) per side."""
    reported = completion.reported_tokens
    if reported is not None:
        return reported, True
    return estimate_tokens(system_prompt + user_content) + estimate_tokens(completion.text), False


class SpecialistAgent:
    """One model completion with a fixed system contract, gated by a schema.

    Subclasses set ``name``, ``kind``, ``system_prompt``, ``tier`` and
    ``max_tokens`` and may override ``reconcile`` for mechanical re-checks
    of the validated output.
    """

    name: str = "SpecialistAgent"
    kind: SchemaKind
    system_prompt: str = ""
    tier: ModelTier = "fast"
    max_tokens: int = 2048

    def __init__(self, provider: ProviderClient, *, timeout: float | None = None):
        self.provider = provider
        self.timeout = timeout

    async def _complete(self, user_content: str) -> Completion:
        call = self.provider.complete(
            model=self.tier,
            max_tokens=self.max_tokens,
            system_prompt=self.system_prompt,
            user_content=user_content,
        )
        try:
            if self.timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(f"{self.name} timed out after {self.timeout:g}s") from e

    async def _call(self, user_content: str, **context: Any) -> AgentResult:
        completion = await self._complete(user_content)
        tokens, reported = usage_for(completion, self.system_prompt, user_content)
        try:
            try:
                raw = extract_json(completion.text)
            except ValueError as e:
                raise SchemaViolation(self.name, ROOT, str(e)) from e
            data = validate(self.kind, raw, agent=self.name)
        except SchemaViolation as e:
            e.token_estimate = tokens
            raise
        data = self.reconcile(data, **context)
        logger.debug("%s ok: %d tokens (%s)", self.name, tokens, "reported" if reported else "estimated")
        return AgentResult(data=data, token_estimate=tokens, reported=reported)

    def reconcile(self, data: Any, **context: Any) -> Any:
        return data
