"""Main pipeline orchestrator - coordinates all agents."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any

from pydantic import ValidationError

from career_orchestrator.cache.result_cache import CacheStore
from career_orchestrator.clients.llm_client import ProviderClient
from career_orchestrator.config import PipelineConfig
from career_orchestrator.errors import (
    BudgetExceeded,
    InputValidationError,
    QuotaExceeded,
    SchemaViolation,
)
from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.run import OrchestratorInput, RunState
from career_orchestrator.persistence.run_store import RunStore, resume_hash
from career_orchestrator.pipeline.budget import BudgetTracker
from career_orchestrator.pipeline.cover_letter_writer import CoverLetterWriter
from career_orchestrator.pipeline.job_parser import JobParser
from career_orchestrator.pipeline.match_scorer import MatchScorer
from career_orchestrator.pipeline.resume_parser import ResumeParser
from career_orchestrator.pipeline.resume_tailor import ResumeTailor
from career_orchestrator.pipeline.schema_gate import validate
from career_orchestrator.pipeline.stages import STAGES, Agents, RunContext, assemble
from career_orchestrator.pipeline.truth_guard import TruthGuard
from career_orchestrator.quota.quota_store import QuotaStore

logger = logging.getLogger(__name__)


def _field_errors(error: ValidationError, prefix: str = "") -> dict[str, str]:
    fields: dict[str, str] = {}
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"])
        key = f"{prefix}.{loc}" if prefix and loc else (prefix or loc or "<root>")
        fields.setdefault(key, err["msg"])
    return fields


class PipelineOrchestrator:
    """Runs the six-agent résumé/job pipeline for one request at a time.

    The provider, result cache, quota store and run store are injected and
    may be shared across requests; everything else is request scoped.
    """

    def __init__(
        self,
        provider: ProviderClient,
        cache: CacheStore | None = None,
        quota: QuotaStore | None = None,
        run_store: RunStore | None = None,
        config: PipelineConfig | None = None,
    ):
        self.config = config or PipelineConfig()
        self.cache = cache
        self.quota = quota
        self.run_store = run_store
        timeout = self.config.call_timeout_seconds
        self.agents = Agents(
            resume_parser=ResumeParser(provider, timeout=timeout),
            job_parser=JobParser(provider, timeout=timeout),
            match_scorer=MatchScorer(provider, timeout=timeout),
            resume_tailor=ResumeTailor(provider, timeout=timeout),
            cover_letter_writer=CoverLetterWriter(provider, timeout=timeout),
            truth_guard=TruthGuard(provider, timeout=timeout),
        )

    async def run(self, request: OrchestratorInput | dict[str, Any]) -> RunState:
        """Execute one run.

        Raises:
            InputValidationError: malformed input; raised before any model call.
            QuotaExceeded: the caller's allowance for this run type is used up.
            SchemaViolation, ProviderError: the résumé could not be parsed.
        """
        start = time.monotonic()
        request = self._validate(request)
        budget_total = request.limits.token_budget_total or self.config.token_budget_total
        cached_resume, cached_jobs = self._validate_cached(request)
        self._check_quota(request)

        run_id = request.run_id or str(uuid.uuid4())
        self._create_run(request, run_id, budget_total)

        ctx = RunContext(
            run_id=run_id,
            request=request,
            config=self.config,
            agents=self.agents,
            budget=BudgetTracker(budget_total),
            max_jobs=request.limits.max_jobs or self.config.max_jobs,
            max_tailored_jobs=request.limits.max_tailored_jobs or self.config.max_tailored_jobs,
            cache=self.cache,
            cached_resume=cached_resume,
            cached_jobs=cached_jobs,
        )
        logger.info("run=%s start: %s, %d job(s), budget %d", run_id, request.run_type, len(request.jobs), budget_total)

        try:
            for stage_cls in STAGES[request.run_type]:
                if ctx.budget.stopped:
                    break
                stage = stage_cls()
                try:
                    await stage.run(ctx)
                except BudgetExceeded as e:
                    ctx.budget.stop(e.reason)
        except Exception as e:
            logger.error("run=%s failed: %s: %s", run_id, type(e).__name__, e)
            self._fail_run(run_id, ctx.budget.used)
            raise

        state = assemble(ctx)
        logger.info(
            "run=%s done: status=%s tokens=%d/%d ranked=%d tailored=%d (%.1fs)",
            run_id,
            state.status,
            state.budget.token_used_estimate,
            state.budget.token_budget_total,
            len(state.ranked_jobs),
            len(state.tailored_outputs),
            time.monotonic() - start,
        )
        self._complete_run(run_id, state)
        return state

    def run_sync(self, request: OrchestratorInput | dict[str, Any]) -> RunState:
        """Blocking wrapper around ``run``."""
        return asyncio.run(self.run(request))

    def _validate(self, request: OrchestratorInput | dict[str, Any]) -> OrchestratorInput:
        if not isinstance(request, OrchestratorInput):
            try:
                request = OrchestratorInput.model_validate(request)
            except ValidationError as e:
                fields = _field_errors(e)
                raise InputValidationError(f"invalid orchestrator input: {len(fields)} field(s)", fields) from e

        budget = request.limits.token_budget_total
        if budget is not None and budget > self.config.max_token_budget:
            raise InputValidationError(
                f"token_budget_total must not exceed {self.config.max_token_budget}",
                {"limits.token_budget_total": f"must be <= {self.config.max_token_budget}"},
            )
        return request

    def _validate_cached(
        self, request: OrchestratorInput
    ) -> tuple[ResumeRecord | None, dict[str, JobRecord]]:
        """Caller-supplied records pass the same gate as model output."""
        fields: dict[str, str] = {}
        resume = None
        if request.cached.resume_json is not None:
            try:
                resume = validate("resume", request.cached.resume_json, agent="cached.resume_json")
            except SchemaViolation as e:
                fields[f"cached.resume_json.{e.path}"] = e.message
        jobs: dict[str, JobRecord] = {}
        for job_id, raw in request.cached.job_json_by_job_id.items():
            try:
                jobs[job_id] = validate("job", raw, agent=f"cached.job_json_by_job_id.{job_id}")
            except SchemaViolation as e:
                fields[f"cached.job_json_by_job_id.{job_id}.{e.path}"] = e.message
        if fields:
            raise InputValidationError("invalid cached records", fields)
        return resume, jobs

    def _check_quota(self, request: OrchestratorInput) -> None:
        if self.quota is None:
            return
        try:
            decision = self.quota.check(request.user_id, request.run_type)
        except Exception:
            logger.warning("quota check failed for user %s; allowing run", request.user_id, exc_info=True)
            return
        if not decision.allowed:
            raise QuotaExceeded(request.user_id, request.run_type, decision.used, decision.limit)

    def _create_run(self, request: OrchestratorInput, run_id: str, budget_total: int) -> None:
        if self.run_store is None:
            return
        try:
            self.run_store.create_run(
                request.user_id,
                run_id,
                request.run_type,
                resume_hash(request.resume_text),
                budget_total,
            )
        except Exception:
            logger.warning("run=%s create_run failed", run_id, exc_info=True)

    def _complete_run(self, run_id: str, state: RunState) -> None:
        if self.run_store is None:
            return
        try:
            self.run_store.complete_run(run_id, state)
        except Exception:
            logger.warning("run=%s complete_run failed", run_id, exc_info=True)

    def _fail_run(self, run_id: str, token_used_estimate: int) -> None:
        if self.run_store is None:
            return
        try:
            self.run_store.fail_run(run_id, token_used_estimate)
        except Exception:
            logger.warning("run=%s fail_run failed", run_id, exc_info=True)
