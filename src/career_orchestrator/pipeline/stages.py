"""Pipeline stages and the per-request run context.

Each run type maps to an ordered tuple of stages (see ``STAGES``). Stages
mutate a request-scoped ``RunContext``; ``assemble`` turns the context
into the frozen ``RunState`` returned to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from career_orchestrator.cache.result_cache import CacheStore, make_key
from career_orchestrator.config import PipelineConfig
from career_orchestrator.errors import BudgetExceeded, ProviderError, SchemaViolation
from career_orchestrator.models.cover_letter import CoverLetterPack
from career_orchestrator.models.guard import GuardReport
from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.match import MatchResult
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.rubric import is_tailoring_eligible
from career_orchestrator.models.run import (
    JobInput,
    OrchestratorInput,
    RankedJob,
    RunState,
    TailoredOutput,
)
from career_orchestrator.models.tailored import TailoredResume
from career_orchestrator.pipeline.agent import AgentResult, SpecialistAgent
from career_orchestrator.pipeline.budget import BudgetTracker
from career_orchestrator.pipeline.cover_letter_writer import CoverLetterWriter
from career_orchestrator.pipeline.job_parser import JobParser
from career_orchestrator.pipeline.match_scorer import MatchScorer
from career_orchestrator.pipeline.resume_parser import ResumeParser
from career_orchestrator.pipeline.resume_tailor import ResumeTailor
from career_orchestrator.pipeline.schema_gate import validate
from career_orchestrator.pipeline.truth_guard import TruthGuard
from career_orchestrator.utils.tokens import count_words, estimate_tokens, split_paragraphs

logger = logging.getLogger(__name__)

# Output-size guardrails
MAX_DESCRIPTION_CHARS = 3000
MAX_EXPLANATION_CHARS = 800
MAX_BODY_CHARS = 3000
MAX_SUMMARY_CHARS = 1500
MAX_BULLET_CHARS = 600
MAX_ATS_KEYWORDS = 30
MAX_CHANGE_LOG_ENTRIES = 50

COVER_LETTER_PARAGRAPHS = 3


@dataclass
class Agents:
    resume_parser: ResumeParser
    job_parser: JobParser
    match_scorer: MatchScorer
    resume_tailor: ResumeTailor
    cover_letter_writer: CoverLetterWriter
    truth_guard: TruthGuard


@dataclass
class RunContext:
    """Mutable, request-scoped state owned by the pipeline driver."""

    run_id: str
    request: OrchestratorInput
    config: PipelineConfig
    agents: Agents
    budget: BudgetTracker
    max_jobs: int
    max_tailored_jobs: int
    cache: CacheStore | None = None
    cached_resume: ResumeRecord | None = None
    cached_jobs: dict[str, JobRecord] = field(default_factory=dict)
    resume: ResumeRecord | None = None
    scored: list[tuple[int, RankedJob]] = field(default_factory=list)
    ranked: list[RankedJob] = field(default_factory=list)
    selected: list[RankedJob] = field(default_factory=list)
    tailored: list[tuple[int, TailoredOutput]] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    degraded: bool = False
    blocked: bool = False
    semaphore: asyncio.Semaphore | None = None

    def note(self, message: str) -> None:
        self.notes.append(message)

    def fail(self, message: str) -> None:
        """Record a job lost to a schema, provider or budget problem."""
        self.degraded = True
        self.note(message)

    def limiter(self) -> asyncio.Semaphore:
        if self.semaphore is None:
            self.semaphore = asyncio.Semaphore(self.config.concurrency)
        return self.semaphore


async def invoke(
    ctx: RunContext,
    agent: SpecialistAgent,
    estimate: int,
    call: Callable[[], Awaitable[AgentResult]],
    job_id: str | None = None,
) -> AgentResult:
    """Reserve budget, run one agent call and settle to its actual usage."""
    if not ctx.budget.reserve(estimate):
        raise BudgetExceeded(
            f"token budget exhausted before {agent.name}"
            + (f" for job {job_id}" if job_id else "")
            + f": needs ~{estimate}, {ctx.budget.remaining} remaining"
        )
    try:
        result = await call()
    except SchemaViolation as e:
        ctx.budget.settle(estimate, e.token_estimate)
        _log_call(ctx, agent, job_id, e.token_estimate, "schema_violation")
        raise
    except ProviderError:
        ctx.budget.release(estimate)
        _log_call(ctx, agent, job_id, 0, "provider_error")
        raise
    ctx.budget.settle(estimate, result.token_estimate)
    _log_call(ctx, agent, job_id, result.token_estimate, "ok")
    return result


def _log_call(ctx: RunContext, agent: SpecialistAgent, job_id: str | None, tokens: int, status: str) -> None:
    logger.info(
        "run=%s agent=%s job=%s tokens=%d status=%s",
        ctx.run_id, agent.name, job_id or "-", tokens, status,
    )


def _clip(value: str | None, limit: int, field_name: str) -> str | None:
    if value is None or len(value) <= limit:
        return value
    logger.warning("%s truncated from %d to %d chars", field_name, len(value), limit)
    return value[:limit]


def clip_job(job: JobRecord) -> JobRecord:
    return job.model_copy(update={
        "description": _clip(job.description, MAX_DESCRIPTION_CHARS, "job.description"),
    })


def clip_match(match: MatchResult) -> MatchResult:
    return match.model_copy(update={
        "explanation": _clip(match.explanation, MAX_EXPLANATION_CHARS, "match.explanation"),
    })


def clip_tailored(tailored: TailoredResume) -> TailoredResume:
    experience = [
        exp.model_copy(update={
            "bullets": [_clip(b, MAX_BULLET_CHARS, "tailored_resume.bullet") for b in exp.bullets],
        })
        for exp in tailored.experience
    ]
    if len(tailored.ats_keywords) > MAX_ATS_KEYWORDS:
        logger.warning("ats_keywords truncated from %d to %d", len(tailored.ats_keywords), MAX_ATS_KEYWORDS)
    if len(tailored.change_log) > MAX_CHANGE_LOG_ENTRIES:
        logger.warning("change_log truncated from %d to %d", len(tailored.change_log), MAX_CHANGE_LOG_ENTRIES)
    return tailored.model_copy(update={
        "summary": _clip(tailored.summary, MAX_SUMMARY_CHARS, "tailored_resume.summary"),
        "experience": experience,
        "ats_keywords": tailored.ats_keywords[:MAX_ATS_KEYWORDS],
        "change_log": tailored.change_log[:MAX_CHANGE_LOG_ENTRIES],
    })


def recheck_cover_letter(
    pack: CoverLetterPack, job_id: str, tolerance: int
) -> tuple[CoverLetterPack, list[str]]:
    """Clip the body, recount its words and check the paragraph layout."""
    notes: list[str] = []
    pack = pack.model_copy(update={"body": _clip(pack.body, MAX_BODY_CHARS, "cover_letter.body")})
    actual = count_words(pack.body)
    if abs(actual - pack.word_count) > tolerance:
        notes.append(
            f"job {job_id}: cover letter word_count corrected from {pack.word_count} to {actual}"
        )
        pack = pack.model_copy(update={"word_count": actual})
    paragraphs = len(split_paragraphs(pack.body))
    if paragraphs != COVER_LETTER_PARAGRAPHS:
        notes.append(
            f"job {job_id}: cover letter body has {paragraphs} paragraph(s), expected {COVER_LETTER_PARAGRAPHS}"
        )
    return pack, notes


def rank_jobs(jobs: list[RankedJob]) -> list[RankedJob]:
    """Score descending; ties keep their input order."""
    return sorted(jobs, key=lambda j: -j.match.score)


class ParseResume:
    name = "PARSE_RESUME"

    async def run(self, ctx: RunContext) -> None:
        if ctx.cached_resume is not None:
            ctx.resume = ctx.cached_resume
            ctx.note("resume_json: supplied by caller")
            return

        resume_text = ctx.request.resume_text
        key = make_key("parse_resume", resume_text)
        if ctx.cache is not None:
            hit = ctx.cache.get(key)
            if hit is not None:
                try:
                    ctx.resume = validate("resume", hit, agent="ResultCache")
                except SchemaViolation:
                    logger.warning("cached resume record failed validation; reparsing")
                    ctx.cache.delete(key)
                else:
                    ctx.note("resume_json: served from cache")
                    return

        agent = ctx.agents.resume_parser
        estimate = estimate_tokens(resume_text) + ctx.config.resume_parse_overhead
        # SchemaViolation and ProviderError propagate: every later stage needs the résumé.
        result = await invoke(ctx, agent, estimate, lambda: agent.parse(resume_text))
        ctx.resume = result.data
        if ctx.cache is not None:
            ctx.cache.set(key, result.data.model_dump(mode="json"))


class ParseAndScoreJobs:
    name = "PARSE_AND_SCORE_JOBS"

    async def run(self, ctx: RunContext) -> None:
        jobs = list(ctx.request.jobs)
        if len(jobs) > ctx.max_jobs:
            ctx.note(f"{len(jobs) - ctx.max_jobs} job(s) dropped: max_jobs is {ctx.max_jobs}")
            jobs = jobs[: ctx.max_jobs]

        unscored: list[str] = []
        await asyncio.gather(*(
            self._process(ctx, index, job, job.job_id or str(uuid.uuid4()), unscored)
            for index, job in enumerate(jobs)
        ))
        if unscored:
            ctx.fail(f"{len(unscored)} job(s) not scored, token budget exhausted: {', '.join(unscored)}")
        ctx.scored.sort(key=lambda item: item[0])

    async def _process(
        self, ctx: RunContext, index: int, job_input: JobInput, job_id: str, unscored: list[str]
    ) -> None:
        async with ctx.limiter():
            if ctx.budget.stopped:
                unscored.append(job_id)
                return
            agent_name = ctx.agents.job_parser.name
            try:
                job = await self._job_record(ctx, job_input, job_id)
                agent_name = ctx.agents.match_scorer.name
                scorer = ctx.agents.match_scorer
                result = await invoke(
                    ctx,
                    scorer,
                    ctx.config.match_estimate,
                    lambda: scorer.score(ctx.resume, job, ctx.request.candidate_profile),
                    job_id=job_id,
                )
            except BudgetExceeded as e:
                ctx.budget.stop(e.reason)
                unscored.append(job_id)
                return
            except (SchemaViolation, ProviderError) as e:
                ctx.fail(f"job {job_id}: skipped, {agent_name} failed: {e}")
                return

        ranked = RankedJob(
            job_id=job_id,
            source=job_input.source,
            job_json=job,
            match=clip_match(result.data),
        )
        ctx.scored.append((index, ranked))

    async def _job_record(self, ctx: RunContext, job_input: JobInput, job_id: str) -> JobRecord:
        if job_id in ctx.cached_jobs:
            ctx.note(f"job {job_id}: job_json supplied by caller")
            return clip_job(ctx.cached_jobs[job_id])

        key = make_key("parse_job", job_input.raw_text)
        if ctx.cache is not None:
            hit = ctx.cache.get(key)
            if hit is not None:
                try:
                    job = validate("job", hit, agent="ResultCache")
                except SchemaViolation:
                    logger.warning("cached job record for %s failed validation; reparsing", job_id)
                    ctx.cache.delete(key)
                else:
                    ctx.note(f"job {job_id}: served from cache")
                    return clip_job(job)

        parser = ctx.agents.job_parser
        estimate = estimate_tokens(job_input.raw_text) + ctx.config.job_parse_overhead
        result = await invoke(ctx, parser, estimate, lambda: parser.parse(job_input.raw_text), job_id=job_id)
        if ctx.cache is not None:
            ctx.cache.set(key, result.data.model_dump(mode="json"))
        return clip_job(result.data)


class Rank:
    name = "RANK"

    async def run(self, ctx: RunContext) -> None:
        ctx.ranked = rank_jobs([job for _, job in ctx.scored])


class SelectForTailoring:
    name = "SELECT_FOR_TAILORING"

    async def run(self, ctx: RunContext) -> None:
        cfg = ctx.config
        eligible = [
            job for job in ctx.ranked
            if is_tailoring_eligible(
                job.match.score,
                job.match.must_have_coverage_pct,
                score_threshold=cfg.match_score_threshold,
                must_have_threshold=cfg.must_have_threshold,
            )
        ]
        below = len(ctx.ranked) - len(eligible)
        if not eligible:
            ctx.note(
                f"no jobs passed thresholds (score >= {cfg.match_score_threshold} "
                f"and must-have coverage >= {cfg.must_have_threshold})"
            )
        elif below:
            ctx.note(f"{below} job(s) below tailoring thresholds, not tailored")
        if len(eligible) > ctx.max_tailored_jobs:
            ctx.note(
                f"{len(eligible) - ctx.max_tailored_jobs} eligible job(s) not tailored: "
                f"max_tailored_jobs is {ctx.max_tailored_jobs}"
            )
        ctx.selected = eligible[: ctx.max_tailored_jobs]


class TailorLoop:
    name = "TAILOR_LOOP"

    async def run(self, ctx: RunContext) -> None:
        await asyncio.gather(*(self._process(ctx, rank, job) for rank, job in enumerate(ctx.selected)))
        ctx.tailored.sort(key=lambda item: item[0])

    def _chain_estimate(self, ctx: RunContext) -> int:
        cfg = ctx.config
        return cfg.tailor_estimate + cfg.cover_letter_estimate + cfg.guard_estimate

    async def _process(self, ctx: RunContext, rank: int, ranked: RankedJob) -> None:
        job_id = ranked.job_id
        async with ctx.limiter():
            if ctx.budget.stopped:
                ctx.fail(f"job {job_id}: not tailored, token budget exhausted")
                return
            attempt = 0
            try:
                while True:
                    attempt += 1
                    tailored, cover_letter, guard = await self._chain(ctx, ranked)
                    if guard.verdict == "PASS" or attempt > ctx.config.max_guard_retries:
                        break
                    if ctx.budget.remaining < self._chain_estimate(ctx):
                        ctx.note(f"job {job_id}: truth guard FAIL not retried, insufficient budget")
                        break
                    ctx.note(f"job {job_id}: truth guard FAIL, regenerating (attempt {attempt + 1})")
            except BudgetExceeded as e:
                ctx.budget.stop(e.reason)
                ctx.fail(f"job {job_id}: not tailored, token budget exhausted")
                return
            except (SchemaViolation, ProviderError) as e:
                ctx.fail(f"job {job_id}: tailoring failed: {e}")
                return

        output = TailoredOutput(
            job_id=job_id,
            tailored_resume=tailored,
            cover_letter_pack=cover_letter,
            guard_report=guard,
        )
        if guard.verdict == "FAIL":
            ctx.blocked = True
            if ctx.config.guard_policy == "withhold":
                ctx.note(f"job {job_id}: tailored materials withheld, truth guard verdict FAIL")
                return
            output = output.model_copy(update={"requires_acknowledgment": True})
            ctx.note(f"job {job_id}: truth guard verdict FAIL, review issues before use")
        ctx.tailored.append((rank, output))

    async def _chain(
        self, ctx: RunContext, ranked: RankedJob
    ) -> tuple[TailoredResume, CoverLetterPack, GuardReport]:
        cfg = ctx.config
        agents = ctx.agents
        job_id = ranked.job_id
        resume = ctx.resume
        job = ranked.job_json

        tailor = await invoke(
            ctx, agents.resume_tailor, cfg.tailor_estimate,
            lambda: agents.resume_tailor.tailor(resume, job), job_id=job_id,
        )
        tailored = clip_tailored(tailor.data)

        writer = await invoke(
            ctx, agents.cover_letter_writer, cfg.cover_letter_estimate,
            lambda: agents.cover_letter_writer.write(resume, job, tailored), job_id=job_id,
        )
        cover_letter, notes = recheck_cover_letter(writer.data, job_id, cfg.word_count_tolerance)
        for message in notes:
            ctx.note(message)

        guard = await invoke(
            ctx, agents.truth_guard, cfg.guard_estimate,
            lambda: agents.truth_guard.audit(resume, tailored, cover_letter), job_id=job_id,
        )
        return tailored, cover_letter, guard.data


STAGES = {
    "resume_review": (ParseResume,),
    "job_match": (ParseResume, ParseAndScoreJobs, Rank),
    "apply_pack": (ParseResume, ParseAndScoreJobs, Rank, SelectForTailoring, TailorLoop),
}


def assemble(ctx: RunContext) -> RunState:
    """Freeze the context into the caller-facing RunState."""
    # A budget stop during scoring skips RANK; scored jobs are still returned.
    if not ctx.ranked and ctx.scored:
        ctx.ranked = rank_jobs([job for _, job in ctx.scored])

    if ctx.blocked:
        status = "blocked"
    elif ctx.budget.stopped or ctx.degraded:
        status = "partial"
    else:
        status = "ok"

    notes = list(ctx.notes)
    if ctx.budget.stopped:
        notes.append(f"run stopped early: {ctx.budget.stopped_reason}")

    return RunState(
        run_id=ctx.run_id,
        run_type=ctx.request.run_type,
        status=status,
        budget=ctx.budget.to_info(),
        resume_json=ctx.resume,
        ranked_jobs=tuple(ctx.ranked),
        tailored_outputs=tuple(output for _, output in ctx.tailored),
        notes_for_ui=tuple(notes),
    )
