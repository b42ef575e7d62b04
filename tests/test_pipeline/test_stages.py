"""Tests for stage helpers, budget accounting around agent calls and run assembly."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from career_orchestrator.config import PipelineConfig
from career_orchestrator.errors import BudgetExceeded, ProviderError, SchemaViolation
from career_orchestrator.models.cover_letter import CoverLetterPack
from career_orchestrator.models.guard import GuardReport
from career_orchestrator.models.match import MatchResult
from career_orchestrator.models.run import OrchestratorInput, RankedJob, TailoredOutput
from career_orchestrator.pipeline.agent import AgentResult
from career_orchestrator.pipeline.budget import BudgetTracker
from career_orchestrator.pipeline.stages import (
    MAX_ATS_KEYWORDS,
    MAX_BULLET_CHARS,
    MAX_DESCRIPTION_CHARS,
    RunContext,
    SelectForTailoring,
    assemble,
    clip_job,
    clip_tailored,
    invoke,
    rank_jobs,
    recheck_cover_letter,
)

FAKE_AGENT = SimpleNamespace(name="JobParserAgent")


def _ranked(job_id: str, score: int, coverage: float, strong_match_json, sample_job) -> RankedJob:
    match = MatchResult.model_validate(dict(strong_match_json, score=score, must_have_coverage_pct=coverage))
    return RankedJob(job_id=job_id, job_json=sample_job, match=match)


@pytest.fixture
def make_ctx(sample_resume_text):
    def _make(run_type="apply_pack", budget=60_000, max_tailored_jobs=5, **config):
        request = OrchestratorInput(
            run_type=run_type,
            user_id="u1",
            resume_text=sample_resume_text,
            jobs=[{"raw_text": "x" * 60}],
        )
        return RunContext(
            run_id="run-1",
            request=request,
            config=PipelineConfig(**config),
            agents=None,
            budget=BudgetTracker(budget),
            max_jobs=20,
            max_tailored_jobs=max_tailored_jobs,
        )

    return _make


class TestRankJobs:
    def test_descending_and_stable(self, strong_match_json, sample_job):
        jobs = [
            _ranked("a", 60, 100, strong_match_json, sample_job),
            _ranked("b", 80, 100, strong_match_json, sample_job),
            _ranked("c", 60, 100, strong_match_json, sample_job),
            _ranked("d", 90, 100, strong_match_json, sample_job),
        ]
        assert [j.job_id for j in rank_jobs(jobs)] == ["d", "b", "a", "c"]


class TestRecheckCoverLetter:
    def test_consistent_letter_untouched(self, sample_cover_letter):
        pack, notes = recheck_cover_letter(sample_cover_letter, "j1", tolerance=30)
        assert pack == sample_cover_letter
        assert notes == []

    def test_word_count_within_tolerance_kept(self, cover_letter_json):
        reported = cover_letter_json["word_count"] + 30
        pack, notes = recheck_cover_letter(
            CoverLetterPack.model_validate(dict(cover_letter_json, word_count=reported)), "j1", tolerance=30
        )
        assert pack.word_count == reported
        assert notes == []

    def test_word_count_corrected(self, cover_letter_json):
        actual = cover_letter_json["word_count"]
        pack, notes = recheck_cover_letter(
            CoverLetterPack.model_validate(dict(cover_letter_json, word_count=350)), "j1", tolerance=30
        )
        assert pack.word_count == actual
        assert notes == [f"job j1: cover letter word_count corrected from 350 to {actual}"]

    def test_paragraph_count_noted(self, cover_letter_json):
        body = "One paragraph only, no breaks at all."
        pack, notes = recheck_cover_letter(
            CoverLetterPack.model_validate(dict(cover_letter_json, body=body, word_count=7)), "j1", tolerance=30
        )
        assert notes == ["job j1: cover letter body has 1 paragraph(s), expected 3"]


class TestClipping:
    def test_job_description_clipped(self, sample_job):
        job = sample_job.model_copy(update={"description": "d" * (MAX_DESCRIPTION_CHARS + 10)})
        assert len(clip_job(job).description) == MAX_DESCRIPTION_CHARS

    def test_short_description_kept(self, sample_job):
        assert clip_job(sample_job) == sample_job

    def test_tailored_lists_and_bullets_clipped(self, sample_tailored):
        experience = [sample_tailored.experience[0].model_copy(update={"bullets": ["b" * 1000]})]
        tailored = sample_tailored.model_copy(update={
            "experience": experience,
            "ats_keywords": [f"kw{i}" for i in range(40)],
        })
        clipped = clip_tailored(tailored)
        assert len(clipped.experience[0].bullets[0]) == MAX_BULLET_CHARS
        assert clipped.ats_keywords == [f"kw{i}" for i in range(MAX_ATS_KEYWORDS)]


class TestInvoke:
    async def test_settles_to_actual_usage(self, make_ctx):
        ctx = make_ctx(budget=5000)

        async def call():
            return AgentResult(data={}, token_estimate=1200, reported=True)

        result = await invoke(ctx, FAKE_AGENT, 3000, call)
        assert result.token_estimate == 1200
        assert ctx.budget.used == 1200

    async def test_reservation_refused(self, make_ctx):
        ctx = make_ctx(budget=1000)

        async def call():
            raise AssertionError("must not be called")

        with pytest.raises(BudgetExceeded, match="before JobParserAgent for job j9: needs ~1500, 1000 remaining"):
            await invoke(ctx, FAKE_AGENT, 1500, call, job_id="j9")
        assert ctx.budget.used == 0

    async def test_schema_violation_charges_completion(self, make_ctx):
        ctx = make_ctx(budget=5000)

        async def call():
            error = SchemaViolation("JobParserAgent", "title", "bad")
            error.token_estimate = 700
            raise error

        with pytest.raises(SchemaViolation):
            await invoke(ctx, FAKE_AGENT, 2000, call)
        assert ctx.budget.used == 700

    async def test_provider_error_releases(self, make_ctx):
        ctx = make_ctx(budget=5000)

        async def call():
            raise ProviderError("timeout")

        with pytest.raises(ProviderError):
            await invoke(ctx, FAKE_AGENT, 2000, call)
        assert ctx.budget.used == 0


class TestSelectForTailoring:
    async def test_threshold_and_cap_notes(self, make_ctx, strong_match_json, sample_job):
        ctx = make_ctx(max_tailored_jobs=1)
        ctx.ranked = [
            _ranked("a", 90, 100, strong_match_json, sample_job),
            _ranked("b", 70, 80, strong_match_json, sample_job),
            _ranked("c", 80, 40, strong_match_json, sample_job),
        ]
        await SelectForTailoring().run(ctx)

        assert [j.job_id for j in ctx.selected] == ["a"]
        assert ctx.notes == [
            "1 job(s) below tailoring thresholds, not tailored",
            "1 eligible job(s) not tailored: max_tailored_jobs is 1",
        ]

    async def test_nothing_eligible(self, make_ctx, strong_match_json, sample_job):
        ctx = make_ctx()
        ctx.ranked = [_ranked("a", 50, 100, strong_match_json, sample_job)]
        await SelectForTailoring().run(ctx)

        assert ctx.selected == []
        assert ctx.notes == ["no jobs passed thresholds (score >= 55 and must-have coverage >= 60)"]

    async def test_configured_thresholds(self, make_ctx, strong_match_json, sample_job):
        ctx = make_ctx(match_score_threshold=70, must_have_threshold=80)
        ctx.ranked = [
            _ranked("a", 75, 90, strong_match_json, sample_job),
            _ranked("b", 65, 100, strong_match_json, sample_job),
            _ranked("c", 90, 70, strong_match_json, sample_job),
        ]
        await SelectForTailoring().run(ctx)
        assert [j.job_id for j in ctx.selected] == ["a"]
        assert ctx.notes == ["2 job(s) below tailoring thresholds, not tailored"]


class TestAssemble:
    def _output(self, sample_tailored, sample_cover_letter) -> TailoredOutput:
        return TailoredOutput(
            job_id="a",
            tailored_resume=sample_tailored,
            cover_letter_pack=sample_cover_letter,
            guard_report=GuardReport(verdict="PASS", confidence=0.9),
        )

    def test_ok(self, make_ctx, sample_resume):
        ctx = make_ctx(run_type="resume_review")
        ctx.resume = sample_resume
        state = assemble(ctx)
        assert state.status == "ok"
        assert state.notes_for_ui == ()

    def test_partial_when_degraded(self, make_ctx):
        ctx = make_ctx()
        ctx.fail("job x: skipped, JobParserAgent failed: boom")
        assert assemble(ctx).status == "partial"

    def test_budget_stop_noted_last(self, make_ctx, strong_match_json, sample_job):
        ctx = make_ctx()
        ctx.scored = [(0, _ranked("a", 60, 100, strong_match_json, sample_job)),
                      (1, _ranked("b", 80, 100, strong_match_json, sample_job))]
        ctx.note("earlier note")
        ctx.budget.stop("token budget exhausted before MatchScorerAgent")

        state = assemble(ctx)

        assert state.status == "partial"
        assert [j.job_id for j in state.ranked_jobs] == ["b", "a"]
        assert state.notes_for_ui[-1] == "run stopped early: token budget exhausted before MatchScorerAgent"
        assert state.budget.stopped_reason == "token budget exhausted before MatchScorerAgent"

    def test_blocked_wins(self, make_ctx, sample_tailored, sample_cover_letter):
        ctx = make_ctx()
        ctx.tailored = [(0, self._output(sample_tailored, sample_cover_letter))]
        ctx.blocked = True
        ctx.budget.stop("out of tokens")
        state = assemble(ctx)
        assert state.status == "blocked"
        assert len(state.tailored_outputs) == 1
