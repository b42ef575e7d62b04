"""Orchestrator request and response envelopes."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from career_orchestrator.models.cover_letter import CoverLetterPack
from career_orchestrator.models.guard import GuardReport
from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.match import MatchResult
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.tailored import TailoredResume

RunType = Literal["resume_review", "job_match", "apply_pack"]
RunStatus = Literal["ok", "partial", "blocked"]
JobSource = Literal["linkedin", "indeed", "company_site", "internal"]

# --- Request ---


class JobInput(BaseModel):
    job_id: str | None = Field(default=None, min_length=1, max_length=200)
    source: JobSource | None = None
    url: str | None = None
    raw_text: str = Field(min_length=50, max_length=20_000)


class CandidateProfile(BaseModel):
    location: str | None = None
    target_roles: list[str] = Field(default_factory=list)
    work_auth: str | None = None  # e.g. "citizen", "open_to_relocation", "needs_visa"


class RunLimits(BaseModel):
    max_jobs: int | None = Field(default=None, ge=1, le=50)
    max_tailored_jobs: int | None = Field(default=None, ge=1, le=10)
    token_budget_total: int | None = Field(default=None, ge=1000)


class CachedInput(BaseModel):
    resume_json: dict[str, Any] | None = None
    job_json_by_job_id: dict[str, dict[str, Any]] = Field(default_factory=dict)


class OrchestratorInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    run_type: RunType
    user_id: str = Field(min_length=1)
    resume_text: str = Field(min_length=100, max_length=30_000)
    candidate_profile: CandidateProfile | None = None
    jobs: list[JobInput] = Field(default_factory=list, max_length=50)
    limits: RunLimits = Field(default_factory=RunLimits)
    cached: CachedInput = Field(default_factory=CachedInput)
    run_id: str | None = None

    @model_validator(mode="after")
    def _jobs_required(self) -> OrchestratorInput:
        if self.run_type != "resume_review" and not self.jobs:
            raise ValueError(f'run_type "{self.run_type}" requires at least one job')
        return self


# --- Response ---


class BudgetInfo(BaseModel):
    token_used_estimate: int
    token_budget_total: int
    stopped_reason: str = ""


class RankedJob(BaseModel):
    job_id: str
    source: JobSource | None = None
    job_json: JobRecord
    match: MatchResult


class TailoredOutput(BaseModel):
    job_id: str
    tailored_resume: TailoredResume
    cover_letter_pack: CoverLetterPack
    guard_report: GuardReport
    requires_acknowledgment: bool = False


class RunState(BaseModel):
    """Final output of one orchestration run. Immutable once returned."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    run_type: RunType
    status: RunStatus
    budget: BudgetInfo
    resume_json: ResumeRecord | None
    ranked_jobs: tuple[RankedJob, ...] = ()
    tailored_outputs: tuple[TailoredOutput, ...] = ()
    notes_for_ui: tuple[str, ...] = ()

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(indent=indent)


OrchestratorOutput = RunState
