"""Data models for the orchestration pipeline."""

from career_orchestrator.models.cover_letter import CoverLetterPack
from career_orchestrator.models.guard import GuardIssue, GuardReport
from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.match import MatchResult
from career_orchestrator.models.resume import EducationEntry, ExperienceEntry, ResumeRecord
from career_orchestrator.models.run import (
    BudgetInfo,
    CandidateProfile,
    JobInput,
    OrchestratorInput,
    OrchestratorOutput,
    RankedJob,
    RunLimits,
    RunState,
    TailoredOutput,
)
from career_orchestrator.models.tailored import TailoredExperience, TailoredResume

__all__ = [
    "BudgetInfo",
    "CandidateProfile",
    "CoverLetterPack",
    "EducationEntry",
    "ExperienceEntry",
    "GuardIssue",
    "GuardReport",
    "JobInput",
    "JobRecord",
    "MatchResult",
    "OrchestratorInput",
    "OrchestratorOutput",
    "RankedJob",
    "ResumeRecord",
    "RunLimits",
    "RunState",
    "TailoredExperience",
    "TailoredOutput",
    "TailoredResume",
]
