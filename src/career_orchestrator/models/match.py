"""Pydantic models for Match Scorer output."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from career_orchestrator.models.base import Flag, Number, RecordModel, Text, is_finite, round_half_up

Recommendation = Literal["apply", "stretch", "skip"]
SeniorityMatch = Literal["match", "over", "under", "unknown"]


class MatchResult(RecordModel):
    score: int = Field(ge=0, le=100)
    must_have_coverage_pct: Number = Field(ge=0, le=100)
    nice_to_have_coverage_pct: Number = Field(ge=0, le=100)
    matched_skills: list[Text] = Field(default_factory=list)
    missing_must_haves: list[Text] = Field(default_factory=list)
    missing_nice_to_haves: list[Text] = Field(default_factory=list)
    location_match: Flag
    work_auth_ok: Flag
    visa_ok: Flag
    seniority_match: SeniorityMatch
    recommendation: Recommendation
    explanation: Text
    other_score: Literal[0, 50, 100] | None = None  # experience/education fit

    @field_validator("score", mode="before")
    @classmethod
    def _round_score(cls, value: object) -> object:
        # 71.6 -> 72; the contract is an integer.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        if not is_finite(value):
            raise ValueError("score must be a finite number")
        return round_half_up(value)
