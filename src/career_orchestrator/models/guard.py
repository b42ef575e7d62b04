"""Pydantic models for Truth-Consistency Guard output."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from career_orchestrator.models.base import Number, RecordModel, Text

Verdict = Literal["PASS", "FAIL"]
IssueType = Literal["fabrication", "inconsistency", "exaggeration"]
Severity = Literal["high", "medium", "low"]


class GuardIssue(RecordModel):
    type: IssueType
    field: Text
    original_value: Text
    fabricated_value: Text
    severity: Severity


class GuardReport(RecordModel):
    verdict: Verdict
    issues: list[GuardIssue] = Field(default_factory=list)
    requires_user_confirmation: list[Text] = Field(default_factory=list)
    confidence: Number = Field(ge=0, le=1)


def verdict_for_issues(issues: list[GuardIssue]) -> str:
    """FAIL on any high-severity issue or two or more medium ones."""
    high = sum(1 for i in issues if i.severity == "high")
    medium = sum(1 for i in issues if i.severity == "medium")
    return "FAIL" if high >= 1 or medium >= 2 else "PASS"
