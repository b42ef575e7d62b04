"""Pydantic models for Resume Tailor output."""

from __future__ import annotations

from pydantic import Field

from career_orchestrator.models.base import RecordModel, Text


class TailoredExperience(RecordModel):
    company: Text
    title: Text
    period: Text  # e.g. "Jan 2021 - Mar 2023"
    bullets: list[Text] = Field(default_factory=list)


class TailoredResume(RecordModel):
    summary: Text
    skills: list[Text] = Field(default_factory=list)
    experience: list[TailoredExperience] = Field(default_factory=list)
    ats_keywords: list[Text] = Field(default_factory=list)
    warnings: list[Text] = Field(default_factory=list)
    change_log: list[Text] = Field(default_factory=list)  # one entry per modified unit
