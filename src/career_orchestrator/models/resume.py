"""Pydantic models for Resume Parser output."""

from __future__ import annotations

from pydantic import Field

from career_orchestrator.models.base import Number, RecordModel, Text


class ExperienceEntry(RecordModel):
    company: Text
    title: Text
    start_date: Text | None = None
    end_date: Text | None = None  # None while the role is current
    description: Text | None = None
    metrics: list[Text] = Field(default_factory=list)
    technologies: list[Text] = Field(default_factory=list)


class EducationEntry(RecordModel):
    institution: Text
    degree: Text | None = None
    field: Text | None = None
    graduation_year: Text | None = None


class ResumeRecord(RecordModel):
    name: Text | None = None
    email: Text | None = None
    phone: Text | None = None
    location: Text | None = None
    headline: Text | None = None
    summary: Text | None = None
    years_of_experience: Number | None = None
    skills: list[Text] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    languages: list[Text] = Field(default_factory=list)
    certifications: list[Text] = Field(default_factory=list)
    work_auth_status: Text | None = None  # explicit statements only, never inferred
