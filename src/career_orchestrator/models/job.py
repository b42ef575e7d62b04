"""Pydantic models for Job Parser output."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from career_orchestrator.models.base import Flag, Number, RecordModel, Text

VisaSponsorship = Literal["YES", "NO", "UNKNOWN"]


class JobRecord(RecordModel):
    title: Text | None = None
    company: Text | None = None
    location: Text | None = None
    type: Text | None = None  # Full-time, Part-time, Contract, Freelance, Internship
    seniority: Text | None = None  # Junior, Mid-level, Senior, Lead, Executive
    salary_min: Number | None = None
    salary_max: Number | None = None
    currency: Text | None = None
    must_have_skills: list[Text] = Field(default_factory=list)
    nice_to_have_skills: list[Text] = Field(default_factory=list)
    visa_sponsorship: VisaSponsorship = "UNKNOWN"
    relocation_assistance: Flag = False
    eligible_countries: list[Text] = Field(default_factory=list)  # ISO-3166 alpha-2
    description: Text | None = None
    requirements: list[Text] = Field(default_factory=list)
    responsibilities: list[Text] = Field(default_factory=list)
