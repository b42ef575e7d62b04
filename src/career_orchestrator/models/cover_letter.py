"""Pydantic models for Cover-Letter Writer output."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from career_orchestrator.models.base import Integer, RecordModel, Text

Tone = Literal["professional", "warm", "direct"]


class CoverLetterPack(RecordModel):
    subject_line: Text
    salutation: Text
    body: Text  # three paragraphs separated by blank lines
    closing: Text
    tone: Tone
    word_count: Integer = Field(ge=0)
