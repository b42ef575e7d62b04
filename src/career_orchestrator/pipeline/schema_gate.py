"""Schema Gate - the validation boundary between raw model output and typed data."""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from career_orchestrator.errors import SchemaViolation
from career_orchestrator.models.cover_letter import CoverLetterPack
from career_orchestrator.models.guard import GuardReport
from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.match import MatchResult
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.tailored import TailoredResume

logger = logging.getLogger(__name__)

SchemaKind = Literal["resume", "job", "match", "tailored_resume", "cover_letter", "guard_report"]

CONTRACTS: dict[str, type[BaseModel]] = {
    "resume": ResumeRecord,
    "job": JobRecord,
    "match": MatchResult,
    "tailored_resume": TailoredResume,
    "cover_letter": CoverLetterPack,
    "guard_report": GuardReport,
}

MAX_REPORTED_ISSUES = 3
ROOT = "<root>"


def _format_loc(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or ROOT


def validate(kind: SchemaKind, raw: Any, agent: str | None = None) -> Any:
    """Validate ``raw`` against the ``kind`` contract and return the typed value.

    Missing arrays and documented enum/boolean defaults are filled in by the
    models; everything else must already have the right type, range and enum
    value.

    Raises:
        SchemaViolation: with up to three (path, message) issues.
    """
    try:
        model = CONTRACTS[kind]
    except KeyError:
        raise ValueError(f"Unknown schema kind: {kind!r}") from None
    label = agent or kind

    if not isinstance(raw, dict):
        message = f"expected a JSON object, got {type(raw).__name__}"
        logger.error("%s output failed schema validation: [%s] %s", label, ROOT, message)
        raise SchemaViolation(label, ROOT, message)

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        issues = [
            (_format_loc(err["loc"]), err["msg"])
            for err in e.errors(include_url=False)[:MAX_REPORTED_ISSUES]
        ]
        logger.error(
            "%s output failed schema validation. First %d issue(s):\n%s",
            label,
            len(issues),
            "\n".join(f"  {i}. [{path}] {msg}" for i, (path, msg) in enumerate(issues, 1)),
        )
        path, message = issues[0] if issues else (ROOT, "unknown validation error")
        raise SchemaViolation(label, path, message, issues) from e
