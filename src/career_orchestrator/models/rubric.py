"""Deterministic match rubric.

The Match Scorer agent is asked to follow this rubric; the pipeline then
recomputes whatever it can from the agent's own inputs so that control-flow
decisions never depend on the model's arithmetic.
"""

from __future__ import annotations

from collections.abc import Iterable

from career_orchestrator.models.base import round_half_up

APPLY_THRESHOLD = 70
STRETCH_THRESHOLD = 55
MUST_HAVE_THRESHOLD = 60

SENIORITY_SCORES = {"match": 100, "over": 60, "under": 40, "unknown": 50}


def recommendation_for_score(score: int) -> str:
    """apply >= 70, stretch 55-69, skip < 55."""
    if score >= APPLY_THRESHOLD:
        return "apply"
    if score >= STRETCH_THRESHOLD:
        return "stretch"
    return "skip"


def coverage_pct(matched: int, total: int) -> float:
    """Percentage of ``total`` covered by ``matched``; 100 when there is nothing to cover."""
    if total <= 0:
        return 100.0
    return min(100.0, max(0.0, matched / total * 100))


def coverage_from_missing(required: Iterable[str], missing: Iterable[str]) -> float:
    """Coverage of ``required`` given the skills reported as missing.

    Only missing entries that name one of ``required`` (case-insensitive)
    count against coverage.
    """
    required_keys = {s.strip().lower() for s in required if s.strip()}
    missing_keys = {s.strip().lower() for s in missing} & required_keys
    return coverage_pct(len(required_keys) - len(missing_keys), len(required_keys))


def skill_match_pct(must_have_pct: float, nice_to_have_pct: float) -> float:
    return must_have_pct * 0.7 + nice_to_have_pct * 0.3


def location_auth_score(location_match: bool, work_auth_ok: bool, visa_ok: bool) -> int:
    total = (50 if location_match else 0) + (30 if work_auth_ok else 0) + (20 if visa_ok else 0)
    return min(total, 100)


def compute_score(
    must_have_pct: float,
    nice_to_have_pct: float,
    seniority_match: str,
    location_match: bool,
    work_auth_ok: bool,
    visa_ok: bool,
    other_score: int,
) -> int:
    """Weighted score: skills 50%, seniority 20%, location/auth 20%, other 10%."""
    weighted = (
        skill_match_pct(must_have_pct, nice_to_have_pct) * 0.50
        + SENIORITY_SCORES.get(seniority_match, 50) * 0.20
        + location_auth_score(location_match, work_auth_ok, visa_ok) * 0.20
        + other_score * 0.10
    )
    return min(100, max(0, round_half_up(weighted)))


def is_tailoring_eligible(
    score: int,
    must_have_pct: float,
    score_threshold: int = STRETCH_THRESHOLD,
    must_have_threshold: float = MUST_HAVE_THRESHOLD,
) -> bool:
    return score >= score_threshold and must_have_pct >= must_have_threshold
