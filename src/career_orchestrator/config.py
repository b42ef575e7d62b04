"""Application configuration loaded from config.yaml."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from career_orchestrator.models.rubric import MUST_HAVE_THRESHOLD, STRETCH_THRESHOLD

GUARD_POLICIES = ("flag", "withhold")
CACHE_BACKENDS = ("memory", "sqlite")


def _check_range(name: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")


@dataclass(frozen=True)
class LLMConfig:
    fast_model: str = "claude-haiku-4-5-20251001"
    quality_model: str = "claude-sonnet-4-5-20250929"
    timeout: int = 60
    max_attempts: int = 1

    def __post_init__(self) -> None:
        _check_range("timeout", self.timeout, 1, 600)
        _check_range("max_attempts", self.max_attempts, 1, 5)


@dataclass(frozen=True)
class PipelineConfig:
    max_jobs: int = 20
    max_tailored_jobs: int = 5
    token_budget_total: int = 60_000
    max_token_budget: int = 120_000
    match_score_threshold: int = 55
    must_have_threshold: int = 60
    concurrency: int = 4
    call_timeout_seconds: float = 90.0
    max_guard_retries: int = 1
    guard_policy: str = "flag"
    word_count_tolerance: int = 30

    # Pre-call reservations (tokens). Parsers add estimate_tokens(input text).
    resume_parse_overhead: int = 600
    job_parse_overhead: int = 600
    match_estimate: int = 800
    tailor_estimate: int = 3000
    cover_letter_estimate: int = 1500
    guard_estimate: int = 1500

    def __post_init__(self) -> None:
        _check_range("max_jobs", self.max_jobs, 1, 50)
        _check_range("max_tailored_jobs", self.max_tailored_jobs, 1, 10)
        _check_range("max_token_budget", self.max_token_budget, 1000, 1_000_000)
        _check_range("token_budget_total", self.token_budget_total, 1, self.max_token_budget)
        # Thresholds may be raised, never lowered below the rubric floor.
        _check_range("match_score_threshold", self.match_score_threshold, STRETCH_THRESHOLD, 100)
        _check_range("must_have_threshold", self.must_have_threshold, MUST_HAVE_THRESHOLD, 100)
        _check_range("concurrency", self.concurrency, 1, 32)
        _check_range("call_timeout_seconds", self.call_timeout_seconds, 1, 900)
        _check_range("max_guard_retries", self.max_guard_retries, 0, 3)
        if self.guard_policy not in GUARD_POLICIES:
            raise ValueError(
                f"guard_policy must be one of {GUARD_POLICIES}, got {self.guard_policy!r}"
            )


@dataclass(frozen=True)
class CacheConfig:
    ttl_seconds: int = 3600
    backend: str = "memory"
    db_path: str = "~/.career-orchestrator/cache.db"

    def __post_init__(self) -> None:
        _check_range("ttl_seconds", self.ttl_seconds, 0, 30 * 86400)
        if self.backend not in CACHE_BACKENDS:
            raise ValueError(f"backend must be one of {CACHE_BACKENDS}, got {self.backend!r}")

    @property
    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()


@dataclass(frozen=True)
class QuotaConfig:
    resume_review_limit: int = 10
    job_match_limit: int = 20
    apply_pack_limit: int = 5
    window_seconds: int = 86400

    @property
    def limits(self) -> dict[str, int]:
        return {
            "resume_review": self.resume_review_limit,
            "job_match": self.job_match_limit,
            "apply_pack": self.apply_pack_limit,
        }


@dataclass(frozen=True)
class StorageConfig:
    db_path: str = "~/.career-orchestrator/runs.db"

    @property
    def resolved_db_path(self) -> Path:
        return Path(self.db_path).expanduser()


@dataclass(frozen=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    quota: QuotaConfig = field(default_factory=QuotaConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text()) or {}

    return AppConfig(
        llm=LLMConfig(**raw.get("llm", {})),
        pipeline=PipelineConfig(**raw.get("pipeline", {})),
        cache=CacheConfig(**raw.get("cache", {})),
        quota=QuotaConfig(**raw.get("quota", {})),
        storage=StorageConfig(**raw.get("storage", {})),
    )
