"""Offline provider returning canned agent responses (``--mock`` mode)."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from typing import Any

from career_orchestrator.clients.llm_client import Completion, ModelTier
from career_orchestrator.errors import ProviderError
from career_orchestrator.utils.tokens import estimate_tokens

logger = logging.getLogger(__name__)

_AGENT_RE = re.compile(r"You are (\w+)\.")

MOCK_RESPONSES: dict[str, Any] = {
    "ResumeParserAgent": {
        "name": "Test User",
        "email": "test@example.com",
        "location": "Lagos, Nigeria",
        "headline": "Mock Candidate",
        "summary": "Mock resume for testing purposes.",
        "years_of_experience": 3,
        "skills": ["JavaScript", "TypeScript", "React"],
        "experience": [
            {
                "company": "Mock Corp",
                "title": "Software Engineer",
                "start_date": "2021-01",
                "end_date": None,
                "description": "Built mock features",
                "metrics": ["Increased performance by 30%"],
                "technologies": ["JavaScript", "React"],
            }
        ],
        "education": [
            {"institution": "Mock University", "degree": "BSc", "field": "Computer Science", "graduation_year": "2020"}
        ],
        "languages": ["English"],
    },
    "JobParserAgent": {
        "title": "Mock Job Title",
        "company": "Mock Company",
        "location": "Remote",
        "type": "Full-time",
        "seniority": "Mid-level",
        "must_have_skills": ["JavaScript"],
        "nice_to_have_skills": ["Python"],
        "description": "Mock job description",
    },
    "MatchScorerAgent": {
        "score": 75,
        "must_have_coverage_pct": 100,
        "nice_to_have_coverage_pct": 0,
        "matched_skills": ["JavaScript"],
        "missing_must_haves": [],
        "missing_nice_to_haves": ["Python"],
        "location_match": True,
        "work_auth_ok": True,
        "visa_ok": True,
        "seniority_match": "match",
        "recommendation": "apply",
        "explanation": "Mock match explanation.",
    },
    "ResumeTailorAgent": {
        "summary": "Mock tailored summary.",
        "skills": ["JavaScript", "TypeScript", "React"],
        "experience": [
            {
                "company": "Mock Corp",
                "title": "Software Engineer",
                "period": "2021-01 - Present",
                "bullets": ["Built mock features for job requirements"],
            }
        ],
        "ats_keywords": ["JavaScript"],
        "change_log": ["Tailored summary for role"],
    },
    "CoverLetterAgent": {
        "subject_line": "Application for Mock Position",
        "salutation": "Dear Hiring Manager,",
        "body": (
            "I am excited to apply for this mock position.\n\n"
            "At Mock Corp I built features in JavaScript and React.\n\n"
            "I would welcome the chance to discuss the role."
        ),
        "closing": "Thank you for your consideration.",
        "tone": "professional",
        "word_count": 28,
    },
    "TruthConsistencyGuardAgent": {
        "verdict": "PASS",
        "issues": [],
        "requires_user_confirmation": [],
        "confidence": 0.99,
    },
}


class ScriptedProvider:
    """Provider double keyed by the agent name in the system prompt.

    A response is a JSON-compatible value, a raw string, a callable taking the
    user content, or a list of those consumed one per call. Exceptions in the
    script are raised instead of returned.
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        *,
        report_usage: bool = True,
    ):
        source = MOCK_RESPONSES if responses is None else responses
        self.responses = {k: list(v) if isinstance(v, list) else v for k, v in source.items()}
        self.report_usage = report_usage
        self.calls: list[tuple[str, str]] = []  # (agent, user_content)

    def _next(self, agent: str, user_content: str) -> Any:
        if agent not in self.responses:
            raise ProviderError(f"no scripted response for {agent}")
        entry = self.responses[agent]
        if isinstance(entry, list):
            if not entry:
                raise ProviderError(f"scripted responses for {agent} exhausted")
            entry = entry.pop(0)
        if isinstance(entry, Callable):
            entry = entry(user_content)
        if isinstance(entry, BaseException):
            raise entry
        return entry

    async def complete(
        self,
        model: ModelTier,
        max_tokens: int,
        system_prompt: str,
        user_content: str,
    ) -> Completion:
        found = _AGENT_RE.search(system_prompt)
        agent = found.group(1) if found else "unknown"
        self.calls.append((agent, user_content))
        payload = self._next(agent, user_content)
        text = payload if isinstance(payload, str) else json.dumps(payload)
        logger.debug("scripted response for %s (%d chars)", agent, len(text))
        if not self.report_usage:
            return Completion(text=text)
        return Completion(
            text=text,
            input_tokens=estimate_tokens(system_prompt + user_content),
            output_tokens=estimate_tokens(text),
        )

    def calls_for(self, agent: str) -> list[str]:
        return [content for name, content in self.calls if name == agent]
