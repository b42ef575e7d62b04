"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from career_orchestrator.clients.llm_client import Completion, ProviderClient
from career_orchestrator.models.cover_letter import CoverLetterPack
from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.tailored import TailoredResume


@pytest.fixture
def sample_resume_text() -> str:
    return """Ada Obi
Lagos, Nigeria | ada@example.com

Senior Backend Engineer with 6 years building payment systems.

Experience:
- PayFast (2020-01 ~ present) - Senior Backend Engineer
  - Built TypeScript and Node.js payments APIs on Postgres (REST)
  - Cut checkout latency by 35%
- ShopLine (2018-03 ~ 2019-12) - Backend Engineer
  - Node.js order service, Postgres schema design
- CodeCamp (2017-06 ~ 2018-02) - Junior Developer
  - JavaScript tooling for internal dashboards

Education:
- University of Lagos, BSc Computer Science (2017)

Skills: TypeScript, Node.js, Postgres, REST, payments, Docker
"""


@pytest.fixture
def strong_job_text() -> str:
    return """Senior Backend Engineer - Paystack (Remote, Africa)

Required: TypeScript, Node.js, Postgres, REST API design, payments experience.
Nice to have: Kafka.
"""


@pytest.fixture
def ml_job_text() -> str:
    return """Machine Learning Research Scientist - DeepLab (London)

Required: PhD in Machine Learning, PyTorch, peer-reviewed publications.
Nice to have: JAX. No visa sponsorship.
"""


@pytest.fixture
def resume_json() -> dict:
    return {
        "name": "Ada Obi",
        "email": "ada@example.com",
        "location": "Lagos, Nigeria",
        "headline": "Senior Backend Engineer",
        "years_of_experience": 6,
        "skills": ["TypeScript", "Node.js", "Postgres", "REST", "payments", "Docker"],
        "experience": [
            {
                "company": "PayFast",
                "title": "Senior Backend Engineer",
                "start_date": "2020-01",
                "end_date": None,
                "metrics": ["Cut checkout latency by 35%"],
                "technologies": ["TypeScript", "Node.js", "Postgres"],
            },
            {
                "company": "ShopLine",
                "title": "Backend Engineer",
                "start_date": "2018-03",
                "end_date": "2019-12",
                "technologies": ["Node.js", "Postgres"],
            },
            {
                "company": "CodeCamp",
                "title": "Junior Developer",
                "start_date": "2017-06",
                "end_date": "2018-02",
                "technologies": ["JavaScript"],
            },
        ],
        "education": [
            {"institution": "University of Lagos", "degree": "BSc", "field": "Computer Science", "graduation_year": "2017"}
        ],
    }


@pytest.fixture
def strong_job_json() -> dict:
    return {
        "title": "Senior Backend Engineer",
        "company": "Paystack",
        "location": "Remote",
        "type": "Full-time",
        "seniority": "Senior",
        "salary_min": None,
        "salary_max": None,
        "must_have_skills": ["TypeScript", "Node.js", "Postgres", "REST", "payments"],
        "nice_to_have_skills": ["Kafka"],
        "visa_sponsorship": "UNKNOWN",
        "eligible_countries": ["ng", "KE"],
        "description": "Build payment APIs.",
    }


@pytest.fixture
def ml_job_json() -> dict:
    return {
        "title": "Machine Learning Research Scientist",
        "company": "DeepLab",
        "location": "London",
        "seniority": "Senior",
        "must_have_skills": ["PhD in Machine Learning", "PyTorch", "Publications"],
        "nice_to_have_skills": ["JAX"],
        "visa_sponsorship": "NO",
        "eligible_countries": ["GB"],
    }


@pytest.fixture
def strong_match_json() -> dict:
    # skills 70*0.5 + seniority 100*0.2 + location/auth 100*0.2 + other 100*0.1 = 85
    return {
        "score": 85,
        "must_have_coverage_pct": 100,
        "nice_to_have_coverage_pct": 0,
        "matched_skills": ["TypeScript", "Node.js", "Postgres", "REST", "payments"],
        "missing_must_haves": [],
        "missing_nice_to_haves": ["Kafka"],
        "location_match": True,
        "work_auth_ok": True,
        "visa_ok": True,
        "seniority_match": "match",
        "other_score": 100,
        "recommendation": "apply",
        "explanation": "All must-have skills are present in recent roles.",
    }


@pytest.fixture
def weak_match_json() -> dict:
    # skills 0 + seniority 40*0.2 + location/auth 30*0.2 + other 0 = 14
    return {
        "score": 14,
        "must_have_coverage_pct": 0,
        "nice_to_have_coverage_pct": 0,
        "matched_skills": [],
        "missing_must_haves": ["PhD in Machine Learning", "PyTorch", "Publications"],
        "missing_nice_to_haves": ["JAX"],
        "location_match": False,
        "work_auth_ok": True,
        "visa_ok": False,
        "seniority_match": "under",
        "other_score": 0,
        "recommendation": "skip",
        "explanation": "The role needs ML research credentials the candidate does not have.",
    }


@pytest.fixture
def tailored_json() -> dict:
    return {
        "summary": "Backend engineer focused on TypeScript payment platforms.",
        "skills": ["TypeScript", "Node.js", "Postgres", "REST", "payments"],
        "experience": [
            {
                "company": "PayFast",
                "title": "Senior Backend Engineer",
                "period": "2020-01 - Present",
                "bullets": [
                    "Built TypeScript and Node.js payments APIs on Postgres",
                    "Served [N merchants] across REST integrations",
                ],
            }
        ],
        "ats_keywords": ["TypeScript", "payments"],
        "warnings": ["requires_user_confirmation: [N merchants]"],
        "change_log": ["rewrote PayFast bullet 1 to lead with TypeScript", "added PayFast bullet 2"],
    }


@pytest.fixture
def cover_letter_json() -> dict:
    body = (
        "I am writing to apply for the Senior Backend Engineer role at Paystack. "
        "My six years building TypeScript and Node.js payment services match the role closely.\n\n"
        "At PayFast I designed REST APIs on Postgres that processed card payments "
        "for merchants across three countries.\n\n"
        "I would welcome the chance to discuss how I can help your team."
    )
    return {
        "subject_line": "Application: Senior Backend Engineer",
        "salutation": "Dear Hiring Manager,",
        "body": body,
        "closing": "Kind regards,\nAda Obi",
        "tone": "professional",
        "word_count": len(body.split()),
    }


@pytest.fixture
def guard_pass_json() -> dict:
    return {
        "verdict": "PASS",
        "issues": [],
        "requires_user_confirmation": ["[N merchants]"],
        "confidence": 0.9,
    }


@pytest.fixture
def guard_fail_json() -> dict:
    return {
        "verdict": "FAIL",
        "issues": [
            {
                "type": "fabrication",
                "field": "experience[0].bullets[1]",
                "original_value": "",
                "fabricated_value": "Led a team of 50 engineers",
                "severity": "high",
            }
        ],
        "requires_user_confirmation": [],
        "confidence": 0.85,
    }


@pytest.fixture
def agent_responses(
    resume_json,
    strong_job_json,
    ml_job_json,
    strong_match_json,
    weak_match_json,
    tailored_json,
    cover_letter_json,
    guard_pass_json,
) -> dict:
    """Responses for a full run over the strong-fit and ML jobs."""
    return {
        "ResumeParserAgent": resume_json,
        "JobParserAgent": lambda content: ml_job_json if "Machine Learning" in content else strong_job_json,
        "MatchScorerAgent": lambda content: weak_match_json if "Research Scientist" in content else strong_match_json,
        "ResumeTailorAgent": tailored_json,
        "CoverLetterAgent": cover_letter_json,
        "TruthConsistencyGuardAgent": guard_pass_json,
    }


@pytest.fixture
def mock_provider() -> ProviderClient:
    """Create a mock provider client."""
    provider = AsyncMock(spec=ProviderClient)
    provider.complete = AsyncMock(return_value=Completion(text="{}", input_tokens=100, output_tokens=50))
    return provider


@pytest.fixture
def sample_resume(resume_json) -> ResumeRecord:
    return ResumeRecord.model_validate(resume_json)


@pytest.fixture
def sample_job(strong_job_json) -> JobRecord:
    return JobRecord.model_validate(strong_job_json)


@pytest.fixture
def sample_tailored(tailored_json) -> TailoredResume:
    return TailoredResume.model_validate(tailored_json)


@pytest.fixture
def sample_cover_letter(cover_letter_json) -> CoverLetterPack:
    return CoverLetterPack.model_validate(cover_letter_json)
