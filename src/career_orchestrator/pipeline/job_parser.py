"""Agent 2: Job Parser - extracts a structured record from a job posting."""

from __future__ import annotations

import logging
import re

from career_orchestrator.models.job import JobRecord
from career_orchestrator.pipeline.agent import AgentResult, SpecialistAgent

logger = logging.getLogger(__name__)

_ALPHA2_RE = re.compile(r"^[A-Za-z]{2}$")

SYSTEM_PROMPT = """\
You are JobParserAgent. Your only job is to extract structured data from a job posting.

NON-NEGOTIABLE:
- Extract only what is explicitly stated. Do not infer or fabricate.
- Separate must_have_skills (words like "required", "must", "essential") from
  nice_to_have_skills ("preferred", "nice to have", "bonus", "plus").
  A skill belongs to exactly one of the two lists.
- If salary is not stated, use null (never 0).
- eligible_countries: use ISO-3166 alpha-2 codes only. Empty array if not specified.
- Return ONLY valid JSON - no prose, no markdown fences.

Output this exact schema:
{
  "title": string|null,
  "company": string|null,
  "location": string|null,
  "type": "Full-time"|"Part-time"|"Contract"|"Freelance"|"Internship"|null,
  "seniority": "Junior"|"Mid-level"|"Senior"|"Lead"|"Executive"|null,
  "salary_min": number|null,
  "salary_max": number|null,
  "currency": string|null,
  "must_have_skills": string[],
  "nice_to_have_skills": string[],
  "visa_sponsorship": "YES"|"NO"|"UNKNOWN",
  "relocation_assistance": boolean,
  "eligible_countries": string[],
  "description": string|null,
  "requirements": string[],
  "responsibilities": string[]
}"""


class JobParser(SpecialistAgent):
    name = "JobParserAgent"
    kind = "job"
    system_prompt = SYSTEM_PROMPT
    tier = "fast"
    max_tokens = 2048

    async def parse(self, raw_text: str) -> AgentResult[JobRecord]:
        """Parse a job posting into a JobRecord."""
        return await self._call(f"JOB POSTING:\n{raw_text}")

    def reconcile(self, data: JobRecord, **context) -> JobRecord:
        must_keys = {s.strip().lower() for s in data.must_have_skills}
        nice = [s for s in data.nice_to_have_skills if s.strip().lower() not in must_keys]
        if len(nice) != len(data.nice_to_have_skills):
            logger.warning(
                "JobParserAgent listed %d skill(s) as both must-have and nice-to-have; kept as must-have",
                len(data.nice_to_have_skills) - len(nice),
            )

        countries = [c.strip().upper() for c in data.eligible_countries if _ALPHA2_RE.match(c.strip())]
        if len(countries) != len(data.eligible_countries):
            logger.warning("JobParserAgent returned non ISO-3166 alpha-2 countries; dropped")

        return data.model_copy(update={"nice_to_have_skills": nice, "eligible_countries": countries})
