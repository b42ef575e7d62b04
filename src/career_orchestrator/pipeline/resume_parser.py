"""Agent 1: Resume Parser - extracts a structured record from résumé text."""

from __future__ import annotations

from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.pipeline.agent import AgentResult, SpecialistAgent

SYSTEM_PROMPT = """\
You are ResumeParserAgent. Your only job is to extract structured data from a resume.

NON-NEGOTIABLE:
- Extract only what is explicitly written. Never infer, add, or fabricate.
- If a field is not present, use null or an empty array.
- Do NOT infer work_auth_status from nationality or location. Only an explicit
  statement in the resume (e.g. "EU citizen", "requires H-1B sponsorship") counts.
- Return ONLY valid JSON - no prose, no markdown fences.

Output this exact schema:
{
  "name": string|null,
  "email": string|null,
  "phone": string|null,
  "location": string|null,
  "headline": string|null,
  "summary": string|null,
  "years_of_experience": number|null,
  "skills": string[],
  "experience": [
    {
      "company": string,
      "title": string,
      "start_date": string|null,
      "end_date": string|null,
      "description": string|null,
      "metrics": string[],
      "technologies": string[]
    }
  ],
  "education": [
    {
      "institution": string,
      "degree": string|null,
      "field": string|null,
      "graduation_year": string|null
    }
  ],
  "languages": string[],
  "certifications": string[],
  "work_auth_status": string|null
}"""


class ResumeParser(SpecialistAgent):
    name = "ResumeParserAgent"
    kind = "resume"
    system_prompt = SYSTEM_PROMPT
    tier = "fast"
    max_tokens = 2048

    async def parse(self, resume_text: str) -> AgentResult[ResumeRecord]:
        """Parse résumé text into a ResumeRecord."""
        return await self._call(f"RESUME TEXT:\n{resume_text}")
