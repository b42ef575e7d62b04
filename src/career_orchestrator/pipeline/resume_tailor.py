"""Agent 4: Resume Tailor - reorganizes existing facts toward one job."""

from __future__ import annotations

import logging

from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.tailored import TailoredResume
from career_orchestrator.pipeline.agent import AgentResult, SpecialistAgent
from career_orchestrator.utils.tokens import find_placeholders

logger = logging.getLogger(__name__)

CONFIRMATION_PREFIX = "requires_user_confirmation: "

SYSTEM_PROMPT = """\
You are ResumeTailorAgent. Rewrite the candidate's resume to target a specific job.

NON-NEGOTIABLE:
- Only use skills, experience, and facts already present in the resume.
- Never add employers, titles, dates, metrics, tools, or certifications not in the original.
- If a metric would strengthen a bullet but is missing, include it as a placeholder like
  "[X%]" or "[N projects]" and add it to the warnings array as
  "requires_user_confirmation: [X%]".
- Keep ats_keywords strictly to terms found in the job description.
- change_log must have one entry per modified bullet or section. If you change 4 bullets,
  there must be 4 change_log entries.
- Return ONLY valid JSON - no prose, no markdown fences.

Output this exact schema:
{
  "summary": string,
  "skills": string[],
  "experience": [
    {
      "company": string,
      "title": string,
      "period": string,
      "bullets": string[]
    }
  ],
  "ats_keywords": string[],
  "warnings": string[],
  "change_log": ["one entry per bullet or section changed, e.g. 'rewrote Acme Corp bullet 2 to emphasize Python'"]
}"""


class ResumeTailor(SpecialistAgent):
    name = "ResumeTailorAgent"
    kind = "tailored_resume"
    system_prompt = SYSTEM_PROMPT
    tier = "quality"
    max_tokens = 4096

    async def tailor(self, resume: ResumeRecord, job: JobRecord) -> AgentResult[TailoredResume]:
        """Produce a résumé tailored to ``job`` from ``resume`` facts only."""
        user_content = "\n".join([
            "CANDIDATE RESUME JSON:",
            resume.model_dump_json(indent=2),
            "\nTARGET JOB JSON:",
            job.model_dump_json(indent=2),
        ])
        return await self._call(user_content)

    def reconcile(self, data: TailoredResume, **context) -> TailoredResume:
        """Every placeholder used must be surfaced as a warning."""
        texts = [data.summary] + [b for exp in data.experience for b in exp.bullets]
        placeholders = find_placeholders(*texts)
        warned = "\n".join(data.warnings)
        missing = [p for p in placeholders if p not in warned]
        if not missing:
            return data
        logger.warning("ResumeTailorAgent left %d placeholder(s) out of warnings", len(missing))
        warnings = data.warnings + [f"{CONFIRMATION_PREFIX}{p}" for p in missing]
        return data.model_copy(update={"warnings": warnings})
