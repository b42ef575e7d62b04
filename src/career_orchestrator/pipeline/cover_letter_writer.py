"""Agent 5: Cover-Letter Writer - three truthful paragraphs for one job."""

from __future__ import annotations

from career_orchestrator.models.cover_letter import CoverLetterPack
from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.tailored import TailoredResume
from career_orchestrator.pipeline.agent import AgentResult, SpecialistAgent

SYSTEM_PROMPT = """\
You are CoverLetterAgent. Write a compelling, truthful cover letter.

NON-NEGOTIABLE:
- Use only facts from the resume. No fabrication of projects, metrics, or roles.
- 3 paragraphs: (1) hook + role fit, (2) key evidence from experience, (3) motivation + call-to-action.
- body must contain exactly 3 paragraphs separated by double newlines (\\n\\n).
  Do not include the salutation or closing in the body.
- Count the words in the body field yourself and put the exact integer in word_count.
  The body MUST be 200-300 words - rewrite it if not.
- salutation must address the hiring manager by title if known from the job JSON,
  else "Dear Hiring Manager,".
- Tone: professional but warm.
- Return ONLY valid JSON - no prose, no markdown fences.

Output this exact schema:
{
  "subject_line": string,
  "salutation": string,
  "body": string,
  "closing": string,
  "tone": "professional"|"warm"|"direct",
  "word_count": number
}"""


class CoverLetterWriter(SpecialistAgent):
    name = "CoverLetterAgent"
    kind = "cover_letter"
    system_prompt = SYSTEM_PROMPT
    tier = "quality"
    max_tokens = 2048

    async def write(
        self,
        resume: ResumeRecord,
        job: JobRecord,
        tailored_resume: TailoredResume,
    ) -> AgentResult[CoverLetterPack]:
        user_content = "\n".join([
            "CANDIDATE RESUME JSON:",
            resume.model_dump_json(indent=2),
            "\nTARGET JOB JSON:",
            job.model_dump_json(indent=2),
            "\nTAILORED RESUME (context):",
            tailored_resume.model_dump_json(indent=2),
        ])
        return await self._call(user_content)
