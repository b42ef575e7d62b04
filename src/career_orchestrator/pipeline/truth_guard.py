"""Agent 6: Truth-Consistency Guard - audits generated content against the source."""

from __future__ import annotations

import logging

from career_orchestrator.models.cover_letter import CoverLetterPack
from career_orchestrator.models.guard import GuardReport, verdict_for_issues
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.tailored import TailoredResume
from career_orchestrator.pipeline.agent import AgentResult, SpecialistAgent
from career_orchestrator.utils.tokens import find_placeholders, is_placeholder

logger = logging.getLogger(__name__)

MIN_EXPERIENCE_FOR_FULL_CONFIDENCE = 3
SPARSE_CONFIDENCE_CAP = 0.7

SYSTEM_PROMPT = """\
You are TruthConsistencyGuardAgent. Audit a tailored resume and cover letter for fabrications.

YOUR JOB:
- Compare the tailored resume and cover letter against the original resume.
- Flag any employer, title, date, metric, tool, certification, or claim that does NOT appear in the original.
- Flag exaggerations (e.g. "led a team of 50" when original says "worked in a team").
- If the tailored resume claims a technology or tool that does not appear in the original resume
  experience or skills, that is a "fabrication" issue with severity "high".
- Items marked "[X%]" or "[N...]" are placeholders - add them to requires_user_confirmation, not issues.
- requires_user_confirmation must list every '[X...]' placeholder found in the tailored resume or cover letter body.
- Verdict: FAIL is triggered by ANY issue of severity "high" OR two or more issues of severity "medium".
  Otherwise PASS.
- confidence: your certainty in the verdict (0.0-1.0). It must reflect how many original resume
  fields you were able to cross-check. If the original has fewer than 3 jobs, confidence is at most 0.7.

Return ONLY valid JSON - no prose, no markdown fences.

Output this exact schema:
{
  "verdict": "PASS"|"FAIL",
  "issues": [
    {
      "type": "fabrication"|"inconsistency"|"exaggeration",
      "field": string,
      "original_value": string,
      "fabricated_value": string,
      "severity": "high"|"medium"|"low"
    }
  ],
  "requires_user_confirmation": string[],
  "confidence": number
}"""


class TruthGuard(SpecialistAgent):
    name = "TruthConsistencyGuardAgent"
    kind = "guard_report"
    system_prompt = SYSTEM_PROMPT
    tier = "quality"
    max_tokens = 2048

    async def audit(
        self,
        original: ResumeRecord,
        tailored_resume: TailoredResume,
        cover_letter: CoverLetterPack,
    ) -> AgentResult[GuardReport]:
        """Audit tailored materials against the original résumé."""
        user_content = "\n".join([
            "ORIGINAL RESUME JSON:",
            original.model_dump_json(indent=2),
            "\nTAILORED RESUME JSON:",
            tailored_resume.model_dump_json(indent=2),
            "\nCOVER LETTER JSON:",
            cover_letter.model_dump_json(indent=2),
        ])
        return await self._call(
            user_content,
            original=original,
            tailored_resume=tailored_resume,
            cover_letter=cover_letter,
        )

    def reconcile(
        self,
        data: GuardReport,
        original: ResumeRecord | None = None,
        tailored_resume: TailoredResume | None = None,
        cover_letter: CoverLetterPack | None = None,
        **context,
    ) -> GuardReport:
        """Re-apply the verdict rule, placeholder handling and confidence cap."""
        issues = [i for i in data.issues if not is_placeholder(i.fabricated_value)]
        confirmations = list(data.requires_user_confirmation)
        for issue in data.issues:
            if is_placeholder(issue.fabricated_value):
                confirmations.append(issue.fabricated_value.strip())

        texts: list[str] = []
        if tailored_resume is not None:
            texts.append(tailored_resume.summary)
            texts += [b for exp in tailored_resume.experience for b in exp.bullets]
        if cover_letter is not None:
            texts.append(cover_letter.body)
        confirmations += find_placeholders(*texts)
        confirmations = list(dict.fromkeys(confirmations))

        verdict = verdict_for_issues(issues)
        if verdict != data.verdict:
            logger.warning("TruthConsistencyGuardAgent verdict %s overridden to %s", data.verdict, verdict)

        confidence = data.confidence
        if original is not None and len(original.experience) < MIN_EXPERIENCE_FOR_FULL_CONFIDENCE:
            confidence = min(confidence, SPARSE_CONFIDENCE_CAP)

        return data.model_copy(update={
            "verdict": verdict,
            "issues": issues,
            "requires_user_confirmation": confirmations,
            "confidence": confidence,
        })
