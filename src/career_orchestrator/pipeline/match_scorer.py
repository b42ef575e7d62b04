"""Agent 3: Match Scorer - scores résumé/job fit with a deterministic rubric."""

from __future__ import annotations

import logging

from career_orchestrator.models import rubric
from career_orchestrator.models.job import JobRecord
from career_orchestrator.models.match import MatchResult
from career_orchestrator.models.resume import ResumeRecord
from career_orchestrator.models.run import CandidateProfile
from career_orchestrator.pipeline.agent import AgentResult, SpecialistAgent

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are MatchScorerAgent. Score the fit between a candidate's resume and a job.

Do not inflate scores to help a candidate. Jobs scoring below 55, or with
must-have coverage below 60, are not tailored.

SCORING RUBRIC (compute in this exact order):

1. must_have_coverage_pct  = (# of must_have_skills satisfied by candidate / total must_have_skills) * 100
   nice_to_have_coverage_pct = (# of nice_to_have_skills satisfied by candidate / total nice_to_have_skills) * 100
   If a list is empty, treat coverage as 100.

2. skill_match_pct = (must_have_coverage_pct * 0.7) + (nice_to_have_coverage_pct * 0.3)

3. seniority_match_score:
   "match"   -> 100
   "over"    -> 60
   "under"   -> 40
   "unknown" -> 50

4. location_auth_score (out of 100):
   location_match = true  -> +50 pts
   work_auth_ok   = true  -> +30 pts
   visa_ok        = true  -> +20 pts
   (Each flag contributes independently; total capped at 100)

5. score = (skill_match_pct * 0.50) + (seniority_match_score * 0.20) + (location_auth_score * 0.20) + (other_score * 0.10)
   other_score: 100 if years_of_experience and education broadly fit; 50 if uncertain; 0 if clearly mismatched.
   Round score to the nearest integer.

FIELD DEFINITIONS:
- missing_must_haves / missing_nice_to_haves: copy the job's skill strings exactly.
- location_match: true if candidate location overlaps job location OR job is remote.
- work_auth_ok: true if candidate's work_auth_status is compatible with the job's eligible countries OR status is unknown.
- visa_ok: true if visa_sponsorship = "YES" OR candidate does not need sponsorship.
- seniority_match: "match" | "over" | "under" | "unknown".
- recommendation: "apply" if score>=70, "stretch" if 55-69, "skip" if <55.
- explanation: 2-3 sentences. Be specific. No fabrication.

Return ONLY valid JSON - no prose, no markdown fences.

Output this exact schema:
{
  "score": number,
  "must_have_coverage_pct": number,
  "nice_to_have_coverage_pct": number,
  "matched_skills": string[],
  "missing_must_haves": string[],
  "missing_nice_to_haves": string[],
  "location_match": boolean,
  "work_auth_ok": boolean,
  "visa_ok": boolean,
  "seniority_match": "match"|"over"|"under"|"unknown",
  "other_score": 0|50|100,
  "recommendation": "apply"|"stretch"|"skip",
  "explanation": string
}"""


class MatchScorer(SpecialistAgent):
    name = "MatchScorerAgent"
    kind = "match"
    system_prompt = SYSTEM_PROMPT
    tier = "fast"
    max_tokens = 1024

    async def score(
        self,
        resume: ResumeRecord,
        job: JobRecord,
        candidate_profile: CandidateProfile | None = None,
    ) -> AgentResult[MatchResult]:
        """Score one job against the candidate."""
        parts = [
            "CANDIDATE RESUME JSON:",
            resume.model_dump_json(indent=2),
            "\nJOB JSON:",
            job.model_dump_json(indent=2),
        ]
        if candidate_profile is not None:
            parts += ["\nCANDIDATE PROFILE HINTS:", candidate_profile.model_dump_json(indent=2, exclude_none=True)]
        return await self._call("\n".join(parts), job=job)

    def reconcile(self, data: MatchResult, job: JobRecord | None = None, **context) -> MatchResult:
        """Recompute every rubric step the model's own output allows."""
        update: dict = {}
        if job is not None:
            update["must_have_coverage_pct"] = _recount(
                job.must_have_skills, data.missing_must_haves, data.must_have_coverage_pct
            )
            update["nice_to_have_coverage_pct"] = _recount(
                job.nice_to_have_skills, data.missing_nice_to_haves, data.nice_to_have_coverage_pct
            )
        must = update.get("must_have_coverage_pct", data.must_have_coverage_pct)
        nice = update.get("nice_to_have_coverage_pct", data.nice_to_have_coverage_pct)

        score = data.score
        if data.other_score is not None:
            score = rubric.compute_score(
                must,
                nice,
                data.seniority_match,
                data.location_match,
                data.work_auth_ok,
                data.visa_ok,
                data.other_score,
            )
            if score != data.score:
                logger.warning("MatchScorerAgent score %d disagrees with rubric %d; using rubric", data.score, score)
        update["score"] = score
        update["recommendation"] = rubric.recommendation_for_score(score)
        return data.model_copy(update=update)


def _recount(required: list[str], missing: list[str], reported: float) -> float:
    """Coverage from the job's list and the reported gaps.

    Falls back to the model's figure when its missing entries do not name
    skills from the job (paraphrased lists cannot be counted). When both
    figures exist and disagree the lower one wins, so an incomplete missing
    list never raises coverage.
    """
    if not required:
        return 100.0
    required_keys = {s.strip().lower() for s in required}
    missing_keys = {s.strip().lower() for s in missing}
    if not missing_keys <= required_keys:
        return reported
    recounted = rubric.coverage_from_missing(required, missing)
    if recounted != reported:
        logger.warning(
            "MatchScorerAgent coverage %.1f%% disagrees with missing list (%.1f%%); keeping %.1f%%",
            reported,
            recounted,
            min(reported, recounted),
        )
    return min(reported, recounted)
