"""Tests for the Schema Gate."""

import logging

import pytest

from career_orchestrator.errors import SchemaViolation
from career_orchestrator.models.guard import GuardReport
from career_orchestrator.models.job import JobRecord
from career_orchestrator.pipeline.schema_gate import CONTRACTS, validate


class TestValidate:
    def test_returns_typed_value(self, strong_job_json):
        job = validate("job", strong_job_json)
        assert isinstance(job, JobRecord)
        assert job.company == "Paystack"

    def test_defaults_for_missing_arrays(self):
        report = validate("guard_report", {"verdict": "PASS", "confidence": 1})
        assert isinstance(report, GuardReport)
        assert report.issues == []
        assert report.requires_user_confirmation == []

    def test_every_kind_has_a_contract(self):
        assert set(CONTRACTS) == {"resume", "job", "match", "tailored_resume", "cover_letter", "guard_report"}

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown schema kind"):
            validate("salary", {})

    def test_non_object_rejected_at_root(self):
        with pytest.raises(SchemaViolation) as exc_info:
            validate("resume", ["not", "an", "object"], agent="ResumeParserAgent")
        assert exc_info.value.path == "<root>"
        assert str(exc_info.value).startswith("ResumeParserAgent output failed schema validation: [<root>]")

    def test_nested_path_reported(self, tailored_json):
        tailored_json["experience"][0]["bullets"][1] = 42
        with pytest.raises(SchemaViolation) as exc_info:
            validate("tailored_resume", tailored_json)
        assert exc_info.value.path == "experience.0.bullets.1"

    def test_at_most_three_issues(self, cover_letter_json):
        bad = {k: 1 for k in ("subject_line", "salutation", "body", "closing", "tone")}
        with pytest.raises(SchemaViolation) as exc_info:
            validate("cover_letter", dict(cover_letter_json, **bad))
        assert len(exc_info.value.issues) == 3

    def test_failure_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger="career_orchestrator.pipeline.schema_gate"):
            with pytest.raises(SchemaViolation):
                validate("match", {"score": "high"}, agent="MatchScorerAgent")
        assert "MatchScorerAgent output failed schema validation" in caplog.text
