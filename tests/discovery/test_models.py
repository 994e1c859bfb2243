"""Tests for discovery models."""

import math

import pytest
from pydantic import ValidationError

from scout.discovery.models import (
    AnalysisOutcome,
    AnalysisReport,
    ChangeSignals,
    DiscoveryAnswer,
    DiscoverySession,
    InterviewResult,
    JobFailure,
    JobPlan,
    ProfileArtifact,
    ProgressEvent,
    Question,
    SelectionMode,
    SessionStatus,
    SpecialistJob,
    clamp_percent,
    normalize_percent,
)


class TestPercentHelpers:
    """Tests for score normalization."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.85, 85), (1, 100), (0, 0), (72, 72), (150, 100), (-3, 0), ("0.5", 50)],
    )
    def test_normalize_percent(self, value: object, expected: int) -> None:
        assert normalize_percent(value) == expected

    @pytest.mark.parametrize("value", [None, "high", math.nan, math.inf])
    def test_normalize_rejects_non_numbers(self, value: object) -> None:
        assert normalize_percent(value) == 0

    def test_clamp_does_not_rescale_fractions(self) -> None:
        assert clamp_percent(0.9) == 1
        assert clamp_percent(240) == 100


class TestAnalysisReport:
    """Tests for AnalysisReport."""

    def test_fractional_confidence(self) -> None:
        assert AnalysisReport(summary="s", confidence=0.42).confidence == 42

    def test_camel_case_dump(self) -> None:
        data = AnalysisReport(summary="s", pain_points=["slow"], confidence=10).model_dump(
            by_alias=True
        )
        assert data["painPoints"] == ["slow"]

    def test_summary_required(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisReport(summary="", confidence=10)


class TestQuestion:
    """Tests for Question validation."""

    def test_recommended_must_be_option(self) -> None:
        with pytest.raises(ValidationError, match="recommendedOption"):
            Question(
                id="q1",
                prompt="Which?",
                rationale="r",
                selection_mode=SelectionMode.SINGLE,
                options=["A", "B", "C", "D"],
                recommended_option="E",
            )

    @pytest.mark.parametrize("count", [3, 6])
    def test_option_count_bounds(self, count: int) -> None:
        options = [f"opt-{i}" for i in range(count)]
        with pytest.raises(ValidationError):
            Question(
                id="q1",
                prompt="Which?",
                rationale="r",
                selection_mode=SelectionMode.MULTI,
                options=options,
                recommended_option=options[0],
            )

    def test_accepts_camel_case_payload(self) -> None:
        question = Question.model_validate(
            {
                "id": "q1",
                "prompt": "Which?",
                "rationale": "r",
                "selectionMode": "multi",
                "options": ["A", "B", "C", "D", "E"],
                "recommendedOption": "E",
            }
        )
        assert question.selection_mode is SelectionMode.MULTI


class TestInterviewResult:
    """Tests for the fixed question batch."""

    def test_requires_exactly_three_questions(self, make_synthesis) -> None:
        draft = make_synthesis(question_count=2)
        with pytest.raises(ValidationError):
            InterviewResult.model_validate(draft.model_dump())

    def test_readiness_is_clamped(self, make_synthesis) -> None:
        assert make_synthesis(readiness_score=130).readiness_score == 100


class TestOutcomesAndPlans:
    """Tests for AnalysisOutcome and JobPlan."""

    def test_outcome_needs_exactly_one_result(self) -> None:
        job = SpecialistJob(id="a", title="A", objective="o")
        with pytest.raises(ValidationError, match="exactly one"):
            AnalysisOutcome(job=job, attempts=1)
        with pytest.raises(ValidationError, match="exactly one"):
            AnalysisOutcome(
                job=job,
                report=AnalysisReport(summary="s", confidence=1),
                failure=JobFailure(job_id="a", attempts=1, error="e"),
                attempts=1,
            )

    def test_failure_describe(self) -> None:
        failure = JobFailure(job_id="risk", attempts=2, error="boom")
        assert failure.describe() == "Analysis 'risk' failed after 2 attempt(s): boom"

    def test_plan_profile_job(self) -> None:
        jobs = [
            SpecialistJob(id="a", title="A", objective="o"),
            SpecialistJob(id="b", title="B", objective="o", produces_profile_artifact=True),
        ]
        assert JobPlan(jobs=jobs).profile_job == jobs[1]
        assert JobPlan(jobs=jobs[:1]).profile_job is None

    def test_change_signals_fired(self) -> None:
        assert ChangeSignals(context_changed=True).fired
        assert not ChangeSignals().fired


class TestProfileArtifact:
    """Tests for ProfileArtifact conversions."""

    def test_from_report(self) -> None:
        report = AnalysisReport(
            summary="Django app",
            stack_hints=["django"],
            signals=["manage.py"],
            findings=["ignored"],
            confidence=90,
        )
        artifact = ProfileArtifact.from_report(report)
        assert artifact.summary == "Django app"
        assert artifact.stack_hints == ["django"]
        assert artifact.signals == ["manage.py"]
        assert artifact.confidence == 90
        assert artifact.version == 1

    def test_as_report(self, make_profile) -> None:
        report = make_profile().as_report()
        assert report.summary == "Python service with PostgreSQL"
        assert report.stack_hints == ["python", "postgresql"]
        assert report.findings == []

    def test_json_round_trip(self, make_profile) -> None:
        artifact = make_profile()
        restored = ProfileArtifact.model_validate_json(artifact.model_dump_json(by_alias=True))
        assert restored == artifact


class TestDiscoverySession:
    """Tests for DiscoverySession state."""

    def test_defaults(self) -> None:
        session = DiscoverySession(goal="Add billing")
        assert session.round == 0
        assert session.readiness_score == 0
        assert session.latest_result is None
        assert session.is_active

    def test_record_round(self, make_synthesis) -> None:
        session = DiscoverySession(goal="Add billing", additional_context="old")
        result = InterviewResult.model_validate(make_synthesis(readiness_score=64).model_dump())
        answers = [DiscoveryAnswer(question_id="q1", answer="A")]

        session.record_round(answers, result, "old\n\nnew")

        assert session.round == 1
        assert session.readiness_score == 64
        assert session.latest_result == result
        assert session.answer_history == answers
        assert session.additional_context == "old\n\nnew"

    def test_record_round_keeps_context_when_none(self, make_synthesis) -> None:
        session = DiscoverySession(goal="g", additional_context="kept")
        result = InterviewResult.model_validate(make_synthesis().model_dump())
        session.record_round([], result)
        assert session.additional_context == "kept"

    def test_inactive(self) -> None:
        assert not DiscoverySession(goal="g", status=SessionStatus.ABANDONED).is_active

    def test_progress_event_is_frozen(self) -> None:
        event = ProgressEvent(type="status", message="hi")
        with pytest.raises(ValidationError):
            event.message = "changed"  # type: ignore[misc]
