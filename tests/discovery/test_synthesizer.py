"""Tests for the synthesizer."""

import json

import pytest

from scout.discovery.config import DiscoveryConfig
from scout.discovery.errors import SynthesisError
from scout.discovery.fallbacks import FALLBACK_QUESTIONS
from scout.discovery.models import (
    AnalysisOutcome,
    EventType,
    InterviewResult,
    JobFailure,
    ProgressEvent,
    SpecialistJob,
)
from scout.discovery.synthesizer import (
    Synthesizer,
    build_analysis_block,
    build_carry_forward_block,
    enforce_question_batch,
    format_failures,
    note_failures,
)


def _outcome(job_id: str, report=None, profile: bool = False) -> AnalysisOutcome:
    job = SpecialistJob(
        id=job_id, title=job_id.title(), objective="o", produces_profile_artifact=profile
    )
    if report is None:
        failure = JobFailure(job_id=job_id, attempts=2, error="boom")
        return AnalysisOutcome(job=job, failure=failure, attempts=2)
    return AnalysisOutcome(job=job, report=report, attempts=1)


def _block_payload(block: str, heading: str) -> dict:
    for chunk in block.split("\n\n### "):
        chunk = chunk.removeprefix("### ")
        title, _, body = chunk.partition("\n")
        if title.startswith(heading):
            return json.loads(body)
    raise AssertionError(f"no {heading} block")


class TestEnforceQuestionBatch:
    """Tests for the fixed batch of three questions."""

    def test_trims_to_first_three_in_order(self, make_question) -> None:
        questions = [make_question(f"q{i}") for i in range(1, 6)]
        events: list[ProgressEvent] = []

        batch = enforce_question_batch(questions, events.append)

        assert [q.id for q in batch] == ["q1", "q2", "q3"]
        assert events[0].message == "[synth] Merge returned 5 questions; trimming to 3."

    def test_pads_with_fallbacks_in_priority_order(self, make_question) -> None:
        batch = enforce_question_batch([make_question("q1")])
        assert [q.id for q in batch] == ["q1", "fallback-scope", "fallback-priority"]

    def test_empty_batch_uses_all_fallbacks(self) -> None:
        assert enforce_question_batch([]) == list(FALLBACK_QUESTIONS)

    def test_padding_skips_existing_ids(self, make_question) -> None:
        batch = enforce_question_batch([make_question("fallback-scope")])
        assert [q.id for q in batch] == [
            "fallback-scope",
            "fallback-priority",
            "fallback-constraints",
        ]

    def test_exact_batch_untouched(self, make_question) -> None:
        questions = [make_question(f"q{i}") for i in range(3)]
        events: list[ProgressEvent] = []
        assert enforce_question_batch(questions, events.append) == questions
        assert events == []

    def test_repeated_ids_keep_first(self, make_question) -> None:
        questions = [
            make_question("q1"),
            make_question("q1", prompt="Same id again?"),
            make_question("q2"),
            make_question("q3"),
        ]
        events: list[ProgressEvent] = []

        batch = enforce_question_batch(questions, events.append)

        assert [q.id for q in batch] == ["q1", "q2", "q3"]
        assert batch[0].prompt == "Question q1?"
        assert events[0].message == "[synth] Merge repeated question id 'q1'; keeping the first."

    def test_repeated_ids_padded_after_dedupe(self, make_question) -> None:
        batch = enforce_question_batch([make_question("q1"), make_question("q1")])
        assert [q.id for q in batch] == ["q1", "fallback-scope", "fallback-priority"]


class TestNoteFailures:
    """Tests for surfacing failed jobs in missing_critical_info."""

    def test_appends_unmentioned_failures(self) -> None:
        failures = [
            JobFailure(job_id="risk", attempts=2, error="timeout"),
            JobFailure(job_id="ux", attempts=2, error="bad json"),
        ]
        notes = note_failures(["ux research was unavailable"], failures)
        assert notes == [
            "ux research was unavailable",
            "Analysis 'risk' failed after 2 attempt(s): timeout",
        ]

    def test_no_failures(self) -> None:
        assert note_failures(["a"], []) == ["a"]

    def test_job_id_inside_other_words_is_not_a_mention(self) -> None:
        failures = [JobFailure(job_id="api", attempts=2, error="timeout")]
        notes = note_failures(["Rapid rollout needs capital approval"], failures)
        assert notes[-1] == "Analysis 'api' failed after 2 attempt(s): timeout"

    def test_longer_kebab_id_is_not_a_mention(self) -> None:
        failures = [JobFailure(job_id="api", attempts=1, error="boom")]
        notes = note_failures(["api-gateway limits unknown"], failures)
        assert len(notes) == 2

    def test_quoted_job_id_counts_as_mention(self) -> None:
        failures = [JobFailure(job_id="api", attempts=2, error="timeout")]
        assert note_failures(["Analysis 'api' did not finish"], failures) == [
            "Analysis 'api' did not finish"
        ]


class TestBlocks:
    """Tests for analysis block formatting."""

    def test_reports_and_profile(self, make_report, make_profile) -> None:
        outcomes = [_outcome("scope", make_report("Scope summary")), _outcome("risk")]
        block = build_analysis_block(outcomes, make_profile())

        scope = _block_payload(block, "scope (Scope)")
        assert scope["summary"] == "Scope summary"
        assert scope["producesProfileArtifact"] is False
        assert "painPoints" in scope
        assert _block_payload(block, "profile-cache")["stackHints"] == ["python", "postgresql"]
        assert "### risk" not in block

    def test_profile_omitted_when_refreshed(self, make_report, make_profile) -> None:
        outcomes = [_outcome("stack", make_report(), profile=True)]
        assert "profile-cache" not in build_analysis_block(outcomes, make_profile())

    def test_carry_forward_block(self, make_synthesis, make_profile) -> None:
        previous = InterviewResult.model_validate(
            make_synthesis(readiness_score=61, missing_critical_info=["SLA unknown"]).model_dump()
        )
        block = build_carry_forward_block(previous, make_profile())

        carried = _block_payload(block, "carried-context")
        assert carried["summary"] == previous.direction_summary
        assert carried["confidence"] == 61
        assert carried["stackHints"] == ["Python 3.12, FastAPI"]
        assert carried["openQuestions"] == ["SLA unknown"]
        assert "profile-cache" in block

    def test_format_failures(self) -> None:
        assert format_failures([]) == "none"
        failure = JobFailure(job_id="a", attempts=2, error="e")
        assert format_failures([failure]) == "- a (attempts: 2): e"


class TestSynthesizer:
    """Tests for the merge call."""

    async def test_trims_five_questions(self, make_gate, make_synthesis) -> None:
        gate = make_gate(synthesis=make_synthesis(question_count=5))
        result, _ = await Synthesizer(gate).synthesize("ctx", "block")
        assert [q.id for q in result.questions] == ["q1", "q2", "q3"]

    async def test_pads_single_question(self, make_gate, make_synthesis) -> None:
        gate = make_gate(synthesis=make_synthesis(question_count=1))
        result, usage = await Synthesizer(gate).synthesize("ctx", "block")
        assert [q.id for q in result.questions] == ["q1", "fallback-scope", "fallback-priority"]
        assert usage.total_tokens == 15

    async def test_failures_reach_prompt_and_result(self, make_gate, make_synthesis) -> None:
        gate = make_gate(synthesis=make_synthesis())
        failures = [JobFailure(job_id="risk", attempts=2, error="timeout")]

        result, _ = await Synthesizer(gate).synthesize("ctx", "block", failures)

        assert "- risk (attempts: 2): timeout" in gate.prompts[0]
        assert any("risk" in entry for entry in result.missing_critical_info)

    async def test_pinned_context_wins(self, make_gate, make_synthesis, make_context) -> None:
        gate = make_gate(synthesis=make_synthesis())
        pinned = make_context(stack="Go", scope="Pinned scope")
        result, _ = await Synthesizer(gate).synthesize("ctx", "block", pinned_context=pinned)
        assert result.inferred_context == pinned

    async def test_accepts_camel_case_dict(self, make_gate, make_synthesis) -> None:
        payload = make_synthesis().model_dump(mode="json", by_alias=True)
        gate = make_gate(synthesis=payload)
        result, _ = await Synthesizer(gate).synthesize("ctx", "block")
        assert result.direction_summary == "Build team billing on the existing API."

    async def test_call_failure_raises(self, make_gate) -> None:
        gate = make_gate(synthesis=RuntimeError("overloaded"))
        with pytest.raises(SynthesisError, match="overloaded"):
            await Synthesizer(gate).synthesize("ctx", "block")

    async def test_invalid_question_raises(self, make_gate, make_synthesis) -> None:
        payload = make_synthesis().model_dump(mode="json", by_alias=True)
        payload["questions"][0]["recommendedOption"] = "not an option"
        gate = make_gate(synthesis=payload)
        with pytest.raises(SynthesisError, match="no valid interview result"):
            await Synthesizer(gate).synthesize("ctx", "block")

    async def test_emits_status_and_uses_steps(self, make_gate, make_synthesis) -> None:
        gate = make_gate(synthesis=make_synthesis())
        events: list[ProgressEvent] = []
        synthesizer = Synthesizer(gate, DiscoveryConfig(synthesis_max_steps=7))
        await synthesizer.synthesize("ctx", "block", emit=events.append)
        assert events[0].type == EventType.STATUS
        assert events[0].message == "Synthesizing interview result..."
        assert gate.options[0] is not None
        assert gate.options[0].max_steps == 7
