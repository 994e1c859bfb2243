"""Tests for structured-output extraction."""

import pytest

from scout.discovery.errors import StructuredOutputError
from scout.discovery.models import AnalysisReport, JobPlanDraft
from scout.discovery.parsing import coerce_output, parse_structured_text


class TestParseStructuredText:
    """Tests for recovering JSON from model text."""

    def test_plain_json(self) -> None:
        assert parse_structured_text('{"a": 1}') == {"a": 1}

    def test_fenced_block(self) -> None:
        text = 'Here you go:\n```json\n{"summary": "ok"}\n```\nThanks.'
        assert parse_structured_text(text) == {"summary": "ok"}

    def test_unlabelled_fence(self) -> None:
        assert parse_structured_text("```\n[1, 2]\n```") == [1, 2]

    def test_braces_inside_commentary(self) -> None:
        text = 'I think {"confidence": 80} is right.'
        assert parse_structured_text(text) == {"confidence": 80}

    def test_array_inside_commentary(self) -> None:
        assert parse_structured_text("values: [1, 2, 3] end") == [1, 2, 3]

    @pytest.mark.parametrize("text", ["", "   ", "no json here", "{broken"])
    def test_unparseable(self, text: str) -> None:
        assert parse_structured_text(text) is None


class TestCoerceOutput:
    """Tests for validating gate output against a model."""

    def test_instance_passes_through(self) -> None:
        report = AnalysisReport(summary="s", confidence=50)
        assert coerce_output(report, AnalysisReport) is report

    def test_dict_with_camel_case_keys(self) -> None:
        raw = {"summary": "s", "stackHints": ["python"], "confidence": 0.8}
        report = coerce_output(raw, AnalysisReport)
        assert report.stack_hints == ["python"]
        assert report.confidence == 80

    def test_text_output(self) -> None:
        report = coerce_output('```json\n{"summary": "s", "confidence": 40}\n```', AnalysisReport)
        assert report.confidence == 40

    def test_falls_back_to_streamed_text(self) -> None:
        streamed = 'Thinking...\n{"summary": "from stream", "confidence": 10}'
        report = coerce_output("done", AnalysisReport, streamed)
        assert report.summary == "from stream"

    def test_none_without_stream(self) -> None:
        with pytest.raises(StructuredOutputError, match="No structured AnalysisReport"):
            coerce_output(None, AnalysisReport)

    def test_validation_failure(self) -> None:
        with pytest.raises(StructuredOutputError, match="Invalid JobPlanDraft output"):
            coerce_output({"rationale": "r", "jobs": []}, JobPlanDraft)

    def test_other_model_is_revalidated(self) -> None:
        report = AnalysisReport(summary="s", confidence=50)
        with pytest.raises(StructuredOutputError):
            coerce_output(report, JobPlanDraft)
