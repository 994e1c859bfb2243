"""Fixtures for discovery tests: a scripted call gate and model factories."""

import re
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import pytest

from scout.discovery.models import (
    AnalysisReport,
    InferredContext,
    JobPlanDraft,
    ProfileArtifact,
    Question,
    SelectionMode,
    SpecialistJob,
    SynthesisDraft,
)
from scout.discovery.profile_cache import InMemoryProfileStore
from scout.providers.base import CallGate, CallOptions, FinalOutput, GateEvent, PartialText
from scout.types import TokenUsage

_JOB_ID = re.compile(r'^You are analysis agent "([^"]+)"')


class ScriptedGate(CallGate):
    """CallGate double that answers from scripted responses.

    Responses may be model instances, dicts, text or exceptions (raised).
    Analysis responses are queued per job id and consumed one per attempt;
    jobs without a queue get `default_report`.
    """

    def __init__(
        self,
        plan: Any = None,
        reports: dict[str, list[Any]] | None = None,
        synthesis: Any = None,
        default_report: Any = None,
        partial_text: tuple[str, ...] = (),
    ) -> None:
        self.plan = plan
        self.reports = {job_id: list(queue) for job_id, queue in (reports or {}).items()}
        self.synthesis = synthesis
        self.default_report = default_report
        self.partial_text = partial_text
        self.calls: list[str] = []
        self.prompts: list[str] = []
        self.options: list[CallOptions | None] = []

    def analysis_calls(self, job_id: str) -> int:
        return self.calls.count(job_id)

    def _respond(self, prompt: str, output_type: type[Any]) -> tuple[str, Any]:
        if output_type is JobPlanDraft:
            return "plan", self.plan
        if output_type is SynthesisDraft:
            return "synthesis", self.synthesis
        match = _JOB_ID.match(prompt)
        job_id = match.group(1) if match else "unknown"
        queue = self.reports.get(job_id)
        return job_id, queue.pop(0) if queue else self.default_report

    async def submit(
        self,
        prompt: str,
        output_type: type[Any],
        options: CallOptions | None = None,
    ) -> AsyncIterator[GateEvent]:
        kind, response = self._respond(prompt, output_type)
        self.calls.append(kind)
        self.prompts.append(prompt)
        self.options.append(options)

        for text in self.partial_text:
            yield PartialText(text=text)
        if isinstance(response, BaseException):
            raise response
        if response is None:
            raise RuntimeError(f"No scripted response for {kind}")
        yield FinalOutput(
            output=response,
            usage=TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15),
            model="scripted",
        )


def _report(summary: str = "Analysis summary", **fields: Any) -> AnalysisReport:
    fields.setdefault("confidence", 70)
    return AnalysisReport(summary=summary, **fields)


def _question(question_id: str = "q1", **fields: Any) -> Question:
    fields.setdefault("prompt", f"Question {question_id}?")
    fields.setdefault("rationale", "Changes the plan.")
    fields.setdefault("selection_mode", SelectionMode.SINGLE)
    fields.setdefault("options", ["A", "B", "C", "D"])
    fields.setdefault("recommended_option", "A")
    return Question(id=question_id, **fields)


def _context(**fields: Any) -> InferredContext:
    fields.setdefault("stack", "Python 3.12, FastAPI")
    fields.setdefault("documentation", "README only")
    fields.setdefault("scope", "Billing module")
    return InferredContext(**fields)


def _synthesis(question_count: int = 3, **fields: Any) -> SynthesisDraft:
    fields.setdefault("direction_summary", "Build team billing on the existing API.")
    fields.setdefault("inferred_context", _context())
    fields.setdefault("questions", [_question(f"q{i}") for i in range(1, question_count + 1)])
    fields.setdefault("draft_specification", "Draft spec text.")
    fields.setdefault("readiness_score", 55)
    return SynthesisDraft(**fields)


def _plan(*job_ids: str, profile_job: str | None = None) -> JobPlanDraft:
    return JobPlanDraft(
        rationale="Cover goal and risk.",
        jobs=[
            SpecialistJob(
                id=job_id,
                title=f"{job_id} title",
                objective=f"Investigate {job_id}",
                produces_profile_artifact=job_id == profile_job,
            )
            for job_id in job_ids
        ],
    )


def _profile(**fields: Any) -> ProfileArtifact:
    fields.setdefault("summary", "Python service with PostgreSQL")
    fields.setdefault("stack_hints", ["python", "postgresql"])
    fields.setdefault("signals", ["pyproject.toml"])
    fields.setdefault("confidence", 80)
    return ProfileArtifact(**fields)


@pytest.fixture
def make_report() -> Callable[..., AnalysisReport]:
    return _report


@pytest.fixture
def make_question() -> Callable[..., Question]:
    return _question


@pytest.fixture
def make_context() -> Callable[..., InferredContext]:
    return _context


@pytest.fixture
def make_synthesis() -> Callable[..., SynthesisDraft]:
    return _synthesis


@pytest.fixture
def make_plan() -> Callable[..., JobPlanDraft]:
    return _plan


@pytest.fixture
def make_profile() -> Callable[..., ProfileArtifact]:
    return _profile


@pytest.fixture
def make_gate() -> type[ScriptedGate]:
    return ScriptedGate


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root
