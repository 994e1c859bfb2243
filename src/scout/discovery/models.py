"""Discovery data models.

These are the shapes that cross every seam of a discovery round: planner
output, analysis reports, the cached profile artifact, the interview result
returned to callers, and the session record. Models that travel to or from
an analysis call serialize with camelCase aliases; Python code uses the
snake_case field names.
"""

from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from scout.types import TokenUsage

QUESTION_BATCH_SIZE = 3


def normalize_percent(value: object) -> int:
    """Normalize a 0-1 or 0-100 score into an integer percentage in [0, 100].

    Values <= 1 are treated as fractions. Non-numeric or non-finite input
    maps to 0.
    """
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    if number <= 1:
        number *= 100
    return max(0, min(100, round(number)))


def clamp_percent(value: object) -> int:
    """Clamp a 0-100 score into an integer in [0, 100] without rescaling."""
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, min(100, round(number)))


class WireModel(BaseModel):
    """Base for models exchanged with analysis calls and callers (camelCase JSON)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SelectionMode(StrEnum):
    """How many options a question accepts."""

    SINGLE = "single"
    MULTI = "multi"


class EventType(StrEnum):
    """Progress event kinds.

    STATUS: round milestones. LOG: streamed analysis text. AGENT: per-job
    lifecycle. COMPLETED / FAILED: terminal round events.
    """

    STATUS = "status"
    LOG = "log"
    AGENT = "agent"
    COMPLETED = "completed"
    FAILED = "failed"


class EventLevel(StrEnum):
    INFO = "info"
    ERROR = "error"


class SessionStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class ProgressEvent(WireModel):
    """One progress update streamed to the caller while a round runs."""

    type: EventType
    level: EventLevel = EventLevel.INFO
    message: str
    agent: str | None = None
    details: str | None = None

    model_config = ConfigDict(frozen=True)


class DiscoveryAnswer(WireModel):
    """A user's answer to one question."""

    question_id: str
    answer: str

    model_config = ConfigDict(frozen=True)


class ChangeSignals(BaseModel):
    """Output of the heuristic change detector."""

    stack_changed: bool = False
    context_changed: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def fired(self) -> bool:
        return self.stack_changed or self.context_changed


class SpecialistJob(WireModel):
    """One unit of parallel analysis work planned for a round.

    Carries data only; the executor interprets every job the same way.
    """

    id: str = Field(description="Short kebab-case id, unique within the round")
    title: str = Field(description="Human-readable job title")
    objective: str = Field(description="Concrete, evidence-oriented objective")
    produces_profile_artifact: bool = Field(
        default=False,
        description="True for the single job allowed to refresh the cached project profile",
    )

    model_config = ConfigDict(frozen=True)


class JobPlanDraft(WireModel):
    """Raw output of the planning meta-call, before post-processing."""

    rationale: str = Field(description="Why this set of jobs covers the round")
    jobs: list[SpecialistJob] = Field(min_length=1, description="Planned analysis jobs")


class JobPlan(BaseModel):
    """Finalized job list for one round."""

    jobs: list[SpecialistJob]
    rationale: str = ""
    used_fallback: bool = False
    usage: TokenUsage = Field(default_factory=lambda: TokenUsage(requests=0))

    model_config = ConfigDict(frozen=True)

    @property
    def profile_job(self) -> SpecialistJob | None:
        """The job responsible for refreshing the profile artifact, if any."""
        return next((j for j in self.jobs if j.produces_profile_artifact), None)


class AnalysisReport(WireModel):
    """Validated output of one specialist analysis."""

    summary: str = Field(min_length=1, description="What the analysis concluded")
    findings: list[str] = Field(default_factory=list)
    signals: list[str] = Field(default_factory=list)
    pain_points: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    scope_hints: list[str] = Field(default_factory=list)
    stack_hints: list[str] = Field(default_factory=list)
    documentation_hints: list[str] = Field(default_factory=list)
    open_questions: list[str] = Field(
        default_factory=list,
        description="Unresolved questions that materially affect implementation",
    )
    confidence: int = Field(ge=0, le=100, description="Confidence, 0-100 (0-1 accepted)")

    model_config = ConfigDict(frozen=True)

    @field_validator("confidence", mode="before")
    @classmethod
    def _normalize_confidence(cls, value: object) -> int:
        return normalize_percent(value)


class JobFailure(WireModel):
    """Terminal failure of one job after exhausting its attempts."""

    job_id: str
    attempts: int = Field(ge=1)
    error: str

    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        return f"Analysis '{self.job_id}' failed after {self.attempts} attempt(s): {self.error}"


class AnalysisOutcome(BaseModel):
    """Exactly one per planned job: a report or a failure."""

    job: SpecialistJob
    report: AnalysisReport | None = None
    failure: JobFailure | None = None
    attempts: int = Field(ge=1)
    usage: TokenUsage = Field(default_factory=lambda: TokenUsage(requests=0))

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _exactly_one_result(self) -> AnalysisOutcome:
        if (self.report is None) == (self.failure is None):
            raise ValueError("AnalysisOutcome needs exactly one of report or failure")
        return self

    @property
    def succeeded(self) -> bool:
        return self.report is not None


class ProfileArtifact(WireModel):
    """Cached summary of a project's characteristics, one per project identity.

    Written only by the round's profile-producing job and overwritten
    wholesale on each refresh.
    """

    version: Literal[1] = 1
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    summary: str = Field(min_length=1)
    stack_hints: list[str] = Field(default_factory=list)
    signals: list[str] = Field(default_factory=list)
    confidence: int = Field(ge=0, le=100)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_report(cls, report: AnalysisReport) -> ProfileArtifact:
        return cls(
            summary=report.summary,
            stack_hints=list(report.stack_hints),
            signals=list(report.signals),
            confidence=report.confidence,
        )

    def as_report(self) -> AnalysisReport:
        """Reformat the artifact into the shape analyses produce."""
        return AnalysisReport(
            summary=self.summary,
            signals=list(self.signals),
            stack_hints=list(self.stack_hints),
            confidence=self.confidence,
        )


class InferredContext(WireModel):
    """Project context inferred from analyses."""

    stack: str = Field(description="Technology stack summary")
    documentation: str = Field(description="Documentation state and sources")
    scope: str = Field(description="Scope of the requested work")
    pain_points: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    signals: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class Question(WireModel):
    """A multiple-choice clarification question."""

    id: str = Field(min_length=1)
    prompt: str = Field(min_length=1, description="The question shown to the user")
    rationale: str = Field(description="Why answering this changes the plan")
    selection_mode: SelectionMode = Field(description="single or multi selection")
    options: list[str] = Field(min_length=4, max_length=5, description="4-5 distinct choices")
    recommended_option: str = Field(description="Must equal one of options exactly")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _recommended_is_an_option(self) -> Question:
        if self.recommended_option not in self.options:
            raise ValueError(
                f"recommendedOption {self.recommended_option!r} is not one of the options "
                f"for question {self.id!r}"
            )
        return self


class SynthesisDraft(WireModel):
    """Raw output of the merge call; question count is not yet enforced."""

    direction_summary: str = Field(min_length=1)
    inferred_context: InferredContext
    questions: list[Question] = Field(default_factory=list)
    draft_specification: str = Field(description="Execution-ready draft specification text")
    readiness_score: int = Field(ge=0, le=100)
    missing_critical_info: list[str] = Field(default_factory=list)

    @field_validator("readiness_score", mode="before")
    @classmethod
    def _clamp_readiness(cls, value: object) -> int:
        return clamp_percent(value)


class InterviewResult(SynthesisDraft):
    """The round's externally visible output. Always exactly three questions."""

    questions: list[Question] = Field(
        min_length=QUESTION_BATCH_SIZE, max_length=QUESTION_BATCH_SIZE
    )

    model_config = ConfigDict(frozen=True)


class DiscoverySession(WireModel):
    """Per-session state, advanced exactly once per successful round."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    goal: str = Field(min_length=1, description="The original one-sentence product goal")
    additional_context: str = ""
    project_path: str = ""
    answer_history: list[DiscoveryAnswer] = Field(default_factory=list)
    round: int = Field(default=0, ge=0)
    readiness_score: int = Field(default=0, ge=0, le=100)
    latest_result: InterviewResult | None = None
    status: SessionStatus = SessionStatus.ACTIVE
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def record_round(
        self,
        answers: list[DiscoveryAnswer],
        result: InterviewResult,
        additional_context: str | None = None,
    ) -> None:
        """Advance the session after a successful round."""
        self.answer_history = [*self.answer_history, *answers]
        if additional_context is not None:
            self.additional_context = additional_context
        self.round += 1
        self.readiness_score = result.readiness_score
        self.latest_result = result
        self.updated_at = datetime.now(UTC)
