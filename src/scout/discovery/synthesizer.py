"""Synthesizer: merge analysis outputs into one InterviewResult.

Builds the analysis block for the merge call (fresh reports or the carried
context of the previous round, plus the cached profile), runs the merge call,
and enforces the fixed question batch on whatever comes back.
"""

import json
import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from scout.discovery.config import DiscoveryConfig
from scout.discovery.errors import SynthesisError
from scout.discovery.fallbacks import FALLBACK_QUESTIONS
from scout.discovery.models import (
    QUESTION_BATCH_SIZE,
    AnalysisOutcome,
    AnalysisReport,
    EventType,
    InferredContext,
    InterviewResult,
    JobFailure,
    ProfileArtifact,
    ProgressEvent,
    Question,
    SpecialistJob,
    SynthesisDraft,
)
from scout.discovery.prompts import build_synthesis_prompt
from scout.discovery.streaming import Emit, log_only, run_call, status_event
from scout.providers.base import CallGate, CallOptions
from scout.types import TokenUsage

logger = logging.getLogger(__name__)


def _block(heading: str, payload: dict[str, Any]) -> str:
    return f"### {heading}\n{json.dumps(payload, indent=2)}"


def format_report(job: SpecialistJob, report: AnalysisReport) -> str:
    payload = {
        "objective": job.objective,
        "producesProfileArtifact": job.produces_profile_artifact,
        **report.model_dump(mode="json", by_alias=True),
    }
    return _block(f"{job.id} ({job.title})", payload)


def format_profile(profile: ProfileArtifact) -> str:
    """The cached profile in the same shape analyses produce."""
    return _block("profile-cache", profile.as_report().model_dump(mode="json", by_alias=True))


def format_carried_context(previous: InterviewResult) -> str:
    """Repackage the previous round's result as one synthetic analysis."""
    context = previous.inferred_context
    payload = {
        "objective": "Carry forward prior discovery context",
        "producesProfileArtifact": False,
        "summary": previous.direction_summary,
        "findings": [],
        "signals": list(context.signals),
        "painPoints": list(context.pain_points),
        "constraints": list(context.constraints),
        "scopeHints": [context.scope],
        "stackHints": [context.stack],
        "documentationHints": [context.documentation],
        "openQuestions": list(previous.missing_critical_info),
        "confidence": previous.readiness_score,
    }
    return _block("carried-context", payload)


def format_failures(failures: Sequence[JobFailure]) -> str:
    if not failures:
        return "none"
    return "\n".join(f"- {f.job_id} (attempts: {f.attempts}): {f.error}" for f in failures)


def build_analysis_block(
    outcomes: Sequence[AnalysisOutcome],
    profile: ProfileArtifact | None,
) -> str:
    """Format successful reports, adding the cached profile when no job refreshed it."""
    blocks = [format_report(o.job, o.report) for o in outcomes if o.report is not None]
    refreshed = any(o.succeeded and o.job.produces_profile_artifact for o in outcomes)
    if profile is not None and not refreshed:
        blocks.append(format_profile(profile))
    return "\n\n".join(blocks)


def build_carry_forward_block(previous: InterviewResult, profile: ProfileArtifact | None) -> str:
    blocks = [format_carried_context(previous)]
    if profile is not None:
        blocks.append(format_profile(profile))
    return "\n\n".join(blocks)


def enforce_question_batch(questions: Sequence[Question], emit: Emit = log_only) -> list[Question]:
    """Return exactly QUESTION_BATCH_SIZE questions with distinct ids.

    Repeated ids keep their first question. Extra questions are dropped in
    order. Short batches are padded with the fallback questions in priority
    order, skipping ids already present.
    """
    batch: list[Question] = []
    existing: set[str] = set()
    for question in questions:
        if question.id in existing:
            message = f"Merge repeated question id {question.id!r}; keeping the first."
            logger.info(message)
            emit(ProgressEvent(type=EventType.LOG, message=f"[synth] {message}"))
            continue
        batch.append(question)
        existing.add(question.id)

    if len(batch) > QUESTION_BATCH_SIZE:
        message = f"Merge returned {len(batch)} questions; trimming to {QUESTION_BATCH_SIZE}."
        logger.info(message)
        emit(ProgressEvent(type=EventType.LOG, message=f"[synth] {message}"))
        return batch[:QUESTION_BATCH_SIZE]
    if len(batch) == QUESTION_BATCH_SIZE:
        return batch

    message = (
        f"Merge returned only {len(batch)} question(s); "
        f"padding to {QUESTION_BATCH_SIZE} with generic clarifiers."
    )
    logger.info(message)
    emit(ProgressEvent(type=EventType.LOG, message=f"[synth] {message}"))
    for fallback in FALLBACK_QUESTIONS:
        if len(batch) >= QUESTION_BATCH_SIZE:
            break
        if fallback.id not in existing:
            batch.append(fallback)
            existing.add(fallback.id)
    return batch


def mentions_job(entry: str, job_id: str) -> bool:
    """True when `job_id` appears in `entry` as a whole kebab-case token."""
    return re.search(rf"(?<![\w-]){re.escape(job_id)}(?![\w-])", entry) is not None


def note_failures(missing: Sequence[str], failures: Sequence[JobFailure]) -> list[str]:
    """Add a note for each failed job the merge output does not already mention."""
    notes = list(missing)
    for failure in failures:
        if not any(mentions_job(entry, failure.job_id) for entry in notes):
            notes.append(failure.describe())
    return notes


class Synthesizer:
    """Runs the merge call and post-processes it into an InterviewResult."""

    def __init__(
        self,
        gate: CallGate,
        config: DiscoveryConfig | None = None,
        model: str | None = None,
    ) -> None:
        self._gate = gate
        self._config = config or DiscoveryConfig()
        self._model = model

    async def synthesize(
        self,
        discovery_context: str,
        analysis_block: str,
        failures: Sequence[JobFailure] = (),
        project_path: str = "",
        pinned_context: InferredContext | None = None,
        emit: Emit = log_only,
    ) -> tuple[InterviewResult, TokenUsage]:
        """Merge analyses into the round's InterviewResult.

        Args:
            discovery_context: Round context shared by every call
            analysis_block: Formatted analyses (fresh or carried forward)
            failures: Jobs that failed after all attempts
            project_path: Directory the merge call may inspect
            pinned_context: Inferred context to keep instead of the merge output's
            emit: Progress emitter

        Returns:
            Tuple of (InterviewResult with exactly three questions, usage)

        Raises:
            SynthesisError: If the merge call fails or returns invalid output
        """
        config = self._config
        emit(status_event("Synthesizing interview result..."))
        prompt = build_synthesis_prompt(
            discovery_context, analysis_block, format_failures(failures)
        )
        options = CallOptions(
            model=self._model,
            working_directory=Path(project_path) if project_path else None,
            max_steps=config.synthesis_max_steps,
        )

        try:
            draft, usage = await run_call(
                self._gate,
                prompt,
                SynthesisDraft,
                options,
                emit,
                prefix="synth",
                chunk_chars=config.log_chunk_chars,
            )
        except Exception as exc:
            logger.error("Synthesis failed: %s", exc)
            raise SynthesisError(f"Synthesis produced no valid interview result: {exc}") from exc

        result = InterviewResult(
            direction_summary=draft.direction_summary,
            inferred_context=pinned_context or draft.inferred_context,
            questions=enforce_question_batch(draft.questions, emit),
            draft_specification=draft.draft_specification,
            readiness_score=draft.readiness_score,
            missing_critical_info=note_failures(draft.missing_critical_info, failures),
        )
        logger.info("Synthesis complete (readiness %d)", result.readiness_score)
        return result, usage
