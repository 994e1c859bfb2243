"""Parallel analysis executor.

Runs every planned job concurrently in one TaskGroup. Each job retries
sequentially up to `max_attempts`; a job never raises, it resolves to an
AnalysisOutcome holding either a report or a JobFailure. Outcomes come back
in planning order. Only a round where every job failed is fatal.
"""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from scout.discovery.config import DiscoveryConfig
from scout.discovery.errors import AllAnalysesFailedError
from scout.discovery.models import (
    AnalysisOutcome,
    AnalysisReport,
    EventType,
    JobFailure,
    ProgressEvent,
    SpecialistJob,
)
from scout.discovery.prompts import build_specialist_prompt
from scout.discovery.streaming import Emit, error_event, log_only, run_call, status_event
from scout.providers.base import CallGate, CallOptions
from scout.types import TokenUsage

logger = logging.getLogger(__name__)


class ParallelExecutor:
    """Fans a job list out over the call gate and collects one outcome per job."""

    def __init__(
        self,
        gate: CallGate,
        config: DiscoveryConfig | None = None,
        model: str | None = None,
    ) -> None:
        self._gate = gate
        self._config = config or DiscoveryConfig()
        self._model = model

    async def run(
        self,
        jobs: Sequence[SpecialistJob],
        discovery_context: str,
        project_path: str = "",
        emit: Emit = log_only,
    ) -> list[AnalysisOutcome]:
        """Run all jobs concurrently.

        Args:
            jobs: Finalized job list
            discovery_context: Round context shared by every job
            project_path: Directory the analyses may inspect
            emit: Progress emitter

        Returns:
            One AnalysisOutcome per job, in the order of `jobs`

        Raises:
            ValueError: If `jobs` is empty
            AllAnalysesFailedError: If no job produced a report
        """
        if not jobs:
            raise ValueError("At least one analysis job is required")

        emit(status_event(f"Launching {len(jobs)} discovery analyses in parallel..."))
        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(self.run_job(job, discovery_context, project_path, emit))
                for job in jobs
            ]
        outcomes = [task.result() for task in tasks]

        failures = [o.failure for o in outcomes if o.failure is not None]
        succeeded = len(outcomes) - len(failures)
        if succeeded == 0:
            logger.error("All %d discovery analyses failed", len(outcomes))
            raise AllAnalysesFailedError(failures)

        if failures:
            logger.warning(
                "Analyses finished with partial failures: %d succeeded, %d failed (%s)",
                succeeded,
                len(failures),
                ", ".join(f.job_id for f in failures),
            )
            emit(
                error_event(
                    f"Discovery analyses finished with partial failures: {succeeded} succeeded, "
                    f"{len(failures)} failed. Synthesizing with available analyses."
                )
            )
        else:
            emit(status_event(f"All discovery analyses completed ({succeeded}/{len(outcomes)})."))
        return outcomes

    async def run_job(
        self,
        job: SpecialistJob,
        discovery_context: str,
        project_path: str = "",
        emit: Emit = log_only,
    ) -> AnalysisOutcome:
        """Run one job with sequential retries. Never raises except on cancellation."""
        config = self._config
        prompt = build_specialist_prompt(job, discovery_context)
        options = CallOptions(
            model=self._model,
            working_directory=Path(project_path) if project_path else None,
            max_steps=config.analysis_max_steps,
        )
        emit(ProgressEvent(type=EventType.AGENT, message=f"Started: {job.title}", agent=job.id))

        usage = TokenUsage(requests=0)
        last_error = "Unknown analysis failure."
        for attempt in range(1, config.max_attempts + 1):
            try:
                async with asyncio.timeout(config.job_timeout_seconds):
                    report, call_usage = await run_call(
                        self._gate,
                        prompt,
                        AnalysisReport,
                        options,
                        emit,
                        prefix=job.id,
                        agent=job.id,
                        chunk_chars=config.log_chunk_chars,
                    )
            except TimeoutError:
                last_error = f"Timed out after {config.job_timeout_seconds:g}s."
            except Exception as exc:
                last_error = str(exc) or type(exc).__name__
            else:
                usage = usage + call_usage
                emit(
                    ProgressEvent(
                        type=EventType.AGENT,
                        message=f"Completed: {job.title} (confidence {report.confidence})",
                        agent=job.id,
                    )
                )
                return AnalysisOutcome(job=job, report=report, attempts=attempt, usage=usage)

            logger.warning(
                "Analysis %s attempt %d/%d failed: %s",
                job.id,
                attempt,
                config.max_attempts,
                last_error,
            )
            emit(
                error_event(
                    f"Analysis attempt failed: {job.id} ({attempt}/{config.max_attempts})",
                    details=last_error,
                    agent=job.id,
                )
            )

        failure = JobFailure(job_id=job.id, attempts=config.max_attempts, error=last_error)
        return AnalysisOutcome(job=job, failure=failure, attempts=config.max_attempts, usage=usage)
