"""Job planner: decide which analyses run this round.

One planning meta-call proposes the jobs; deterministic post-processing then
enforces unique ids, the job-count bounds and the single profile-producing
job. A failed meta-call falls back to a static plan and never raises.
"""

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from scout.discovery.config import DiscoveryConfig
from scout.discovery.fallbacks import FALLBACK_JOBS, STACK_ANALYSIS_JOB
from scout.discovery.models import (
    EventType,
    JobPlan,
    JobPlanDraft,
    ProfileArtifact,
    ProgressEvent,
    SpecialistJob,
)
from scout.discovery.prompts import build_planner_prompt
from scout.discovery.streaming import Emit, error_event, log_only, run_call, status_event
from scout.providers.base import CallGate, CallOptions

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def sanitize_job_id(raw: str, ordinal: int, limit: int = 48) -> str:
    """Reduce a proposed id to lowercase kebab-case within `limit` characters.

    Falls back to `analysis-agent-<ordinal>` when nothing usable remains.
    """
    slug = _NON_ALNUM.sub("-", raw.strip().lower()).strip("-")
    return (slug or f"analysis-agent-{ordinal}")[:limit]


def allocate_job_id(raw: str, ordinal: int, used: set[str], limit: int = 48) -> str:
    """Sanitize `raw` and make it unique against `used` (which is updated).

    Collisions get `-2`, `-3`, ... with the base trimmed so the result stays
    within `limit`.
    """
    base = sanitize_job_id(raw, ordinal, limit)
    candidate = base
    suffix = 2
    while candidate in used:
        tail = f"-{suffix}"
        candidate = base[: max(1, limit - len(tail))] + tail
        suffix += 1
    used.add(candidate)
    return candidate


def _with_id(job: SpecialistJob, job_id: str, profile: bool) -> SpecialistJob:
    return job.model_copy(update={"id": job_id, "produces_profile_artifact": profile})


def _stack_job(ordinal: int, used: set[str], limit: int) -> SpecialistJob:
    job_id = allocate_job_id(STACK_ANALYSIS_JOB.id, ordinal, used, limit)
    return _with_id(STACK_ANALYSIS_JOB, job_id, True)


def _place_stack_job(jobs: list[SpecialistJob], stack_job: SpecialistJob, max_jobs: int) -> None:
    if len(jobs) >= max_jobs:
        jobs[-1] = stack_job
    else:
        jobs.append(stack_job)


def _pad_to_minimum(jobs: list[SpecialistJob], used: set[str], config: DiscoveryConfig) -> None:
    limit = config.max_job_id_length
    target = min(config.min_jobs, config.max_jobs)
    for fallback in FALLBACK_JOBS:
        if len(jobs) >= target:
            return
        if fallback.id in used:
            continue
        job_id = allocate_job_id(fallback.id, len(jobs) + 1, used, limit)
        jobs.append(_with_id(fallback, job_id, False))
    generic = FALLBACK_JOBS[-1]
    while len(jobs) < target:
        job_id = allocate_job_id(generic.id, len(jobs) + 1, used, limit)
        jobs.append(_with_id(generic, job_id, False))


def finalize_jobs(
    proposed: Iterable[SpecialistJob],
    refresh_profile: bool,
    config: DiscoveryConfig,
) -> list[SpecialistJob]:
    """Apply the planning invariants to the meta-call's proposed jobs.

    Args:
        proposed: Jobs as returned by the planning call
        refresh_profile: Whether this round must refresh the profile artifact
        config: Job-count and id-length bounds

    Returns:
        Between min_jobs and max_jobs jobs with unique ids; exactly one
        profile-producing job when refresh_profile, otherwise none
    """
    limit = config.max_job_id_length
    used: set[str] = set()
    jobs = [
        SpecialistJob(
            id=allocate_job_id(job.id, index, used, limit),
            title=job.title.strip(),
            objective=job.objective.strip(),
            produces_profile_artifact=job.produces_profile_artifact,
        )
        for index, job in enumerate(proposed, start=1)
    ]

    if not refresh_profile:
        jobs = [_with_id(job, job.id, False) for job in jobs]
    else:
        assigned = False
        flagged: list[SpecialistJob] = []
        for job in jobs:
            keep = job.produces_profile_artifact and not assigned
            assigned = assigned or keep
            flagged.append(_with_id(job, job.id, keep))
        jobs = flagged
        if not assigned:
            _place_stack_job(jobs, _stack_job(len(jobs) + 1, used, limit), config.max_jobs)

    _pad_to_minimum(jobs, used, config)
    jobs = jobs[: config.max_jobs]

    if refresh_profile and not any(job.produces_profile_artifact for job in jobs):
        trimmed_ids = {job.id for job in jobs}
        _place_stack_job(jobs, _stack_job(len(jobs) + 1, trimmed_ids, limit), config.max_jobs)

    return jobs


def build_fallback_plan(refresh_profile: bool, config: DiscoveryConfig) -> JobPlan:
    """Static plan: the stack job when a refresh is needed, plus generic analyses."""
    limit = config.max_job_id_length
    used: set[str] = set()
    jobs: list[SpecialistJob] = []
    if refresh_profile:
        jobs.append(_stack_job(1, used, limit))
    for fallback in FALLBACK_JOBS[:2]:
        if len(jobs) >= config.max_jobs:
            break
        job_id = allocate_job_id(fallback.id, len(jobs) + 1, used, limit)
        jobs.append(_with_id(fallback, job_id, False))
    _pad_to_minimum(jobs, used, config)
    return JobPlan(jobs=jobs, rationale="Static fallback plan.", used_fallback=True)


class JobPlanner:
    """Plans the analysis jobs for a round through one meta-call."""

    def __init__(
        self,
        gate: CallGate,
        config: DiscoveryConfig | None = None,
        model: str | None = None,
    ) -> None:
        self._gate = gate
        self._config = config or DiscoveryConfig()
        self._model = model

    async def plan(
        self,
        discovery_context: str,
        project_path: str,
        profile: ProfileArtifact | None,
        refresh_profile: bool,
        emit: Emit = log_only,
    ) -> JobPlan:
        """Plan the round's jobs.

        Never raises for planning failures; falls back to the static plan.

        Args:
            discovery_context: Round context shared by every call
            project_path: Project directory, or "" for a new project
            profile: Cached profile artifact, if any
            refresh_profile: Whether one job must refresh the profile
            emit: Progress emitter

        Returns:
            Finalized JobPlan
        """
        config = self._config
        emit(status_event("Planning discovery analyses for this round..."))
        prompt = build_planner_prompt(
            discovery_context,
            project_path,
            profile,
            refresh_profile,
            config.min_jobs,
            config.max_jobs,
        )
        options = CallOptions(
            model=self._model,
            working_directory=Path(project_path) if project_path else None,
            max_steps=config.planner_max_steps,
        )

        try:
            draft, usage = await run_call(
                self._gate,
                prompt,
                JobPlanDraft,
                options,
                emit,
                prefix="planner",
                chunk_chars=config.log_chunk_chars,
            )
        except Exception as exc:
            logger.warning("Job planning failed, using static fallback plan: %s", exc)
            emit(
                error_event("Analysis planning failed; using fallback analyses.", details=str(exc))
            )
            return build_fallback_plan(refresh_profile, config)

        jobs = finalize_jobs(draft.jobs, refresh_profile, config)
        rationale = draft.rationale.strip()
        logger.info("Planned %d analyses: %s", len(jobs), ", ".join(j.id for j in jobs))
        emit(status_event(f"Planner selected {len(jobs)} analyses."))
        if rationale:
            emit(ProgressEvent(type=EventType.LOG, message=f"[planner] {rationale}"))
        return JobPlan(jobs=jobs, rationale=rationale, usage=usage)
