"""DiscoveryOrchestrator: one discovery round end to end.

detect changes -> read profile -> plan -> execute -> write profile ->
synthesize -> advance the session. Rounds with a cached profile, no change
signal and a previous result skip planning and execution and carry the
previous context forward into the merge call.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from scout.discovery.config import DiscoveryConfig
from scout.discovery.errors import SessionInactiveError
from scout.discovery.executor import ParallelExecutor
from scout.discovery.fallbacks import STACK_ANALYSIS_JOB
from scout.discovery.heuristics import detect_changes
from scout.discovery.models import (
    ChangeSignals,
    DiscoveryAnswer,
    DiscoverySession,
    EventLevel,
    EventType,
    InterviewResult,
    ProfileArtifact,
    ProgressEvent,
)
from scout.discovery.planner import JobPlanner
from scout.discovery.profile_cache import FileProfileStore, ProfileStore
from scout.discovery.prompts import build_discovery_context, build_profile_refresh_context
from scout.discovery.streaming import Emit, ProgressChannel, RoundRun, log_only, status_event
from scout.discovery.synthesizer import (
    Synthesizer,
    build_analysis_block,
    build_carry_forward_block,
)
from scout.providers.base import CallGate
from scout.providers.config import ModelRoster
from scout.types import TokenUsage

logger = logging.getLogger(__name__)


def merge_context(existing: str, addition: str | None) -> str:
    """Append new free-text context to what the session already holds."""
    if addition is None or not addition.strip():
        return existing
    if not existing.strip():
        return addition.strip()
    return f"{existing.strip()}\n\n{addition.strip()}"


class DiscoveryOrchestrator:
    """Coordinates planner, executor and synthesizer for discovery rounds.

    Example:
        orchestrator = DiscoveryOrchestrator(PydanticAIGate(model))
        session = orchestrator.start_session("Add team billing", project_path=root)
        result = await orchestrator.run_round(session)
    """

    def __init__(
        self,
        gate: CallGate,
        profile_store: ProfileStore | None = None,
        config: DiscoveryConfig | None = None,
        roster: ModelRoster | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            gate: Analysis call gate used by every call
            profile_store: Profile cache (defaults to <project>/.scout/profile.json)
            config: Discovery tunables
            roster: Per-role models; the gate's default model is used when omitted
        """
        self.config = config or DiscoveryConfig()
        self.profile_store = profile_store or FileProfileStore(
            self.config.profile_dir, self.config.profile_file
        )
        self.roster = roster
        self.planner = JobPlanner(
            gate, self.config, roster.planning.model_string if roster else None
        )
        self.executor = ParallelExecutor(
            gate, self.config, roster.analysis.model_string if roster else None
        )
        self.synthesizer = Synthesizer(
            gate, self.config, roster.synthesis.model_string if roster else None
        )
        self.last_usage = TokenUsage(requests=0)

    @staticmethod
    def start_session(
        goal: str,
        additional_context: str = "",
        project_path: Path | str | None = None,
    ) -> DiscoverySession:
        """Create a new session. Nothing runs until `run_round` is called.

        Raises:
            ValueError: If goal is blank
        """
        if not goal.strip():
            raise ValueError("A discovery goal is required")
        path = str(Path(project_path).resolve()) if project_path else ""
        return DiscoverySession(
            goal=goal.strip(), additional_context=additional_context.strip(), project_path=path
        )

    def _read_profile(self, project_path: str) -> ProfileArtifact | None:
        if not project_path:
            return None
        try:
            return self.profile_store.read(Path(project_path))
        except Exception as exc:
            logger.warning("Profile cache read failed for %s: %s", project_path, exc)
            return None

    def _write_profile(self, project_path: str, artifact: ProfileArtifact, emit: Emit) -> None:
        if not project_path:
            return
        try:
            self.profile_store.write(Path(project_path), artifact)
        except Exception as exc:
            logger.warning("Profile cache write failed for %s: %s", project_path, exc)
            return
        emit(status_event("Project profile cache updated."))

    def stream_round(
        self,
        session: DiscoverySession,
        answers: Sequence[DiscoveryAnswer] = (),
        additional_context: str | None = None,
    ) -> RoundRun[InterviewResult]:
        """Start a round in its own task and return a handle to follow it.

        Must be called from a running event loop.
        """
        return RoundRun(
            lambda channel: self.run_round(session, answers, additional_context, channel)
        )

    async def run_round(
        self,
        session: DiscoverySession,
        answers: Sequence[DiscoveryAnswer] = (),
        additional_context: str | None = None,
        channel: ProgressChannel | None = None,
    ) -> InterviewResult:
        """Run one discovery round and advance the session on success.

        Args:
            session: Session to advance (mutated only if the round succeeds)
            answers: Answers to the previous round's questions
            additional_context: New free-text context for this round
            channel: Optional progress channel

        Returns:
            The round's InterviewResult

        Raises:
            SessionInactiveError: If the session was completed or abandoned
            AllAnalysesFailedError: If every analysis job failed
            SynthesisError: If the merge call produced no valid result
        """
        if not session.is_active:
            raise SessionInactiveError(f"Session {session.id} is {session.status}")

        emit = channel.emit if channel is not None else log_only
        try:
            result, context = await self._run_round(
                session, list(answers), additional_context, emit
            )
        except Exception as exc:
            logger.error("Discovery round for session %s failed: %s", session.id, exc)
            emit(ProgressEvent(type=EventType.FAILED, level=EventLevel.ERROR, message=str(exc)))
            raise

        session.record_round(list(answers), result, context)
        logger.info(
            "Session %s advanced to round %d (readiness %d)",
            session.id,
            session.round,
            session.readiness_score,
        )
        emit(
            ProgressEvent(
                type=EventType.COMPLETED,
                message=f"Round {session.round} complete (readiness {result.readiness_score}).",
            )
        )
        return result

    async def _run_round(
        self,
        session: DiscoverySession,
        answers: list[DiscoveryAnswer],
        additional_context: str | None,
        emit: Emit,
    ) -> tuple[InterviewResult, str]:
        project_path = session.project_path
        context = merge_context(session.additional_context, additional_context)

        # The first round looks at the whole context; later rounds only at what is new.
        if session.latest_result is None:
            signals = detect_changes(context, answers, self.config.keyword_window)
        else:
            signals = detect_changes(additional_context or "", answers, self.config.keyword_window)

        profile = self._read_profile(project_path)
        refresh_profile = profile is None or signals.stack_changed
        previous = session.latest_result
        carry_forward = previous is not None and not refresh_profile and not signals.fired

        self._announce(signals, profile, refresh_profile, carry_forward, emit)
        discovery_context = build_discovery_context(session, answers, context)
        usage = TokenUsage(requests=0)

        if previous is not None and carry_forward:
            result, synth_usage = await self.synthesizer.synthesize(
                discovery_context,
                build_carry_forward_block(previous, profile),
                project_path=project_path,
                pinned_context=previous.inferred_context,
                emit=emit,
            )
            self.last_usage = usage + synth_usage
            return result, context

        plan = await self.planner.plan(
            discovery_context, project_path, profile, refresh_profile, emit
        )
        outcomes = await self.executor.run(plan.jobs, discovery_context, project_path, emit)
        usage = usage + plan.usage
        for outcome in outcomes:
            usage = usage + outcome.usage

        refreshed = next(
            (o.report for o in outcomes if o.succeeded and o.job.produces_profile_artifact),
            None,
        )
        if refreshed is not None:
            self._write_profile(project_path, ProfileArtifact.from_report(refreshed), emit)

        failures = [o.failure for o in outcomes if o.failure is not None]
        result, synth_usage = await self.synthesizer.synthesize(
            discovery_context,
            build_analysis_block(outcomes, None if refreshed is not None else profile),
            failures=failures,
            project_path=project_path,
            emit=emit,
        )
        self.last_usage = usage + synth_usage
        return result, context

    @staticmethod
    def _announce(
        signals: ChangeSignals,
        profile: ProfileArtifact | None,
        refresh_profile: bool,
        carry_forward: bool,
        emit: Emit,
    ) -> None:
        if carry_forward:
            emit(
                status_event(
                    "No major context change detected. Reusing prior discovery context "
                    "and skipping analysis refresh."
                )
            )
        elif signals.stack_changed:
            emit(status_event("Detected stack-change signal. Re-running stack analysis."))
        elif signals.context_changed:
            emit(
                status_event(
                    "Detected significant context change. Re-running full discovery analyses."
                )
            )
        elif profile is None:
            emit(status_event("No profile cache found; running stack analysis."))

        if profile is not None and not refresh_profile:
            emit(
                status_event(
                    f"Using cached project profile (updated {profile.updated_at:%Y-%m-%d %H:%M})."
                )
            )

    async def refresh_profile(
        self,
        project_path: Path | str,
        additional_context: str = "",
        channel: ProgressChannel | None = None,
    ) -> ProfileArtifact:
        """Re-run the stack analysis alone and overwrite the cached profile.

        Args:
            project_path: Project directory to analyze
            additional_context: Optional hints for the analysis
            channel: Optional progress channel

        Returns:
            The newly written ProfileArtifact

        Raises:
            ValueError: If project_path is empty
            AllAnalysesFailedError: If the stack analysis failed
        """
        if not str(project_path).strip():
            raise ValueError("A project path is required to refresh the profile")

        emit = channel.emit if channel is not None else log_only
        path = Path(project_path).resolve()
        context = build_profile_refresh_context(path, additional_context)
        try:
            outcomes = await self.executor.run([STACK_ANALYSIS_JOB], context, str(path), emit)
        except Exception as exc:
            emit(ProgressEvent(type=EventType.FAILED, level=EventLevel.ERROR, message=str(exc)))
            raise

        report = next(o.report for o in outcomes if o.report is not None)
        artifact = ProfileArtifact.from_report(report)
        self._write_profile(str(path), artifact, emit)
        self.last_usage = outcomes[0].usage
        emit(ProgressEvent(type=EventType.COMPLETED, message="Project profile refreshed."))
        return artifact
