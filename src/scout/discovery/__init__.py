"""Scout discovery: multi-agent product discovery rounds.

A round turns a one-sentence goal (plus answers from earlier rounds) into an
InterviewResult: exactly three clarifying questions, inferred project
context, a draft specification and a readiness score. A planner decides which
analyses run, the executor runs them concurrently with bounded retries, and
the synthesizer merges whatever succeeded.

Public API:
    Orchestration: DiscoveryOrchestrator, RoundRun, ProgressChannel
    Components: JobPlanner, ParallelExecutor, Synthesizer, detect_changes
    Storage: ProfileStore, FileProfileStore, InMemoryProfileStore, SessionStore
    Models: DiscoverySession, DiscoveryAnswer, InterviewResult, Question,
            InferredContext, SpecialistJob, JobPlan, AnalysisReport,
            AnalysisOutcome, JobFailure, ProfileArtifact, ProgressEvent,
            ChangeSignals
    Errors: DiscoveryError, AllAnalysesFailedError, SynthesisError,
            StructuredOutputError, SessionNotFoundError, SessionInactiveError
"""

from scout.discovery.config import DiscoveryConfig
from scout.discovery.errors import (
    AllAnalysesFailedError,
    DiscoveryError,
    SessionInactiveError,
    SessionNotFoundError,
    StructuredOutputError,
    SynthesisError,
)
from scout.discovery.executor import ParallelExecutor
from scout.discovery.heuristics import detect_changes
from scout.discovery.models import (
    QUESTION_BATCH_SIZE,
    AnalysisOutcome,
    AnalysisReport,
    ChangeSignals,
    DiscoveryAnswer,
    DiscoverySession,
    EventLevel,
    EventType,
    InferredContext,
    InterviewResult,
    JobFailure,
    JobPlan,
    ProfileArtifact,
    ProgressEvent,
    Question,
    SelectionMode,
    SessionStatus,
    SpecialistJob,
)
from scout.discovery.orchestrator import DiscoveryOrchestrator
from scout.discovery.planner import JobPlanner
from scout.discovery.profile_cache import FileProfileStore, InMemoryProfileStore, ProfileStore
from scout.discovery.session import SessionStore
from scout.discovery.streaming import ProgressChannel, RoundRun
from scout.discovery.synthesizer import Synthesizer

__all__ = [
    "QUESTION_BATCH_SIZE",
    "AllAnalysesFailedError",
    "AnalysisOutcome",
    "AnalysisReport",
    "ChangeSignals",
    "DiscoveryAnswer",
    "DiscoveryConfig",
    "DiscoveryError",
    "DiscoveryOrchestrator",
    "DiscoverySession",
    "EventLevel",
    "EventType",
    "FileProfileStore",
    "InMemoryProfileStore",
    "InferredContext",
    "InterviewResult",
    "JobFailure",
    "JobPlan",
    "JobPlanner",
    "ParallelExecutor",
    "ProfileArtifact",
    "ProfileStore",
    "ProgressChannel",
    "ProgressEvent",
    "Question",
    "RoundRun",
    "SelectionMode",
    "SessionInactiveError",
    "SessionNotFoundError",
    "SessionStatus",
    "SessionStore",
    "SpecialistJob",
    "StructuredOutputError",
    "SynthesisError",
    "Synthesizer",
    "detect_changes",
]
