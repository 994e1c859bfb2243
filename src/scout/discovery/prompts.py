"""Prompt builders for each call a discovery round makes."""

from collections.abc import Sequence
from pathlib import Path

from scout.discovery.models import (
    QUESTION_BATCH_SIZE,
    DiscoveryAnswer,
    DiscoverySession,
    ProfileArtifact,
    SpecialistJob,
)


def format_answers(answers: Sequence[DiscoveryAnswer]) -> str:
    """Render answers as `- question-id: answer` lines, or "none"."""
    if not answers:
        return "none"
    return "\n".join(f"- {a.question_id}: {a.answer}" for a in answers)


def _project_lines(project_path: str) -> list[str]:
    return [
        "Project path:",
        project_path or "(not provided)",
        "Project mode:",
        "existing codebase" if project_path else "new/unspecified project",
    ]


def build_discovery_context(
    session: DiscoverySession,
    latest_answers: Sequence[DiscoveryAnswer],
    additional_context: str,
) -> str:
    """Describe the round for every downstream call.

    The first round gets the initial-discovery framing; later rounds repeat
    the full answer history and the latest answers.

    Args:
        session: Session before this round is recorded
        latest_answers: Answers submitted with this round
        additional_context: Free-text context accumulated so far

    Returns:
        Discovery context block
    """
    if session.latest_result is None:
        lines = [
            "Discovery context for the product interview:",
            "",
            "User goal:",
            session.goal,
            "",
            "Additional user context:",
            additional_context or "none",
            "",
            *_project_lines(session.project_path),
            "",
            "Phase:",
            "- Initial discovery",
            "",
            "Goal:",
            "- Turn this short request into a precise, execution-ready specification input.",
            "- Ask high-impact clarification questions and remove ambiguity.",
        ]
        return "\n".join(lines)

    history = [*session.answer_history, *latest_answers]
    lines = [
        "Discovery continuation context for the product interview:",
        "",
        "Original goal:",
        session.goal,
        "",
        "Additional user context:",
        additional_context or "none",
        "",
        *_project_lines(session.project_path),
        "",
        "All answers so far:",
        format_answers(history),
        "",
        "Latest answers:",
        format_answers(latest_answers),
        "",
        "Phase:",
        f"- Continue discovery (round {session.round + 1})",
        "",
        "Goal:",
        "- Refine the direction with the new answers.",
        "- Ask only unresolved high-impact follow-up questions.",
        "- Produce an increasingly decision-complete draft specification.",
    ]
    return "\n".join(lines)


def build_profile_refresh_context(project_path: Path, additional_context: str) -> str:
    """Context for a standalone profile refresh."""
    lines = [
        "Project profile refresh request.",
        "",
        "Project path:",
        str(project_path),
        "",
        "Additional context:",
        additional_context or "none",
        "",
        "Goal:",
        "- Analyze the codebase stack as it exists now.",
        "- Detect stack signals from repository artifacts.",
        "- Produce a precise summary for future planning continuity.",
    ]
    return "\n".join(lines)


def format_profile_summary(profile: ProfileArtifact | None) -> str:
    if profile is None:
        return "none"
    lines = [
        f"Updated: {profile.updated_at.isoformat()}",
        f"Summary: {profile.summary}",
        f"Stack hints: {', '.join(profile.stack_hints) or 'none'}",
        f"Signals: {', '.join(profile.signals) or 'none'}",
        f"Confidence: {profile.confidence}",
    ]
    return "\n".join(lines)


def build_planner_prompt(
    discovery_context: str,
    project_path: str,
    profile: ProfileArtifact | None,
    refresh_profile: bool,
    min_jobs: int,
    max_jobs: int,
) -> str:
    """Prompt for the planning meta-call that decides which analyses run."""
    lines = [
        "You are the discovery orchestrator.",
        "",
        "Objective:",
        "- Decide which analysis jobs this round needs to reach a complete draft specification.",
        "- Plan jobs only. Do not run the analyses yourself.",
        "",
        discovery_context,
        "",
        *_project_lines(project_path),
        "",
        "Cached project profile (treat as default truth when present):",
        format_profile_summary(profile),
        "",
        "Profile refresh required this round:",
        "yes" if refresh_profile else "no",
        "",
        "Planning rules:",
        "1) Choose jobs for this request. Do not rely on a fixed preset list.",
        "2) Choose the smallest set that still completes a high-quality draft this round.",
        "3) Jobs must be parallelizable and non-overlapping.",
        f"4) Return between {min_jobs} and {max_jobs} jobs unless context is trivial.",
        "5) id must be short kebab-case and unique.",
        "6) objective must be concrete and evidence-oriented.",
    ]
    if refresh_profile:
        lines.append("7) Exactly one job must set producesProfileArtifact=true.")
    else:
        lines.append(
            "7) Set producesProfileArtifact=false for every job and rely on the cached profile."
        )
    return "\n".join(lines)


def build_specialist_prompt(job: SpecialistJob, discovery_context: str) -> str:
    """Prompt for one parallel analysis job."""
    lines = [
        f'You are analysis agent "{job.id}" ({job.title}).',
        "",
        discovery_context,
        "",
        "Objective:",
        job.objective,
        "",
        "Output requirements:",
        "- Return structured JSON only, with no commentary outside it.",
        "- Keys: summary, findings, signals, painPoints, constraints, scopeHints, "
        "stackHints, documentationHints, openQuestions, confidence.",
        "- confidence is an integer from 0 to 100.",
        "- Be concrete and evidence-oriented.",
        "- Prefer repository signals when a project path exists.",
        "- Include unresolved questions that materially affect implementation decisions.",
    ]
    if job.produces_profile_artifact:
        lines.append("- Your summary, stackHints and signals become the cached project profile.")
    return "\n".join(lines)


def build_synthesis_prompt(discovery_context: str, analysis_block: str, failed_block: str) -> str:
    """Prompt for the merge call producing the interview result."""
    lines = [
        "You are a senior product discovery synthesizer.",
        "",
        discovery_context,
        "",
        "Analysis outputs (parallel):",
        analysis_block,
        "",
        "Failed analyses after retries:",
        failed_block,
        "",
        "Synthesis requirements:",
        "1) Merge the analysis findings into one coherent direction summary.",
        "2) Build inferredContext with practical stack, documentation, scope, "
        "painPoints, constraints and signals.",
        f"3) Produce EXACTLY {QUESTION_BATCH_SIZE} high-impact clarification questions:",
        "   - Each question has 4 to 5 distinct, actionable options.",
        "   - recommendedOption must match one of the options exactly.",
        '   - selectionMode is "single" or "multi".',
        "   - Order questions by impact, most critical uncertainty first.",
        "4) Write a polished draftSpecification ready for plan generation.",
        "5) readinessScore (0-100) must reflect real confidence.",
        "6) missingCriticalInfo lists blockers that can still change implementation decisions.",
        "7) If any analysis failed, reflect that uncertainty in missingCriticalInfo.",
        "8) If a profile-cache block is present, treat it as the default stack truth "
        "unless new evidence contradicts it.",
    ]
    return "\n".join(lines)
