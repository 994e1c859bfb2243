"""CLI commands for discovery sessions and the project profile."""

import asyncio
import json
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from scout.discovery.config import DiscoveryConfig
from scout.discovery.errors import DiscoveryError
from scout.discovery.models import (
    DiscoveryAnswer,
    DiscoverySession,
    EventLevel,
    EventType,
    InterviewResult,
    ProfileArtifact,
    ProgressEvent,
)
from scout.discovery.orchestrator import DiscoveryOrchestrator
from scout.discovery.profile_cache import FileProfileStore
from scout.discovery.session import SessionStore
from scout.discovery.streaming import RoundRun

console = Console()


def build_orchestrator(model: str | None = None) -> DiscoveryOrchestrator:
    """Create an orchestrator backed by the pydantic-ai gate.

    Args:
        model: Model string; resolved from the environment when None

    Returns:
        DiscoveryOrchestrator using SCOUT_* configuration overrides, with
        SCOUT_<ROLE>_MODEL picking the model per role
    """
    from scout.providers.config import resolve_default_model, resolve_roster
    from scout.providers.pydantic_ai import PydanticAIGate

    config = DiscoveryConfig.from_env()
    default_model = model or resolve_default_model()
    return DiscoveryOrchestrator(
        PydanticAIGate(model=default_model),
        profile_store=FileProfileStore(config.profile_dir, config.profile_file),
        config=config,
        roster=resolve_roster(default_model),
    )


def parse_answers(raw: Sequence[str]) -> list[DiscoveryAnswer]:
    """Parse `QUESTION_ID=answer` pairs.

    Raises:
        ValueError: If an entry has no `=` or an empty question id
    """
    answers = []
    for entry in raw:
        question_id, sep, answer = entry.partition("=")
        if not sep or not question_id.strip():
            raise ValueError(f"Answer must look like QUESTION_ID=answer, got {entry!r}")
        answers.append(DiscoveryAnswer(question_id=question_id.strip(), answer=answer.strip()))
    return answers


def _print_event(event: ProgressEvent, format: str, verbose: bool) -> None:
    if format == "jsonl":
        data = event.model_dump(mode="json", by_alias=True, exclude_none=True)
        print(json.dumps({"event": data}))
        return
    if format != "human":
        return

    if event.type == EventType.LOG:
        if verbose:
            console.print(f"[dim]{escape(event.message)}[/dim]", highlight=False)
        return

    color = "red" if event.level == EventLevel.ERROR else "cyan"
    if event.type == EventType.COMPLETED:
        color = "green"
    label = f"[magenta]{event.agent}[/magenta] " if event.agent else ""
    console.print(f"[{color}]•[/{color}] {label}{escape(event.message)}", highlight=False)
    if event.details and verbose:
        console.print(f"  [dim]{escape(event.details)}[/dim]", highlight=False)


async def _follow[T](run: RoundRun[T], format: str, verbose: bool) -> T:
    async for event in run:
        _print_event(event, format, verbose)
    return await run.result()


async def _run_round(
    orchestrator: DiscoveryOrchestrator,
    session: DiscoverySession,
    answers: list[DiscoveryAnswer],
    context: str | None,
    format: str,
    verbose: bool,
) -> InterviewResult:
    run = orchestrator.stream_round(session, answers, context)
    return await _follow(run, format, verbose)


async def _refresh(
    orchestrator: DiscoveryOrchestrator,
    project_root: Path,
    context: str,
    format: str,
    verbose: bool,
) -> ProfileArtifact:
    run = RoundRun(lambda channel: orchestrator.refresh_profile(project_root, context, channel))
    return await _follow(run, format, verbose)


def _error(message: str, format: str, **extra: object) -> None:
    if format == "human":
        console.print(f"[red]Error:[/red] {message}")
    else:
        print(json.dumps({"error": message, **extra}))


def start_command(
    goal: str,
    context: str = "",
    project_root: Path | None = None,
    model: str | None = None,
    format: str = "human",
    verbose: bool = False,
) -> int:
    """Start a discovery session and run its first round.

    The session is saved even when the round fails so it can be retried
    with `scout discover continue`.

    Args:
        goal: One-sentence product goal
        context: Additional free-text context
        project_root: Project directory (default: cwd)
        model: Model override
        format: Output format: "human", "json", or "jsonl"
        verbose: Show streamed analysis text and error details

    Returns:
        Exit code (0 = success, 1 = failure, 130 = cancelled)
    """
    root = project_root if project_root is not None else Path.cwd()
    store = SessionStore(root)
    session: DiscoverySession | None = None
    try:
        orchestrator = build_orchestrator(model)
        session = orchestrator.start_session(goal, context, root)
        result = asyncio.run(_run_round(orchestrator, session, [], None, format, verbose))
    except KeyboardInterrupt:
        if format == "human":
            console.print("\n[yellow]Discovery cancelled by user[/yellow]")
        return 130
    except (DiscoveryError, ValueError, RuntimeError, ImportError) as e:
        if session is not None:
            store.save(session)
            _error(str(e), format, session_id=session.id)
            if format == "human":
                console.print(f"Retry with [bold]scout discover continue {session.id}[/bold]")
        else:
            _error(str(e), format)
        return 1

    store.save(session)
    _output_result(session, result, format, orchestrator)
    return 0


def continue_command(
    session_id: str,
    answers: Sequence[str] = (),
    context: str | None = None,
    project_root: Path | None = None,
    model: str | None = None,
    format: str = "human",
    verbose: bool = False,
) -> int:
    """Answer the latest questions and run the next round.

    Args:
        session_id: Session to continue
        answers: `QUESTION_ID=answer` pairs
        context: New free-text context for this round
        project_root: Project directory holding .scout/sessions (default: cwd)
        model: Model override
        format: Output format: "human", "json", or "jsonl"
        verbose: Show streamed analysis text and error details

    Returns:
        Exit code (0 = success, 1 = failure, 130 = cancelled)
    """
    root = project_root if project_root is not None else Path.cwd()
    store = SessionStore(root)
    try:
        parsed = parse_answers(answers)
        session = store.get(session_id)
        orchestrator = build_orchestrator(model)
        result = asyncio.run(_run_round(orchestrator, session, parsed, context, format, verbose))
    except KeyboardInterrupt:
        if format == "human":
            console.print("\n[yellow]Discovery cancelled by user[/yellow]")
        return 130
    except (DiscoveryError, ValueError, RuntimeError, ImportError) as e:
        _error(str(e), format, session_id=session_id)
        return 1

    store.save(session)
    _output_result(session, result, format, orchestrator)
    return 0


def sessions_command(
    project_root: Path | None = None,
    include_inactive: bool = False,
    format: str = "human",
) -> int:
    """List discovery sessions.

    Returns:
        Exit code (always 0)
    """
    root = project_root if project_root is not None else Path.cwd()
    store = SessionStore(root)
    sessions = store.list_sessions() if include_inactive else store.list_active()

    if format == "json":
        print(json.dumps([_session_summary(s) for s in sessions], indent=2))
        return 0
    if format == "jsonl":
        for s in sessions:
            print(json.dumps(_session_summary(s)))
        return 0

    if not sessions:
        console.print("No discovery sessions.")
        return 0

    table = Table(title="Discovery Sessions")
    table.add_column("ID", style="cyan")
    table.add_column("Goal")
    table.add_column("Round", justify="right")
    table.add_column("Readiness", justify="right")
    table.add_column("Status")
    table.add_column("Updated")
    for s in sessions:
        table.add_row(
            s.id,
            escape(s.goal),
            str(s.round),
            f"{s.readiness_score}%",
            s.status.value,
            f"{s.updated_at:%Y-%m-%d %H:%M}",
        )
    console.print(table)
    return 0


def show_command(session_id: str, project_root: Path | None = None, format: str = "human") -> int:
    """Show a session and its latest interview result.

    Returns:
        Exit code (0 = found, 1 = not found)
    """
    root = project_root if project_root is not None else Path.cwd()
    try:
        session = SessionStore(root).get(session_id)
    except DiscoveryError as e:
        _error(str(e), format)
        return 1

    if format != "human":
        print(session.model_dump_json(by_alias=True, indent=2 if format == "json" else None))
        return 0

    console.print(
        Panel(
            f"{escape(session.goal)}\n\n"
            f"Round: {session.round}   Readiness: {session.readiness_score}%   "
            f"Status: {session.status.value}\n"
            f"Answers recorded: {len(session.answer_history)}",
            title=f"Session {session.id}",
            border_style="cyan",
        )
    )
    if session.latest_result is None:
        console.print("[yellow]No completed rounds yet.[/yellow]")
    else:
        _output_result_human(session, session.latest_result)
    return 0


def abandon_command(
    session_id: str, project_root: Path | None = None, format: str = "human"
) -> int:
    """Mark a session abandoned.

    Returns:
        Exit code (0 = abandoned, 1 = not found)
    """
    root = project_root if project_root is not None else Path.cwd()
    try:
        session = SessionStore(root).abandon(session_id)
    except DiscoveryError as e:
        _error(str(e), format)
        return 1

    if format == "human":
        console.print(f"[yellow]Session {session.id} abandoned.[/yellow]")
    else:
        print(json.dumps({"session_id": session.id, "status": session.status.value}))
    return 0


def profile_show_command(project_root: Path | None = None, format: str = "human") -> int:
    """Show the cached project profile.

    Returns:
        Exit code (0 = cached profile found, 1 = none)
    """
    root = project_root if project_root is not None else Path.cwd()
    config = DiscoveryConfig.from_env()
    profile = FileProfileStore(config.profile_dir, config.profile_file).read(root)
    if profile is None:
        _error(f"No cached profile for {root}", format)
        return 1

    if format == "human":
        _output_profile_human(profile)
    else:
        print(profile.model_dump_json(by_alias=True, indent=2 if format == "json" else None))
    return 0


def profile_refresh_command(
    project_root: Path | None = None,
    context: str = "",
    model: str | None = None,
    format: str = "human",
    verbose: bool = False,
) -> int:
    """Re-run the stack analysis and overwrite the cached profile.

    Returns:
        Exit code (0 = refreshed, 1 = failure, 130 = cancelled)
    """
    root = project_root if project_root is not None else Path.cwd()
    try:
        orchestrator = build_orchestrator(model)
        profile = asyncio.run(_refresh(orchestrator, root, context, format, verbose))
    except KeyboardInterrupt:
        if format == "human":
            console.print("\n[yellow]Profile refresh cancelled by user[/yellow]")
        return 130
    except (DiscoveryError, ValueError, RuntimeError, ImportError) as e:
        _error(str(e), format)
        return 1

    if format == "human":
        _output_profile_human(profile)
    else:
        print(profile.model_dump_json(by_alias=True, indent=2 if format == "json" else None))
    return 0


def _session_summary(session: DiscoverySession) -> dict[str, object]:
    return {
        "id": session.id,
        "goal": session.goal,
        "round": session.round,
        "readinessScore": session.readiness_score,
        "status": session.status.value,
        "updatedAt": session.updated_at.isoformat(),
    }


def _output_result(
    session: DiscoverySession,
    result: InterviewResult,
    format: str,
    orchestrator: DiscoveryOrchestrator,
) -> None:
    if format == "human":
        _output_result_human(session, result)
        usage = orchestrator.last_usage
        cost = f", ${usage.cost_usd:.4f}" if usage.cost_usd else ""
        console.print(f"[dim]{usage.requests} call(s), {usage.total_tokens} tokens{cost}[/dim]")
        console.print(
            f"Answer with [bold]scout discover continue {session.id} "
            f"--answer QUESTION_ID=ANSWER[/bold]"
        )
        return

    payload = {
        "sessionId": session.id,
        "round": session.round,
        "result": result.model_dump(mode="json", by_alias=True),
    }
    if format == "jsonl":
        print(json.dumps(payload))
    else:
        print(json.dumps(payload, indent=2))


def _output_result_human(session: DiscoverySession, result: InterviewResult) -> None:
    readiness_color = "green" if result.readiness_score >= 80 else "yellow"
    console.print(
        Panel(
            f"{escape(result.direction_summary)}\n\n"
            f"Readiness: [{readiness_color}]{result.readiness_score}%[/{readiness_color}]",
            title=f"Round {session.round}",
            border_style=readiness_color,
        )
    )

    context = result.inferred_context
    table = Table(title="Inferred Context", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    rows = [
        ("Stack", context.stack),
        ("Documentation", context.documentation),
        ("Scope", context.scope),
        ("Pain points", "\n".join(context.pain_points) or "-"),
        ("Constraints", "\n".join(context.constraints) or "-"),
        ("Signals", "\n".join(context.signals) or "-"),
    ]
    for field, value in rows:
        table.add_row(field, escape(value))
    console.print(table)

    for index, question in enumerate(result.questions, start=1):
        lines = [
            f"[bold]{escape(question.prompt)}[/bold]",
            f"[dim]{escape(question.rationale)}[/dim]",
            "",
        ]
        for option in question.options:
            marker = "[green]★[/green]" if option == question.recommended_option else " "
            lines.append(f"{marker} {escape(option)}")
        title = f"Q{index}: {escape(question.id)} ({question.selection_mode.value})"
        console.print(
            Panel(
                "\n".join(lines),
                title=title,
                border_style="blue",
            )
        )

    if result.missing_critical_info:
        console.print("\n[bold yellow]Missing critical info:[/bold yellow]")
        for item in result.missing_critical_info:
            console.print(f"  - {escape(item)}")


def _output_profile_human(profile: ProfileArtifact) -> None:
    console.print(
        Panel(
            f"{escape(profile.summary)}\n\n"
            f"Stack hints: {', '.join(profile.stack_hints) or '-'}\n"
            f"Signals: {', '.join(profile.signals) or '-'}\n"
            f"Confidence: {profile.confidence}%\n"
            f"Updated: {profile.updated_at:%Y-%m-%d %H:%M}",
            title="Project Profile",
            border_style="cyan",
        )
    )
