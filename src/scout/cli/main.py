"""Scout CLI application."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Annotated

import typer
from rich import print as rprint

import scout as scout_pkg


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    human = "human"
    json = "json"
    jsonl = "jsonl"


app = typer.Typer(
    name="scout",
    help="Multi-agent product discovery interviews.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    if value:
        rprint(f"scout {scout_pkg.__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send scout logs to stderr through rich; debug level when verbose."""
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # pydantic-ai and httpx are chatty at debug level
    for name in ("httpx", "httpcore", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logs."),
    ] = False,
) -> None:
    """Scout: multi-agent product discovery interviews."""
    from dotenv import load_dotenv

    load_dotenv()
    configure_logging(verbose)


# --- Subcommand groups ---

discover_app = typer.Typer(help="Run discovery interview sessions.")
app.add_typer(discover_app, name="discover")


@discover_app.callback(invoke_without_command=True)
def discover(ctx: typer.Context) -> None:
    """Discovery sessions: start, continue, sessions, show, abandon."""
    if ctx.invoked_subcommand is None:
        rprint(
            "Use [bold]scout discover start[/bold], [bold]continue[/bold],"
            " [bold]sessions[/bold], [bold]show[/bold], or [bold]abandon[/bold]."
        )
        rprint("Run [bold]scout discover --help[/bold] for details.")
        raise typer.Exit(0)


@discover_app.command("start")
def discover_start(
    goal: Annotated[
        str,
        typer.Argument(help="One-sentence product goal"),
    ],
    context: Annotated[
        str,
        typer.Option("--context", "-c", help="Additional free-text context"),
    ] = "",
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model (e.g. anthropic:claude-sonnet-4-5)"),
    ] = None,
    format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.human,
    show_stream: Annotated[
        bool,
        typer.Option("--stream", "-s", help="Show streamed analysis text"),
    ] = False,
    project_root: Annotated[
        str | None,
        typer.Option("--project-root", "-p", help="Project root directory"),
    ] = None,
) -> None:
    """Start a discovery session and run its first round."""
    from pathlib import Path

    from scout.discovery.cli import start_command

    root = Path(project_root) if project_root else None
    exit_code = start_command(
        goal=goal,
        context=context,
        project_root=root,
        model=model,
        format=format.value,
        verbose=show_stream,
    )
    raise typer.Exit(exit_code)


@discover_app.command("continue")
def discover_continue(
    session_id: Annotated[
        str,
        typer.Argument(help="Session ID to continue"),
    ],
    answer: Annotated[
        list[str] | None,
        typer.Option("--answer", "-a", help="Answer as QUESTION_ID=TEXT (repeatable)"),
    ] = None,
    context: Annotated[
        str | None,
        typer.Option("--context", "-c", help="New context for this round"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model (e.g. anthropic:claude-sonnet-4-5)"),
    ] = None,
    format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.human,
    show_stream: Annotated[
        bool,
        typer.Option("--stream", "-s", help="Show streamed analysis text"),
    ] = False,
    project_root: Annotated[
        str | None,
        typer.Option("--project-root", "-p", help="Project root directory"),
    ] = None,
) -> None:
    """Answer the latest questions and run the next round."""
    from pathlib import Path

    from scout.discovery.cli import continue_command

    root = Path(project_root) if project_root else None
    exit_code = continue_command(
        session_id=session_id,
        answers=answer or [],
        context=context,
        project_root=root,
        model=model,
        format=format.value,
        verbose=show_stream,
    )
    raise typer.Exit(exit_code)


@discover_app.command("sessions")
def discover_sessions(
    all_sessions: Annotated[
        bool,
        typer.Option("--all", help="Include completed and abandoned sessions"),
    ] = False,
    format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.human,
    project_root: Annotated[
        str | None,
        typer.Option("--project-root", "-p", help="Project root directory"),
    ] = None,
) -> None:
    """List discovery sessions."""
    from pathlib import Path

    from scout.discovery.cli import sessions_command

    root = Path(project_root) if project_root else None
    exit_code = sessions_command(
        project_root=root, include_inactive=all_sessions, format=format.value
    )
    raise typer.Exit(exit_code)


@discover_app.command("show")
def discover_show(
    session_id: Annotated[
        str,
        typer.Argument(help="Session ID to show"),
    ],
    format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.human,
    project_root: Annotated[
        str | None,
        typer.Option("--project-root", "-p", help="Project root directory"),
    ] = None,
) -> None:
    """Show a session and its latest interview result."""
    from pathlib import Path

    from scout.discovery.cli import show_command

    root = Path(project_root) if project_root else None
    exit_code = show_command(session_id=session_id, project_root=root, format=format.value)
    raise typer.Exit(exit_code)


@discover_app.command("abandon")
def discover_abandon(
    session_id: Annotated[
        str,
        typer.Argument(help="Session ID to abandon"),
    ],
    format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.human,
    project_root: Annotated[
        str | None,
        typer.Option("--project-root", "-p", help="Project root directory"),
    ] = None,
) -> None:
    """Mark a session abandoned."""
    from pathlib import Path

    from scout.discovery.cli import abandon_command

    root = Path(project_root) if project_root else None
    exit_code = abandon_command(session_id=session_id, project_root=root, format=format.value)
    raise typer.Exit(exit_code)


profile_app = typer.Typer(help="Inspect and refresh the cached project profile.")
app.add_typer(profile_app, name="profile")


@profile_app.command("show")
def profile_show(
    format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.human,
    project_root: Annotated[
        str | None,
        typer.Option("--project-root", "-p", help="Project root directory"),
    ] = None,
) -> None:
    """Show the cached project profile."""
    from pathlib import Path

    from scout.discovery.cli import profile_show_command

    root = Path(project_root) if project_root else None
    exit_code = profile_show_command(project_root=root, format=format.value)
    raise typer.Exit(exit_code)


@profile_app.command("refresh")
def profile_refresh(
    context: Annotated[
        str,
        typer.Option("--context", "-c", help="Hints for the stack analysis"),
    ] = "",
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model (e.g. anthropic:claude-sonnet-4-5)"),
    ] = None,
    format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.human,
    show_stream: Annotated[
        bool,
        typer.Option("--stream", "-s", help="Show streamed analysis text"),
    ] = False,
    project_root: Annotated[
        str | None,
        typer.Option("--project-root", "-p", help="Project root directory"),
    ] = None,
) -> None:
    """Re-run the stack analysis and overwrite the cached profile."""
    from pathlib import Path

    from scout.discovery.cli import profile_refresh_command

    root = Path(project_root) if project_root else None
    exit_code = profile_refresh_command(
        project_root=root,
        context=context,
        model=model,
        format=format.value,
        verbose=show_stream,
    )
    raise typer.Exit(exit_code)
