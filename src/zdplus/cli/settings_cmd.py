"""CLI commands for inspecting and validating zdplus settings."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console

if TYPE_CHECKING:
    from zdplus.settings.config import Settings

settings_app = typer.Typer(help="Inspect and validate zdplus configuration.")
console = Console()


def _logdir_problem(logdir: str) -> str | None:
    """Return why debug artifacts can't be written to *logdir*, or None."""
    path = Path(logdir)
    if path.exists() and not path.is_dir():
        return f"Log dir {path} exists and is not a directory"
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return f"Log dir {path} cannot be created: {e}"
    if not os.access(path, os.W_OK | os.X_OK):
        return f"Log dir {path} is not writable"
    return None


def find_problems(settings: Settings) -> list[str]:
    """Check the parts of *settings* that only fail at capture or launch time."""
    problems = []
    if settings.logdir:
        problem = _logdir_problem(settings.logdir)
        if problem:
            problems.append(problem)
    binary = settings.browser.chrome_binary
    if binary and not Path(binary).is_file():
        problems.append(f"Chrome binary {binary} does not exist")
    return problems


@settings_app.command("show")
def show_settings() -> None:
    """Display the currently resolved settings."""
    from zdplus.settings import get_settings

    settings = get_settings()
    console.print_json(json.dumps(settings.model_dump(mode="json"), indent=2, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Validate settings, then check the log dir and browser binary are usable."""
    from zdplus.settings import get_settings

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1)

    problems = find_problems(settings)
    for problem in problems:
        console.print(f"[red]✗[/red] {problem}")
    if problems:
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Max pending calls: {settings.throttle.max_pending_calls}")
    if settings.logdir:
        console.print(f"  Log dir: {settings.logdir} (writable)")
    else:
        console.print("  Log dir: (capture disabled)")
    console.print(f"  Log types: {', '.join(settings.logs.enabled_types) or '(none)'}")
