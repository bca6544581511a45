"""Unified CLI entry point for zdplus.

Config precedence: settings.default.toml -> settings.local.toml -> env vars (ZDPLUS_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

import logging

import typer

from zdplus.cli.capture_cmd import capture_url
from zdplus.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("zdplus")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "zdplus: throttled zendriver helpers for browser tests. "
    "Config precedence: settings.default.toml -> settings.local.toml -> env vars (ZDPLUS_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.add_typer(settings_app, name="settings")
app.command("capture")(capture_url)


def _configure_logging() -> None:
    from pydantic import ValidationError

    from zdplus.settings import get_settings

    try:
        level = get_settings().log_level
    except ValidationError:
        # Left for the subcommand to report.
        level = "INFO"
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context, version: bool = typer.Option(False, "--version", help="Show version and exit.")) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"zdplus {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()
    _configure_logging()


if __name__ == "__main__":
    app()
