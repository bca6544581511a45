"""CLI command that opens a page and saves a screenshot plus its browser logs."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

console = Console()


async def _capture(url: str, logdir: Path, name: str, settle_seconds: float) -> list[Path]:
    from zdplus.driver import Driver
    from zdplus.logs import get_enabled_log_types, save_logs

    saved: list[Path] = []
    async with await Driver.start() as driver:
        await driver.get(url)
        await asyncio.sleep(settle_seconds)
        screenshot = await driver.save_screenshot(f"{name}-screenshot-{{N}}.png", logdir)
        if screenshot:
            saved.append(screenshot)
        for log_type in get_enabled_log_types():
            messages = await driver.fetch_logs(log_type)
            log_path = save_logs(messages, f"{name}-{log_type}-{{N}}.log", logdir)
            if log_path:
                saved.append(log_path)
    return saved


def capture_url(
    url: str = typer.Argument(..., help="The URL to open."),
    logdir: Optional[Path] = typer.Option(None, "--logdir", "-o", help="Output directory (default: ZDPLUS_LOGDIR)."),
    name: str = typer.Option("capture", "--name", "-n", help="Base name for the saved files."),
    settle_seconds: float = typer.Option(1.0, "--settle", help="Seconds to wait after navigation."),
) -> None:
    """Open URL in a throttled browser and save a screenshot and browser logs."""
    from zdplus.settings import get_settings

    effective = logdir or (Path(get_settings().logdir) if get_settings().logdir else None)
    if effective is None:
        console.print("[red]✗[/red] No output directory: pass --logdir or set ZDPLUS_LOGDIR.")
        raise typer.Exit(code=1)

    saved = asyncio.run(_capture(url, effective, name, settle_seconds))
    console.print(f"[green]✓[/green] Captured {url}")
    for path in saved:
        console.print(f"  {path}")
