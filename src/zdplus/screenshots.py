"""Save numbered screenshots of a zendriver tab into the configured log directory."""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any

import zendriver as zd

logger = logging.getLogger(__name__)

DEFAULT_SCREENSHOT_NAME = "screenshot-{N}.png"


async def cdp_screenshot(tab: Any) -> bytes:
    """Take a PNG screenshot using CDP directly."""
    result = await tab.send(zd.cdp.page.capture_screenshot(format_="png"))
    return base64.b64decode(result)


async def save_screenshot(
    tab: Any,
    rel_path: str = DEFAULT_SCREENSHOT_NAME,
    directory: str | Path | None = None,
) -> Path | None:
    """Capture *tab* and save it under *directory* (default: ``settings.logdir``).

    *rel_path* is resolved relative to the directory and may contain an ``{N}``
    token that is replaced with the first free number. When no directory is
    configured the screenshot is skipped entirely and ``None`` is returned.

    Returns:
        Path of the saved PNG, or ``None`` if skipped.
    """
    from zdplus.numbered_file import create_numbered_file

    if directory is None:
        from zdplus.settings import get_settings

        directory = get_settings().logdir
    if not directory:
        return None

    png_bytes = await cdp_screenshot(tab)
    image_path = create_numbered_file(Path(directory).resolve() / rel_path)
    image_path.write_bytes(png_bytes)
    logger.info("Screenshot saved: %s", image_path)
    return image_path
