"""Create files with the first free number substituted for a ``{N}`` token."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

NUMBER_TOKEN = "{N}"


def create_numbered_file(template: str | Path) -> Path:
    """Create an empty file from *template* and return its path.

    If the template contains ``{N}``, it is replaced with 1, 2, ... until a
    path that does not exist yet can be created exclusively. Without the token
    the file is created (or truncated) as-is. Parent directories are created.

    Args:
        template: Path template, e.g. ``logs/test-screenshot-{N}.png``.

    Returns:
        The path of the newly created file.
    """
    template = str(template)
    Path(template).parent.mkdir(parents=True, exist_ok=True)

    if NUMBER_TOKEN not in template:
        path = Path(template)
        path.write_bytes(b"")
        return path

    n = 0
    while True:
        n += 1
        path = Path(template.replace(NUMBER_TOKEN, str(n)))
        try:
            with open(path, "xb"):
                pass
        except FileExistsError:
            continue
        logger.debug("Created numbered file: %s", path)
        return path
