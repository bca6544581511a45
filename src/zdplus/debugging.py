"""Save screenshots and browser logs after failed tests.

Artifacts are written only when ``settings.logdir`` (``ZDPLUS_LOGDIR``) is set,
and named:

  - ``{logdir}/{test}-screenshot-{N}.png``
  - ``{logdir}/{test}-{logtype}-{N}.log``
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from zdplus.logs import get_enabled_log_types, save_logs

if TYPE_CHECKING:
    from zdplus.driver import Driver

logger = logging.getLogger(__name__)


class DebugCapture:
    """Per-test capture lifecycle around a :class:`~zdplus.driver.Driver`.

    Args:
        driver: The driver whose tab is captured.
        logdir: Override for the configured log directory.
    """

    def __init__(self, driver: Driver, logdir: str | Path | None = None) -> None:
        if logdir is None:
            from zdplus.settings import get_settings

            logdir = get_settings().logdir
        self._driver = driver
        self._logdir = str(logdir) if logdir else ""

    @property
    def enabled(self) -> bool:
        return bool(self._logdir)

    async def begin(self) -> None:
        """Discard logs buffered so far, so ``finish()`` sees only this test's messages."""
        if not self.enabled:
            return
        for log_type in get_enabled_log_types():
            await self._driver.fetch_logs(log_type)

    async def finish(self, test_name: str, failed: bool) -> list[Path]:
        """Save a screenshot and the enabled logs if the test *failed*.

        Returns:
            Paths of the files written (empty when nothing was captured).
        """
        if not failed or not self.enabled:
            return []

        saved: list[Path] = []
        screenshot = await self._driver.save_screenshot(f"{test_name}-screenshot-{{N}}.png", self._logdir)
        if screenshot:
            saved.append(screenshot)
        for log_type in get_enabled_log_types():
            messages = await self._driver.fetch_logs(log_type)
            log_path = save_logs(messages, f"{test_name}-{log_type}-{{N}}.log", self._logdir)
            if log_path:
                saved.append(log_path)
        logger.info("Captured %d debug artifacts for failed test %s", len(saved), test_name)
        return saved
