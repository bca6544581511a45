"""pytest plugin: capture screenshots and logs of failed browser tests.

Registered through the ``pytest11`` entry point. Opt in per module or class::

    pytestmark = [pytest.mark.anyio, pytest.mark.usefixtures("debug_capture")]

The ``debug_capture`` fixture requires a ``driver`` fixture returning a
:class:`zdplus.driver.Driver`. Nothing is written unless ``ZDPLUS_LOGDIR`` is set.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from zdplus.debugging import DebugCapture

REPORTS_ATTR = "_zdplus_reports"


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo) -> object:
    """Keep each phase's report on the item so fixtures can see the outcome."""
    outcome = yield
    report = outcome.get_result()
    reports = getattr(item, REPORTS_ATTR, None)
    if reports is None:
        reports = {}
        setattr(item, REPORTS_ATTR, reports)
    reports[report.when] = report


def phase_failed(item: pytest.Item) -> bool:
    """True if the setup or call phase of *item* failed (skips don't count)."""
    reports = getattr(item, REPORTS_ATTR, {})
    return any(r.failed for when, r in reports.items() if when in ("setup", "call"))


def capture_name(item: pytest.Item) -> str:
    """Base name for artifacts: the test file's stem, or ``unnamed``."""
    path = getattr(item, "path", None)
    return Path(path).stem if path else "unnamed"


@pytest.fixture()
async def debug_capture(request: pytest.FixtureRequest, driver):
    """Discard stale logs before the test; save artifacts if it fails."""
    capture = DebugCapture(driver)
    await capture.begin()
    yield capture
    await capture.finish(capture_name(request.node), phase_failed(request.node))
