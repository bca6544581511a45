"""zdplus test configuration: shared fixtures for unit tests."""

from __future__ import annotations

import asyncio
import base64
from typing import Any

import pytest

pytest_plugins = ["pytester"]

# ---------------------------------------------------------------------------
# Async backend
# ---------------------------------------------------------------------------


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache(monkeypatch):
    """Clear the settings LRU cache and ZDPLUS_* overrides between tests."""
    import os

    from zdplus.settings.config import get_settings

    for name in list(os.environ):
        if name.startswith("ZDPLUS_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings_factory():
    """Build a ``Settings`` with explicit overrides."""
    from zdplus.settings.config import Settings

    def _make(**overrides: Any):
        return Settings(**overrides)

    return _make


# ---------------------------------------------------------------------------
# Fake zendriver tab
# ---------------------------------------------------------------------------

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-data"


class FakeElement:
    """Stands in for ``zendriver.Element``: remote calls go through ``tab.send``."""

    def __init__(self, tab: "FakeTab", text: str) -> None:
        self._tab = tab
        self.text_all = text

    async def get_text(self) -> str:
        return await self._tab.send(("text", self.text_all))


class FakeTab:
    """Stands in for ``zendriver.Tab``.

    ``send`` records every command and tracks how many are in flight at once.
    ``dom`` maps CSS selectors to the text of the matching elements.
    """

    def __init__(self, dom: dict[str, list[str]] | None = None, delay: float = 0.0) -> None:
        self.dom: dict[str, list[str]] = dom or {}
        self.delay = delay
        self.sent: list[Any] = []
        self.handlers: list[tuple[Any, Any]] = []
        self.urls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, cdp_obj: Any, _is_update: bool = False) -> Any:
        self.sent.append(cdp_obj)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if isinstance(cdp_obj, tuple):
                kind, arg = cdp_obj
                if kind == "text":
                    return arg
                if kind == "query":
                    return list(self.dom.get(arg, []))
            return base64.b64encode(PNG_BYTES).decode("ascii")
        finally:
            self.in_flight -= 1

    async def query_selector_all(self, selector: str) -> list[FakeElement]:
        texts = await self.send(("query", selector))
        return [FakeElement(self, t) for t in texts]

    async def query_selector(self, selector: str) -> FakeElement | None:
        elements = await self.query_selector_all(selector)
        return elements[0] if elements else None

    def add_handler(self, event_type: Any, handler: Any) -> None:
        self.handlers.append((event_type, handler))

    def emit(self, event_type: Any, event: Any) -> None:
        for registered, handler in self.handlers:
            if registered is event_type:
                handler(event)

    async def get(self, url: str) -> "FakeTab":
        self.urls.append(url)
        return self


@pytest.fixture()
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture()
def fake_tab() -> FakeTab:
    return FakeTab()


@pytest.fixture()
def make_tab() -> type[FakeTab]:
    """The ``FakeTab`` class, for tests that need a custom DOM or delay."""
    return FakeTab


@pytest.fixture()
def make_driver(settings_factory):
    """Return a factory building a ``Driver`` around a ``FakeTab``."""
    from zdplus.driver import Driver

    def _make(tab: FakeTab | None = None, **overrides: Any) -> Driver:
        return Driver(tab or FakeTab(), settings=settings_factory(**overrides))

    return _make


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests that take more than a few seconds")
