"""Throttled driver facade over a zendriver browser tab.

Handles browser lifecycle, element lookup, log buffering and screenshot
capture. Every CDP command a tab sends, including the ones zendriver
elements send on their own, goes through one ``CallThrottle`` installed on
``tab.send``. That keeps bursts such as ``find_all(selector, fn)`` within the
remote endpoint's concurrency limit.

zendriver API used here:
  - zd.start(config) -> Browser
  - browser.get(url) / tab.get(url) -> Tab
  - tab.query_selector(css) / tab.query_selector_all(css) -> Element(s)
  - element.text_all
  - tab.send(cdp_command)
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

import zendriver as zd

from zdplus.exceptions import DriverNotStartedError, NoSuchElementError
from zdplus.logs import LogCollector, LogMessage
from zdplus.screenshots import DEFAULT_SCREENSHOT_NAME, save_screenshot
from zdplus.throttle import CallThrottle, serialize_calls

if TYPE_CHECKING:
    from zdplus.settings.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Pattern = str | re.Pattern[str]


def install_throttle(tab: Any, max_pending_calls: int) -> CallThrottle:
    """Replace ``tab.send`` with a throttled version and return the throttle.

    Installing twice on the same tab returns the existing throttle.
    """
    existing = getattr(tab, "_zdplus_throttle", None)
    if isinstance(existing, CallThrottle):
        return existing

    raw_send = tab.send
    throttle = serialize_calls(raw_send, max_pending_calls)

    async def send(cdp_obj: Any, *args: Any, **kwargs: Any) -> Any:
        # zendriver re-enters send() with extra arguments to enable event
        # domains while a command is already in flight; those must not wait
        # for a slot held by their own caller.
        if args or kwargs:
            return await raw_send(cdp_obj, *args, **kwargs)
        return await throttle(cdp_obj)

    tab.send = send
    tab._zdplus_throttle = throttle
    logger.debug("Installed throttle on %r (max_pending_calls=%d)", tab, max_pending_calls)
    return throttle


def _compile(pattern: Pattern) -> re.Pattern[str]:
    return pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)


class Driver:
    """A zendriver tab with throttled remote calls and test-helper sugar.

    ``Driver(tab)`` wraps an existing tab; ``await Driver.start()`` launches a
    browser first. Settings are read from ``zdplus.settings.get_settings()``
    unless passed explicitly.
    """

    def __init__(self, tab: Any = None, *, browser: Any = None, settings: Settings | None = None) -> None:
        if settings is None:
            from zdplus.settings import get_settings

            settings = get_settings()

        self._settings = settings
        self._browser = browser
        self._tab: Any = None
        self._logs = LogCollector()
        if tab is not None:
            self._attach(tab)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    async def start(cls, settings: Settings | None = None) -> "Driver":
        """Launch a browser using the browser settings and return a driver for it."""
        if settings is None:
            from zdplus.settings import get_settings

            settings = get_settings()
        b = settings.browser

        config = zd.Config()
        config.headless = b.headless
        config.sandbox = b.sandbox
        config.add_argument(f"--window-size={b.window_width},{b.window_height}")
        if b.chrome_binary:
            config.browser_executable_path = b.chrome_binary

        browser = await zd.start(config=config)
        logger.info("Browser started (headless=%s)", b.headless)
        driver = cls(browser=browser, settings=settings)
        driver._attach(await browser.get("about:blank"))
        return driver

    async def stop(self) -> None:
        """Shut down the browser. Errors are logged, not raised."""
        if self._browser:
            try:
                await self._browser.stop()
            except Exception as e:
                logger.warning("Browser stop error (non-fatal): %s", e)
            finally:
                self._browser = None
                self._tab = None
            logger.info("Browser stopped")

    async def __aenter__(self) -> "Driver":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    @property
    def tab(self) -> Any:
        """The active zendriver tab."""
        if self._tab is None:
            raise DriverNotStartedError()
        return self._tab

    def _attach(self, tab: Any) -> None:
        if tab is self._tab:
            return
        install_throttle(tab, self._settings.throttle.max_pending_calls)
        self._logs.attach(tab)
        self._tab = tab

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def get(self, url: str) -> None:
        """Navigate to *url* and make the resulting tab the active one."""
        if self._browser is not None:
            tab = await self._browser.get(url)
        else:
            tab = await self.tab.get(url)
        self._attach(tab)
        logger.info("Navigated to: %s", url)

    async def send(self, cdp_obj: Any) -> Any:
        """Send a raw CDP command through the throttle."""
        return await self.tab.send(cdp_obj)

    # ------------------------------------------------------------------
    # Element lookup
    # ------------------------------------------------------------------

    async def find(self, selector: str) -> Any:
        """Return the first element matching *selector*."""
        element = await self.tab.query_selector(selector)
        if element is None:
            raise NoSuchElementError(selector)
        return element

    async def find_all(
        self,
        selector: str,
        fn: Callable[[Any], Awaitable[T]] | None = None,
    ) -> list[Any] | list[T]:
        """Return all elements matching *selector*, or ``fn`` mapped over them.

        ``fn`` runs concurrently for every element; results keep element order.
        """
        elements = list(await self.tab.query_selector_all(selector) or [])
        if fn is None:
            return elements
        return list(await asyncio.gather(*(fn(el) for el in elements)))

    async def find_content(self, selector: str, pattern: Pattern) -> Any:
        """Return the first element matching *selector* whose text matches *pattern*."""
        regex = _compile(pattern)
        for element in await self.find_all(selector):
            if regex.search(element.text_all or ""):
                return element
        raise NoSuchElementError(selector, regex.pattern)

    async def find_wait(self, timeout: float | None, selector: str) -> Any:
        """Poll for an element matching *selector* for up to *timeout* seconds."""
        return await self._poll(timeout, lambda: self.find(selector))

    async def find_content_wait(self, timeout: float | None, selector: str, pattern: Pattern) -> Any:
        """Poll for an element matching *selector* and *pattern* for up to *timeout* seconds."""
        return await self._poll(timeout, lambda: self.find_content(selector, pattern))

    async def is_present(self, selector: str, pattern: Pattern | None = None) -> bool:
        """Return True if a matching element currently exists."""
        try:
            if pattern is None:
                await self.find(selector)
            else:
                await self.find_content(selector, pattern)
        except NoSuchElementError:
            return False
        return True

    async def _poll(self, timeout: float | None, lookup: Callable[[], Awaitable[T]]) -> T:
        if timeout is None:
            timeout = self._settings.browser.find_timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            try:
                return await lookup()
            except NoSuchElementError:
                if loop.time() >= deadline:
                    raise
            await asyncio.sleep(self._settings.browser.poll_interval)

    # ------------------------------------------------------------------
    # Logs / screenshots
    # ------------------------------------------------------------------

    async def fetch_logs(self, log_type: str) -> list[LogMessage]:
        """Return and clear buffered messages of *log_type* (``browser`` or ``exceptions``)."""
        return self._logs.fetch(log_type)

    async def save_screenshot(
        self,
        rel_path: str = DEFAULT_SCREENSHOT_NAME,
        directory: str | Path | None = None,
    ) -> Path | None:
        """Save a numbered screenshot to *directory* (default: the configured logdir)."""
        if directory is None:
            directory = self._settings.logdir
        return await save_screenshot(self.tab, rel_path, directory)
