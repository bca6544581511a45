"""zdplus-specific exception hierarchy."""

from __future__ import annotations


class ZdPlusError(Exception):
    """Base exception for all zdplus-specific errors."""


class InvalidCapacityError(ZdPlusError, ValueError):
    """Raised when a call throttle is constructed with a capacity below 1.

    Attributes:
        capacity: The rejected value.
    """

    def __init__(self, capacity: object) -> None:
        self.capacity = capacity
        super().__init__(f"max_pending_calls must be an integer >= 1, got {capacity!r}")


class NoSuchElementError(ZdPlusError):
    """Raised when no element matches a selector (and optional content pattern).

    Attributes:
        selector: The CSS selector that was searched.
        pattern: The content regex, if one was given.
    """

    def __init__(self, selector: str, pattern: str | None = None) -> None:
        self.selector = selector
        self.pattern = pattern
        if pattern is None:
            message = f"No elements match {selector!r}"
        else:
            message = f"No elements match {selector!r} with content /{pattern}/"
        super().__init__(message)


class DriverNotStartedError(ZdPlusError, RuntimeError):
    """Raised when a page operation is attempted before a tab is attached."""

    def __init__(self) -> None:
        super().__init__("Driver has no active tab. Call start() or get() first.")
