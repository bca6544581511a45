"""zdplus: throttled zendriver helpers for browser tests."""

from __future__ import annotations

from zdplus.throttle import CallThrottle, serialize_calls, throttled

try:
    from importlib.metadata import version

    __version__ = version("zdplus")
except Exception:
    __version__ = "0.0.0"

__all__ = ["CallThrottle", "serialize_calls", "throttled", "__version__"]
