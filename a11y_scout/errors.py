"""Exception hierarchy shared by the crawler, collector and tracker layers."""
from __future__ import annotations

from typing import Any, List, Optional

__all__ = [
    "ScoutError",
    "ConfigError",
    "FetchError",
    "TrackerError",
    "ReconciliationError",
]


class ScoutError(Exception):
    """Base class for all a11y-scout errors."""


class ConfigError(ScoutError):
    """Configuration is unusable; raised before any network activity."""


class FetchError(ScoutError):
    """A single page could not be fetched (the crawl skips it)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class TrackerError(ScoutError):
    """An issue tracker call failed."""

    def __init__(self, operation: str, message: str, status: Optional[int] = None) -> None:
        detail = f"{operation} failed"
        if status is not None:
            detail += f" (HTTP {status})"
        super().__init__(f"{detail}: {message}")
        self.operation = operation
        self.message = message
        self.status = status


class ReconciliationError(TrackerError):
    """Reconciliation aborted part-way; ``partial`` holds what was applied."""

    def __init__(self, cause: TrackerError, partial: List[Any]) -> None:
        super().__init__(cause.operation, cause.message, cause.status)
        self.partial = partial
