# nhl_schedule/errors.py
"""
Exception types raised inside the schedule pipeline.

None of these escape a poll cycle: the poller converts them into a skipped
cycle (transport) or a dropped record / degraded field (everything else).
"""

from __future__ import annotations

from typing import Optional


class ScheduleError(Exception):
    """Base class for all schedule pipeline errors."""


class TransportFailure(ScheduleError):
    """A fetch failed: network error, non-2xx response, or a body that is not JSON."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else "network error"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(f"Fetching {url} failed ({detail})")


class MalformedRecord(ScheduleError):
    """A single raw game or series record could not be minimally identified."""


class DirectoryUnavailable(ScheduleError):
    """The team directory could not be loaded."""
