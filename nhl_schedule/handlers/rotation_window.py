# nhl_schedule/handlers/rotation_window.py
"""
Display-side pagination over the published schedule.

The window only reads published snapshots; its own offset is the only state it
mutates. A rotation timer runs only while the list is longer than one page.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional, Sequence

from ..models import Game, ScheduleSnapshot, game_to_dict, season_to_dict

logger = logging.getLogger(__name__)


def advance(offset: int, list_length: int, page_size: int) -> int:
    """
    Next page offset.

    Lists that fit on one page always sit at 0. Otherwise the offset moves one
    page forward and wraps to 0 once the next page would start at or past the end.
    """
    if list_length <= page_size:
        return 0
    if offset + page_size >= list_length:
        return 0
    return offset + page_size


class RotationWindow:
    """Paginates the latest schedule snapshot on a fixed timer."""

    def __init__(self, page_size: int, rotate_interval_seconds: float) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be > 0")
        self.page_size = page_size
        self.rotate_interval_seconds = rotate_interval_seconds

        self._lock = threading.Lock()
        self._offset = 0
        self._snapshot: Optional[ScheduleSnapshot] = None
        self._timer: Optional[threading.Thread] = None
        self._timer_stop: Optional[threading.Event] = None

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def snapshot(self) -> Optional[ScheduleSnapshot]:
        return self._snapshot

    @property
    def games(self) -> Sequence[Game]:
        return self._snapshot.games if self._snapshot else ()

    @property
    def is_rotating(self) -> bool:
        return self._timer is not None and self._timer.is_alive()

    def needs_rotation(self) -> bool:
        return len(self.games) > self.page_size

    def update(self, snapshot: ScheduleSnapshot) -> None:
        """
        Swap in a new snapshot and start or stop the rotation timer as needed.
        """
        with self._lock:
            self._snapshot = snapshot
            if len(snapshot.games) <= self.page_size or self._offset >= len(snapshot.games):
                self._offset = 0

        if self.needs_rotation():
            self._start_timer()
        else:
            self._stop_timer()

    def on_schedule(self, event: str, snapshot: Any) -> None:
        """Poller subscriber: react to SCHEDULE events only."""
        if event == "SCHEDULE":
            self.update(snapshot)

    def tick(self) -> int:
        with self._lock:
            self._offset = advance(self._offset, len(self.games), self.page_size)
            return self._offset

    def page(self) -> Sequence[Game]:
        """Games currently shown."""
        with self._lock:
            games = self.games
            return tuple(games[self._offset:self._offset + self.page_size])

    def view(self) -> Dict[str, Any]:
        """JSON-ready view of the current page for the display surface."""
        snapshot = self._snapshot
        with self._lock:
            offset = self._offset
        games = snapshot.games if snapshot else ()
        return {
            "loading": snapshot is None,
            "season": season_to_dict(snapshot.season) if snapshot else None,
            "rotateIndex": offset,
            "pageSize": self.page_size,
            "total": len(games),
            "maxGames": min(len(games), offset + self.page_size),
            "games": [game_to_dict(g) for g in games[offset:offset + self.page_size]],
        }

    def _run(self, stop: threading.Event) -> None:
        while not stop.wait(self.rotate_interval_seconds):
            offset = self.tick()
            logger.debug("Rotated schedule window to offset %d", offset)

    def _start_timer(self) -> None:
        with self._lock:
            if self._timer is not None and self._timer.is_alive():
                return
            self._timer_stop = threading.Event()
            self._timer = threading.Thread(
                target=self._run,
                args=(self._timer_stop,),
                name="schedule-rotation",
                daemon=True,
            )
            self._timer.start()
        logger.debug("Rotation timer started (every %ss)", self.rotate_interval_seconds)

    def _stop_timer(self) -> None:
        with self._lock:
            timer, stop = self._timer, self._timer_stop
            self._timer = None
            self._timer_stop = None
            self._offset = 0
        if stop is not None:
            stop.set()
        if timer is not None:
            timer.join(timeout=5.0)
            logger.debug("Rotation timer stopped")

    def close(self) -> None:
        """Stop the rotation timer."""
        self._stop_timer()
