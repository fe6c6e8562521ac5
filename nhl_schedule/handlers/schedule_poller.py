# nhl_schedule/handlers/schedule_poller.py
"""
Schedule poller: fetch -> normalize -> classify -> filter -> rollover -> publish.

Two background loops drive it:
  - the reload loop runs a cycle every reload interval
  - the live loop runs a cycle whenever a game is live or the next game is due

At most one cycle is ever in flight. A trigger that arrives while a cycle is
running is dropped, not queued.

Usage:
    poller = SchedulePoller(client=client, config=cfg)
    poller.subscribe(rotation.on_schedule)
    poller.start()
    # ... application runs ...
    poller.stop()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from dateutil import tz

from ..config import AppConfig, PROVIDER_STATSAPI
from ..errors import TransportFailure
from ..models import Game, PlayoffsSnapshot, ScheduleSnapshot, Season, SeasonMode
from ..nhl_client import NHLClient
from ..services.filters import apply_rollover, filter_by_focus
from ..services.games_service import GameNormalizer, sort_games, unique_by_id
from ..services.playoffs_service import PlayoffsService
from ..services.season_service import classify
from ..services.team_directory import TeamDirectory

logger = logging.getLogger(__name__)

SCHEDULE = "SCHEDULE"
PLAYOFFS = "PLAYOFFS"

Subscriber = Callable[[str, object], None]


class PollerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    PUBLISHING = "publishing"


@dataclass
class CycleStats:
    """Diagnostics for the health endpoint."""
    cycles: int = 0
    failures: int = 0
    skipped: int = 0
    dropped_records: int = 0
    last_success: Optional[datetime] = None
    last_error: str = ""


@dataclass
class SchedulePoller:
    """Owns the refresh loop and publishes immutable snapshots to subscribers."""

    client: NHLClient
    config: AppConfig
    directory: Optional[TeamDirectory] = None
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._cycle_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []

        self.state = PollerState.IDLE
        self.stats = CycleStats()
        self.schedule: Optional[ScheduleSnapshot] = None
        self.playoffs: Optional[PlayoffsSnapshot] = None
        self.next_game: Optional[Game] = None
        self.live_games: Sequence[Game] = ()

    @property
    def league_tz(self):
        """Return the league timezone used for day boundaries."""
        return tz.gettz(self.config.league_tz)

    @property
    def is_running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback receiving (event name, snapshot) on every publish."""
        self._subscribers.append(callback)

    def _publish(self, event: str, snapshot: object) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event, snapshot)
            except Exception:
                logger.exception("Subscriber %r failed handling %s", callback, event)

    def _today(self) -> date:
        return self.clock().astimezone(self.league_tz).date()

    def _date_range(self, today: date) -> Tuple[date, date]:
        """Fetch window; rollover needs at least yesterday and tomorrow."""
        past = self.config.days_in_past
        ahead = self.config.days_ahead
        if self.config.roll_over:
            past, ahead = max(past, 1), max(ahead, 1)
        return today - timedelta(days=past), today + timedelta(days=ahead)

    def ensure_directory(self) -> TeamDirectory:
        """
        Return the team directory, fetching it until one load succeeds.

        A failed load yields an empty directory for the caller but is not kept,
        so the next cycle tries again. A loaded directory is never refreshed.
        """
        if self.directory is not None:
            return self.directory
        directory = TeamDirectory.load(self.client, self.config.teams_url)
        if directory.loaded:
            self.directory = directory
        return directory

    def fetch_games(
        self, start: date, end: date, directory: Optional[TeamDirectory] = None,
    ) -> Tuple[List[Game], int]:
        """
        Fetch and normalize every game in [start, end].

        statsapi answers a date range in one request; the web schedule answers one
        week per request, so weeks are walked until the range is covered.

        Raises:
            TransportFailure if any request fails.
        """
        if directory is None:
            directory = self.ensure_directory()
        normalizer = GameNormalizer(directory=directory, tz_name=self.config.league_tz)

        if self.client.provider == PROVIDER_STATSAPI:
            payloads = [self.client.schedule(start, end)]
        else:
            payloads = []
            cursor = start
            while cursor <= end:
                payloads.append(self.client.schedule(cursor, end))
                cursor += timedelta(days=7)

        self.state = PollerState.NORMALIZING
        games: List[Game] = []
        dropped = 0
        lo, hi = start.isoformat(), end.isoformat()
        for payload in payloads:
            result = normalizer.normalize_all(payload)
            dropped += result.dropped
            games.extend(g for g in result.games if lo <= g.calendar_day <= hi)

        return sort_games(unique_by_id(games)), dropped

    def _fetch_playoffs(self, season: Season, directory: TeamDirectory) -> None:
        """Secondary payload: failures skip only this part of the cycle."""
        if not season.season_id:
            return
        try:
            payload = self.client.playoffs(season.season_id)
        except TransportFailure as e:
            logger.warning("Fetching playoff series failed: %s", e)
            return

        series = PlayoffsService(directory=directory).get_series(payload)
        snapshot = PlayoffsSnapshot(series=series, published_at=self.clock())
        self.playoffs = snapshot
        self._publish(PLAYOFFS, snapshot)

    def _cycle(self) -> None:
        self.state = PollerState.FETCHING
        today = self._today()
        start, end = self._date_range(today)
        directory = self.ensure_directory()
        games, dropped = self.fetch_games(start, end, directory)

        season = classify(games, today=today)
        focused = filter_by_focus(games, self.config.focus)
        visible = apply_rollover(focused, today.isoformat(), self.config.roll_over)

        self.state = PollerState.PUBLISHING
        snapshot = ScheduleSnapshot(games=tuple(visible), season=season, published_at=self.clock())
        self.schedule = snapshot
        self.next_game = next((g for g in visible if g.status.is_preview), None)
        self.live_games = tuple(g for g in visible if g.status.is_live)
        self.stats.dropped_records += dropped
        self._publish(SCHEDULE, snapshot)

        logger.info(
            "Published %d game(s) (%d live), season %s %s",
            len(visible), len(self.live_games), season.year_label, season.mode.value,
        )

        if season.mode is SeasonMode.PLAYOFFS or not visible:
            self._fetch_playoffs(season, directory)

    def run_cycle(self) -> bool:
        """
        Run one fetch cycle unless one is already in flight.

        Returns:
            True if the cycle completed, False if it was skipped or failed.
        """
        if not self._cycle_lock.acquire(blocking=False):
            with self._stats_lock:
                self.stats.skipped += 1
            logger.debug("Fetch cycle already in flight, ignoring trigger")
            return False

        try:
            self.stats.cycles += 1
            self._cycle()
            self.stats.last_success = self.clock()
            return True
        except TransportFailure as e:
            self.stats.failures += 1
            self.stats.last_error = str(e)
            logger.warning("Fetching NHL schedule failed, keeping last schedule: %s", e)
            return False
        except Exception as e:
            self.stats.failures += 1
            self.stats.last_error = str(e)
            logger.exception(f"Error in schedule cycle: {e}")
            return False
        finally:
            self.state = PollerState.IDLE
            self._cycle_lock.release()

    def check_live_state(self, now: Optional[datetime] = None) -> bool:
        """
        Run an out-of-band cycle if a game is live or the next game is due.

        Returns:
            True if a cycle ran and completed.
        """
        now = now or self.clock()
        game_due = self.next_game is not None and now >= self.next_game.start
        if self.live_games or game_due:
            return self.run_cycle()
        return False

    def _loop(self, interval: float, task: Callable[[], object]) -> None:
        while not self._stop_event.wait(interval):
            try:
                task()
            except Exception as e:
                logger.exception(f"Error in poller loop: {e}")

    def start(self) -> bool:
        """
        Load the directory, run an initial cycle, then start both loops.

        Returns:
            True if started, False if already running
        """
        if self.is_running:
            logger.warning("Schedule poller already running")
            return False

        self._stop_event.clear()
        # The initial cycle loads the team directory.
        self.run_cycle()

        self._threads = [
            threading.Thread(
                target=self._loop,
                args=(self.config.reload_interval_seconds, self.run_cycle),
                name="schedule-reload",
                daemon=True,
            ),
            threading.Thread(
                target=self._loop,
                args=(self.config.live_reload_interval_seconds, self.check_live_state),
                name="schedule-live-check",
                daemon=True,
            ),
        ]
        for t in self._threads:
            t.start()

        logger.info(
            "Schedule poller started (reload: %ss, live check: %ss)",
            self.config.reload_interval_seconds, self.config.live_reload_interval_seconds,
        )
        return True

    def stop(self, timeout: float = 30.0) -> bool:
        """
        Stop both loops.

        Returns:
            True if stopped, False if timeout
        """
        self._stop_event.set()
        stopped = True
        for t in self._threads:
            t.join(timeout=timeout)
            if t.is_alive():
                logger.warning("Poller thread %s did not stop in time", t.name)
                stopped = False
        self._threads = []
        logger.info("Schedule poller stopped")
        return stopped
