# nhl_schedule/models.py
"""
Domain models for the schedule pipeline.

Everything here is frozen: a published snapshot is never mutated, only replaced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Sequence


class GameState(str, Enum):
    """Abstract game state shared by every provider shape."""
    PREVIEW = "Preview"
    LIVE = "Live"
    FINAL = "Final"


class SeasonMode(str, Enum):
    """Competition mode of the current season."""
    PRESEASON = "PR"
    REGULAR = "R"
    PLAYOFFS = "P"


@dataclass(frozen=True)
class Team:
    """A team as it appears in one game (or series) snapshot."""
    id: str
    name: str
    short_code: Optional[str]
    score: int = 0

    @property
    def label(self) -> str:
        """Short code for display, falling back to the raw id on directory misses."""
        return self.short_code or self.id


@dataclass(frozen=True)
class GameStatus:
    """Abstract state plus the provider's detailed state (display only)."""
    state: GameState
    detailed: str = ""
    critical: bool = False

    @property
    def is_live(self) -> bool:
        return self.state is GameState.LIVE

    @property
    def is_final(self) -> bool:
        return self.state is GameState.FINAL

    @property
    def is_preview(self) -> bool:
        return self.state is GameState.PREVIEW


@dataclass(frozen=True)
class LiveInfo:
    """Clock information for a game in progress, e.g. ("2nd", "12:34")."""
    period: str
    time_remaining: str = ""


@dataclass(frozen=True)
class Game:
    """A normalized game record."""
    id: str
    start: datetime          # aware, UTC
    calendar_day: str        # YYYY-MM-DD in the league timezone
    status: GameStatus
    home: Team
    away: Team
    live: Optional[LiveInfo] = None
    season_tag: str = ""     # e.g. "20232024"
    competition_type: str = ""   # raw game type code, e.g. "R" or "2"

    def involves(self, codes) -> bool:
        """Return True if either team's short code is in codes."""
        return any(t.short_code is not None and t.short_code in codes for t in (self.home, self.away))


@dataclass(frozen=True)
class Season:
    """Current season descriptor, derived on every poll cycle."""
    year_label: str
    mode: SeasonMode
    season_id: str = ""


@dataclass(frozen=True)
class Series:
    """A playoff bracket entry. Team scores are series wins."""
    game_number: int
    round: int
    home: Team
    away: Team


@dataclass(frozen=True)
class ScheduleSnapshot:
    """Payload of the SCHEDULE event."""
    games: Sequence[Game]
    season: Season
    published_at: datetime


@dataclass(frozen=True)
class PlayoffsSnapshot:
    """Payload of the PLAYOFFS event."""
    series: Sequence[Series]
    published_at: datetime


def team_to_dict(team: Team) -> Dict[str, Any]:
    return {"id": team.id, "name": team.name, "shortCode": team.label, "score": team.score}


def game_to_dict(game: Game) -> Dict[str, Any]:
    """JSON-ready representation of a game for the display surface."""
    return {
        "id": game.id,
        "timestamp": game.start.isoformat(),
        "calendarDay": game.calendar_day,
        "status": {
            "abstract": game.status.state.value,
            "detailed": game.status.detailed,
            "critical": game.status.critical,
        },
        "teams": {"home": team_to_dict(game.home), "away": team_to_dict(game.away)},
        "live": (
            {"period": game.live.period, "timeRemaining": game.live.time_remaining}
            if game.live else None
        ),
        "season": game.season_tag,
        "gameType": game.competition_type,
    }


def season_to_dict(season: Season) -> Dict[str, Any]:
    return {"year": season.year_label, "mode": season.mode.value, "id": season.season_id}


def series_to_dict(series: Series) -> Dict[str, Any]:
    return {
        "gameNumber": series.game_number,
        "round": series.round,
        "teams": {"home": team_to_dict(series.home), "away": team_to_dict(series.away)},
    }


@dataclass(frozen=True)
class DirectoryEntry:
    """Team directory entry: short code and full name."""
    short_code: str
    full_name: str
