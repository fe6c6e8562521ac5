# nhl_schedule/services/games_service.py
"""
Game normalization.

Responsibilities:
  - flatten schedule payloads (dated blocks or flat lists)
  - detect which provider shape a raw game record has
  - normalize records into Game / GameStatus / LiveInfo
  - impose the canonical sort (start time, then id)

Two upstream shapes are understood:
  - STATSAPI: legacy statsapi.web.nhl.com records (gamePk, status.abstractGameState,
    teams.home.team, linescore)
  - WEB: api-web.nhle.com records (id, startTimeUTC, gameState, homeTeam,
    periodDescriptor, clock)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from dateutil import tz

from ..errors import MalformedRecord
from ..models import Game, GameState, GameStatus, LiveInfo, Team
from .payload import get_nested, localized, safe_int
from .team_directory import TeamDirectory

logger = logging.getLogger(__name__)

DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Web gameState tokens, grouped by abstract state.
WEB_LIVE_STATES = ("LIVE", "IN_PROGRESS", "INPROGRESS", "ACTIVE", "ONGOING")
WEB_CRITICAL_STATES = ("CRIT", "CRITICAL")
WEB_FINAL_STATES = ("FINAL", "OFF", "COMPLETED", "DONE", "FINISHED")


class ProviderShape(str, Enum):
    STATSAPI = "statsapi"
    WEB = "web"


def ordinal(n: int) -> str:
    """
    English ordinal for a period number.

    1 -> "1st", 2 -> "2nd", 3 -> "3rd", 4 -> "4th", 11..13 -> "th", 21 -> "21st".
    """
    n = int(n)
    if n % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def period_label(number: Any, period_type: Any = None) -> str:
    """
    Build the period label shown for a live game: "1st".."3rd", "OT", "2OT", "SO".
    """
    pt = str(period_type).upper() if period_type is not None else ""
    if pt in ("SO", "SHOOTOUT"):
        return "SO"

    num = safe_int(number, 0)
    if pt in ("OT", "OVERTIME"):
        # Regular season OT is period 4; playoff multi-OT continues counting.
        return "OT" if num <= 4 else f"{num - 3}OT"

    if num <= 0:
        return ""
    return ordinal(num)


def sort_key(game: Game) -> Tuple[datetime, Tuple[int, Any]]:
    # Numeric ids compare as numbers so "9" sorts before "10".
    id_key = (0, int(game.id)) if game.id.isdecimal() else (1, game.id)
    return (game.start, id_key)


def sort_games(games: Iterable[Game]) -> List[Game]:
    """Sort ascending by start time; ties break by ascending id."""
    return sorted(games, key=sort_key)


def unique_by_id(games: Iterable[Game]) -> List[Game]:
    """Drop duplicate ids, keeping the last occurrence (the freshest record)."""
    by_id: Dict[str, Game] = {}
    for g in games:
        by_id[g.id] = g
    return list(by_id.values())


def detect_shape(raw: Dict[str, Any]) -> ProviderShape:
    """
    Discriminate the provider shape of a raw game record.

    Raises:
        MalformedRecord if the record matches no known shape.
    """
    if not isinstance(raw, dict):
        raise MalformedRecord(f"game record is not an object: {type(raw).__name__}")

    if "gamePk" in raw or isinstance(get_nested(raw, ["status", "abstractGameState"]), str):
        return ProviderShape.STATSAPI

    if any(k in raw for k in ("startTimeUTC", "gameState", "homeTeam", "awayTeam")):
        return ProviderShape.WEB

    raise MalformedRecord("unrecognized game record shape")


def parse_timestamp(val: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime; None on failure."""
    if not val:
        return None
    try:
        dt = datetime.fromisoformat(str(val).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iter_game_records(payload: Dict[str, Any]) -> Iterator[Tuple[Any, Optional[str]]]:
    """
    Flatten a schedule payload into (raw game, day label) pairs.

    The day label comes from the enclosing date block when the payload has one:
      - statsapi:  {"dates": [{"date": "...", "games": [...]}]}
      - web:       {"gameWeek": [{"date": "...", "games": [...]}]}
      - flat:      {"games": [...]}
    """
    if isinstance(payload.get("games"), list):
        for g in payload["games"]:
            yield g, None
        return

    for key in ("dates", "gameWeek", "weeks", "gamesByDate"):
        node = payload.get(key)
        if not isinstance(node, list):
            continue
        for entry in node:
            if not isinstance(entry, dict) or not isinstance(entry.get("games"), list):
                continue
            day = entry.get("date")
            day = day if isinstance(day, str) and DAY_RE.match(day) else None
            for g in entry["games"]:
                yield g, day
        return


@dataclass(frozen=True)
class NormalizeResult:
    """Sorted games of one payload plus how many records were dropped."""
    games: Sequence[Game]
    dropped: int = 0


@dataclass
class GameNormalizer:
    """Normalizes raw provider game records using the team directory for names."""

    directory: TeamDirectory
    tz_name: str = "America/Toronto"

    @property
    def league_tz(self):
        """Return the timezone object used to derive calendar days."""
        return tz.gettz(self.tz_name)

    def _calendar_day(self, start: datetime, *candidates: Any) -> str:
        for c in candidates:
            if isinstance(c, str) and DAY_RE.match(c):
                return c
        return start.astimezone(self.league_tz).strftime("%Y-%m-%d")

    # statsapi

    def _statsapi_team(self, raw: Dict[str, Any], side: str) -> Team:
        node = get_nested(raw, ["teams", side], {})
        if not isinstance(node, dict):
            raise MalformedRecord(f"statsapi {side} team is not an object")
        team = node.get("team") or {}
        if not isinstance(team, dict):
            raise MalformedRecord(f"statsapi {side} team is not an object")
        return self.directory.team(
            team.get("id"),
            team.get("abbreviation") or team.get("triCode"),
            team.get("name") or "",
            node.get("score"),
        )

    def _statsapi_game(self, raw: Dict[str, Any], day: Optional[str]) -> Game:
        game_id = raw.get("gamePk")
        start = parse_timestamp(raw.get("gameDate"))
        if game_id is None or start is None:
            raise MalformedRecord(f"statsapi record without id or timestamp: gamePk={game_id!r}")

        abstract = get_nested(raw, ["status", "abstractGameState"], "")
        detailed = get_nested(raw, ["status", "detailedState"], "") or ""
        if not isinstance(detailed, str):
            detailed = str(detailed)
        try:
            state = GameState(abstract)
        except ValueError:
            state = GameState.PREVIEW
        status = GameStatus(state=state, detailed=detailed, critical="critical" in detailed.lower())

        live = None
        linescore = raw.get("linescore")
        if status.is_live and isinstance(linescore, dict):
            period = linescore.get("currentPeriodOrdinal") or period_label(linescore.get("currentPeriod"))
            if period:
                live = LiveInfo(period=str(period), time_remaining=str(linescore.get("currentPeriodTimeRemaining") or ""))

        return Game(
            id=str(game_id),
            start=start,
            calendar_day=self._calendar_day(start, day),
            status=status,
            home=self._statsapi_team(raw, "home"),
            away=self._statsapi_team(raw, "away"),
            live=live,
            season_tag=str(raw.get("season") or ""),
            competition_type=str(raw.get("gameType") or ""),
        )

    # web

    def _web_team(self, raw: Dict[str, Any], key: str) -> Team:
        node = raw.get(key) or {}
        if not isinstance(node, dict):
            raise MalformedRecord(f"web {key} is not an object")
        place = localized(node.get("placeName"))
        common = localized(node.get("commonName"))
        name = localized(node.get("name")) or " ".join(x for x in (place, common) if x)
        return self.directory.team(node.get("id"), node.get("abbrev") or node.get("teamAbbrev"), name, node.get("score"))

    def _web_status(self, raw: Dict[str, Any]) -> GameStatus:
        state = str(raw.get("gameState") or "").strip().upper()
        schedule_state = str(raw.get("gameScheduleState") or "").strip().upper()

        if state in WEB_FINAL_STATES:
            return GameStatus(GameState.FINAL, "Final")
        if state in WEB_CRITICAL_STATES:
            return GameStatus(GameState.LIVE, "In Progress - Critical", critical=True)
        if state in WEB_LIVE_STATES:
            return GameStatus(GameState.LIVE, "In Progress")
        if schedule_state == "PPD":
            return GameStatus(GameState.PREVIEW, "Postponed")
        if state == "PRE":
            return GameStatus(GameState.PREVIEW, "Pre-Game")
        return GameStatus(GameState.PREVIEW, "Scheduled")

    def _web_live(self, raw: Dict[str, Any]) -> Optional[LiveInfo]:
        pd = raw.get("periodDescriptor") or {}
        number = pd.get("number") if isinstance(pd, dict) else None
        ptype = pd.get("periodType") if isinstance(pd, dict) else None
        if number is None:
            number = raw.get("period")

        period = period_label(number, ptype)
        if not period:
            return None

        clock = raw.get("clock") or {}
        if isinstance(clock, dict) and clock.get("inIntermission") is True:
            return LiveInfo(period=period, time_remaining="END")

        time_left = clock.get("timeRemaining") if isinstance(clock, dict) else None
        return LiveInfo(period=period, time_remaining=str(time_left or ""))

    def _web_game(self, raw: Dict[str, Any], day: Optional[str]) -> Game:
        game_id = raw.get("id") or raw.get("gameId")
        start = parse_timestamp(raw.get("startTimeUTC") or raw.get("startTime"))
        if game_id is None or start is None:
            raise MalformedRecord(f"web record without id or timestamp: id={game_id!r}")

        status = self._web_status(raw)
        return Game(
            id=str(game_id),
            start=start,
            calendar_day=self._calendar_day(start, day, raw.get("gameDate")),
            status=status,
            home=self._web_team(raw, "homeTeam"),
            away=self._web_team(raw, "awayTeam"),
            live=self._web_live(raw) if status.is_live else None,
            season_tag=str(raw.get("season") or ""),
            competition_type=str(raw.get("gameType") or ""),
        )

    def normalize(self, raw: Dict[str, Any], calendar_day: Optional[str] = None) -> Game:
        """
        Normalize one raw game record.

        Raises:
            MalformedRecord when the record has no id or no start timestamp, or
            a nested node has the wrong type.
        """
        shape = detect_shape(raw)
        try:
            if shape is ProviderShape.STATSAPI:
                return self._statsapi_game(raw, calendar_day)
            return self._web_game(raw, calendar_day)
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedRecord(f"{shape.value} record has unexpected field types: {e}") from e

    def normalize_all(self, payload: Dict[str, Any]) -> NormalizeResult:
        """Normalize every record of a schedule payload, dropping malformed ones."""
        games: List[Game] = []
        dropped = 0
        for raw, day in iter_game_records(payload):
            try:
                games.append(self.normalize(raw, day))
            except MalformedRecord as e:
                dropped += 1
                logger.debug("Dropping game record: %s", e)

        if dropped:
            logger.warning("Dropped %d malformed game record(s)", dropped)

        return NormalizeResult(games=tuple(sort_games(unique_by_id(games))), dropped=dropped)
