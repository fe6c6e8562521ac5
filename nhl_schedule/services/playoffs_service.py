# nhl_schedule/services/playoffs_service.py
"""
Playoff bracket logic.

Responsibilities:
  - flatten bracket payloads into series records
  - resolve the designated top/bottom seed of each series
  - attach series wins to each seed by team id
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from ..errors import MalformedRecord
from ..models import Series, Team
from .payload import get_nested, localized, safe_int
from .team_directory import TeamDirectory

logger = logging.getLogger(__name__)

GAMES_TO_WIN = 4
MAX_SERIES_GAMES = 7


def iter_series_records(payload: Dict[str, Any]) -> Iterator[Tuple[Any, int]]:
    """
    Yield (raw series, round number) pairs from either bracket shape:
      - statsapi: {"rounds": [{"number": 1, "series": [...]}]}
      - web:      {"rounds": [{"roundNumber": 1, "series": [...]}]}
    """
    rounds = payload.get("rounds")
    if not isinstance(rounds, list):
        return
    for rnd in rounds:
        if not isinstance(rnd, dict) or not isinstance(rnd.get("series"), list):
            continue
        number = safe_int(rnd.get("number") or rnd.get("roundNumber"), 0)
        for s in rnd["series"]:
            yield s, number


def _next_game_number(top_wins: int, bottom_wins: int) -> int:
    """Game number of the upcoming game, or of the deciding game once a seed has won."""
    played = top_wins + bottom_wins
    if max(top_wins, bottom_wins) >= GAMES_TO_WIN:
        return min(played, MAX_SERIES_GAMES)
    return min(played + 1, MAX_SERIES_GAMES)


@dataclass
class PlayoffsService:
    """Parses playoff bracket payloads into Series using the team directory for names."""

    directory: TeamDirectory

    def _statsapi_seeds(self, raw: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, int]]:
        """
        Return (top team node, bottom team node, wins by team id).

        The seed designation ("top"/"bottom") decides the order; without one the
        listed order is used.
        """
        matchup = [m for m in (raw.get("matchupTeams") or []) if isinstance(m, dict) and isinstance(m.get("team"), dict)]
        if len(matchup) < 2:
            raise MalformedRecord("series without two matchup teams")

        wins = {str(m["team"].get("id")): safe_int(get_nested(m, ["seriesRecord", "wins"]), 0) for m in matchup}

        top = next((m for m in matchup if str(get_nested(m, ["seed", "type"], "")).lower() == "top"), None)
        bottom = next((m for m in matchup if str(get_nested(m, ["seed", "type"], "")).lower() == "bottom"), None)
        if top is None or bottom is None or top is bottom:
            top, bottom = matchup[0], matchup[1]

        return top["team"], bottom["team"], wins

    def _statsapi_series(self, raw: Dict[str, Any], round_number: int) -> Series:
        top, bottom, wins = self._statsapi_seeds(raw)
        top_id, bottom_id = str(top.get("id")), str(bottom.get("id"))
        top_wins, bottom_wins = wins.get(top_id, 0), wins.get(bottom_id, 0)

        game_number = safe_int(get_nested(raw, ["currentGame", "seriesSummary", "gameNumber"]), 0)
        return Series(
            game_number=game_number or _next_game_number(top_wins, bottom_wins),
            round=safe_int(get_nested(raw, ["round", "number"]), round_number) or round_number,
            home=self.directory.team(top_id, top.get("abbreviation"), top.get("name") or "", top_wins),
            away=self.directory.team(bottom_id, bottom.get("abbreviation"), bottom.get("name") or "", bottom_wins),
        )

    def _web_seed(self, node: Dict[str, Any], wins: int) -> Team:
        name = localized(node.get("name")) or localized(node.get("commonName"))
        return self.directory.team(node.get("id"), node.get("abbrev"), name, wins)

    def _web_series(self, raw: Dict[str, Any], round_number: int) -> Series:
        top = raw.get("topSeed") or raw.get("topSeedTeam")
        bottom = raw.get("bottomSeed") or raw.get("bottomSeedTeam")
        if not isinstance(top, dict) or not isinstance(bottom, dict) or top.get("id") is None or bottom.get("id") is None:
            raise MalformedRecord("series without both seeds")

        top_id, bottom_id = str(top["id"]), str(bottom["id"])
        # Wins are matched against seed ids; the payload may list them beside the seeds.
        wins = {
            top_id: safe_int(raw.get("topSeedWins", top.get("wins")), 0),
            bottom_id: safe_int(raw.get("bottomSeedWins", bottom.get("wins")), 0),
        }
        top_wins, bottom_wins = wins[top_id], wins[bottom_id]

        game_number = safe_int(raw.get("gameNumber") or raw.get("gameNumberOfSeries"), 0)
        return Series(
            game_number=game_number or _next_game_number(top_wins, bottom_wins),
            round=safe_int(raw.get("roundNumber"), round_number) or round_number,
            home=self._web_seed(top, top_wins),
            away=self._web_seed(bottom, bottom_wins),
        )

    def parse_series(self, raw: Any, round_number: int = 0) -> Series:
        """
        Parse one bracket entry.

        Raises:
            MalformedRecord if the entry has no identifiable pair of seeds.
        """
        if not isinstance(raw, dict):
            raise MalformedRecord("series record is not an object")
        if "matchupTeams" in raw:
            return self._statsapi_series(raw, round_number)
        return self._web_series(raw, round_number)

    def get_series(self, payload: Dict[str, Any]) -> Sequence[Series]:
        """
        Return every identifiable series of a bracket payload, ordered by round
        then listing order. Undecided bracket slots are skipped.
        """
        out: List[Series] = []
        dropped = 0
        for raw, number in iter_series_records(payload):
            try:
                out.append(self.parse_series(raw, number))
            except MalformedRecord as e:
                dropped += 1
                logger.debug("Skipping series record: %s", e)

        if dropped:
            logger.info("Skipped %d undecided or malformed series record(s)", dropped)

        out.sort(key=lambda s: s.round)
        return tuple(out)
