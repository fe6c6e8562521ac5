# nhl_schedule/services/season_service.py
"""
Season classification from a sorted list of games.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..models import Game, Season, SeasonMode

PRESEASON_TYPES = ("PR", "1")
PLAYOFF_TYPES = ("P", "3")


def season_mode(competition_type: str) -> SeasonMode:
    """Map a raw game type (statsapi letters or web numbers) onto a season mode."""
    code = (competition_type or "").strip().upper()
    if code in PRESEASON_TYPES:
        return SeasonMode.PRESEASON
    if code in PLAYOFF_TYPES:
        return SeasonMode.PLAYOFFS
    return SeasonMode.REGULAR


def year_label(season_tag: str) -> str:
    """"20232024" -> "23/24". Slicing is positional, matching the provider's tag format."""
    tag = str(season_tag)
    return f"{tag[2:4]}/{tag[6:8]}"


def synthetic_season(today: Optional[date] = None) -> Season:
    """Season used when there are no games at all: current/next calendar year, preseason."""
    year = (today or date.today()).year
    return Season(
        year_label=f"{year % 100}/{(year + 1) % 100}",
        mode=SeasonMode.PRESEASON,
        season_id=f"{year}{year + 1}",
    )


def classify(games: Sequence[Game], today: Optional[date] = None) -> Season:
    """
    Derive the current season from games sorted by start time.

    Uses the first game that is not final; if every game is final, the last game;
    with no games at all, a synthetic season for the current calendar year.
    """
    game = next((g for g in games if not g.status.is_final), None)
    if game is None and games:
        game = games[-1]

    if game is None or not game.season_tag:
        return synthetic_season(today)

    return Season(
        year_label=year_label(game.season_tag),
        mode=season_mode(game.competition_type),
        season_id=game.season_tag,
    )
