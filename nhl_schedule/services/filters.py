# nhl_schedule/services/filters.py
"""
Focus filter and day rollover.
"""

from __future__ import annotations

from typing import AbstractSet, List, Optional, Sequence

from ..models import Game


def filter_by_focus(games: Sequence[Game], focus: Optional[AbstractSet[str]]) -> List[Game]:
    """
    Keep games where the home or away short code is in focus.

    An empty or missing focus set keeps every game. Teams without a known
    short code never match.
    """
    if not focus:
        return list(games)
    return [g for g in games if g.involves(focus)]


def apply_rollover(games: Sequence[Game], today: str, enabled: bool) -> List[Game]:
    """
    Choose between "yesterday + today" and "today + tomorrow".

    Days are compared as YYYY-MM-DD strings. Once any of today's games is live or
    final, earlier days are dropped; until then later days are dropped.
    """
    if not enabled:
        return list(games)

    yesterday = [g for g in games if g.calendar_day < today]
    current = [g for g in games if g.calendar_day == today]
    tomorrow = [g for g in games if g.calendar_day > today]

    ongoing = any(g.status.is_live or g.status.is_final for g in current)
    if ongoing:
        return current + tomorrow
    return yesterday + current
