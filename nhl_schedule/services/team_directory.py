# nhl_schedule/services/team_directory.py
"""
Team directory: team id -> short code + full name.

Built once per process. A failed load yields an empty directory, so every
lookup is optional.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..errors import DirectoryUnavailable, TransportFailure
from ..models import DirectoryEntry, Team
from ..nhl_client import NHLClient
from .payload import safe_int

logger = logging.getLogger(__name__)


def _team_rows(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Extract team rows from the statsapi ("teams") or stats-rest ("data") shape."""
    for key in ("teams", "data"):
        rows = payload.get(key)
        if isinstance(rows, list):
            return [r for r in rows if isinstance(r, dict)]
    raise DirectoryUnavailable("team payload has neither 'teams' nor 'data' list")


def _entry(row: Dict[str, Any]) -> Optional[DirectoryEntry]:
    """Build an entry from either row shape; None if the row lacks a short code."""
    code = row.get("abbreviation") or row.get("triCode") or row.get("abbrev")
    if not isinstance(code, str) or not code.strip():
        return None
    name = row.get("name") or row.get("fullName") or code
    if isinstance(name, dict):
        name = name.get("default") or code
    return DirectoryEntry(short_code=code.strip().upper(), full_name=str(name).strip())


@dataclass(frozen=True)
class TeamDirectory:
    """Read-only mapping of team ids to directory entries."""

    entries: Mapping[str, DirectoryEntry] = field(default_factory=dict)
    # False for the empty fallback returned after a failed fetch.
    loaded: bool = True

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TeamDirectory":
        """
        Build a directory from a raw team catalog payload.

        Raises:
            DirectoryUnavailable if the payload carries no team list.
        """
        entries: Dict[str, DirectoryEntry] = {}
        for row in _team_rows(payload):
            team_id = row.get("id")
            entry = _entry(row)
            if team_id is None or entry is None:
                continue
            entries[str(team_id)] = entry
        return cls(entries=entries)

    @classmethod
    def load(cls, client: NHLClient, teams_url: str) -> "TeamDirectory":
        """
        Fetch the team catalog once.

        Transport failures and malformed bodies are logged and produce an
        empty directory with `loaded=False` rather than an exception.
        """
        try:
            directory = cls.from_payload(client.teams(teams_url))
        except (TransportFailure, DirectoryUnavailable) as e:
            logger.warning("Initializing NHL teams failed, names fall back to ids: %s", e)
            return cls(loaded=False)

        logger.info("Loaded team directory with %d teams", len(directory))
        return directory

    def __len__(self) -> int:
        return len(self.entries)

    def short_code(self, team_id: Any) -> Optional[str]:
        entry = self.entries.get(str(team_id))
        return entry.short_code if entry else None

    def full_name(self, team_id: Any) -> Optional[str]:
        entry = self.entries.get(str(team_id))
        return entry.full_name if entry else None

    def team(self, team_id: Any, payload_code: Any = None, payload_name: str = "", score: Any = 0) -> Team:
        """
        Build a Team, preferring directory names and falling back to the payload,
        then to the raw id.
        """
        tid = str(team_id) if team_id is not None else ""
        code = self.short_code(tid) if tid else None
        if not code and isinstance(payload_code, str) and payload_code.strip():
            code = payload_code.strip().upper()
        name = (self.full_name(tid) if tid else None) or payload_name or code or tid or "TBD"
        return Team(id=tid or (code or ""), name=name, short_code=code, score=max(safe_int(score, 0), 0))
