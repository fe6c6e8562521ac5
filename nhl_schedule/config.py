# nhl_schedule/config.py
"""
Configuration for the NHL schedule service.

This module centralizes all tunable settings (provider shape, API endpoints,
league timezone, team focus, poll/rotation intervals and the rollover switch).
Every value can be overridden from the environment; invalid values fall back
to the defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from typing import FrozenSet, List, Optional


PROVIDER_STATSAPI = "statsapi"
PROVIDER_WEB = "web"

DEFAULT_API_BASES = {
    PROVIDER_STATSAPI: "https://statsapi.web.nhl.com/api/v1",
    PROVIDER_WEB: "https://api-web.nhle.com",
}

DEFAULT_TEAMS_URLS = {
    PROVIDER_STATSAPI: "/teams",
    PROVIDER_WEB: "https://api.nhle.com/stats/rest/en/team",
}


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, returning default on missing/invalid values."""
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean environment variable (1/true/yes/on are truthy)."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_json(name: str, default):
    """
    Read a JSON environment variable and parse it.

    Intended for:
      - TEAM_FOCUS_JSON: ["TOR", "MTL"]

    Returns default on missing/invalid JSON.
    """
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return json.loads(raw)
    except Exception:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    """
    Read a comma-delimited string list from the environment.

    Example:
      TEAM_FOCUS="TOR,MTL,OTT"
    """
    raw = os.getenv(name)
    if not raw:
        return default
    out = [x.strip() for x in raw.split(",") if x.strip()]
    return out or default


def _env_focus() -> FrozenSet[str]:
    """
    Read the team focus set from TEAM_FOCUS_JSON (JSON list) or TEAM_FOCUS (comma list).
    """
    focus = _env_json("TEAM_FOCUS_JSON", None)
    if not (isinstance(focus, list) and all(isinstance(x, str) for x in focus)):
        focus = _env_list("TEAM_FOCUS", [])
    return frozenset(x.strip().upper() for x in focus if x.strip())


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable app configuration.

    Notes:
      - provider selects the upstream endpoint family ("web" or "statsapi").
        The normalizer detects the record shape on its own.
      - team_focus is a set of 3-letter short codes. Empty means every team.
      - intervals are milliseconds, matching the upstream module's options.
    """

    # Provider / endpoints
    provider: str = os.getenv("PROVIDER", PROVIDER_WEB).strip().lower()
    nhl_api_base: str = os.getenv("NHL_API_BASE", "")
    teams_url: str = os.getenv("TEAMS_URL", "")
    league_tz: str = os.getenv("LEAGUE_TZ", "America/Toronto")
    http_timeout_seconds: int = _env_int("HTTP_TIMEOUT_SECONDS", 10)

    # Schedule window
    days_in_past: int = _env_int("DAYS_IN_PAST", 1)
    days_ahead: int = _env_int("DAYS_AHEAD", 7)
    roll_over: bool = _env_bool("ROLL_OVER", False)

    # Polling
    reload_interval_ms: int = _env_int("RELOAD_INTERVAL_MS", 30 * 60 * 1000)
    live_reload_interval_ms: int = _env_int("LIVE_RELOAD_INTERVAL_MS", 60 * 1000)

    # Display rotation
    page_size: int = _env_int("PAGE_SIZE", 6)
    rotate_interval_ms: int = _env_int("ROTATE_INTERVAL_MS", 20 * 1000)

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    team_focus: FrozenSet[str] = field(default_factory=_env_focus)

    def __post_init__(self):
        """
        Resolve provider-dependent defaults, normalize the focus set and clamp
        out-of-range values back to usable defaults.
        """
        # dataclass frozen => use object.__setattr__
        if self.provider not in DEFAULT_API_BASES:
            object.__setattr__(self, "provider", PROVIDER_WEB)
        if not self.nhl_api_base:
            object.__setattr__(self, "nhl_api_base", DEFAULT_API_BASES[self.provider])
        if not self.teams_url:
            object.__setattr__(self, "teams_url", DEFAULT_TEAMS_URLS[self.provider])

        object.__setattr__(self, "team_focus", frozenset(x.strip().upper() for x in self.team_focus if x.strip()))

        if self.page_size <= 0:
            object.__setattr__(self, "page_size", 6)
        if self.days_in_past < 0:
            object.__setattr__(self, "days_in_past", 0)
        if self.days_ahead < 0:
            object.__setattr__(self, "days_ahead", 0)

    @property
    def reload_interval_seconds(self) -> float:
        return self.reload_interval_ms / 1000.0

    @property
    def live_reload_interval_seconds(self) -> float:
        return self.live_reload_interval_ms / 1000.0

    @property
    def rotate_interval_seconds(self) -> float:
        return self.rotate_interval_ms / 1000.0

    @property
    def focus(self) -> Optional[FrozenSet[str]]:
        """The focus set, or None when every team is shown."""
        return self.team_focus or None
