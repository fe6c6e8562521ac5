# nhl_schedule/nhl_client.py
"""
Thin HTTP client wrapper for NHL endpoints.

Payloads are parsed strictly as JSON; anything else is a TransportFailure.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict
from urllib.parse import urlencode

import requests

from .config import PROVIDER_STATSAPI
from .errors import TransportFailure

logger = logging.getLogger(__name__)


class NHLClient:
    """A minimal client for retrieving JSON from the NHL API base."""

    def __init__(self, base_url: str, provider: str, timeout: int = 10) -> None:
        """Store the base URL, provider family and build request headers."""
        self.base_url = base_url.rstrip("/")
        self.provider = provider
        self.timeout = timeout
        self._headers = {"User-Agent": "nhl-schedule/1.0", "Accept": "application/json"}

    def url_for(self, path: str) -> str:
        """Absolute URLs pass through; relative paths are joined onto the base URL."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    def get_json(self, path: str) -> Dict[str, Any]:
        """
        Execute a GET request to base_url + path and return parsed JSON.

        Raises:
            TransportFailure on network errors, non-2xx responses and non-JSON bodies.
        """
        url = self.url_for(path)
        try:
            r = requests.get(url, timeout=self.timeout, headers=self._headers)
        except requests.RequestException as e:
            raise TransportFailure(url, reason=str(e)) from e

        if not r.ok:
            raise TransportFailure(url, status=r.status_code, reason=r.reason or "")

        try:
            body = r.json()
        except ValueError as e:
            raise TransportFailure(url, status=r.status_code, reason="body is not valid JSON") from e

        if not isinstance(body, dict):
            raise TransportFailure(url, status=r.status_code, reason="expected a JSON object")

        logger.debug("GET %s -> %s", url, r.status_code)
        return body

    def schedule_path(self, start: date, end: date) -> str:
        """Schedule path for a date range (statsapi) or the week starting at start (web)."""
        if self.provider == PROVIDER_STATSAPI:
            query = urlencode({
                "startDate": start.isoformat(),
                "endDate": end.isoformat(),
                "expand": "schedule.linescore",
            })
            return f"/schedule?{query}"
        return f"/v1/schedule/{start.isoformat()}"

    def schedule(self, start: date, end: date) -> Dict[str, Any]:
        """Fetch the schedule payload for [start, end]. Web returns a whole week."""
        return self.get_json(self.schedule_path(start, end))

    def playoffs_path(self, season_id: str) -> str:
        """Playoff bracket path for an 8-digit season id (e.g. 20232024)."""
        if self.provider == PROVIDER_STATSAPI:
            query = urlencode({
                "expand": "round.series,schedule.game.seriesSummary",
                "season": season_id,
            })
            return f"/tournaments/playoffs?{query}"
        return f"/v1/playoff-series/carousel/{season_id}/"

    def playoffs(self, season_id: str) -> Dict[str, Any]:
        """Fetch the playoff bracket payload for a season."""
        return self.get_json(self.playoffs_path(season_id))

    def teams(self, teams_url: str) -> Dict[str, Any]:
        """Fetch the team catalog."""
        return self.get_json(teams_url)
