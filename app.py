# app.py
"""
Flask entrypoint for the NHL schedule service.

Routes:
  JSON:
    - /api/schedule          current rotation page (what the display shows now)
    - /api/schedule/all      every published game
    - /api/playoffs          latest playoff series, if any were published
    - /health                poller diagnostics

Query parameters:
  - offset=N (for /api/schedule; show an explicit page instead of the rotating one)

Notes:
  - The poller and rotation window are built once per process.
  - Run with gunicorn using the factory: gunicorn "app:create_app()"
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from nhl_schedule.config import AppConfig
from nhl_schedule.handlers.rotation_window import RotationWindow
from nhl_schedule.handlers.schedule_poller import SchedulePoller
from nhl_schedule.logging_setup import setup_logging
from nhl_schedule.models import game_to_dict, season_to_dict, series_to_dict
from nhl_schedule.nhl_client import NHLClient


def create_app(
    cfg: Optional[AppConfig] = None,
    poller: Optional[SchedulePoller] = None,
    start_poller: bool = True,
) -> Flask:
    """
    App factory.

    Builds shared dependencies (client + poller + rotation window) once per
    process and wires the rotation window as a poller subscriber.
    """
    cfg = cfg or AppConfig()
    setup_logging(cfg.log_level)

    if poller is None:
        client = NHLClient(cfg.nhl_api_base, cfg.provider, timeout=cfg.http_timeout_seconds)
        poller = SchedulePoller(client=client, config=cfg)

    rotation = RotationWindow(page_size=cfg.page_size, rotate_interval_seconds=cfg.rotate_interval_seconds)
    poller.subscribe(rotation.on_schedule)

    app = Flask(__name__)
    app.extensions["schedule_poller"] = poller
    app.extensions["rotation_window"] = rotation

    # -------------------------
    # Shared parsing helpers
    # -------------------------

    def parse_int(name: str, default: Optional[int]) -> Optional[int]:
        """Parse an integer query param with default fallback."""
        try:
            return int(request.args.get(name, default))
        except Exception:
            return default

    # -------------------------
    # Schedule routes
    # -------------------------

    @app.get("/api/schedule")
    def api_schedule():
        """
        Current page of the schedule.

        Query:
          - offset=N (optional, 0-based; clamped to the published list)
        """
        view = rotation.view()
        offset = parse_int("offset", None)
        if offset is None or rotation.snapshot is None:
            return jsonify(view)

        games = rotation.games
        offset = max(0, min(offset, max(len(games) - 1, 0)))
        view["rotateIndex"] = offset
        view["maxGames"] = min(len(games), offset + rotation.page_size)
        view["games"] = [game_to_dict(g) for g in games[offset:offset + rotation.page_size]]
        return jsonify(view)

    @app.get("/api/schedule/all")
    def api_schedule_all():
        """Every game of the latest published schedule."""
        snapshot = poller.schedule
        out: Dict[str, Any] = {
            "loading": snapshot is None,
            "publishedAt": snapshot.published_at.isoformat() if snapshot else None,
            "season": season_to_dict(snapshot.season) if snapshot else None,
            "games": [game_to_dict(g) for g in snapshot.games] if snapshot else [],
        }
        return jsonify(out)

    @app.get("/api/playoffs")
    def api_playoffs():
        """Latest playoff bracket (empty until the playoff path has run once)."""
        snapshot = poller.playoffs
        return jsonify({
            "publishedAt": snapshot.published_at.isoformat() if snapshot else None,
            "series": [series_to_dict(s) for s in snapshot.series] if snapshot else [],
        })

    # -------------------------
    # Health
    # -------------------------

    @app.get("/health")
    def health():
        """Health endpoint for Docker/monitoring checks."""
        stats = poller.stats
        return {
            "ok": True,
            "state": poller.state.value,
            "cycles": stats.cycles,
            "failures": stats.failures,
            "skipped": stats.skipped,
            "droppedRecords": stats.dropped_records,
            "lastSuccess": stats.last_success.isoformat() if stats.last_success else None,
            "lastError": stats.last_error,
            "rotating": rotation.is_rotating,
        }

    if start_poller:
        poller.start()

    return app


if __name__ == "__main__":
    # Dev server (not for production).
    create_app().run(host="0.0.0.0", port=int(os.getenv("PORT", "8000")), debug=False)
