"""Shared fixtures: raw payload builders and a fake NHL client."""

import threading
from datetime import datetime, timezone

import pytest

from nhl_schedule.config import AppConfig
from nhl_schedule.errors import TransportFailure
from nhl_schedule.models import Game, GameState, GameStatus, Team


def make_game(game_id, start="2024-01-10T00:00:00+00:00", day="2024-01-09", state=GameState.PREVIEW,
              home="AAA", away="BBB", season="20232024", game_type="R"):
    """Build a normalized Game directly, for pipeline-stage tests."""
    return Game(
        id=str(game_id),
        start=datetime.fromisoformat(start),
        calendar_day=day,
        status=GameStatus(state=state),
        home=Team(id=f"{home}-id", name=home, short_code=home),
        away=Team(id=f"{away}-id", name=away, short_code=away),
        season_tag=season,
        competition_type=game_type,
    )


def web_game(game_id, start_utc, state="FUT", home=("10", "TOR"), away=("8", "MTL"),
             season=20232024, game_type=2, **extra):
    """Raw api-web.nhle.com game record."""
    raw = {
        "id": game_id,
        "season": season,
        "gameType": game_type,
        "startTimeUTC": start_utc,
        "gameState": state,
        "homeTeam": {"id": int(home[0]), "abbrev": home[1], "placeName": {"default": home[1]}},
        "awayTeam": {"id": int(away[0]), "abbrev": away[1], "placeName": {"default": away[1]}},
    }
    raw.update(extra)
    return raw


def statsapi_game(game_pk, game_date, abstract="Preview", detailed="Scheduled",
                  home=(10, "Toronto Maple Leafs", 0), away=(8, "Montréal Canadiens", 0),
                  season="20232024", game_type="R", linescore=None):
    """Raw statsapi.web.nhl.com game record."""
    return {
        "gamePk": game_pk,
        "gameDate": game_date,
        "season": season,
        "gameType": game_type,
        "status": {"abstractGameState": abstract, "detailedState": detailed},
        "teams": {
            "home": {"team": {"id": home[0], "name": home[1]}, "score": home[2]},
            "away": {"team": {"id": away[0], "name": away[1]}, "score": away[2]},
        },
        "linescore": linescore or {},
    }


class FakeClient:
    """Stands in for NHLClient: returns canned payloads and records calls."""

    def __init__(self, provider="statsapi", schedule=None, teams=None, playoffs=None):
        self.provider = provider
        self.schedule_payload = schedule if schedule is not None else {"dates": []}
        self.teams_payload = teams if teams is not None else {"teams": []}
        self.playoffs_payload = playoffs if playoffs is not None else {"rounds": []}
        self.schedule_calls = []
        self.playoffs_calls = []
        self.teams_calls = 0
        self.fail_schedule = False
        self.fail_playoffs = False
        self.fail_teams = 0       # number of upcoming teams() calls that fail
        self.gate = None          # threading.Event; schedule() blocks until it is set
        self.entered = threading.Event()

    def schedule(self, start, end):
        self.schedule_calls.append((start, end))
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        if self.fail_schedule:
            raise TransportFailure("http://test/schedule", status=503)
        return self.schedule_payload

    def playoffs(self, season_id):
        self.playoffs_calls.append(season_id)
        if self.fail_playoffs:
            raise TransportFailure("http://test/playoffs", status=500)
        return self.playoffs_payload

    def teams(self, teams_url):
        self.teams_calls += 1
        if self.fail_teams:
            self.fail_teams -= 1
            raise TransportFailure("http://test/teams", status=502)
        return self.teams_payload


@pytest.fixture
def config():
    return AppConfig(
        provider="statsapi",
        nhl_api_base="http://test",
        teams_url="/teams",
        league_tz="America/Toronto",
        days_in_past=1,
        days_ahead=1,
        roll_over=False,
        reload_interval_ms=60_000,
        live_reload_interval_ms=1_000,
        page_size=6,
        rotate_interval_ms=20_000,
        team_focus=frozenset(),
    )


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 10, 17, 0, tzinfo=timezone.utc)
