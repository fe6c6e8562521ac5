"""Tests for display pagination."""

from datetime import datetime, timezone

import pytest

from conftest import make_game
from nhl_schedule.handlers.rotation_window import RotationWindow, advance
from nhl_schedule.models import ScheduleSnapshot, Season, SeasonMode


def snapshot(n):
    return ScheduleSnapshot(
        games=tuple(make_game(i) for i in range(n)),
        season=Season(year_label="23/24", mode=SeasonMode.REGULAR, season_id="20232024"),
        published_at=datetime(2024, 1, 10, tzinfo=timezone.utc),
    )


@pytest.fixture
def window():
    w = RotationWindow(page_size=6, rotate_interval_seconds=3600)
    yield w
    w.close()


class TestAdvance:
    def test_wraparound_sequence(self):
        offsets = [0]
        for _ in range(6):
            offsets.append(advance(offsets[-1], 14, 6))
        assert offsets == [0, 6, 12, 0, 6, 12, 0]

    def test_exact_multiple_wraps(self):
        assert advance(6, 12, 6) == 0

    def test_list_fits_on_one_page(self):
        assert advance(0, 6, 6) == 0
        assert advance(12, 3, 6) == 0

    def test_depends_only_on_inputs(self):
        assert advance(6, 14, 6) == advance(6, 14, 6) == 12


class TestRotationWindow:
    def test_rejects_non_positive_page_size(self):
        with pytest.raises(ValueError):
            RotationWindow(page_size=0, rotate_interval_seconds=1)

    def test_short_list_needs_no_timer(self, window):
        window.update(snapshot(4))
        assert not window.is_rotating
        assert len(window.page()) == 4

    def test_long_list_starts_one_timer(self, window):
        window.update(snapshot(14))
        timer = window._timer
        assert window.is_rotating
        window.update(snapshot(15))
        assert window._timer is timer

    def test_shrinking_list_stops_timer_and_resets_offset(self, window):
        window.update(snapshot(14))
        window.tick()
        assert window.offset == 6
        window.update(snapshot(3))
        assert not window.is_rotating
        assert window.offset == 0

    def test_ticks_page_through_games(self, window):
        window.update(snapshot(14))
        assert [g.id for g in window.page()] == ["0", "1", "2", "3", "4", "5"]
        window.tick()
        window.tick()
        assert [g.id for g in window.page()] == ["12", "13"]
        window.tick()
        assert window.offset == 0

    def test_offset_past_new_end_restarts(self, window):
        window.update(snapshot(20))
        window.tick()
        window.tick()
        window.tick()
        assert window.offset == 18
        window.update(snapshot(10))
        assert window.offset == 0
        assert window.is_rotating

    def test_view(self, window):
        assert window.view()["loading"] is True
        window.update(snapshot(8))
        window.tick()
        view = window.view()
        assert view["loading"] is False
        assert view["rotateIndex"] == 6
        assert view["maxGames"] == 8
        assert view["total"] == 8
        assert [g["id"] for g in view["games"]] == ["6", "7"]
        assert view["season"] == {"year": "23/24", "mode": "R", "id": "20232024"}

    def test_ignores_other_events(self, window):
        window.on_schedule("PLAYOFFS", object())
        assert window.snapshot is None
        window.on_schedule("SCHEDULE", snapshot(2))
        assert len(window.games) == 2
