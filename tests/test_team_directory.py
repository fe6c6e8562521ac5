"""Tests for the team directory and its degraded (empty) mode."""

from unittest.mock import MagicMock

from nhl_schedule.errors import TransportFailure
from nhl_schedule.services.team_directory import TeamDirectory


class TestFromPayload:
    def test_statsapi_shape(self):
        directory = TeamDirectory.from_payload({"teams": [
            {"id": 10, "name": "Toronto Maple Leafs", "abbreviation": "TOR"},
            {"id": 8, "name": "Montréal Canadiens", "abbreviation": "MTL"},
        ]})
        assert len(directory) == 2
        assert directory.short_code(10) == "TOR"
        assert directory.full_name("8") == "Montréal Canadiens"

    def test_stats_rest_shape(self):
        directory = TeamDirectory.from_payload({"data": [
            {"id": 55, "fullName": "Seattle Kraken", "triCode": "SEA"},
        ]})
        assert directory.short_code("55") == "SEA"
        assert directory.full_name(55) == "Seattle Kraken"

    def test_rows_without_code_or_id_are_skipped(self):
        directory = TeamDirectory.from_payload({"teams": [
            {"id": 1, "name": "No Code"},
            {"name": "No Id", "abbreviation": "NID"},
            "junk",
        ]})
        assert len(directory) == 0


class TestLoad:
    def test_load_fetches_once(self):
        client = MagicMock()
        client.teams.return_value = {"teams": [{"id": 10, "name": "Toronto Maple Leafs", "abbreviation": "TOR"}]}
        directory = TeamDirectory.load(client, "/teams")
        client.teams.assert_called_once_with("/teams")
        assert directory.short_code(10) == "TOR"
        assert directory.loaded is True

    def test_transport_failure_yields_empty_directory(self):
        client = MagicMock()
        client.teams.side_effect = TransportFailure("http://test/teams", status=500)
        directory = TeamDirectory.load(client, "/teams")
        assert len(directory) == 0
        assert directory.short_code(10) is None
        assert directory.loaded is False

    def test_malformed_body_yields_empty_directory(self):
        client = MagicMock()
        client.teams.return_value = {"message": "maintenance"}
        directory = TeamDirectory.load(client, "/teams")
        assert len(directory) == 0
        assert directory.loaded is False


class TestTeamBuilder:
    def test_empty_directory_degrades_to_id(self):
        team = TeamDirectory().team(10, None, "", 2)
        assert team.id == "10"
        assert team.short_code is None
        assert team.label == "10"
        assert team.name == "10"
        assert team.score == 2

    def test_negative_or_garbage_scores_become_zero(self):
        assert TeamDirectory().team(1, "AAA", "A", -3).score == 0
        assert TeamDirectory().team(1, "AAA", "A", "n/a").score == 0
