import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

import football_api
import player_db
from football_api import FootballApiError, fetch_team, fetch_team_squad
from player_import import import_team, import_team_players, region_for
from tests.helpers.factories import make_player


def _response(payload, status=200):
    resp = mock.Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.json.return_value = payload
    return resp


SQUAD_PAYLOAD = {
    "status": "success",
    "response": {
        "list": {
            "squad": [
                {
                    "title": "coach",
                    "members": [
                        {"id": 1, "name": "Fabian Hurzeler", "role": {"key": "coach"}},
                    ],
                },
                {
                    "title": "defenders",
                    "members": [
                        {"id": 2, "name": "Lewis Dunk", "age": 33, "ccode": "ENG", "positionIdsDesc": "CB"},
                        {"id": 3, "name": "Jan Paul van Hecke", "age": 24, "ccode": "NED",
                         "positionIdsDesc": "CB, RB", "image": "https://img.test/3.png"},
                        {"id": 4, "name": "Pervis Estupinan", "age": 26, "ccode": "ECU",
                         "cname": "Ecuador", "positionIdsDesc": "LB"},
                    ],
                },
                {
                    "title": "attackers",
                    "members": [
                        {"id": 5, "name": "Danny Welbeck", "age": 34, "ccode": "ENG", "positionIdsDesc": "ST"},
                        {"id": 6, "name": "Kaoru Mitoma", "age": 27, "ccode": "JPN"},
                        {"id": 7, "name": "Injured Guy", "excludeFromRanking": True},
                        {"id": 8, "name": "LEWIS DUNK", "age": 33, "ccode": "ENG", "positionIdsDesc": "CB"},
                    ],
                },
            ]
        }
    },
}


class FetchTeamSquadTests(unittest.TestCase):
    def test_success(self) -> None:
        with mock.patch.object(football_api.requests, "get", return_value=_response(SQUAD_PAYLOAD)) as get:
            groups = fetch_team_squad("10204", api_key="k")
        self.assertEqual(len(groups), 3)
        args, kwargs = get.call_args
        self.assertTrue(args[0].endswith("/football-get-list-player"))
        self.assertEqual(kwargs["params"], {"teamid": "10204"})
        self.assertEqual(kwargs["headers"]["X-RapidAPI-Key"], "k")
        self.assertEqual(kwargs["headers"]["X-RapidAPI-Host"], "free-api-live-football-data.p.rapidapi.com")

    def test_retries_then_succeeds(self) -> None:
        responses = [
            _response({}, status=500),
            requests.ConnectionError("boom"),
            _response(SQUAD_PAYLOAD),
        ]
        with mock.patch.object(football_api.requests, "get", side_effect=responses) as get, \
                mock.patch.object(football_api.time, "sleep") as sleep:
            groups = fetch_team_squad("10204")
        self.assertEqual(len(groups), 3)
        self.assertEqual(get.call_count, 3)
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(2.0)

    def test_gives_up_after_three_attempts(self) -> None:
        bad = _response({"status": "failed", "message": "quota exceeded"})
        with mock.patch.object(football_api.requests, "get", return_value=bad) as get, \
                mock.patch.object(football_api.time, "sleep") as sleep:
            with self.assertRaises(FootballApiError) as ctx:
                fetch_team_squad("10204")
        self.assertEqual(get.call_count, 3)
        self.assertEqual(sleep.call_count, 2)
        self.assertIn("quota exceeded", str(ctx.exception))

    def test_missing_squad_is_invalid(self) -> None:
        bad = _response({"status": "success", "response": {"list": {}}})
        with mock.patch.object(football_api.requests, "get", return_value=bad), \
                mock.patch.object(football_api.time, "sleep"):
            with self.assertRaises(FootballApiError):
                fetch_team_squad("10204")


TEAM_PAYLOAD = {
    "status": "success",
    "response": {"name": "Everton", "league": "Premier League", "country": "England", "founded": 1878},
}


class FetchTeamTests(unittest.TestCase):
    def test_success(self) -> None:
        with mock.patch.object(football_api.requests, "get", return_value=_response(TEAM_PAYLOAD)) as get:
            team = fetch_team("8668", api_key="k")
        self.assertEqual(team.display_name, "Everton")
        self.assertEqual(team.league_name, "Premier League")
        self.assertEqual(team.country_name, "England")
        args, kwargs = get.call_args
        self.assertTrue(args[0].endswith("/football-get-team-by-id"))
        self.assertEqual(kwargs["params"], {"teamid": "8668"})

    def test_alternate_field_names(self) -> None:
        payload = {
            "status": "success",
            "response": {"team_name": "Everton", "competition": "EPL", "nation": "England"},
        }
        with mock.patch.object(football_api.requests, "get", return_value=_response(payload)):
            team = fetch_team("8668")
        self.assertEqual((team.display_name, team.league_name, team.country_name), ("Everton", "EPL", "England"))

    def test_gives_up_after_three_attempts(self) -> None:
        with mock.patch.object(football_api.requests, "get", return_value=_response({}, status=503)) as get, \
                mock.patch.object(football_api.time, "sleep") as sleep:
            with self.assertRaises(FootballApiError) as ctx:
                fetch_team("8668")
        self.assertEqual(get.call_count, 3)
        self.assertEqual(sleep.call_count, 2)
        self.assertIn("Failed to fetch team data after 3 attempts", str(ctx.exception))


class ImportTeamTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_patch = mock.patch.object(
            player_db, "DB_PATH", Path(self.temp_dir.name) / "test.db"
        )
        self.db_patch.start()
        player_db.init_db()

    def tearDown(self) -> None:
        self.db_patch.stop()
        self.temp_dir.cleanup()

    def test_imports_then_updates(self) -> None:
        with mock.patch.object(football_api.requests, "get", return_value=_response(TEAM_PAYLOAD)):
            first = import_team(8668)
            second = import_team("8668", team_name="Everton FC")

        self.assertTrue(first["inserted"])
        self.assertEqual(first["message"], "Successfully imported team Everton")
        self.assertEqual(first["teamId"], "8668")
        self.assertFalse(second["inserted"])
        self.assertEqual(second["message"], "Updated team Everton FC")

        teams = player_db.list_teams()
        self.assertEqual(len(teams), 1)
        self.assertEqual(teams[0]["name"], "Everton FC")
        self.assertEqual(teams[0]["league"], "Premier League")
        self.assertEqual(teams[0]["country"], "England")

    def test_roster_import_after_team_import(self) -> None:
        with mock.patch.object(football_api.requests, "get", return_value=_response(TEAM_PAYLOAD)):
            import_team("10204", team_name="Brighton")
        with mock.patch.object(football_api.requests, "get", return_value=_response(SQUAD_PAYLOAD)):
            summary = import_team_players("10204")
        self.assertEqual(summary["teamName"], "Brighton")
        self.assertEqual(summary["playersInserted"], 5)

    def test_missing_team_id(self) -> None:
        with self.assertRaises(ValueError):
            import_team("")

    def test_api_failure_stores_nothing(self) -> None:
        with mock.patch.object(football_api.requests, "get", side_effect=requests.ConnectionError("down")), \
                mock.patch.object(football_api.time, "sleep"):
            with self.assertRaises(FootballApiError):
                import_team("8668")
        self.assertEqual(player_db.list_teams(), [])


class ImportTeamPlayersTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_patch = mock.patch.object(
            player_db, "DB_PATH", Path(self.temp_dir.name) / "test.db"
        )
        self.db_patch.start()
        player_db.init_db()
        player_db.add_team("Brighton", "10204")

    def tearDown(self) -> None:
        self.db_patch.stop()
        self.temp_dir.cleanup()

    def _import(self, **kwargs):
        with mock.patch.object(football_api.requests, "get", return_value=_response(SQUAD_PAYLOAD)) as get:
            summary = import_team_players("10204", **kwargs)
        return summary, get

    def test_imports_players(self) -> None:
        player_db.upsert_player(make_player("Danny Welbeck", ["ST"], club="Elsewhere"))
        summary, _ = self._import()

        self.assertEqual(summary["teamName"], "Brighton")
        self.assertEqual(summary["totalPlayersFound"], 6)
        self.assertEqual(summary["playersInserted"], 4)
        self.assertEqual(summary["duplicatesSkipped"], 2)
        self.assertFalse(summary["forceReimport"])
        self.assertEqual(
            summary["message"], "Successfully imported 4 players for Brighton (2 duplicates skipped)"
        )

        by_name = {p.name: p for p in player_db.list_players() if p.club == "Brighton"}
        self.assertEqual(set(by_name), {"Lewis Dunk", "Jan Paul van Hecke", "Pervis Estupinan", "Kaoru Mitoma"})

    def test_player_fields(self) -> None:
        self._import()
        by_name = {p.name: p for p in player_db.list_players()}
        vh = by_name["Jan Paul van Hecke"]
        self.assertEqual(vh.positions, ["CB", "RB"])
        self.assertEqual(vh.nationality, "Netherlands")
        self.assertEqual(vh.region, "Europe")
        self.assertEqual(vh.image_url, "https://img.test/3.png")
        self.assertEqual(by_name["Kaoru Mitoma"].positions, ["Unknown"])
        self.assertEqual(by_name["Kaoru Mitoma"].region, "Asia")
        self.assertEqual(by_name["Pervis Estupinan"].nationality, "Ecuador")
        self.assertEqual(by_name["Pervis Estupinan"].region, "Unknown")

    def test_skips_when_club_already_imported(self) -> None:
        self._import()
        summary, get = self._import()
        self.assertTrue(summary["skipped"])
        self.assertEqual(summary["playersInserted"], 0)
        get.assert_not_called()

    def test_force_reimport(self) -> None:
        self._import()
        summary, get = self._import(force_reimport=True)
        self.assertEqual(get.call_count, 1)
        self.assertEqual(summary["playersInserted"], 5)
        self.assertTrue(summary["forceReimport"])
        self.assertEqual(player_db.count_club_players("Brighton"), 5)

    def test_force_reimport_keeps_players_when_api_fails(self) -> None:
        self._import()
        with mock.patch.object(football_api.requests, "get", side_effect=requests.ConnectionError("down")), \
                mock.patch.object(football_api.time, "sleep"):
            with self.assertRaises(FootballApiError):
                import_team_players("10204", force_reimport=True)
        self.assertEqual(player_db.count_club_players("Brighton"), 5)

    def test_missing_team_id(self) -> None:
        with self.assertRaises(ValueError):
            import_team_players(None)

    def test_unknown_team(self) -> None:
        with self.assertRaises(ValueError):
            import_team_players("999")

    def test_team_name_overrides_lookup(self) -> None:
        with mock.patch.object(football_api.requests, "get", return_value=_response(SQUAD_PAYLOAD)):
            summary = import_team_players("999", team_name="Brighton & Hove Albion")
        self.assertEqual(summary["teamName"], "Brighton & Hove Albion")

    def test_region_for(self) -> None:
        self.assertEqual(region_for("Brazil"), "South America")
        self.assertEqual(region_for("Mexico"), "North America")
        self.assertEqual(region_for("Senegal"), "Africa")
        self.assertEqual(region_for("Australia"), "Oceania")
        self.assertEqual(region_for("Atlantis"), "Unknown")


if __name__ == "__main__":
    unittest.main()
