import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient

import app as app_module
import football_api
import chat
import league_ratings
import player_db
from models import PositionSlot
from tests.helpers.factories import make_player


class AppTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        patches = [
            mock.patch.object(player_db, "DB_PATH", Path(self.temp_dir.name) / "test.db"),
            mock.patch.object(league_ratings, "load_league_table", return_value=None),
            mock.patch.object(app_module, "load_league_table", return_value=None),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)
        self.addCleanup(self.temp_dir.cleanup)

        player_db.init_db()
        player_db.upsert_players(
            [
                make_player("Robert Sanchez", ["GK"], rating=78),
                make_player("Levi Colwill", ["CB"], rating=80, contract_expiry=date(2029, 6, 30)),
                make_player("Tosin Adarabioyo", ["CB"], rating=74, age=27),
                make_player("Nicolas Jackson", ["ST"], rating=79),
                make_player("Marc Guehi", ["CB"], rating=84, club="Crystal Palace"),
                make_player("Jarrad Branthwaite", ["CB"], rating=69, club="Everton"),
            ]
        )
        self.client = TestClient(app_module.app)


class HealthAndPlayersTests(AppTestCase):
    def test_health(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

    def test_list_players(self) -> None:
        resp = self.client.get("/players")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()), 6)

        club = self.client.get("/players", params={"club_only": True}).json()
        self.assertEqual(len(club), 4)
        self.assertTrue(all(not p["is_external"] for p in club))

        cbs = self.client.get("/players", params={"position": "cb"}).json()
        self.assertEqual(len(cbs), 4)

    def test_get_player(self) -> None:
        body = self.client.get("/players/levi-colwill").json()
        self.assertEqual(body["name"], "Levi Colwill")
        self.assertEqual(body["category"], "Defenders")
        self.assertEqual(body["rating"], 80)
        self.assertEqual(body["contract_expiry"], "2029-06-30")
        self.assertEqual(self.client.get("/players/nobody").status_code, 404)

    def test_my_rating(self) -> None:
        body = self.client.get("/players/nicolas-jackson/my-rating").json()
        self.assertEqual(body["position_key"], "F")
        self.assertIsNotNone(body["my_rating"])
        self.assertEqual(self.client.get("/players/nobody/my-rating").status_code, 404)


class PitchTests(AppTestCase):
    def test_first_team_pitch(self) -> None:
        resp = self.client.get("/squads/first-team/pitch")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["formation"], "4-3-3")
        self.assertEqual(len(body["pitch"]), 11)

        by_slot = {s["slot"]: s for s in body["pitch"]}
        self.assertEqual(by_slot["GK"]["player"]["id"], "robert-sanchez")
        self.assertEqual(by_slot["CB1"]["player"]["id"], "levi-colwill")
        self.assertEqual(by_slot["CB2"]["player"]["id"], "tosin-adarabioyo")
        self.assertIsNone(by_slot["LB"]["player"])
        self.assertIn("LB", body["empty_slots"])
        self.assertEqual(by_slot["CB1"]["depth"]["count"], 2)
        self.assertEqual(body["total_rating"], 311.0)

    def test_shadow_pitch_excludes_first_team(self) -> None:
        body = self.client.get("/squads/shadow/pitch").json()
        self.assertEqual(body["squad_type"], "shadow")
        self.assertTrue(all(s["player"] is None for s in body["pitch"]))

    def test_shadow_pitch_ignores_stored_first_team_player(self) -> None:
        player_db.save_position_slots(
            "Chelsea FC", "4-3-3", "shadow", [PositionSlot("GK", "robert-sanchez", [])]
        )
        body = self.client.get("/squads/shadow/pitch").json()
        by_slot = {s["slot"]: s for s in body["pitch"]}
        self.assertIsNone(by_slot["GK"]["player"])

    def test_stored_assignment_wins(self) -> None:
        self.client.post(
            "/squads/first-team/slots/CB1/add", json={"player_id": "tosin-adarabioyo"}
        )
        body = self.client.get("/squads/first-team/pitch").json()
        by_slot = {s["slot"]: s for s in body["pitch"]}
        self.assertEqual(by_slot["CB1"]["player"]["id"], "tosin-adarabioyo")
        self.assertEqual(by_slot["CB2"]["player"]["id"], "levi-colwill")

    def test_unknown_formation(self) -> None:
        resp = self.client.get("/squads/first-team/pitch", params={"formation": "5-5-0"})
        self.assertEqual(resp.status_code, 400)

    def test_unknown_squad_type(self) -> None:
        self.assertEqual(self.client.get("/squads/reserves/pitch").status_code, 422)


class RecommendationTests(AppTestCase):
    def test_recommendations_sorted_by_priority(self) -> None:
        body = self.client.get("/squads/recommendations").json()
        self.assertEqual(len(body), 6)
        order = {"Critical": 0, "High": 1, "Medium": 2, "Low": 3, "Strong": 4}
        ranks = [order[a["priority"]] for a in body]
        self.assertEqual(ranks, sorted(ranks))

    def test_candidates(self) -> None:
        body = self.client.get("/squads/recommendations/CB/candidates").json()
        self.assertEqual([p["id"] for p in body], ["marc-guehi", "jarrad-branthwaite"])
        resp = self.client.get("/squads/recommendations/XX/candidates")
        self.assertEqual(resp.status_code, 404)

    def test_depth_detail(self) -> None:
        s = player_db.create_shortlist("Centre backs")
        player_db.add_to_shortlist(s.id, "jarrad-branthwaite")

        body = self.client.get("/squads/depth/CB1").json()
        self.assertEqual(body["depth"]["count"], 2)
        self.assertEqual(body["depth"]["color"], "amber")
        self.assertEqual([p["id"] for p in body["shortlisted"]], ["jarrad-branthwaite"])
        # Branthwaite is below the recommendation threshold
        self.assertEqual([p["id"] for p in body["recommended"]], ["marc-guehi"])


class SlotTests(AppTestCase):
    def _action(self, action, player_id, **extra):
        return self.client.post(
            f"/squads/first-team/slots/CB1/{action}",
            json={"player_id": player_id, **extra},
        )

    def test_default_slots_follow_auto_assignment(self) -> None:
        body = self.client.get("/squads/first-team/slots").json()
        self.assertEqual(
            [(s["position"], s["active_player_id"]) for s in body],
            [
                ("GK", "robert-sanchez"),
                ("CB1", "levi-colwill"),
                ("CB2", "tosin-adarabioyo"),
                ("ST", "nicolas-jackson"),
            ],
        )

    def test_slot_actions(self) -> None:
        body = self._action("add", "levi-colwill").json()
        self.assertEqual(body, [{"position": "CB1", "active_player_id": "levi-colwill", "alternate_player_ids": []}])

        body = self._action("add", "tosin-adarabioyo").json()
        self.assertEqual(body[0]["alternate_player_ids"], ["tosin-adarabioyo"])

        body = self._action("reorder", "tosin-adarabioyo", direction="up").json()
        self.assertEqual(body[0]["active_player_id"], "tosin-adarabioyo")
        self.assertEqual(body[0]["alternate_player_ids"], ["levi-colwill"])

        body = self._action("activate", "levi-colwill").json()
        self.assertEqual(body[0]["active_player_id"], "levi-colwill")

        body = self._action("remove", "levi-colwill").json()
        self.assertEqual(body[0]["active_player_id"], "tosin-adarabioyo")
        self.assertEqual(body[0]["alternate_player_ids"], [])

        stored = self.client.get("/squads/first-team/slots").json()
        self.assertEqual(stored, body)

    def test_bad_reorder_direction(self) -> None:
        self._action("add", "levi-colwill")
        resp = self._action("reorder", "levi-colwill", direction="sideways")
        self.assertEqual(resp.status_code, 400)

    def test_put_slots(self) -> None:
        slots = [{"position": "GK", "active_player_id": "robert-sanchez", "alternate_player_ids": []}]
        resp = self.client.put("/squads/first-team/slots", json={"slots": slots})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.client.get("/squads/first-team/slots").json(), slots)

        bad = [{"position": "GK", "active_player_id": "a", "alternate_player_ids": ["a"]}]
        resp = self.client.put("/squads/shadow/slots", json={"slots": bad})
        self.assertEqual(resp.status_code, 400)

    def test_put_slots_rejects_player_active_twice(self) -> None:
        slots = [
            {"position": "CB1", "active_player_id": "levi-colwill", "alternate_player_ids": []},
            {"position": "CB2", "active_player_id": "levi-colwill", "alternate_player_ids": []},
        ]
        resp = self.client.put("/squads/first-team/slots", json={"slots": slots})
        self.assertEqual(resp.status_code, 400)

    def test_shadow_slots_reject_first_team_players(self) -> None:
        resp = self.client.post(
            "/squads/shadow/slots/GK/add", json={"player_id": "robert-sanchez"}
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(player_db.load_position_slots("Chelsea FC", "4-3-3", "shadow"), [])

        slots = [{"position": "CB1", "active_player_id": "marc-guehi", "alternate_player_ids": ["levi-colwill"]}]
        resp = self.client.put("/squads/shadow/slots", json={"slots": slots})
        self.assertEqual(resp.status_code, 400)

        slots[0]["alternate_player_ids"] = []
        resp = self.client.put("/squads/shadow/slots", json={"slots": slots})
        self.assertEqual(resp.status_code, 200)

    def test_first_team_player_cannot_start_in_two_slots(self) -> None:
        resp = self.client.post(
            "/squads/first-team/slots/GK/add", json={"player_id": "robert-sanchez"}
        )
        self.assertEqual(resp.status_code, 200)
        resp = self.client.post(
            "/squads/first-team/slots/ST/add", json={"player_id": "robert-sanchez"}
        )
        self.assertEqual(resp.status_code, 400)
        stored = player_db.load_position_slots("Chelsea FC", "4-3-3", "first-team")
        self.assertEqual([s.position for s in stored], ["GK"])


class SquadConfigurationRouteTests(AppTestCase):
    def _create(self, **overrides):
        body = {
            "name": "Cup side",
            "position_assignments": {"GK": "robert-sanchez", "CB1": "tosin-adarabioyo"},
        }
        body.update(overrides)
        return self.client.post("/squad-configurations", json=body)

    def test_create_and_list(self) -> None:
        resp = self._create(description="Rotation")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["formation"], "4-3-3")
        self.assertEqual(body["squad_type"], "first-team")
        self.assertEqual(body["club"], "Chelsea FC")
        self.assertEqual(body["description"], "Rotation")

        listed = self.client.get("/squad-configurations").json()
        self.assertEqual([c["id"] for c in listed], [body["id"]])

    def test_create_invalid(self) -> None:
        self.assertEqual(self._create(name="  ").status_code, 400)
        self.assertEqual(self._create(formation="9-0-1").status_code, 400)
        self.assertEqual(self._create(position_assignments={"LWB": "levi-colwill"}).status_code, 400)
        self.assertEqual(self.client.get("/squad-configurations").json(), [])

    def test_update(self) -> None:
        config_id = self._create().json()["id"]
        resp = self.client.put(
            f"/squad-configurations/{config_id}",
            json={"name": "League side", "is_default": True},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["name"], "League side")
        self.assertTrue(body["is_default"])
        self.assertEqual(body["position_assignments"]["GK"], "robert-sanchez")

        bad_slot = self.client.put(
            f"/squad-configurations/{config_id}", json={"formation": "3-5-2", "position_assignments": {"LB": "x"}}
        )
        self.assertEqual(bad_slot.status_code, 400)
        self.assertEqual(self.client.put(f"/squad-configurations/{config_id}", json={"name": ""}).status_code, 400)
        self.assertEqual(self.client.put("/squad-configurations/missing", json={"name": "x"}).status_code, 404)

    def test_delete(self) -> None:
        config_id = self._create().json()["id"]
        resp = self.client.delete(f"/squad-configurations/{config_id}")
        self.assertEqual(resp.json(), {"deleted": True, "id": config_id})
        self.assertEqual(self.client.delete(f"/squad-configurations/{config_id}").status_code, 404)

    def test_load_replaces_slots(self) -> None:
        config_id = self._create().json()["id"]
        resp = self.client.post(f"/squad-configurations/{config_id}/load")
        self.assertEqual(resp.status_code, 200)
        stored = player_db.load_position_slots("Chelsea FC", "4-3-3", "first-team")
        self.assertEqual(
            {s.position: s.active_player_id for s in stored},
            {"GK": "robert-sanchez", "CB1": "tosin-adarabioyo"},
        )
        pitch = self.client.get("/squads/first-team/pitch").json()
        cb1 = next(s for s in pitch["pitch"] if s["slot"] == "CB1")
        self.assertEqual(cb1["player"]["id"], "tosin-adarabioyo")
        self.assertEqual(self.client.post("/squad-configurations/missing/load").status_code, 404)

    def test_load_shadow_rejects_first_team_player(self) -> None:
        rejected = self._create(squad_type="shadow", position_assignments={"GK": "robert-sanchez"})
        resp = self.client.post(f"/squad-configurations/{rejected.json()['id']}/load")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(player_db.load_position_slots("Chelsea FC", "4-3-3", "shadow"), [])

        accepted = self._create(squad_type="shadow", position_assignments={"CB1": "marc-guehi"})
        resp = self.client.post(f"/squad-configurations/{accepted.json()['id']}/load")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()[0]["active_player_id"], "marc-guehi")


class ShortlistRouteTests(AppTestCase):
    def test_create_and_edit(self) -> None:
        created = self.client.post("/shortlists", json={"name": "Summer targets"}).json()
        sid = created["id"]

        body = self.client.post(f"/shortlists/{sid}/players/marc-guehi").json()
        self.assertEqual(body["player_ids"], ["marc-guehi"])

        body = self.client.delete(f"/shortlists/{sid}/players/marc-guehi").json()
        self.assertEqual(body["player_ids"], [])
        self.assertEqual(len(self.client.get("/shortlists").json()), 1)

    def test_errors(self) -> None:
        self.assertEqual(self.client.post("/shortlists", json={"name": " "}).status_code, 400)
        self.assertEqual(self.client.post("/shortlists/missing/players/marc-guehi").status_code, 404)
        sid = self.client.post("/shortlists", json={"name": "x"}).json()["id"]
        self.assertEqual(self.client.post(f"/shortlists/{sid}/players/nobody").status_code, 404)
        self.assertEqual(self.client.delete("/shortlists/missing/players/marc-guehi").status_code, 404)


class WeightRouteTests(AppTestCase):
    def test_defaults(self) -> None:
        body = self.client.get("/my-rating/weights").json()
        self.assertEqual(set(body), {"GK", "CB", "RB", "LB", "DM", "CM", "AM", "W", "F"})

    def test_put_merges_and_reset(self) -> None:
        gk = [{"id": "shot_stopping", "label": "Shot Stopping", "weight": 100, "attributes": []}]
        resp = self.client.put("/my-rating/weights", json={"GK": gk})
        self.assertEqual(resp.status_code, 200)

        body = self.client.get("/my-rating/weights").json()
        self.assertEqual(len(body["GK"]), 1)
        self.assertEqual(body["GK"][0]["weight"], 100)
        self.assertIn("CB", body)

        reset = self.client.post("/my-rating/weights/reset").json()
        self.assertGreater(len(reset["GK"]), 1)
        self.assertEqual(self.client.get("/my-rating/weights").json(), reset)

    def test_put_invalid(self) -> None:
        bad = [{"id": "x", "label": "X", "weight": 150, "attributes": []}]
        self.assertEqual(self.client.put("/my-rating/weights", json={"GK": bad}).status_code, 400)
        unknown = [{"id": "x", "label": "X", "weight": 50, "attributes": []}]
        self.assertEqual(self.client.put("/my-rating/weights", json={"SW": unknown}).status_code, 400)


class SearchChatImportTests(AppTestCase):
    def test_search(self) -> None:
        body = self.client.post("/search", json={"query": "colwill"}).json()
        self.assertEqual(body["totalResults"], 1)
        self.assertEqual(body["results"][0]["player_id"], "levi-colwill")
        self.assertEqual(self.client.post("/search", json={"query": ""}).status_code, 400)

    def test_chat_without_key(self) -> None:
        with mock.patch.object(chat, "GEMINI_API_KEY", ""):
            resp = self.client.post("/chat", json={"query": "colwill"})
        self.assertEqual(resp.status_code, 502)

    def test_chat(self) -> None:
        with mock.patch.object(app_module, "chat_generate", return_value="Sign him.") as gen:
            body = self.client.post("/chat", json={"query": "colwill"}).json()
        self.assertEqual(body["response"], "Sign him.")
        self.assertEqual(len(body["searchResults"]), 1)
        self.assertEqual(gen.call_args[0][0], "colwill")

    def test_import_requires_team(self) -> None:
        resp = self.client.post("/imports/players", json={})
        self.assertEqual(resp.status_code, 400)

    def test_reports(self) -> None:
        self.assertEqual(
            self.client.post("/reports", json={"player_id": "nobody"}).status_code, 404
        )
        self.assertEqual(
            self.client.post("/reports", json={"player_id": "marc-guehi", "status": "final"}).status_code,
            400,
        )
        resp = self.client.post(
            "/reports",
            json={"player_id": "marc-guehi", "summary": "Leader at the back", "status": "submitted"},
        )
        self.assertEqual(resp.status_code, 200)
        report = resp.json()
        self.assertEqual(report["status"], "submitted")

        listed = self.client.get("/reports", params={"player_id": "marc-guehi"}).json()
        self.assertEqual([r["id"] for r in listed], [report["id"]])
        self.assertEqual(self.client.get("/reports", params={"player_id": "levi-colwill"}).json(), [])

        found = self.client.post("/search", json={"query": "guehi"}).json()["results"]
        self.assertEqual([r["type"] for r in found], ["player", "report"])
        self.assertEqual(found[1]["report_id"], report["id"])

    def test_import_team(self) -> None:
        payload = {"status": "success", "response": {"name": "Everton", "league": "Premier League"}}
        ok = mock.Mock(status_code=200, ok=True)
        ok.json.return_value = payload
        with mock.patch.object(football_api.requests, "get", return_value=ok):
            resp = self.client.post("/imports/teams", json={"team_id": 8668})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["inserted"])

        teams = self.client.get("/teams").json()
        self.assertEqual(len(teams), 1)
        self.assertEqual(teams[0]["name"], "Everton")
        self.assertEqual(teams[0]["external_api_id"], "8668")
        self.assertEqual(teams[0]["league"], "Premier League")

    def test_import_team_errors(self) -> None:
        self.assertEqual(self.client.post("/imports/teams", json={}).status_code, 400)
        failing = mock.Mock(status_code=503, ok=False)
        with mock.patch.object(football_api.requests, "get", return_value=failing), \
                mock.patch.object(football_api.time, "sleep"):
            resp = self.client.post("/imports/teams", json={"team_id": "8668"})
        self.assertEqual(resp.status_code, 502)
        self.assertIn("Failed to fetch team data", resp.json()["detail"])
        self.assertEqual(self.client.get("/teams").json(), [])


if __name__ == "__main__":
    unittest.main()
