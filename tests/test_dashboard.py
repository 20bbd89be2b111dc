import io
import unittest
from contextlib import redirect_stdout
from unittest import mock

from fastapi.testclient import TestClient

from event_logger import log_event
from runtime import set_match_registry
from services.match_registry import MatchRegistry
from services.match_session import MatchSession, MatchState
from web.app import app
from web.server import start_dashboard_server

from match_fixtures import FakeCodeforcesClient, FakeFetcher, FrozenClock, div2_problems, make_catalog, use_temp_storage

AUTH = ("admin", "secret")


class DashboardTests(unittest.TestCase):
    def setUp(self):
        use_temp_storage(self)
        for name, value in (("DASHBOARD_USERNAME", "admin"), ("DASHBOARD_PASSWORD", "secret")):
            patcher = mock.patch(f"web.routes.auth.{name}", value)
            patcher.start()
            self.addCleanup(patcher.stop)

        self.registry = MatchRegistry(make_catalog(per_rating=2), FakeCodeforcesClient(["alice"]), persist=False)
        set_match_registry(self.registry)
        self.addCleanup(set_match_registry, None)
        self.client = TestClient(app)

    def add_session(self, match_id=1, guild_id=7):
        session = MatchSession(
            match_id=match_id,
            division="2",
            problems=div2_problems(),
            participants=("alice",),
            tick_interval_seconds=60,
            tick_budget=3,
            fetcher=FakeFetcher(),
            guild_id=guild_id,
            on_finish=self.registry._on_session_finished,
            clock=FrozenClock(),
        )
        self.registry._sessions[match_id] = session
        return session

    def test_requires_credentials(self):
        self.assertEqual(self.client.get("/api/overview").status_code, 401)
        self.assertEqual(self.client.get("/api/overview", auth=("admin", "wrong")).status_code, 401)

    def test_disabled_without_password(self):
        with mock.patch("web.routes.auth.DASHBOARD_PASSWORD", ""):
            response = self.client.get("/api/overview", auth=AUTH)
        self.assertEqual(response.status_code, 503)

    def test_not_running_without_registry(self):
        set_match_registry(None)
        self.assertEqual(self.client.get("/api/catalog", auth=AUTH).status_code, 503)

    def test_overview_and_catalog(self):
        self.add_session()

        overview = self.client.get("/api/overview", auth=AUTH).json()
        self.assertEqual(overview, {"running_matches": 1, "catalog_loaded": True, "catalog_size": 14})

        catalog = self.client.get("/api/catalog", auth=AUTH).json()
        self.assertEqual(catalog["buckets"]["800"], 2)
        self.assertEqual(len(catalog["buckets"]), 7)

    def test_match_listing_and_detail(self):
        self.add_session(1, guild_id=7)
        self.add_session(2, guild_id=8)

        listing = self.client.get("/api/matches", params={"guild_id": 7}, auth=AUTH).json()
        self.assertEqual([m["match_id"] for m in listing["running"]], [1])
        self.assertEqual(listing["recent"], [])

        detail = self.client.get("/api/matches/2", auth=AUTH).json()
        self.assertTrue(detail["running"])
        self.assertEqual(detail["participants"], ["alice"])

        self.assertEqual(self.client.get("/api/matches/99", auth=AUTH).status_code, 404)

    def test_cancel_match(self):
        session = self.add_session()

        response = self.client.post("/api/matches/1/cancel", auth=AUTH)

        self.assertEqual(response.json(), {"match_id": 1, "cancelled": True})
        self.assertEqual(session.state, MatchState.CANCELLED)
        recent = self.client.get("/api/matches", auth=AUTH).json()["recent"]
        self.assertEqual([(m["id"], m["status"]) for m in recent], [(1, "cancelled")])
        self.assertEqual(self.client.post("/api/matches/1/cancel", auth=AUTH).status_code, 404)

    def test_events(self):
        log_event("match_started", match_id=1)
        log_event("catalog_loaded", problems=3)

        events = self.client.get("/api/events", params={"event": "catalog_loaded"}, auth=AUTH).json()
        self.assertEqual([e["problems"] for e in events], [3])

        self.assertEqual(self.client.post("/api/events/clear", json={}, auth=AUTH).status_code, 400)
        cleared = self.client.post("/api/events/clear", json={"confirm": True}, auth=AUTH).json()
        self.assertEqual(cleared["removed_lines"], 2)

        remaining = self.client.get("/api/events", auth=AUTH).json()
        self.assertEqual([e["event"] for e in remaining], ["dashboard_admin_clear_logs"])

    def test_dashboard_needs_a_password_to_start(self):
        output = io.StringIO()
        with mock.patch("web.server.build_dashboard_server") as build, redirect_stdout(output):
            self.assertIsNone(start_dashboard_server(password=""))
        build.assert_not_called()
        self.assertIn("Dashboard disabled", output.getvalue())

    def test_dashboard_runs_on_a_daemon_thread(self):
        server = mock.Mock()
        with mock.patch("web.server.build_dashboard_server", return_value=server) as build:
            thread = start_dashboard_server(password="secret", host="127.0.0.1", port=9000)
        thread.join(timeout=5)

        build.assert_called_once_with("127.0.0.1", 9000)
        server.run.assert_called_once_with()
        self.assertTrue(thread.daemon)

    def test_index_page(self):
        self.add_session()
        response = self.client.get("/", auth=AUTH)
        self.assertEqual(response.status_code, 200)
        self.assertIn("Catalog: 14 problems", response.text)
        self.assertIn("#1", response.text)


if __name__ == "__main__":
    unittest.main()
