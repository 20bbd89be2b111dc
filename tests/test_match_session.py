import asyncio
import unittest
from datetime import timedelta

from event_logger import read_recent_events
from services.errors import ExternalFetchError
from services.match_session import MatchSession, MatchState

from match_fixtures import (
    START,
    FakeFetcher,
    FrozenClock,
    RecordingReporter,
    accepted,
    div2_problems,
    no_sleep,
    use_temp_storage,
)


async def sleep_forever(_seconds):
    await asyncio.Event().wait()


class MatchSessionTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        use_temp_storage(self)
        self.problems = div2_problems()
        self.clock = FrozenClock()
        self.reporter = RecordingReporter()
        self.finished = []

    def make_session(self, fetcher, participants=("alice", "bob"), tick_budget=3, sleep=no_sleep, reporter=None):
        return MatchSession(
            match_id=1,
            division="2",
            problems=self.problems,
            participants=participants,
            tick_interval_seconds=60,
            tick_budget=tick_budget,
            fetcher=fetcher,
            reporter=reporter or self.reporter,
            on_finish=self.finished.append,
            clock=self.clock,
            sleep=sleep,
        )

    async def test_two_player_match_runs_to_completion(self):
        first = self.problems[0].problem
        fetcher = FakeFetcher({"alice": [accepted("alice", first, START)], "bob": []})
        session = self.make_session(fetcher)

        await session.run_tick()
        self.assertEqual(self.reporter.of("scoreboard")[0], [("alice", 100), ("bob", 0)])
        self.assertEqual(
            [points for _, points in self.reporter.of("problems")[0]],
            [197, 297, 397, 497],
        )
        self.assertEqual(session.state, MatchState.RUNNING)

        # Same submissions again: the slot is gone, nobody scores
        await session.run_tick()
        self.assertEqual(self.reporter.of("scoreboard")[1], [("alice", 0), ("bob", 0)])
        self.assertEqual(
            [points for _, points in self.reporter.of("problems")[1]],
            [194, 294, 394, 494],
        )

        await session.run_tick()
        self.assertEqual(session.state, MatchState.COMPLETED)
        self.assertEqual(session.ticks_elapsed, 3)
        self.assertEqual(self.reporter.of("match_over"), [[("alice", 100), ("bob", 0)]])
        self.assertEqual(self.finished, [session])
        self.assertIsNotNone(session.finished_at)

        # A finished session ignores further ticks
        self.assertIsNone(await session.run_tick())
        self.assertEqual(session.ticks_elapsed, 3)

    async def test_scores_accumulate_across_ticks(self):
        p = [assigned.problem for assigned in self.problems]
        fetcher = FakeFetcher({"alice": [accepted("alice", p[0], START)], "bob": []})
        session = self.make_session(fetcher)

        await session.run_tick()
        fetcher.submissions["bob"] = [accepted("bob", p[1], START + timedelta(seconds=90))]
        await session.run_tick()

        # 197 after one decay, minus 6 for two started minutes
        self.assertEqual(session.totals, {"alice": 100, "bob": 191})
        self.assertEqual(session.standings(), [("bob", 191), ("alice", 100)])
        self.assertEqual(session.last_scoreboard[0].handle, "bob")

    async def test_points_never_decay_below_zero(self):
        session = self.make_session(FakeFetcher(), participants=("alice",), tick_budget=40)
        for _ in range(40):
            await session.run_tick()

        self.assertEqual(session.state, MatchState.COMPLETED)
        self.assertEqual([a.points for a in session.active_problems], [0, 80, 180, 280, 380])

    async def test_fetch_failure_skips_scoring_but_tick_counts(self):
        first = self.problems[0].problem
        fetcher = FakeFetcher({
            "alice": [accepted("alice", first, START)],
            "bob": ExternalFetchError("Codeforces is down"),
        })
        session = self.make_session(fetcher)

        result = await session.run_tick()

        self.assertIsNone(result)
        self.assertEqual(self.reporter.of("scoreboard"), [])
        self.assertEqual(self.reporter.of("tick_failed"), ["Codeforces is down"])
        self.assertEqual(session.ticks_elapsed, 1)
        self.assertEqual(len(session.active_problems), 5)
        self.assertEqual(session.active_problems[0].points, 97)
        self.assertEqual(session.last_error, "Codeforces is down")
        self.assertEqual(read_recent_events(event="match_tick_failed")[0]["code"], "EXTERNAL_FETCH_FAILURE")

    async def test_unexpected_fetch_error_is_reported_as_fetch_failure(self):
        session = self.make_session(FakeFetcher({"alice": RuntimeError("bad payload")}))

        await session.run_tick()

        failures = self.reporter.of("tick_failed")
        self.assertEqual(len(failures), 1)
        self.assertIn("alice", failures[0])
        self.assertEqual(session.ticks_elapsed, 1)

    async def test_failed_report_does_not_stop_the_match(self):
        reporter = RecordingReporter(fail_on={"scoreboard"})
        session = self.make_session(FakeFetcher(), tick_budget=1, reporter=reporter)

        await session.run_tick()

        self.assertEqual(session.state, MatchState.COMPLETED)
        self.assertEqual(len(reporter.of("match_over")), 1)
        events = read_recent_events(event="report_send_failed")
        self.assertEqual(events[0]["report"], "scoreboard")

    async def test_on_tick_runs_for_unfinished_ticks_only(self):
        ticks = []
        session = self.make_session(FakeFetcher(), tick_budget=2)
        session.on_tick = lambda s: ticks.append(s.ticks_elapsed)

        await session.run_tick()
        await session.run_tick()

        self.assertEqual(ticks, [1])
        self.assertEqual(self.finished, [session])

    async def test_fetches_every_participant(self):
        fetcher = FakeFetcher()
        session = self.make_session(fetcher, participants=("alice", "bob", "carol"))
        await session.run_tick()
        self.assertEqual(sorted(handle for handle, _ in fetcher.calls), ["alice", "bob", "carol"])

    async def test_start_runs_every_tick(self):
        session = self.make_session(FakeFetcher(), tick_budget=2)

        session.start()
        await session.wait_finished()

        self.assertEqual(session.state, MatchState.COMPLETED)
        self.assertEqual(len(self.reporter.of("problems")), 2)
        self.assertEqual(self.finished, [session])

    async def test_start_twice_is_an_error(self):
        session = self.make_session(FakeFetcher(), sleep=sleep_forever)
        session.start()
        with self.assertRaises(RuntimeError):
            session.start()
        await session.cancel()

    async def test_cancel_stops_the_tick_loop(self):
        session = self.make_session(FakeFetcher(), sleep=sleep_forever)
        session.start()
        await asyncio.sleep(0)

        self.assertTrue(await session.cancel())
        await session.wait_finished()

        self.assertEqual(session.state, MatchState.CANCELLED)
        self.assertEqual(session.ticks_elapsed, 0)
        self.assertEqual(self.reporter.of("match_cancelled"), [0])
        self.assertEqual(self.finished, [session])
        self.assertFalse(await session.cancel())
        self.assertEqual(len(self.finished), 1)

    async def test_cancel_after_completion_returns_false(self):
        session = self.make_session(FakeFetcher(), tick_budget=1)
        await session.run_tick()
        self.assertFalse(await session.cancel())
        self.assertEqual(self.reporter.of("match_cancelled"), [])

    def test_start_time_is_whole_seconds(self):
        self.clock.now = START.replace(microsecond=750000)
        session = self.make_session(FakeFetcher())
        self.assertEqual(session.created_at, START)

    def test_summary_is_plain_data(self):
        session = self.make_session(FakeFetcher())
        summary = session.summary()

        self.assertEqual(summary["state"], "created")
        self.assertEqual(summary["participants"], ["alice", "bob"])
        self.assertEqual([p["original_points"] for p in summary["problems"]], [100, 200, 300, 400, 500])
        self.assertEqual(summary["created_at"], START.isoformat())
        self.assertIsNone(summary["finished_at"])


if __name__ == "__main__":
    unittest.main()
