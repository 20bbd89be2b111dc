"""
Shared fakes for the match tests.
"""

import asyncio
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from config.settings import DATABASE_PATH
from event_logger import get_event_log_path, set_event_log_path
from models.catalog import ProblemCatalog
from models.database import configure_database
from models.problem import AssignedProblem, Problem, ProblemId, Submission
from services.errors import CodeforcesNotFoundError
from services.match_session import MatchReporter

START = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_problem(contest_id: int, index: str, rating: int, name: str = "") -> Problem:
    return Problem(ProblemId(contest_id, index), name or f"Problem {contest_id}{index}", rating)


def make_catalog(per_rating: int = 3) -> ProblemCatalog:
    """Catalog with `per_rating` problems for every rating any division uses."""
    problems = []
    contest_id = 1000
    for rating in (800, 1200, 1600, 2000, 2400, 2800, 3200):
        for i in range(per_rating):
            problems.append(make_problem(contest_id, "ABCDEFG"[i], rating))
        contest_id += 1
    return ProblemCatalog.from_problems(problems)


def div2_problems():
    """A fixed division 2 problem set: 800, 800, 1600, 2000, 2400."""
    ratings = (800, 800, 1600, 2000, 2400)
    return tuple(
        AssignedProblem.assign(make_problem(1500 + i, "A", rating), 100 * (i + 1))
        for i, rating in enumerate(ratings)
    )


def accepted(handle: str, problem: Problem, at: datetime) -> Submission:
    return Submission(handle, problem.problem_id, "OK", at)


def rejected(handle: str, problem: Problem, at: datetime, verdict: str = "WRONG_ANSWER") -> Submission:
    return Submission(handle, problem.problem_id, verdict, at)


class FrozenClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


async def no_sleep(_seconds) -> None:
    await asyncio.sleep(0)


class FakeFetcher:
    """
    Returns canned submissions per handle.

    A value may be a list of submissions or an exception to raise.
    """

    def __init__(self, submissions=None):
        self.submissions = dict(submissions or {})
        self.calls = []

    async def fetch_recent_submissions(self, handle, start=1, count=5):
        self.calls.append((handle, count))
        await asyncio.sleep(0)
        value = self.submissions.get(handle, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


class FakeCodeforcesClient(FakeFetcher):
    """FakeFetcher that also knows which handles exist."""

    def __init__(self, known_handles, submissions=None):
        super().__init__(submissions)
        self.known = {h.lower(): h for h in known_handles}
        self.user_info_calls = []
        self.closed = False

    async def fetch_user_info(self, handles):
        self.user_info_calls.append(list(handles))
        missing = [h for h in handles if h.lower() not in self.known]
        if missing:
            raise CodeforcesNotFoundError("user.info", f"handles: User with handle {missing[0]} not found")
        return [{"handle": self.known[h.lower()]} for h in handles]

    async def close(self):
        self.closed = True


class RecordingReporter(MatchReporter):
    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def _record(self, name, payload=None):
        self.calls.append((name, payload))
        if name in self.fail_on:
            raise RuntimeError(f"{name} send failed")

    def of(self, name):
        return [payload for call, payload in self.calls if call == name]

    async def match_started(self, session):
        self._record("match_started", session.match_id)

    async def scoreboard(self, session, entries):
        self._record("scoreboard", [(e.handle, e.score) for e in entries])

    async def problems(self, session, problems):
        self._record("problems", [(str(p.problem_id), p.points) for p in problems])

    async def tick_failed(self, session, error):
        self._record("tick_failed", str(error))

    async def match_over(self, session):
        self._record("match_over", session.standings())

    async def match_cancelled(self, session):
        self._record("match_cancelled", session.ticks_elapsed)


def use_temp_storage(testcase) -> Path:
    """
    Point the database and event log at a temp dir for one test.
    """
    tmpdir = Path(tempfile.mkdtemp(prefix="cf-match-test-"))
    previous_log = get_event_log_path()
    configure_database(tmpdir / "test.db")
    set_event_log_path(tmpdir / "events.jsonl")

    def _restore():
        configure_database(DATABASE_PATH)
        set_event_log_path(previous_log)
        shutil.rmtree(tmpdir, ignore_errors=True)

    testcase.addCleanup(_restore)
    return tmpdir
