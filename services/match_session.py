"""
Virtual match sessions.

A MatchSession owns one running match: its problem set, participants,
point decay and tick schedule. Each tick fetches every participant's recent
submissions, scores them, decays the remaining problems and reports the
results, until the tick budget runs out or the match is cancelled.

Sessions share no mutable state, so any number can run on the same loop.
"""

import asyncio
from collections import OrderedDict
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config.settings import POINT_DECAY_PER_TICK, SUBMISSION_WINDOW
from event_logger import log_event
from models.problem import AssignedProblem, ScoreEntry, Submission
from services.errors import ExternalFetchError
from services.scoreboard import ScoreboardResult, aggregate, remaining_problems


class MatchState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    SCORING = "scoring"
    DECAYING = "decaying"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


FINISHED_STATES = (MatchState.COMPLETED, MatchState.CANCELLED)


class MatchReporter:
    """
    Receives everything a match wants to tell its players.

    The default implementation does nothing; services.reporting.ChannelReporter
    posts embeds to a Discord channel.
    """

    async def match_started(self, session: "MatchSession") -> None:
        pass

    async def scoreboard(self, session: "MatchSession", entries: Sequence[ScoreEntry]) -> None:
        pass

    async def problems(self, session: "MatchSession", problems: Sequence[AssignedProblem]) -> None:
        pass

    async def tick_failed(self, session: "MatchSession", error: Exception) -> None:
        pass

    async def match_over(self, session: "MatchSession") -> None:
        pass

    async def match_cancelled(self, session: "MatchSession") -> None:
        pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MatchSession:
    """
    One virtual match.

    Lifecycle:
    CREATED -> RUNNING -> (per tick: SCORING -> DECAYING) -> ... -> COMPLETED

    cancel() moves any unfinished session to CANCELLED.
    """

    def __init__(
        self,
        match_id: int,
        division: str,
        problems: Sequence[AssignedProblem],
        participants: Sequence[str],
        tick_interval_seconds: int,
        tick_budget: int,
        fetcher,
        reporter: Optional[MatchReporter] = None,
        *,
        guild_id: Optional[int] = None,
        channel_id: Optional[int] = None,
        created_by: Optional[int] = None,
        on_finish: Optional[Callable[["MatchSession"], None]] = None,
        on_tick: Optional[Callable[["MatchSession"], None]] = None,
        clock: Callable[[], datetime] = _utc_now,
        sleep=asyncio.sleep,
    ):
        """
        Args:
            match_id: Process-wide match number
            division: Division tier the problems were drawn for
            problems: Assigned problems in slot order
            participants: Codeforces handles; their order breaks ties
            tick_interval_seconds: Delay before each tick
            tick_budget: Number of ticks to run
            fetcher: Object with `fetch_recent_submissions(handle, count=...)`
            reporter: Where results are published
            on_finish: Called once when the session completes or is cancelled
            on_tick: Called after every tick that leaves the session running
            clock: Current UTC time (tests freeze it)
            sleep: Coroutine used to wait between ticks (tests stub it)
        """
        self.match_id = match_id
        self.division = division
        self.participants: Tuple[str, ...] = tuple(participants)
        self.tick_interval_seconds = tick_interval_seconds
        self.tick_budget = tick_budget
        self.fetcher = fetcher
        self.reporter = reporter or MatchReporter()
        self.guild_id = guild_id
        self.channel_id = channel_id
        self.created_by = created_by
        self.on_finish = on_finish
        self.on_tick = on_tick
        self._clock = clock
        self._sleep = sleep

        # Codeforces timestamps are whole seconds
        self.created_at = clock().replace(microsecond=0)
        self.finished_at: Optional[datetime] = None

        self.original_problems: Tuple[AssignedProblem, ...] = tuple(problems)
        self.active_problems: Tuple[AssignedProblem, ...] = tuple(problems)
        self.ticks_elapsed = 0
        self.state = MatchState.CREATED
        self.totals: Dict[str, int] = {handle: 0 for handle in self.participants}
        self.last_scoreboard: Tuple[ScoreEntry, ...] = ()
        self.last_error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return (
            f"<MatchSession #{self.match_id} div{self.division} {self.state.value} "
            f"{self.ticks_elapsed}/{self.tick_budget}>"
        )

    @property
    def is_finished(self) -> bool:
        return self.state in FINISHED_STATES

    @property
    def ticks_remaining(self) -> int:
        return max(0, self.tick_budget - self.ticks_elapsed)

    # =========================================================================
    # SCHEDULING
    # =========================================================================

    def start(self) -> asyncio.Task:
        """Schedule the tick loop; the first tick runs after one interval."""
        if self.state is not MatchState.CREATED:
            raise RuntimeError(f"Match #{self.match_id} was already started")
        self.state = MatchState.RUNNING
        self._task = asyncio.create_task(self._run(), name=f"cf-match-{self.match_id}")
        return self._task

    async def _run(self) -> None:
        while not self.is_finished:
            await self._sleep(self.tick_interval_seconds)
            if self.is_finished:
                break
            await self.run_tick()

    async def wait_finished(self) -> None:
        """Wait for the tick loop to end (completed or cancelled)."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self.is_finished:
                raise

    async def cancel(self) -> bool:
        """
        Stop the match before its budget runs out.

        Returns:
            False if the match had already finished
        """
        if self.is_finished:
            return False

        self._finish(MatchState.CANCELLED)
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        log_event("match_cancelled", match_id=self.match_id, ticks_elapsed=self.ticks_elapsed)
        await self.notify("match_cancelled", self)
        return True

    # =========================================================================
    # TICK
    # =========================================================================

    async def _fetch_submissions(self) -> "OrderedDict[str, List[Submission]]":
        """
        Fetch every participant's recent submissions concurrently.

        Raises:
            ExternalFetchError: If any participant's fetch failed
        """
        results = await asyncio.gather(
            *(
                self.fetcher.fetch_recent_submissions(handle, count=SUBMISSION_WINDOW)
                for handle in self.participants
            ),
            return_exceptions=True,
        )

        by_handle: "OrderedDict[str, List[Submission]]" = OrderedDict()
        for handle, result in zip(self.participants, results):
            if isinstance(result, ExternalFetchError):
                raise result
            if isinstance(result, Exception):
                raise ExternalFetchError(f"Could not fetch submissions for {handle}: {result}") from result
            if isinstance(result, BaseException):
                raise result
            by_handle[handle] = list(result)
        return by_handle

    async def run_tick(self) -> Optional[ScoreboardResult]:
        """
        Run one tick: fetch, score, decay, then complete or wait for the next.

        A failed fetch is reported and skips scoring for this tick only;
        the problems still decay and the tick still counts.

        Returns:
            This tick's scoreboard, or None if scoring was skipped
        """
        if self.is_finished:
            return None

        self.state = MatchState.SCORING
        result: Optional[ScoreboardResult] = None
        try:
            submissions = await self._fetch_submissions()
        except ExternalFetchError as exc:
            self.last_error = str(exc)
            print(f"⚠️ Match #{self.match_id} tick {self.ticks_elapsed + 1} failed: {exc}")
            log_event(
                "match_tick_failed",
                match_id=self.match_id,
                tick=self.ticks_elapsed + 1,
                code=exc.code,
                error=str(exc),
            )
            await self.notify("tick_failed", self, exc)
        else:
            result = self._apply_scores(submissions)
            await self.notify("scoreboard", self, result.entries)

        if self.is_finished:
            return result

        self.state = MatchState.DECAYING
        self.active_problems = tuple(
            assigned.decayed(POINT_DECAY_PER_TICK) for assigned in self.active_problems
        )
        await self.notify("problems", self, self.active_problems)

        self.ticks_elapsed += 1
        if self.ticks_elapsed >= self.tick_budget:
            self._finish(MatchState.COMPLETED)
            log_event(
                "match_completed",
                match_id=self.match_id,
                standings=self.standings(),
            )
            await self.notify("match_over", self)
        else:
            self.state = MatchState.RUNNING
            self._call_hook(self.on_tick)
        return result

    def _apply_scores(self, submissions: Dict[str, List[Submission]]) -> ScoreboardResult:
        result = aggregate(submissions, self.active_problems, self.created_at)
        self.active_problems = remaining_problems(self.active_problems, result)
        for entry in result.entries:
            self.totals[entry.handle] = self.totals.get(entry.handle, 0) + entry.score
        self.last_scoreboard = result.entries

        for credit in result.credits:
            log_event(
                "match_problem_credited",
                match_id=self.match_id,
                handle=credit.handle,
                problem=str(credit.problem_id),
                awarded=credit.awarded,
                submitted_at=credit.submitted_at,
            )
        log_event(
            "match_tick_scored",
            match_id=self.match_id,
            tick=self.ticks_elapsed + 1,
            entries=[(entry.handle, entry.score) for entry in result.entries],
            remaining=[str(p.problem_id) for p in self.active_problems],
        )
        return result

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _finish(self, state: MatchState) -> None:
        self.state = state
        self.finished_at = self._clock()
        self._call_hook(self.on_finish)

    def _call_hook(self, hook) -> None:
        if hook is None:
            return
        try:
            hook(self)
        except Exception as exc:
            print(f"⚠️ Error updating match #{self.match_id}: {exc}")

    async def notify(self, method: str, *args) -> None:
        """Send something to the reporter; a failed send never stops the match."""
        try:
            await getattr(self.reporter, method)(*args)
        except Exception as exc:
            print(f"⚠️ Error reporting {method} for match #{self.match_id}: {exc}")
            log_event(
                "report_send_failed",
                match_id=self.match_id,
                report=method,
                error=str(exc),
            )

    def standings(self) -> List[Tuple[str, int]]:
        """Cumulative (handle, points), best first; ties keep participant order."""
        return sorted(
            ((handle, self.totals.get(handle, 0)) for handle in self.participants),
            key=lambda item: -item[1],
        )

    def summary(self) -> Dict:
        """JSON-safe snapshot for match history and the dashboard."""
        return {
            "match_id": self.match_id,
            "guild_id": self.guild_id,
            "channel_id": self.channel_id,
            "created_by": self.created_by,
            "division": self.division,
            "participants": list(self.participants),
            "problems": [
                {
                    "problem": str(assigned.problem_id),
                    "name": assigned.name,
                    "rating": assigned.rating,
                    "original_points": assigned.original_points,
                }
                for assigned in self.original_problems
            ],
            "active_problems": [
                {"problem": str(assigned.problem_id), "points": assigned.points}
                for assigned in self.active_problems
            ],
            "tick_interval_seconds": self.tick_interval_seconds,
            "tick_budget": self.tick_budget,
            "ticks_elapsed": self.ticks_elapsed,
            "state": self.state.value,
            "standings": self.standings(),
            "last_error": self.last_error,
            "created_at": self.created_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
