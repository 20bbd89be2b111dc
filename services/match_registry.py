"""
Match registry: the process-wide owner of match state.

The registry holds the problem catalog, the Codeforces client, the match
id counter and every running session. Cogs and the dashboard go through it
instead of touching module-level globals.
"""

import re
import random
import sqlite3
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from config.settings import MAX_MATCH_PARTICIPANTS, RECENT_MATCHES_LIMIT
from event_logger import log_event
from models import match_history
from models.catalog import ProblemCatalog, store_problems
from services.codeforces import CodeforcesClient
from services.errors import (
    CodeforcesNotFoundError,
    InvalidInputError,
    MatchError,
    StorageError,
    UnknownUserError,
)
from services.match_session import MatchReporter, MatchSession
from services.problem_selection import normalize_division, select_problem_set

_HANDLE_SEPARATORS = re.compile(r"[\s,;]+")


def parse_handles(raw: Iterable[str]) -> List[str]:
    """
    Split handle arguments and drop case-insensitive duplicates.

    Accepts a list of strings, each of which may hold several handles
    separated by spaces, commas or semicolons. First occurrence wins.
    """
    if isinstance(raw, str):
        raw = [raw]

    handles: List[str] = []
    seen = set()
    for chunk in raw:
        for handle in _HANDLE_SEPARATORS.split(chunk or ""):
            if not handle:
                continue
            key = handle.lower()
            if key in seen:
                continue
            seen.add(key)
            handles.append(handle)
    return handles


def _positive_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a positive integer!")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Failed to parse {name}!") from None
    if number != value and not isinstance(value, str):
        raise InvalidInputError(f"{name} must be a whole number!")
    if number < 1:
        raise InvalidInputError(f"{name} must be at least one!")
    return number


class MatchRegistry:
    """
    Owns every running match and the shared resources they use.

    Structure:
    {match_id: MatchSession, ...} for running matches, plus summaries of
    matches finished during this process.
    """

    def __init__(
        self,
        catalog: Optional[ProblemCatalog] = None,
        client: Optional[CodeforcesClient] = None,
        *,
        persist: bool = True,
        rng: Optional[random.Random] = None,
        session_factory: Callable[..., MatchSession] = MatchSession,
    ):
        """
        Args:
            catalog: Problem catalog (a new, unloaded one by default)
            client: Codeforces client shared by lookups and match ticks
            persist: Record matches in SQLite match history
            rng: Random source for problem selection
            session_factory: MatchSession constructor (tests inject frozen clocks)
        """
        self.catalog = catalog or ProblemCatalog()
        self.client = client or CodeforcesClient()
        self.persist = persist
        self.rng = rng
        self.session_factory = session_factory
        self._sessions: Dict[int, MatchSession] = {}
        self._finished: Dict[int, Dict] = {}
        self._last_match_id = self._read_last_match_id() if persist else 0

    # =========================================================================
    # STARTUP / SHUTDOWN
    # =========================================================================

    def load(self) -> bool:
        """
        Load the catalog and close history rows left running by a restart.

        Never raises; a broken store only makes new matches fail.
        """
        if self.persist:
            try:
                interrupted = match_history.mark_unfinished_matches_interrupted()
            except sqlite3.Error as exc:
                self._storage_failed("mark_interrupted", exc)
            else:
                if interrupted:
                    print(f"⚠️ Marked {interrupted} interrupted match(es) from a previous run")
        return self.catalog.load()

    def _read_last_match_id(self) -> int:
        try:
            return match_history.get_max_match_id()
        except sqlite3.Error as exc:
            self._storage_failed("read_last_match_id", exc)
            return 0

    def _storage_failed(self, operation: str, exc: Exception) -> StorageError:
        error = StorageError(f"Bot storage is unavailable ({operation}): {exc}")
        print(f"❌ Storage {operation} failed: {exc}")
        log_event("storage_failed", operation=operation, code=error.code, error=str(error))
        return error

    def reload_catalog(self) -> bool:
        return self.catalog.load()

    async def sync_catalog(self) -> int:
        """
        Pull rated problems from Codeforces into the store and reload.

        Returns:
            Number of problems stored

        Raises:
            ExternalFetchError: Codeforces could not be reached
            StorageError: The problems could not be saved
        """
        problems = await self.client.fetch_problemset()
        try:
            stored = store_problems(problems)
        except sqlite3.Error as exc:
            raise self._storage_failed("store_problems", exc) from exc
        self.catalog.load()
        log_event("catalog_synced", stored=stored, catalog_size=self.catalog.size)
        return stored

    async def shutdown(self) -> None:
        """Cancel running matches and close the HTTP session."""
        for session in list(self._sessions.values()):
            await session.cancel()
        await self.client.close()

    # =========================================================================
    # MATCHES
    # =========================================================================

    def _next_match_id(self) -> int:
        # No await between read and increment, so ids never collide
        self._last_match_id += 1
        return self._last_match_id

    async def start_match(
        self,
        division,
        tick_interval_seconds: int,
        tick_budget: int,
        handles: Sequence[str],
        reporter: Optional[MatchReporter] = None,
        *,
        guild_id: Optional[int] = None,
        channel_id: Optional[int] = None,
        created_by: Optional[int] = None,
    ) -> MatchSession:
        """
        Validate a match request, draw its problems and start it.

        Raises:
            InvalidInputError: Bad participant count, tick budget or interval
            UnknownUserError: A handle does not exist on Codeforces
            InvalidDivisionError: Division is not 1, 2 or 3
            EmptyCatalogBucketError: The catalog lacks problems for the division
            ExternalFetchError: Codeforces could not be reached
            StorageError: The match could not be recorded in history
        """
        try:
            session = await self._create_session(
                division,
                tick_interval_seconds,
                tick_budget,
                handles,
                reporter,
                guild_id=guild_id,
                channel_id=channel_id,
                created_by=created_by,
            )
            if self.persist:
                self._record_started(session)
        except MatchError as exc:
            log_event(
                "match_start_rejected",
                guild_id=guild_id,
                created_by=created_by,
                division=str(division),
                handles=list(handles) if not isinstance(handles, str) else [handles],
                code=exc.code,
                error=str(exc),
            )
            raise

        self._sessions[session.match_id] = session

        print(f"🏁 Match #{session.match_id} started (div {session.division}, {len(session.participants)} players)")
        log_event("match_started", **session.summary())
        await session.notify("match_started", session)
        session.start()
        return session

    async def _create_session(
        self,
        division,
        tick_interval_seconds,
        tick_budget,
        handles,
        reporter,
        **placement,
    ) -> MatchSession:
        participants = parse_handles(handles)
        if not participants:
            raise InvalidInputError("Please specify at least one user!")
        if len(participants) > MAX_MATCH_PARTICIPANTS:
            raise InvalidInputError(f"Please specify at most {MAX_MATCH_PARTICIPANTS} users!")

        tick_budget = _positive_int(tick_budget, "Time")
        tick_interval_seconds = _positive_int(tick_interval_seconds, "Interval")

        try:
            users = await self.client.fetch_user_info(participants)
        except CodeforcesNotFoundError as exc:
            raise UnknownUserError(participants, exc.comment) from exc

        # Use Codeforces' capitalisation from here on
        canonical = {str(u.get("handle", "")).lower(): u["handle"] for u in users if u.get("handle")}
        participants = [canonical.get(h.lower(), h) for h in participants]

        problems = select_problem_set(self.catalog, division, rng=self.rng)

        return self.session_factory(
            match_id=self._next_match_id(),
            division=normalize_division(division),
            problems=problems,
            participants=participants,
            tick_interval_seconds=tick_interval_seconds,
            tick_budget=tick_budget,
            fetcher=self.client,
            reporter=reporter,
            on_finish=self._on_session_finished,
            on_tick=self._on_session_tick,
            **placement,
        )

    def _record_started(self, session: MatchSession) -> None:
        try:
            match_history.record_match_started(session.summary())
        except sqlite3.Error as exc:
            raise self._storage_failed("record_match_started", exc) from exc

    def _on_session_tick(self, session: MatchSession) -> None:
        if self.persist:
            match_history.record_match_progress(session.match_id, session.ticks_elapsed)

    def _on_session_finished(self, session: MatchSession) -> None:
        self._sessions.pop(session.match_id, None)
        self._finished[session.match_id] = session.summary()
        if self.persist:
            match_history.record_match_finished(
                session.match_id,
                session.state.value,
                session.ticks_elapsed,
                session.standings(),
            )

    async def cancel_match(self, match_id: int) -> bool:
        """
        Cancel a running match.

        Returns:
            False if no running match has this id
        """
        session = self._sessions.get(match_id)
        if session is None:
            return False
        return await session.cancel()

    def get_match(self, match_id: int) -> Optional[MatchSession]:
        return self._sessions.get(match_id)

    def active_matches(self, guild_id: Optional[int] = None) -> List[MatchSession]:
        return [
            session for session in sorted(self._sessions.values(), key=lambda s: s.match_id)
            if guild_id is None or session.guild_id == guild_id
        ]

    def recent_matches(self, guild_id: Optional[int] = None, limit: int = RECENT_MATCHES_LIMIT) -> List[Dict]:
        """
        Finished matches, newest first.

        Reads match history when persisting, otherwise the in-memory summaries.
        """
        if self.persist:
            return match_history.get_recent_matches(guild_id, limit)

        recent = [
            summary for summary in self._finished.values()
            if guild_id is None or summary.get("guild_id") == guild_id
        ]
        recent.sort(key=lambda s: s["match_id"], reverse=True)
        return [
            {
                **s,
                "id": s["match_id"],
                "status": s["state"],
                "standings": [
                    {"handle": handle, "score": score, "position": i}
                    for i, (handle, score) in enumerate(s["standings"], start=1)
                ],
            }
            for s in recent[:limit]
        ]
