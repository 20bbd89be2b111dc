"""
Codeforces API client.

Thin async wrapper over the public API (https://codeforces.com/apiHelp)
used by the lookup commands and by match ticks.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from config.settings import (
    CODEFORCES_API_URL,
    CODEFORCES_MIN_REQUEST_INTERVAL,
    HTTP_TIMEOUT_SECONDS,
    SUBMISSION_WINDOW,
)
from models.problem import Problem, Submission
from services.errors import CodeforcesError, CodeforcesNotFoundError, ExternalFetchError


def _is_not_found(comment: str) -> bool:
    lowered = comment.lower()
    return "not found" in lowered or "should contain" in lowered or "not exist" in lowered


class CodeforcesClient:
    """
    Async Codeforces API client.

    One aiohttp session is shared by every call. Calls are spaced at least
    `min_interval` seconds apart across the whole client, so concurrent
    submission fetches of a tick queue up instead of tripping the API's
    rate limit.
    """

    def __init__(
        self,
        base_url: str = CODEFORCES_API_URL,
        min_interval: float = CODEFORCES_MIN_REQUEST_INTERVAL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.min_interval = min_interval
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._rate_lock = asyncio.Lock()
        self._last_call = 0.0

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _wait_rate_slot(self) -> None:
        async with self._rate_lock:
            wait = self.min_interval - (time.monotonic() - self._last_call)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_call = time.monotonic()

    async def _call(self, method: str, **params: Any) -> Any:
        """
        Call an API method and return its "result".

        Raises:
            CodeforcesNotFoundError: Unknown handle/contest
            CodeforcesError: Any other FAILED status
            ExternalFetchError: Network errors, timeouts, non-JSON replies
        """
        url = f"{self.base_url}/{method}"
        query = {k: str(v) for k, v in params.items() if v is not None}

        await self._wait_rate_slot()
        session = await self._get_session()
        try:
            async with session.get(url, params=query) as resp:
                # Codeforces answers 400 with a JSON body for bad handles/contests
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ExternalFetchError(f"Codeforces {method} request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise ExternalFetchError(f"Codeforces {method} returned an unexpected payload")

        if data.get("status") != "OK":
            comment = str(data.get("comment") or "unknown error")
            if _is_not_found(comment):
                raise CodeforcesNotFoundError(method, comment)
            raise CodeforcesError(method, comment)

        return data.get("result")

    async def fetch_user_info(self, handles: Sequence[str]) -> List[Dict]:
        """Batch user lookup; fails with CodeforcesNotFoundError if any handle is unknown."""
        return await self._call("user.info", handles=";".join(handles))

    async def fetch_user_rating(self, handle: str) -> List[Tuple[datetime, int]]:
        """Rating history as (update time, new rating) pairs, oldest first."""
        changes = await self._call("user.rating", handle=handle)
        return [
            (
                datetime.fromtimestamp(int(change["ratingUpdateTimeSeconds"]), tz=timezone.utc),
                int(change["newRating"]),
            )
            for change in changes
        ]

    async def fetch_contest_problems(self, contest_id: int) -> Tuple[Dict, List[Dict]]:
        """Contest metadata and its problem list."""
        result = await self._call(
            "contest.standings",
            contestId=contest_id,
            **{"from": 1, "count": 1},
        )
        return result.get("contest", {}), result.get("problems", [])

    async def fetch_recent_submissions(
        self,
        handle: str,
        start: int = 1,
        count: int = SUBMISSION_WINDOW,
    ) -> List[Submission]:
        """
        The handle's most recent submissions, newest first.

        Submissions without a contest id (e.g. acmsguru) cannot match a
        catalog problem and are skipped.
        """
        raw = await self._call("user.status", handle=handle, **{"from": start, "count": count})
        submissions = []
        for item in raw:
            try:
                submissions.append(Submission.from_api(handle, item))
            except (KeyError, TypeError, ValueError):
                continue
        return submissions

    async def fetch_problemset(self) -> List[Problem]:
        """Every rated problem in the public problemset."""
        result = await self._call("problemset.problems")
        problems = []
        for item in result.get("problems", []):
            if "rating" not in item or "contestId" not in item:
                continue
            problems.append(Problem.from_api(item))
        return problems
