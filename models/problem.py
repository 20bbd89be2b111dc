"""
Value types for problems, match assignments and submissions.

All of these are immutable. A match session replaces its assigned problems
with decayed copies instead of mutating them.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Tuple

from config.settings import ACCEPTED_VERDICT


@dataclass(frozen=True, order=True)
class ProblemId:
    """Codeforces problem reference: contest id + index within the contest."""

    contest_id: int
    index: str

    def __str__(self) -> str:
        return f"{self.contest_id}{self.index}"

    @classmethod
    def from_api(cls, data: dict) -> "ProblemId":
        return cls(int(data["contestId"]), str(data["index"]))


@dataclass(frozen=True)
class Problem:
    problem_id: ProblemId
    name: str
    rating: int

    @classmethod
    def from_api(cls, data: dict) -> "Problem":
        """
        Build a problem from a Codeforces problem object.

        Raises KeyError when the problem has no rating or contest id
        (gym and unrated problems).
        """
        return cls(
            problem_id=ProblemId.from_api(data),
            name=str(data.get("name", "")),
            rating=int(data["rating"]),
        )


@dataclass(frozen=True)
class AssignedProblem:
    """
    A catalog problem bound to one match.

    `points` is the current value and only ever goes down;
    `original_points` is the slot value given when the match started.
    """

    problem: Problem
    points: int
    original_points: int

    @classmethod
    def assign(cls, problem: Problem, points: int) -> "AssignedProblem":
        return cls(problem=problem, points=points, original_points=points)

    @property
    def problem_id(self) -> ProblemId:
        return self.problem.problem_id

    @property
    def name(self) -> str:
        return self.problem.name

    @property
    def rating(self) -> int:
        return self.problem.rating

    def decayed(self, amount: int) -> "AssignedProblem":
        """Return a copy worth `amount` fewer points, floored at zero."""
        return replace(self, points=max(0, self.points - amount))


@dataclass(frozen=True)
class Submission:
    handle: str
    problem_id: ProblemId
    verdict: str
    submitted_at: datetime

    @property
    def accepted(self) -> bool:
        return self.verdict == ACCEPTED_VERDICT

    @classmethod
    def from_api(cls, handle: str, data: dict) -> "Submission":
        # Submissions still in queue have no verdict yet
        return cls(
            handle=handle,
            problem_id=ProblemId.from_api(data["problem"]),
            verdict=str(data.get("verdict") or "TESTING"),
            submitted_at=datetime.fromtimestamp(int(data["creationTimeSeconds"]), tz=timezone.utc),
        )


@dataclass(frozen=True)
class ScoreEntry:
    """One participant's points for a single scoring tick."""

    handle: str
    score: int
    solved: Tuple[ProblemId, ...] = field(default_factory=tuple)
