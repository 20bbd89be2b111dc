"""
Scoreboard aggregation for one match tick.

This module contains the only tricky bit of the match logic: matching
participants' submissions against the active problems without crediting
any problem twice.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, List, Mapping, Sequence, Tuple

from config.settings import PENALTY_PER_MINUTE
from models.problem import AssignedProblem, ProblemId, ScoreEntry, Submission


@dataclass(frozen=True)
class Credit:
    """A problem slot awarded to a participant."""

    handle: str
    slot: int
    problem_id: ProblemId
    awarded: int
    submitted_at: datetime


@dataclass(frozen=True)
class ScoreboardResult:
    entries: Tuple[ScoreEntry, ...]
    credits: Tuple[Credit, ...]

    @property
    def credited_slots(self) -> FrozenSet[int]:
        return frozenset(credit.slot for credit in self.credits)


def time_penalty(start_time: datetime, submitted_at: datetime) -> int:
    """
    Points lost for solving late: PENALTY_PER_MINUTE per started minute.

    A submission in the first second of the match costs nothing.
    """
    elapsed = (submitted_at - start_time).total_seconds()
    if elapsed <= 0:
        return 0
    return PENALTY_PER_MINUTE * math.ceil(elapsed / 60)


def aggregate(
    submissions_by_handle: Mapping[str, Sequence[Submission]],
    active_problems: Sequence[AssignedProblem],
    start_time: datetime,
) -> ScoreboardResult:
    """
    Score one tick.

    Participants are evaluated in the mapping's order, so when two of them
    solve the same problem in the same tick the first one listed gets it.
    Each participant's submissions are scanned oldest first and a single
    submission credits at most one slot.

    Args:
        submissions_by_handle: Recent submissions per participant, in participant order
        active_problems: Problems still open, in slot order
        start_time: When the problem set was revealed

    Returns:
        ScoreboardResult with entries sorted by score (ties keep participant
        order) and the credits awarded. Inputs are not modified.
    """
    open_slots: Dict[int, AssignedProblem] = dict(enumerate(active_problems))
    credits: List[Credit] = []
    entries: List[ScoreEntry] = []

    for handle, submissions in submissions_by_handle.items():
        score = 0
        solved: List[ProblemId] = []

        eligible = sorted(
            (s for s in submissions if s.submitted_at >= start_time and s.accepted),
            key=lambda s: s.submitted_at,
        )
        for submission in eligible:
            slot = next(
                (
                    idx for idx, assigned in open_slots.items()
                    if assigned.problem_id == submission.problem_id
                ),
                None,
            )
            if slot is None:
                continue

            assigned = open_slots.pop(slot)
            awarded = max(0, assigned.points - time_penalty(start_time, submission.submitted_at))
            score += awarded
            solved.append(assigned.problem_id)
            credits.append(Credit(
                handle=handle,
                slot=slot,
                problem_id=assigned.problem_id,
                awarded=awarded,
                submitted_at=submission.submitted_at,
            ))

        entries.append(ScoreEntry(handle=handle, score=score, solved=tuple(solved)))

    # sorted() is stable, so equal scores keep participant order
    ranked = tuple(sorted(entries, key=lambda entry: -entry.score))
    return ScoreboardResult(entries=ranked, credits=tuple(credits))


def remaining_problems(
    active_problems: Sequence[AssignedProblem],
    result: ScoreboardResult,
) -> Tuple[AssignedProblem, ...]:
    """Active problems minus the slots credited in `result`."""
    credited = result.credited_slots
    return tuple(
        assigned for idx, assigned in enumerate(active_problems)
        if idx not in credited
    )
