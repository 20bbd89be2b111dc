"""
Problem catalog for the Codeforces Match Bot.

The catalog is an in-memory snapshot of rated problems grouped by rating.
It is loaded once from SQLite at startup and is read-only while matches run.
"""

import sqlite3
from typing import Dict, Iterable, List, Tuple

from event_logger import log_event
from models.database import get_connection
from models.problem import Problem, ProblemId
from services.errors import CatalogLoadError


def store_problems(problems: Iterable[Problem]) -> int:
    """
    Insert or update problems in the persistent store.

    Args:
        problems: Rated problems to save

    Returns:
        Number of rows written
    """
    rows = [
        (p.problem_id.contest_id, p.problem_id.index, p.name, p.rating)
        for p in problems
    ]
    conn = get_connection()
    cursor = conn.cursor()
    cursor.executemany("""
        INSERT INTO problems (contest_id, problem_index, name, rating)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(contest_id, problem_index) DO UPDATE SET
            name = excluded.name,
            rating = excluded.rating,
            updated_at = CURRENT_TIMESTAMP
    """, rows)
    conn.commit()
    return len(rows)


def fetch_stored_problems() -> List[Problem]:
    """Read every stored problem."""
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("""
        SELECT contest_id, problem_index, name, rating
        FROM problems
        ORDER BY rating, contest_id, problem_index
    """)
    return [
        Problem(
            problem_id=ProblemId(row["contest_id"], row["problem_index"]),
            name=row["name"],
            rating=row["rating"],
        )
        for row in cursor.fetchall()
    ]


class ProblemCatalog:
    """
    Snapshot of problems grouped by difficulty rating.

    Structure:
    {rating: (Problem, Problem, ...), ...}
    """

    def __init__(self):
        self._buckets: Dict[int, Tuple[Problem, ...]] = {}
        self._loaded = False

    @classmethod
    def from_problems(cls, problems: Iterable[Problem]) -> "ProblemCatalog":
        catalog = cls()
        catalog._replace(problems)
        return catalog

    def _replace(self, problems: Iterable[Problem]) -> None:
        grouped: Dict[int, List[Problem]] = {}
        for problem in problems:
            grouped.setdefault(problem.rating, []).append(problem)
        self._buckets = {rating: tuple(items) for rating, items in grouped.items()}
        self._loaded = True

    def load(self) -> bool:
        """
        Refresh the snapshot from the database.

        A failed load is logged and leaves the catalog empty, so matches
        fail with EmptyCatalogBucketError instead of crashing the bot.

        Returns:
            True if the catalog was loaded
        """
        try:
            problems = fetch_stored_problems()
        except sqlite3.Error as exc:
            error = CatalogLoadError(f"Could not read problems: {exc}")
            self._buckets = {}
            self._loaded = False
            print(f"❌ Failed to load problem catalog: {error}")
            log_event("catalog_load_failed", code=error.code, error=str(error))
            return False

        self._replace(problems)
        print(f"✅ Problem catalog loaded ({self.size} problems)")
        log_event("catalog_loaded", problems=self.size, buckets=self.bucket_sizes())
        return True

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def size(self) -> int:
        return sum(len(items) for items in self._buckets.values())

    def problems_at(self, rating: int) -> Tuple[Problem, ...]:
        """Problems with exactly this rating (empty tuple if none)."""
        return self._buckets.get(int(rating), ())

    def ratings(self) -> List[int]:
        return sorted(self._buckets)

    def bucket_sizes(self) -> Dict[int, int]:
        return {rating: len(self._buckets[rating]) for rating in self.ratings()}
