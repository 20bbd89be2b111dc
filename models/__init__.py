"""
Models module for the Codeforces Match Bot.

This module contains data structures and storage.
"""

from models.database import get_connection, close_connection, configure_database
from models.problem import (
    ProblemId,
    Problem,
    AssignedProblem,
    Submission,
    ScoreEntry,
)
from models.catalog import ProblemCatalog, store_problems
from models.match_history import (
    record_match_started,
    record_match_finished,
    get_recent_matches,
    get_match_standings,
)

__all__ = [
    # Database
    "get_connection",
    "close_connection",
    "configure_database",
    # Value types
    "ProblemId",
    "Problem",
    "AssignedProblem",
    "Submission",
    "ScoreEntry",
    # Catalog
    "ProblemCatalog",
    "store_problems",
    # Match history
    "record_match_started",
    "record_match_finished",
    "get_recent_matches",
    "get_match_standings",
]
