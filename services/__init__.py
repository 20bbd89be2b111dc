"""
Services module for the Codeforces Match Bot.

This module contains business logic: the Codeforces client, problem-set
selection, scoring, match sessions and embed building.

Only the error types are re-exported here; import the other services from
their own modules (models.catalog depends on services.errors).
"""

from services.errors import (
    MatchError,
    InvalidInputError,
    InvalidDivisionError,
    UnknownUserError,
    EmptyCatalogBucketError,
    ExternalFetchError,
    CodeforcesError,
    CodeforcesNotFoundError,
    CatalogLoadError,
    StorageError,
)

__all__ = [
    "MatchError",
    "InvalidInputError",
    "InvalidDivisionError",
    "UnknownUserError",
    "EmptyCatalogBucketError",
    "ExternalFetchError",
    "CodeforcesError",
    "CodeforcesNotFoundError",
    "CatalogLoadError",
    "StorageError",
]
