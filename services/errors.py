"""
Error types for match commands and Codeforces lookups.

Every error carries a stable ``code`` so cogs, the dashboard and the event
log can report the reason without string matching.
"""

from typing import Optional, Sequence


class MatchError(Exception):
    """Base class for every user-facing failure."""

    code = "MATCH_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(MatchError, ValueError):
    """Malformed command arguments."""

    code = "INVALID_INPUT"


class InvalidDivisionError(InvalidInputError):
    code = "INVALID_DIVISION"

    def __init__(self, division):
        super().__init__(f"Invalid division: {division}. Use 1, 2 or 3.")
        self.division = division


class UnknownUserError(MatchError):
    code = "UNKNOWN_USER"

    def __init__(self, handles: Sequence[str], detail: Optional[str] = None):
        joined = ";".join(handles)
        message = f"Invalid user in: {joined}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.handles = tuple(handles)


class EmptyCatalogBucketError(MatchError):
    code = "EMPTY_CATALOG_BUCKET"

    def __init__(self, rating: int):
        super().__init__(f"No problems rated {rating} are available in the catalog.")
        self.rating = rating


class ExternalFetchError(MatchError):
    """A request to Codeforces (or another external service) failed."""

    code = "EXTERNAL_FETCH_FAILURE"


class CodeforcesError(ExternalFetchError):
    """The Codeforces API answered with status FAILED."""

    def __init__(self, method: str, comment: str):
        super().__init__(f"Codeforces {method} failed: {comment}")
        self.method = method
        self.comment = comment


class CodeforcesNotFoundError(CodeforcesError):
    """The Codeforces API could not find the requested handle or contest."""


class CatalogLoadError(MatchError):
    code = "CATALOG_LOAD_FAILURE"


class StorageError(MatchError):
    """The sqlite store could not be read or written."""

    code = "STORAGE_FAILURE"
