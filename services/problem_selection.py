"""
Problem-set selection for virtual matches.

Each division maps to a fixed list of ratings. One problem is drawn at
random per rating slot and slots are worth 100, 200, 300, ... points.
"""

import random
from typing import Optional, Tuple, Union

from config.settings import BASE_POINTS, DIVISION_RATINGS, POINT_STEP
from models.catalog import ProblemCatalog
from models.problem import AssignedProblem
from services.errors import EmptyCatalogBucketError, InvalidDivisionError


def normalize_division(division: Union[str, int]) -> str:
    """
    Normalize a division argument ("2", 2, " 2 ") to its settings key.

    Raises:
        InvalidDivisionError: If the division is not 1, 2 or 3
    """
    key = str(division).strip()
    if key not in DIVISION_RATINGS:
        raise InvalidDivisionError(division)
    return key


def division_ratings(division: Union[str, int]) -> Tuple[int, ...]:
    """Ratings drawn for a division, in slot order."""
    return DIVISION_RATINGS[normalize_division(division)]


def select_problem_set(
    catalog: ProblemCatalog,
    division: Union[str, int],
    rng: Optional[random.Random] = None,
) -> Tuple[AssignedProblem, ...]:
    """
    Draw a problem set for a division.

    Draws are independent, so the same catalog problem may in theory land
    in two slots that share a rating.

    Args:
        catalog: Loaded problem catalog
        division: Division tier (1, 2 or 3)
        rng: Random source (tests pass a seeded one)

    Returns:
        Assigned problems in slot order

    Raises:
        InvalidDivisionError: Unknown division
        EmptyCatalogBucketError: No problems at one of the division's ratings
    """
    rng = rng or random
    ratings = division_ratings(division)

    selected = []
    points = BASE_POINTS
    for rating in ratings:
        bucket = catalog.problems_at(rating)
        if not bucket:
            raise EmptyCatalogBucketError(rating)
        selected.append(AssignedProblem.assign(rng.choice(bucket), points))
        points += POINT_STEP

    return tuple(selected)
