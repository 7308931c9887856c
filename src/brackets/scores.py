"""
Score validation for reported results.

Matches are best of three racks, so a valid result is 2-0 or 2-1 for
either player. Ties never reach the bracket engine.
"""
import re
from typing import Optional, Tuple

from .results import Failure, INVALID_SCORE

RACKS_TO_WIN = 2


def parse_score(value) -> Optional[int]:
    """Parse a submitted score; ``None`` when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r'-?[0-9]+', value.strip()):
        return int(value.strip())
    return None


def validate_best_of_three(score1, score2) -> Tuple[Optional[Tuple[int, int]], Optional[Failure]]:
    """Return the parsed ``(score1, score2)`` or an ``invalid_score`` failure."""
    s1, s2 = parse_score(score1), parse_score(score2)
    if (s1 is None or s2 is None
            or not 0 <= s1 <= RACKS_TO_WIN or not 0 <= s2 <= RACKS_TO_WIN
            or (s1 != RACKS_TO_WIN and s2 != RACKS_TO_WIN)
            or s1 == s2):
        return None, Failure(INVALID_SCORE,
                             f'Invalid score {score1}-{score2}: must be a 2-0 or 2-1 win.')
    return (s1, s2), None
