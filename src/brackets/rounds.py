"""
Round index and the "current round" cursor.
"""
from typing import List, Optional, Tuple

from .models import Bracket
from .results import (
    Failure, ROUND_INCOMPLETE, ALREADY_FINAL_ROUND, CURRENT_ROUND_INVALID,
)


def get_round_names(bracket: Optional[Bracket]) -> List[str]:
    """
    Distinct round names in ascending match-id order.

    Builders create matches round by round, so first-seen order is play
    order.
    """
    if bracket is None or not bracket.matches:
        return []
    names = []
    for match_id in sorted(bracket.matches):
        round_name = bracket.matches[match_id].round_name
        if round_name and round_name not in names:
            names.append(round_name)
    return names


def is_round_complete(bracket: Bracket, round_name: str) -> bool:
    """True when every match of the round has a winner."""
    matches = bracket.round_matches(round_name)
    return bool(matches) and all(m.winner is not None for m in matches)


def advance_round(bracket: Bracket, current_round: Optional[str] = None
                  ) -> Tuple[Optional[str], Optional[Failure]]:
    """
    Move ``bracket.current_round`` to the next round.

    ``current_round`` is the caller's view of the cursor; when given it
    must agree with the bracket. Returns ``(next_round, failure)`` and
    leaves the cursor alone on failure.
    """
    cursor = bracket.current_round
    if current_round is not None and current_round != cursor:
        return None, Failure(CURRENT_ROUND_INVALID,
                             f'Current round is "{cursor}", not "{current_round}".',
                             current_round=cursor)

    round_names = get_round_names(bracket)
    if cursor not in round_names:
        return None, Failure(CURRENT_ROUND_INVALID,
                             f'Current round "{cursor}" is not a round of this bracket.')

    position = round_names.index(cursor)
    if position >= len(round_names) - 1:
        return None, Failure(ALREADY_FINAL_ROUND, f'"{cursor}" is already the final round.')

    if not is_round_complete(bracket, cursor):
        pending = [m.id for m in bracket.round_matches(cursor) if m.winner is None]
        return None, Failure(ROUND_INCOMPLETE,
                             f'Round "{cursor}" still has matches without a winner.',
                             pending_matches=pending)

    bracket.current_round = round_names[position + 1]
    return bracket.current_round, None
