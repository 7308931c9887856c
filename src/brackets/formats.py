"""
Bracket formats: pick the builder for a tournament's bracket type.
"""
import random
from typing import Dict, List, Optional, Tuple

from .double_elimination import generate_double_elimination_bracket
from .elimination import check_roster, generate_single_elimination_bracket, new_bracket
from .models import Bracket, SINGLE_ELIMINATION, DOUBLE_ELIMINATION, GROUP_STAGE
from .results import Failure, NOT_IMPLEMENTED, UNKNOWN_BRACKET_TYPE

BUILDERS = {
    SINGLE_ELIMINATION: generate_single_elimination_bracket,
    DOUBLE_ELIMINATION: generate_double_elimination_bracket,
}


def generate_bracket(players: List[Dict], base_state: Optional[Dict] = None,
                     rng: Optional[random.Random] = None
                     ) -> Tuple[Optional[Bracket], Optional[Failure]]:
    """Build the bracket named by ``base_state['bracket_type']`` (single elimination by default)."""
    base_state = base_state or {}
    bracket_type = base_state.get('bracket_type') or SINGLE_ELIMINATION

    if bracket_type == GROUP_STAGE:
        return None, Failure(NOT_IMPLEMENTED, 'Group stage brackets are not implemented.')
    builder = BUILDERS.get(bracket_type)
    if builder is None:
        return None, Failure(UNKNOWN_BRACKET_TYPE, f'Unknown bracket type "{bracket_type}".')

    failure = check_roster(players)
    if failure:
        return None, failure
    return builder(players, base_state, rng)


def reset_bracket(bracket: Bracket) -> Bracket:
    """A fresh bracket with the same tournament metadata and no matches."""
    return new_bracket({
        'tournament_name': bracket.tournament_name,
        'description': bracket.description,
        'num_players_expected': bracket.num_players_expected,
    }, bracket.bracket_type)
