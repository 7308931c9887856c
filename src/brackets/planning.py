"""
Round planning: bracket size, byes and round names.
"""
import math
import random
from typing import Dict, List, Optional

ROUND_NAMES_BY_MATCH_COUNT = {
    1: 'Final',
    2: 'Semifinais',
    4: 'Quartas de Final',
    8: 'Oitavas de Final',
}

LOSERS_ROUND_PREFIX = 'LB Rodada'
LOSERS_FINAL = 'LB Final'
GRAND_FINAL_ROUND = 'Grande Final'


def shuffle_players(players: List[Dict], rng: Optional[random.Random] = None) -> List[Dict]:
    """Return the roster in random order. The input list is left untouched."""
    shuffled = list(players)
    (rng or random).shuffle(shuffled)
    return shuffled


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_players <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_players))


def calculate_byes(num_players: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_players) - num_players


def get_round_name(matches_in_round: int, round_number: int) -> str:
    """Get the name of a round from its match count and 1-based position."""
    return ROUND_NAMES_BY_MATCH_COUNT.get(matches_in_round, f'Rodada {round_number}')


def get_winners_round_name(matches_in_round: int, round_number: int) -> str:
    """Get the name for a winners bracket round."""
    return f'WB {get_round_name(matches_in_round, round_number)}'


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Number of numbered loser bracket rounds played before the LB Final.

    A bracket of 2^k players has k winners rounds and 2 * (k - 1)
    numbered losers rounds.
    """
    if bracket_size < 2:
        return 0
    return 2 * (int(math.log2(bracket_size)) - 1)


def get_losers_round_names(bracket_size: int) -> List[str]:
    """Loser bracket round names in play order, ending with the LB Final."""
    total = calculate_losers_bracket_rounds(bracket_size)
    return [f'{LOSERS_ROUND_PREFIX} {i + 1}' for i in range(total)] + [LOSERS_FINAL]


def losers_round_sizes(bracket_size: int) -> List[int]:
    """Match count of each numbered losers round (halves every two rounds)."""
    first = bracket_size // 4
    return [first // 2 ** (j // 2) for j in range(calculate_losers_bracket_rounds(bracket_size))]


class RoundPlan:
    """Shape of an elimination bracket for a given number of players."""

    def __init__(self, num_players: int, bracket_size: int, num_byes: int,
                 matches_per_round: List[int], round_names: List[str]):
        self.num_players = num_players
        self.bracket_size = bracket_size
        self.num_byes = num_byes
        self.matches_per_round = matches_per_round
        self.round_names = round_names

    @property
    def total_rounds(self) -> int:
        return len(self.round_names)

    @property
    def first_round_matches(self) -> int:
        return self.bracket_size // 2

    def __repr__(self):
        return (f"RoundPlan(num_players={self.num_players}, bracket_size={self.bracket_size}, "
                f"num_byes={self.num_byes}, round_names={self.round_names})")


def plan_rounds(num_players: int, winners_bracket: bool = False) -> RoundPlan:
    """
    Plan the rounds needed to reduce ``num_players`` to a single winner.

    Callers guarantee ``num_players >= 2``; ``generate_bracket`` checks
    it before any builder runs.
    """
    if num_players < 2:
        raise ValueError(f'A bracket needs at least 2 players, got {num_players}')

    bracket_size = calculate_bracket_size(num_players)
    name_round = get_winners_round_name if winners_bracket else get_round_name

    matches_per_round = []
    round_names = []
    matches_in_round = bracket_size // 2
    round_number = 1
    while matches_in_round >= 1:
        matches_per_round.append(matches_in_round)
        round_names.append(name_round(matches_in_round, round_number))
        matches_in_round //= 2
        round_number += 1

    return RoundPlan(num_players, bracket_size, bracket_size - num_players,
                     matches_per_round, round_names)
