"""
Single elimination bracket generation.
"""
import random
from typing import Dict, List, Optional, Tuple

from .advancement import settle_walkovers
from .models import Bracket, Slot, WINNERS, SINGLE_ELIMINATION
from .planning import RoundPlan, plan_rounds, shuffle_players
from .results import Failure, NOT_ENOUGH_PLAYERS


def check_roster(players: List[Dict]) -> Optional[Failure]:
    """Reject rosters that cannot form a bracket."""
    if players is None or len(players) < 2:
        count = 0 if players is None else len(players)
        return Failure(NOT_ENOUGH_PLAYERS,
                       f'At least 2 players are needed to build a bracket, got {count}.')
    return None


def new_bracket(base_state: Dict, bracket_type: str) -> Bracket:
    """Create an empty bracket carrying the tournament metadata."""
    base_state = base_state or {}
    return Bracket(
        base_state.get('tournament_name', base_state.get('tournamentName', '')),
        bracket_type=bracket_type,
        description=base_state.get('description', ''),
        num_players_expected=base_state.get('num_players_expected'),
    )


def create_first_round(bracket: Bracket, players: List[Dict], plan: RoundPlan) -> List[int]:
    """
    Place players into the first round.

    The first ``num_byes`` matches pair one player with a bye in slot 1;
    the remaining matches take the next two queued players.
    """
    queue = list(players)
    match_ids = []
    for i in range(plan.first_round_matches):
        if i < plan.num_byes:
            slots = [Slot.for_player(queue.pop(0)), Slot.bye()]
        else:
            slots = [Slot.for_player(queue.pop(0)), Slot.for_player(queue.pop(0))]
        match = bracket.add_match(plan.round_names[0], bracket=WINNERS, players=slots)
        match_ids.append(match.id)
    return match_ids


def link_rounds(bracket: Bracket, rounds: List[List[int]]):
    """Wire match ``i`` of each round to match ``i // 2`` of the next, slot ``i % 2``."""
    for round_idx, match_ids in enumerate(rounds[:-1]):
        next_ids = rounds[round_idx + 1]
        for i, match_id in enumerate(match_ids):
            match = bracket.matches[match_id]
            match.next_match = next_ids[i // 2]
            match.next_match_slot = i % 2


def build_winners_bracket(bracket: Bracket, players: List[Dict], plan: RoundPlan) -> List[List[int]]:
    """
    Create every winners bracket round and wire it.

    Returns the match ids of each round, first round first. Byes are not
    settled here so callers can finish wiring first.
    """
    rounds = [create_first_round(bracket, players, plan)]
    for round_idx in range(1, plan.total_rounds):
        round_name = plan.round_names[round_idx]
        rounds.append([
            bracket.add_match(round_name, bracket=WINNERS).id
            for _ in range(plan.matches_per_round[round_idx])
        ])
    link_rounds(bracket, rounds)
    return rounds


def generate_single_elimination_bracket(players: List[Dict], base_state: Optional[Dict] = None,
                                        rng: Optional[random.Random] = None
                                        ) -> Tuple[Optional[Bracket], Optional[Failure]]:
    """
    Build a single elimination bracket from an unordered roster.

    Players are shuffled, placed with byes, every later round is created
    empty, and bye winners are moved straight into round two.

    Returns ``(bracket, failure)``.
    """
    failure = check_roster(players)
    if failure:
        return None, failure

    plan = plan_rounds(len(players))
    bracket = new_bracket(base_state, SINGLE_ELIMINATION)
    rounds = build_winners_bracket(bracket, shuffle_players(players, rng), plan)
    bracket.current_round = plan.round_names[0]
    settle_walkovers(bracket, rounds[0])
    return bracket, None
