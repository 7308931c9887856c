"""
Double elimination bracket generation.

In double elimination:
- Players must lose twice to be eliminated
- Winners Bracket (WB): players that haven't lost yet
- Losers Bracket (LB): players that have lost once
- Grande Final: WB champion vs LB champion
- Bracket reset: if the LB champion wins the first grand final game, it is replayed

For a bracket of 2^k players the WB has k rounds. The LB has 2 * (k - 1)
numbered rounds followed by the LB Final; numbered rounds halve every two
rounds. Even LB rounds pair players already in the LB, odd rounds pair LB
survivors with players just dropped from the WB:

    W1 losers          -> LB Rodada 1, match i // 2, slot i % 2
    W(r + 1) losers    -> LB Rodada 2r, match i, slot 1   (1 <= r <= k - 2)
    WB Final loser     -> LB Final, slot 1

The last numbered LB round has no WB feeder, so its slot 1 is a bye.
With two players there are no numbered rounds: the WB Final loser takes
slot 0 of the LB Final and slot 1 is a bye.
"""
import random
from typing import Dict, List, Optional, Tuple

from .advancement import settle_walkovers
from .elimination import build_winners_bracket, check_roster, new_bracket
from .models import (
    Bracket, Slot, LOSERS, GRAND_FINAL, DOUBLE_ELIMINATION,
    WB_WINNER_LABEL, LB_WINNER_LABEL, AWAITING_FIRST_GAME,
)
from .planning import (
    GRAND_FINAL_ROUND, get_losers_round_names, losers_round_sizes,
    plan_rounds, shuffle_players,
)
from .results import Failure


def _build_losers_bracket(bracket: Bracket, bracket_size: int) -> List[List[int]]:
    """Create the numbered LB rounds and the LB Final. Returns ids per round."""
    names = get_losers_round_names(bracket_size)
    sizes = losers_round_sizes(bracket_size)
    rounds = []
    for round_idx, size in enumerate(sizes):
        is_last = round_idx == len(sizes) - 1
        ids = []
        for _ in range(size):
            slots = [Slot.empty(), Slot.bye() if is_last else Slot.empty()]
            ids.append(bracket.add_match(names[round_idx], bracket=LOSERS, players=slots).id)
        rounds.append(ids)

    # With only two players there are no numbered rounds; the WB Final loser walks over
    final_slots = [Slot.empty(), Slot.empty() if sizes else Slot.bye()]
    rounds.append([bracket.add_match(names[-1], bracket=LOSERS, players=final_slots).id])
    return rounds


def _link_losers_rounds(bracket: Bracket, lb_rounds: List[List[int]]):
    """Wire LB winners forward, ending in the LB Final."""
    numbered = lb_rounds[:-1]
    for round_idx, match_ids in enumerate(numbered):
        next_ids = lb_rounds[round_idx + 1]
        for i, match_id in enumerate(match_ids):
            match = bracket.matches[match_id]
            if round_idx == len(numbered) - 1:
                match.next_match, match.next_match_slot = next_ids[0], 0
            elif round_idx % 2 == 0:
                match.next_match, match.next_match_slot = next_ids[i], 0
            else:
                match.next_match, match.next_match_slot = next_ids[i // 2], i % 2


def _drop_winners_losers(bracket: Bracket, wb_rounds: List[List[int]], lb_rounds: List[List[int]]):
    """Point every WB match at the LB match its loser drops into."""
    numbered = lb_rounds[:-1]
    lb_final_id = lb_rounds[-1][0]
    last_wb_round = len(wb_rounds) - 1
    for round_idx, match_ids in enumerate(wb_rounds):
        for i, match_id in enumerate(match_ids):
            match = bracket.matches[match_id]
            if round_idx == last_wb_round:
                match.next_loser_match, match.next_loser_slot = lb_final_id, 1 if numbered else 0
            elif round_idx == 0:
                match.next_loser_match, match.next_loser_slot = numbered[0][i // 2], i % 2
            else:
                match.next_loser_match, match.next_loser_slot = numbered[2 * round_idx - 1][i], 1


def generate_double_elimination_bracket(players: List[Dict], base_state: Optional[Dict] = None,
                                        rng: Optional[random.Random] = None
                                        ) -> Tuple[Optional[Bracket], Optional[Failure]]:
    """
    Build a double elimination bracket from an unordered roster.

    Returns ``(bracket, failure)``.
    """
    failure = check_roster(players)
    if failure:
        return None, failure

    plan = plan_rounds(len(players), winners_bracket=True)
    bracket = new_bracket(base_state, DOUBLE_ELIMINATION)

    wb_rounds = build_winners_bracket(bracket, shuffle_players(players, rng), plan)
    lb_rounds = _build_losers_bracket(bracket, plan.bracket_size)
    _link_losers_rounds(bracket, lb_rounds)
    _drop_winners_losers(bracket, wb_rounds, lb_rounds)

    grand_final = bracket.add_match(
        GRAND_FINAL_ROUND, bracket=GRAND_FINAL,
        players=[Slot.empty(WB_WINNER_LABEL), Slot.empty(LB_WINNER_LABEL)],
    )
    grand_final.needs_reset = True
    grand_final.grand_final_state = AWAITING_FIRST_GAME

    wb_final = bracket.matches[wb_rounds[-1][0]]
    wb_final.next_match, wb_final.next_match_slot = grand_final.id, 0
    lb_final = bracket.matches[lb_rounds[-1][0]]
    lb_final.next_match, lb_final.next_match_slot = grand_final.id, 1

    bracket.current_round = plan.round_names[0]
    settle_walkovers(bracket, wb_rounds[0])
    return bracket, None
