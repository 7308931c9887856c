"""
Result reporting and advancement.

When a match is decided its winner moves into ``next_match`` and, for
winners bracket matches in double elimination, its loser drops into
``next_loser_match``. Target slots are the explicit ``next_match_slot`` /
``next_loser_slot`` assigned when the bracket was built.

Byes are settled as walkovers: a match holding a bye and a player is
decided for the player as soon as both slots are known, and a match with
two byes forwards a bye.
"""
import logging
from typing import Iterable, Optional, Tuple

from .models import (
    Bracket, Match, Slot, WINNERS, GRAND_FINAL,
    AWAITING_FIRST_GAME, AWAITING_RESET_GAME, DECIDED,
)
from .results import (
    Failure, MATCH_NOT_FOUND, PLAYERS_NOT_DEFINED, MATCH_ALREADY_DECIDED,
    SCORES_MISSING, TIED_SCORES, INVALID_SCORE, INVALID_WINNER_INDEX,
)

logger = logging.getLogger(__name__)


def _place_slot(bracket: Bracket, target_id: Optional[int], slot_index: Optional[int],
                slot: Slot, source: Match) -> bool:
    """Put ``slot`` into ``target_id`` at ``slot_index``. Returns whether it was placed."""
    if slot.is_empty:
        return False
    target = bracket.get_match(target_id)
    if target is None:
        logger.warning('Match %s points at missing match %s; %s not advanced',
                       source.id, target_id, slot.display_name)
        return False
    if slot_index not in (0, 1):
        logger.warning('Match %s has no target slot in match %s', source.id, target_id)
        return False

    current = target.players[slot_index]
    if current.is_bye or (current.is_occupied and current.name != slot.name):
        logger.warning('Could not place %s into match %s slot %s: already holds %s',
                       slot.display_name, target_id, slot_index, current.display_name)
        return False

    target.players[slot_index] = slot.advanced_copy()
    settle_walkover(bracket, target)
    return True


def _forward(bracket: Bracket, match: Match, walkover: bool = False):
    """Move the decided match's winner and loser into their next matches."""
    winner = match.players[match.winner]
    loser = match.players[match.loser]

    if match.next_match is not None:
        _place_slot(bracket, match.next_match, match.next_match_slot, winner, match)

    if match.bracket == WINNERS and match.next_loser_match is not None:
        if loser.is_occupied:
            _place_slot(bracket, match.next_loser_match, match.next_loser_slot, loser, match)
        elif walkover:
            # Nobody drops out of a bye match; the loser bracket slot is a bye
            _place_slot(bracket, match.next_loser_match, match.next_loser_slot, Slot.bye(), match)


def settle_walkover(bracket: Bracket, match: Match) -> bool:
    """Decide ``match`` if a bye sits in one of its slots and the other slot is known."""
    if match.is_decided or match.bracket == GRAND_FINAL:
        return False
    first, second = match.players
    if first.is_bye and second.is_bye:
        match.winner = 0
    elif second.is_bye and first.is_occupied:
        match.winner = 0
    elif first.is_bye and second.is_occupied:
        match.winner = 1
    else:
        return False
    _forward(bracket, match, walkover=True)
    return True


def settle_walkovers(bracket: Bracket, match_ids: Iterable[int]) -> int:
    """Settle every walkover among ``match_ids``. Returns how many were decided."""
    settled = 0
    for match_id in match_ids:
        match = bracket.get_match(match_id)
        if match is not None and settle_walkover(bracket, match):
            settled += 1
    return settled


def _resolve_winner(match: Match, winner_index: Optional[int]) -> Tuple[Optional[int], Optional[Failure]]:
    if winner_index is not None:
        if winner_index not in (0, 1) or isinstance(winner_index, bool):
            return None, Failure(INVALID_WINNER_INDEX,
                                 f'Winner index must be 0 or 1, got {winner_index!r}.')
        return winner_index, None

    first, second = (slot.score for slot in match.players)
    if first is None or second is None:
        logger.warning('Scores not set for match %s; cannot advance', match.id)
        return None, Failure(SCORES_MISSING, f'Scores for match {match.id} are not set.')
    if first == second:
        logger.warning('Scores for match %s are a draw (%s-%s); cannot advance', match.id, first, second)
        return None, Failure(TIED_SCORES, f'Match {match.id} is tied {first}-{second}.')
    return (0 if first > second else 1), None


def _check_playable(match: Match) -> Optional[Failure]:
    if match.bracket == GRAND_FINAL:
        if match.grand_final_state == DECIDED or (match.is_decided and match.grand_final_state is None):
            return Failure(MATCH_ALREADY_DECIDED, f'Match {match.id} already has a winner.')
    elif match.is_decided:
        return Failure(MATCH_ALREADY_DECIDED, f'Match {match.id} already has a winner.')
    if not match.is_ready:
        return Failure(PLAYERS_NOT_DEFINED, f'Players for match {match.id} are not decided yet.')
    return None


def _decide_grand_final(match: Match, winner_index: int) -> int:
    """
    Grand final with bracket reset.

    The winners bracket champion sits in slot 0. If the losers bracket
    champion wins the first game both players have one loss, so the
    match is replayed once.
    """
    state = match.grand_final_state or AWAITING_FIRST_GAME
    match.games.append([slot.score for slot in match.players])

    if state == AWAITING_FIRST_GAME and winner_index == 1 and match.needs_reset:
        match.grand_final_state = AWAITING_RESET_GAME
        for slot in match.players:
            slot.score = None
        logger.info('Grand final %s goes to a reset game', match.id)
        return winner_index

    match.winner = winner_index
    match.grand_final_state = DECIDED
    return winner_index


def advance_players_in_bracket(bracket: Bracket, match_id, winner_index: Optional[int] = None
                               ) -> Tuple[Optional[int], Optional[Failure]]:
    """
    Decide a completed match and advance its players.

    The winner comes from ``winner_index`` when given (admin override),
    otherwise from the slot scores. Returns ``(winner_index, failure)``;
    on failure the bracket is unchanged.
    """
    match = bracket.get_match(match_id)
    if match is None:
        logger.warning('Match %s not found; nothing advanced', match_id)
        return None, Failure(MATCH_NOT_FOUND, f'Match {match_id} not found.')

    failure = _check_playable(match)
    if failure:
        return None, failure
    winner_index, failure = _resolve_winner(match, winner_index)
    if failure:
        return None, failure

    if match.bracket == GRAND_FINAL:
        return _decide_grand_final(match, winner_index), None

    match.winner = winner_index
    _forward(bracket, match)
    return winner_index, None


def report_match_result(bracket: Bracket, match_id, score0: int, score1: int
                        ) -> Tuple[Optional[int], Optional[Failure]]:
    """Record the scores of both slots (slot order) and advance the winner."""
    match = bracket.get_match(match_id)
    if match is None:
        logger.warning('Match %s not found; score ignored', match_id)
        return None, Failure(MATCH_NOT_FOUND, f'Match {match_id} not found.')

    for score in (score0, score1):
        if not isinstance(score, int) or isinstance(score, bool) or score < 0:
            return None, Failure(INVALID_SCORE, f'Invalid score {score!r} for match {match.id}.')
    failure = _check_playable(match)
    if failure:
        return None, failure
    if score0 == score1:
        logger.warning('Scores for match %s are a draw (%s-%s); cannot advance', match.id, score0, score1)
        return None, Failure(TIED_SCORES, f'Match {match.id} is tied {score0}-{score1}.')

    match.players[0].score = score0
    match.players[1].score = score1
    return advance_players_in_bracket(bracket, match.id)


def set_match_winner(bracket: Bracket, match_id, winner_index: int
                     ) -> Tuple[Optional[int], Optional[Failure]]:
    """Designate a winner by hand, without scores."""
    if winner_index not in (0, 1) or isinstance(winner_index, bool):
        return None, Failure(INVALID_WINNER_INDEX,
                             f'Winner index must be 0 or 1, got {winner_index!r}.')
    return advance_players_in_bracket(bracket, match_id, winner_index)
