"""
Tests for the round index and advance-round.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.advancement import report_match_result
from brackets.elimination import generate_single_elimination_bracket
from brackets.models import Bracket, Match
from brackets.rounds import advance_round, get_round_names, is_round_complete
from conftest import make_players


@pytest.fixture
def bracket(rng):
    bracket, _ = generate_single_elimination_bracket(make_players(8), rng=rng)
    return bracket


class TestRoundNames:
    """Round names come out in match id order."""

    def test_order(self, bracket):
        assert get_round_names(bracket) == ['Quartas de Final', 'Semifinais', 'Final']

    def test_order_follows_ids_not_insertion(self):
        bracket = Bracket('Teste', matches={
            2: Match(2, 'Final'),
            1: Match(1, 'Semifinais'),
        })
        assert get_round_names(bracket) == ['Semifinais', 'Final']

    def test_empty(self):
        assert get_round_names(Bracket('Teste')) == []
        assert get_round_names(None) == []


class TestAdvanceRound:
    """advance_round moves the cursor only when the round is complete."""

    def test_incomplete_round(self, bracket):
        report_match_result(bracket, 1, 2, 0)
        next_round, failure = advance_round(bracket)
        assert next_round is None
        assert failure == 'round_incomplete'
        assert failure.details['pending_matches'] == [2, 3, 4]
        assert bracket.current_round == 'Quartas de Final'

    def test_complete_round(self, bracket):
        for match_id in (1, 2, 3, 4):
            report_match_result(bracket, match_id, 2, 1)
        assert is_round_complete(bracket, 'Quartas de Final')
        next_round, failure = advance_round(bracket, 'Quartas de Final')
        assert failure is None
        assert next_round == 'Semifinais'
        assert bracket.current_round == 'Semifinais'

    def test_final_round(self, bracket):
        bracket.current_round = 'Final'
        next_round, failure = advance_round(bracket)
        assert failure == 'already_final_round'
        assert bracket.current_round == 'Final'

    def test_stale_current_round(self, bracket):
        """The caller's view of the cursor must match the bracket."""
        next_round, failure = advance_round(bracket, 'Semifinais')
        assert failure == 'current_round_invalid'
        assert bracket.current_round == 'Quartas de Final'

    def test_unknown_cursor(self, bracket):
        bracket.current_round = 'Rodada 9'
        next_round, failure = advance_round(bracket)
        assert failure == 'current_round_invalid'

    def test_no_cursor(self):
        next_round, failure = advance_round(Bracket('Teste'))
        assert failure == 'current_round_invalid'

    def test_walkover_round_can_advance(self, rng):
        """A round decided entirely by byes is already complete."""
        bracket, _ = generate_single_elimination_bracket(make_players(3), rng=rng)
        report_match_result(bracket, 2, 2, 0)
        next_round, failure = advance_round(bracket)
        assert failure is None
        assert next_round == 'Final'
