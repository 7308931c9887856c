"""
Tests for the bracket data model and its document form.
"""
import json
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.advancement import report_match_result
from brackets.double_elimination import generate_double_elimination_bracket
from brackets.models import Bracket, Match, Slot
from brackets.results import Failure
from conftest import make_players, play_out


class TestSlot:
    """Tagged slot states."""

    def test_empty(self):
        slot = Slot.empty()
        assert slot.is_empty
        assert slot.display_name == 'A definir'

    def test_bye(self):
        slot = Slot.bye()
        assert slot.is_bye
        assert slot.to_dict()['name'] == 'BYE'

    def test_occupied(self):
        slot = Slot.for_player({'name': 'Ana', 'nickname': 'Bola 8', 'id': 3})
        assert slot.is_occupied
        assert (slot.name, slot.nickname, slot.player_id) == ('Ana', 'Bola 8', 3)

    def test_advanced_copy_clears_score(self):
        slot = Slot.occupied('Ana', score=2)
        copy = slot.advanced_copy()
        assert copy.name == 'Ana'
        assert copy.score is None
        assert slot.score == 2

    def test_legacy_sentinels(self):
        """Documents without a status are read from the name sentinels."""
        assert Slot.from_dict({'name': 'A definir', 'score': None}).is_empty
        assert Slot.from_dict({'name': 'BYE'}).is_bye
        assert Slot.from_dict({'name': 'Vencedor WB'}).display_name == 'Vencedor WB'
        slot = Slot.from_dict({'name': 'Ana', 'nickname': 'Bola 8', 'score': 2})
        assert slot.is_occupied
        assert slot.score == 2


class TestMatch:
    """Match properties."""

    def test_defaults(self):
        match = Match(1, 'Final')
        assert all(s.is_empty for s in match.players)
        assert match.winner is None
        assert match.loser is None
        assert not match.is_ready

    def test_loser(self):
        match = Match(1, 'Final', players=[Slot.occupied('Ana'), Slot.occupied('Bia')], winner=1)
        assert match.is_decided
        assert match.loser == 0

    def test_short_players_list_is_padded(self):
        match = Match.from_dict({'id': 4, 'round_name': 'Final', 'players': [{'name': 'Ana'}]})
        assert len(match.players) == 2
        assert match.players[1].is_empty


class TestBracketDocument:
    """A bracket survives the trip through JSON unchanged."""

    def test_json_round_trip_fresh(self, rng):
        bracket, _ = generate_double_elimination_bracket(make_players(6), rng=rng)
        document = json.loads(json.dumps(bracket.to_dict()))
        restored = Bracket.from_dict(document)
        assert restored.to_dict() == bracket.to_dict()

    def test_json_round_trip_played(self, rng):
        bracket, _ = generate_double_elimination_bracket(make_players(7), rng=rng)
        play_out(bracket, rng)
        bracket.matches[1].scheduled_at = '2026-03-01T20:00:00'
        restored = Bracket.from_dict(json.loads(json.dumps(bracket.to_dict())))
        assert restored.to_dict() == bracket.to_dict()
        assert restored.champion() == bracket.champion()

    def test_match_keys_are_strings(self, rng):
        bracket, _ = generate_double_elimination_bracket(make_players(4), rng=rng)
        document = bracket.to_dict()
        assert list(document['matches']) == [str(i) for i in range(1, 8)]

    def test_restored_bracket_keeps_playing(self, rng):
        bracket, _ = generate_double_elimination_bracket(make_players(4), rng=rng)
        restored = Bracket.from_dict(bracket.to_dict())
        winner, failure = report_match_result(restored, 1, 2, 0)
        assert failure is None
        assert restored.matches[3].players[0].is_occupied

    def test_get_match_tolerates_bad_ids(self):
        bracket = Bracket('Teste')
        bracket.add_match('Final')
        assert bracket.get_match('1') is bracket.matches[1]
        assert bracket.get_match('abc') is None
        assert bracket.get_match(None) is None

    def test_get_match_rejects_non_integer_ids(self):
        """Floats, booleans and non-ASCII digits never resolve to a match."""
        bracket = Bracket('Teste')
        for _ in range(4):
            bracket.add_match('Quartas de Final')
        assert bracket.get_match(4) is bracket.matches[4]
        assert bracket.get_match(' 4 ') is bracket.matches[4]
        assert bracket.get_match(4.9) is None
        assert bracket.get_match(4.0) is None
        assert bracket.get_match(True) is None
        assert bracket.get_match('4.9') is None
        assert bracket.get_match('²') is None


class TestFailure:
    """Typed failures compare by code."""

    def test_compare_with_code(self):
        failure = Failure('tied_scores', 'Match 1 is tied 1-1.')
        assert failure == 'tied_scores'
        assert failure == Failure('tied_scores', 'other message')

    def test_to_dict(self):
        failure = Failure('round_incomplete', 'Round not done.', pending_matches=[2])
        assert failure.to_dict() == {
            'error': 'round_incomplete',
            'message': 'Round not done.',
            'details': {'pending_matches': [2]},
        }
