"""
Tests for best-of-three score validation.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.scores import parse_score, validate_best_of_three


class TestParseScore:

    def test_ints_and_digit_strings(self):
        assert parse_score(2) == 2
        assert parse_score('1') == 1
        assert parse_score(' 2 ') == 2

    def test_rejects_other_values(self):
        assert parse_score(True) is None
        assert parse_score(1.5) is None
        assert parse_score('dois') is None
        assert parse_score('²') is None
        assert parse_score('٢') is None
        assert parse_score(None) is None


class TestBestOfThree:
    """Only 2-0 and 2-1 wins are valid."""

    @pytest.mark.parametrize('score1,score2', [(2, 0), (2, 1), (0, 2), (1, 2), ('2', '1')])
    def test_valid(self, score1, score2):
        scores, failure = validate_best_of_three(score1, score2)
        assert failure is None
        assert scores == (int(score1), int(score2))

    @pytest.mark.parametrize('score1,score2', [
        (1, 1), (2, 2), (0, 0), (3, 0), (1, 0), (-1, 2), (2, None), ('x', 2), ('²', 0),
    ])
    def test_invalid(self, score1, score2):
        scores, failure = validate_best_of_three(score1, score2)
        assert scores is None
        assert failure == 'invalid_score'
