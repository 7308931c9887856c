"""
Typed failures returned by bracket operations.

Operations return ``(value, failure)`` where ``failure`` is ``None`` on
success. Nothing in the engine raises for a rejected request.
"""

NOT_ENOUGH_PLAYERS = 'not_enough_players'
NOT_IMPLEMENTED = 'not_implemented'
UNKNOWN_BRACKET_TYPE = 'unknown_bracket_type'
MATCH_NOT_FOUND = 'match_not_found'
PLAYERS_NOT_DEFINED = 'players_not_defined'
MATCH_ALREADY_DECIDED = 'match_already_decided'
SCORES_MISSING = 'scores_missing'
TIED_SCORES = 'tied_scores'
INVALID_SCORE = 'invalid_score'
INVALID_WINNER_INDEX = 'invalid_winner_index'
ROUND_INCOMPLETE = 'round_incomplete'
ALREADY_FINAL_ROUND = 'already_final_round'
CURRENT_ROUND_INVALID = 'current_round_invalid'


class Failure:
    def __init__(self, code: str, message: str, **details):
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self):
        data = {'error': self.code, 'message': self.message}
        if self.details:
            data['details'] = self.details
        return data

    def __eq__(self, other):
        if isinstance(other, Failure):
            return self.code == other.code
        if isinstance(other, str):
            return self.code == other
        return NotImplemented

    def __hash__(self):
        return hash(self.code)

    def __repr__(self):
        return f"Failure(code={self.code}, message={self.message})"
