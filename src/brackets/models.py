"""
Bracket data model: slots, matches and the bracket aggregate.

A bracket is a JSON-shaped document. ``Bracket.to_dict()`` and
``Bracket.from_dict()`` convert between the in-memory objects and the
stored document, and round-trip without loss.
"""
import re
from typing import Dict, List, Optional

SINGLE_ELIMINATION = 'single-elimination'
DOUBLE_ELIMINATION = 'double-elimination'
GROUP_STAGE = 'group-stage'
BRACKET_TYPES = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION, GROUP_STAGE)

WINNERS = 'WB'
LOSERS = 'LB'
GRAND_FINAL = 'GF'

TO_BE_DECIDED = 'A definir'
BYE_NAME = 'BYE'
WB_WINNER_LABEL = 'Vencedor WB'
LB_WINNER_LABEL = 'Vencedor LB'

AWAITING_FIRST_GAME = 'awaiting_first_game'
AWAITING_RESET_GAME = 'awaiting_reset_game'
DECIDED = 'decided'


class Slot:
    """One of the two player positions in a match."""

    EMPTY = 'empty'
    BYE = 'bye'
    OCCUPIED = 'occupied'

    def __init__(self, status=EMPTY, name=None, nickname='', score=None,
                 player_id=None, label=TO_BE_DECIDED):
        self.status = status
        self.name = name
        self.nickname = nickname or ''
        self.score = score
        self.player_id = player_id
        self.label = label

    @classmethod
    def empty(cls, label: str = TO_BE_DECIDED) -> 'Slot':
        return cls(status=cls.EMPTY, label=label)

    @classmethod
    def bye(cls) -> 'Slot':
        return cls(status=cls.BYE)

    @classmethod
    def occupied(cls, name: str, nickname: str = '', player_id=None, score=None) -> 'Slot':
        return cls(status=cls.OCCUPIED, name=name, nickname=nickname,
                   player_id=player_id, score=score)

    @classmethod
    def for_player(cls, player: Dict) -> 'Slot':
        """Build an occupied slot from a roster entry ``{name, nickname, id?}``."""
        return cls.occupied(player['name'], player.get('nickname', ''), player.get('id'))

    @property
    def is_empty(self) -> bool:
        return self.status == self.EMPTY

    @property
    def is_bye(self) -> bool:
        return self.status == self.BYE

    @property
    def is_occupied(self) -> bool:
        return self.status == self.OCCUPIED

    @property
    def display_name(self) -> str:
        if self.is_occupied:
            return self.name
        if self.is_bye:
            return BYE_NAME
        return self.label

    def advanced_copy(self) -> 'Slot':
        """Copy of this slot as it enters its next match (score cleared)."""
        if not self.is_occupied:
            return Slot.bye() if self.is_bye else Slot.empty(self.label)
        return Slot.occupied(self.name, self.nickname, self.player_id)

    def to_dict(self) -> Dict:
        return {
            'status': self.status,
            'name': self.display_name,
            'nickname': self.nickname,
            'score': self.score,
            'player_id': self.player_id,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Slot':
        name = data.get('name')
        status = data.get('status')
        if status is None:
            # Documents written before slots were tagged encode state in the name
            if name == BYE_NAME:
                status = cls.BYE
            elif name in (None, TO_BE_DECIDED, WB_WINNER_LABEL, LB_WINNER_LABEL):
                status = cls.EMPTY
            else:
                status = cls.OCCUPIED
        if status == cls.EMPTY:
            slot = cls.empty(name or TO_BE_DECIDED)
            slot.nickname = data.get('nickname') or ''
            return slot
        if status == cls.BYE:
            return cls.bye()
        return cls.occupied(name, data.get('nickname', ''), data.get('player_id'), data.get('score'))

    def __eq__(self, other):
        if not isinstance(other, Slot):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Slot(status={self.status}, name={self.display_name}, score={self.score})"


class Match:
    """A single contest between two slots."""

    def __init__(self, match_id: int, round_name: str, bracket: str = WINNERS,
                 players: Optional[List[Slot]] = None, winner: Optional[int] = None,
                 next_match: Optional[int] = None, next_match_slot: Optional[int] = None,
                 next_loser_match: Optional[int] = None, next_loser_slot: Optional[int] = None,
                 needs_reset: bool = False, grand_final_state: Optional[str] = None,
                 games: Optional[List[List[int]]] = None, scheduled_at: Optional[str] = None):
        self.id = match_id
        self.round_name = round_name
        self.bracket = bracket
        self.players = players if players else [Slot.empty(), Slot.empty()]
        self.winner = winner
        self.next_match = next_match
        self.next_match_slot = next_match_slot
        self.next_loser_match = next_loser_match
        self.next_loser_slot = next_loser_slot
        self.needs_reset = needs_reset
        self.grand_final_state = grand_final_state
        self.games = games if games else []
        self.scheduled_at = scheduled_at

    @property
    def is_decided(self) -> bool:
        return self.winner is not None

    @property
    def is_ready(self) -> bool:
        """Both slots hold real players."""
        return all(slot.is_occupied for slot in self.players)

    @property
    def loser(self) -> Optional[int]:
        return None if self.winner is None else 1 - self.winner

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'players': [slot.to_dict() for slot in self.players],
            'winner': self.winner,
            'round_name': self.round_name,
            'bracket': self.bracket,
            'next_match': self.next_match,
            'next_match_slot': self.next_match_slot,
            'next_loser_match': self.next_loser_match,
            'next_loser_slot': self.next_loser_slot,
            'needs_reset': self.needs_reset,
            'grand_final_state': self.grand_final_state,
            'games': [list(game) for game in self.games],
            'scheduled_at': self.scheduled_at,
        }

    @classmethod
    def from_dict(cls, data: Dict, match_id: Optional[int] = None) -> 'Match':
        if match_id is None:
            match_id = int(data['id'])
        players = [Slot.from_dict(p) for p in data.get('players', [])]
        while len(players) < 2:
            players.append(Slot.empty())
        return cls(
            match_id,
            data.get('round_name'),
            bracket=data.get('bracket', WINNERS),
            players=players[:2],
            winner=data.get('winner'),
            next_match=data.get('next_match'),
            next_match_slot=data.get('next_match_slot'),
            next_loser_match=data.get('next_loser_match'),
            next_loser_slot=data.get('next_loser_slot'),
            needs_reset=data.get('needs_reset', False),
            grand_final_state=data.get('grand_final_state'),
            games=[list(game) for game in data.get('games') or []],
            scheduled_at=data.get('scheduled_at'),
        )

    def __repr__(self):
        names = ' vs '.join(slot.display_name for slot in self.players)
        return f"Match(id={self.id}, round={self.round_name}, bracket={self.bracket}, {names}, winner={self.winner})"


class Bracket:
    """The match tree of one tournament. Match ids are dense and start at 1."""

    def __init__(self, tournament_name: str, bracket_type: str = SINGLE_ELIMINATION,
                 matches: Optional[Dict[int, Match]] = None, current_round: Optional[str] = None,
                 description: str = '', num_players_expected: Optional[int] = None):
        self.tournament_name = tournament_name
        self.bracket_type = bracket_type
        self.matches = matches if matches is not None else {}
        self.current_round = current_round
        self.description = description
        self.num_players_expected = num_players_expected

    def add_match(self, round_name: str, bracket: str = WINNERS, players=None) -> Match:
        """Append a new match with the next free id."""
        match_id = len(self.matches) + 1
        match = Match(match_id, round_name, bracket=bracket, players=players)
        self.matches[match_id] = match
        return match

    def get_match(self, match_id) -> Optional[Match]:
        """Look up a match by int id or a string of ASCII digits; anything else finds nothing."""
        if isinstance(match_id, bool):
            return None
        if isinstance(match_id, str) and re.fullmatch(r'[0-9]+', match_id.strip()):
            match_id = int(match_id)
        if not isinstance(match_id, int):
            return None
        return self.matches.get(match_id)

    def round_matches(self, round_name: str) -> List[Match]:
        return [m for m in self.matches.values() if m.round_name == round_name]

    def terminal_match(self) -> Optional[Match]:
        """The match that decides the champion (final or grand final)."""
        for match in self.matches.values():
            if match.bracket == GRAND_FINAL:
                return match
        terminals = [m for m in self.matches.values()
                     if m.next_match is None and m.bracket == WINNERS]
        return terminals[-1] if terminals else None

    def champion(self) -> Optional[Slot]:
        final = self.terminal_match()
        if final is None or final.winner is None:
            return None
        if final.bracket == GRAND_FINAL and final.grand_final_state != DECIDED:
            return None
        slot = final.players[final.winner]
        return slot if slot.is_occupied else None

    def to_dict(self) -> Dict:
        return {
            'tournament_name': self.tournament_name,
            'description': self.description,
            'num_players_expected': self.num_players_expected,
            'bracket_type': self.bracket_type,
            'current_round': self.current_round,
            'matches': {str(match_id): match.to_dict() for match_id, match in self.matches.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Bracket':
        matches = {}
        for key, match_data in sorted((data.get('matches') or {}).items(), key=lambda kv: int(kv[0])):
            matches[int(key)] = Match.from_dict(match_data, match_id=int(key))
        return cls(
            data.get('tournament_name', ''),
            bracket_type=data.get('bracket_type', SINGLE_ELIMINATION),
            matches=matches,
            current_round=data.get('current_round'),
            description=data.get('description', ''),
            num_players_expected=data.get('num_players_expected'),
        )

    def __repr__(self):
        return (f"Bracket(tournament_name={self.tournament_name}, bracket_type={self.bracket_type}, "
                f"matches={len(self.matches)}, current_round={self.current_round})")
