from .models import Bracket, Match, Slot
from .results import Failure
from .planning import plan_rounds, shuffle_players
from .elimination import generate_single_elimination_bracket
from .double_elimination import generate_double_elimination_bracket
from .advancement import advance_players_in_bracket, report_match_result, set_match_winner
from .rounds import get_round_names, advance_round
from .formats import generate_bracket, reset_bracket
