from dataclasses import replace

from logic.game_rules import MERCY_RULE, REGULATION, completion_reason, is_mercy
from logic.scoring_config import ScoringConfig
from models.game import BOTTOM, TOP
from models.scoreboard import Scoreboard
from tests.util.game_factory import started_game


def _at(inning, half, home=0, away=0, **kwargs):
    board = Scoreboard.start().ensure_inning(inning)
    board = board.add_home_runs(1, home).add_away_runs(1, away)
    return replace(started_game(), inning=inning, half=half, scoreboard=board, **kwargs)


def test_no_reason_early_in_game():
    assert completion_reason(_at(3, TOP, home=2, away=1)) is None


def test_home_lead_in_bottom_of_last_inning_ends_game():
    assert completion_reason(_at(7, BOTTOM, home=3, away=2)) == REGULATION
    assert completion_reason(_at(7, BOTTOM, home=2, away=3)) is None


def test_full_regulation_with_winner():
    assert completion_reason(_at(8, TOP, home=1, away=4)) == REGULATION
    assert completion_reason(_at(8, TOP, home=4, away=4)) is None


def test_mercy_rule_after_minimum_innings():
    assert completion_reason(_at(6, TOP, away=12)) == MERCY_RULE
    assert completion_reason(_at(5, TOP, away=12)) is None
    assert completion_reason(_at(5, BOTTOM, home=11)) == MERCY_RULE
    assert not is_mercy(_at(6, TOP, away=9))


def test_config_changes_thresholds():
    cfg = ScoringConfig(regulation_innings=9, mercy_run_threshold=15)
    assert completion_reason(_at(8, TOP, home=1, away=4), cfg) is None
    assert completion_reason(_at(6, TOP, away=12), cfg) is None


def test_only_in_progress_games():
    game = _at(8, TOP, home=1, away=4).suspend()
    assert completion_reason(game) is None
