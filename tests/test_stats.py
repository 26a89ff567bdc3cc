import pytest

from logic.stats import (
    BattingLine,
    batting_line,
    batting_rates,
    compute_batting_derived,
    player_lines,
    team_totals,
    validate,
)
from models.at_bat import AtBat
from models.batting_result import BattingResult


def _ab(seq, batter, result, runs=(), rbi=0):
    result = BattingResult.parse(result)
    return AtBat(
        game_id="G1",
        sequence=seq,
        batter_id=batter,
        batting_position=1,
        inning=1,
        half="top",
        result=result,
        runs_scored=tuple(runs),
        rbi=rbi,
        outs_recorded=result.outs_on_batter(),
    )


AT_BATS = [
    _ab(0, "A", "1B"),
    _ab(1, "B", "BB"),
    _ab(2, "C", "HR", runs=("A", "B", "C"), rbi=3),
    _ab(3, "A", "SO"),
    _ab(4, "B", "SF", runs=()),
    _ab(5, "C", "2B"),
    _ab(6, "A", "HBP"),
    _ab(7, "B", "E"),
]


def test_batting_line_counts():
    line = batting_line("A", AT_BATS)
    assert (line.pa, line.ab, line.h, line.b1, line.so, line.hbp, line.r) == (3, 2, 1, 1, 1, 1, 1)

    c = batting_line("C", AT_BATS)
    assert (c.ab, c.h, c.hr, c.b2, c.rbi, c.r) == (2, 2, 1, 1, 3, 1)


def test_rates_exclude_walks_hbp_and_sac_flies_from_at_bats():
    b = batting_line("B", AT_BATS)
    assert (b.pa, b.ab, b.bb, b.sf, b.roe) == (3, 1, 1, 1, 1)
    rates = batting_rates(b)
    assert rates["avg"] == 0.0
    assert rates["obp"] == pytest.approx(1 / 3)

    a_rates = batting_rates(batting_line("A", AT_BATS))
    assert a_rates["avg"] == pytest.approx(0.5)
    assert a_rates["obp"] == pytest.approx(2 / 3)


def test_slugging_and_ops():
    c = batting_line("C", AT_BATS)
    assert compute_batting_derived(c) == {"tb": 6, "xbh": 2}
    rates = batting_rates(c)
    assert rates["slg"] == pytest.approx(3.0)
    assert rates["ops"] == pytest.approx(rates["obp"] + rates["slg"])


def test_empty_line_rates_are_zero():
    assert batting_rates(BattingLine("X")) == {"avg": 0.0, "obp": 0.0, "slg": 0.0, "ops": 0.0}


def test_player_lines_and_team_totals():
    lines = player_lines(AT_BATS)
    assert [line.player_id for line in lines] == ["A", "B", "C"]
    totals = team_totals(lines)
    assert totals.pa == len(AT_BATS)
    assert totals.r == 3
    assert totals.rbi == 3
    assert totals.to_dict()["player_id"] == "TEAM"


def test_validate_flags_inconsistent_lines():
    assert validate(batting_line("C", AT_BATS)) == []
    bad = BattingLine("X", pa=1, ab=1, h=2, b1=1)
    problems = validate(bad)
    assert any("cannot exceed" in p for p in problems)
    assert any("add up to hits" in p for p in problems)
