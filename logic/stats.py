from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Sequence

from models.at_bat import AtBat
from models.batting_result import BattingResult

_HIT_FIELDS = {
    BattingResult.SINGLE: "b1",
    BattingResult.DOUBLE: "b2",
    BattingResult.TRIPLE: "b3",
    BattingResult.HOME_RUN: "hr",
}

_EVENT_FIELDS = {
    BattingResult.WALK: "bb",
    BattingResult.HIT_BY_PITCH: "hbp",
    BattingResult.STRIKEOUT: "so",
    BattingResult.SAC_FLY: "sf",
    BattingResult.ERROR: "roe",
    BattingResult.FIELDERS_CHOICE: "fc",
    BattingResult.DOUBLE_PLAY: "gidp",
}


@dataclass
class BattingLine:
    """Counting stats for one player over a sequence of at-bats."""

    player_id: str
    pa: int = 0
    ab: int = 0
    h: int = 0
    b1: int = 0
    b2: int = 0
    b3: int = 0
    hr: int = 0
    r: int = 0
    rbi: int = 0
    bb: int = 0
    hbp: int = 0
    so: int = 0
    sf: int = 0
    roe: int = 0
    fc: int = 0
    gidp: int = 0

    def add(self, other: "BattingLine") -> None:
        for f in fields(self):
            if f.name == "player_id":
                continue
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update(compute_batting_rates(self))
        return data


def _record(line: BattingLine, at_bat: AtBat) -> None:
    result = at_bat.result
    line.pa += 1
    if result.counts_as_at_bat():
        line.ab += 1
    if result.is_hit():
        line.h += 1
        field_name = _HIT_FIELDS[result]
        setattr(line, field_name, getattr(line, field_name) + 1)
    event = _EVENT_FIELDS.get(result)
    if event:
        setattr(line, event, getattr(line, event) + 1)
    line.rbi += at_bat.rbi


def batting_line(player_id: str, at_bats: Iterable[AtBat]) -> BattingLine:
    """Return the batting line of ``player_id``.

    Runs are counted from the scoring lists of every at-bat supplied, so pass
    the whole game's at-bats to credit runs scored as a baserunner.
    """

    line = BattingLine(player_id)
    for at_bat in at_bats:
        if at_bat.batter_id == player_id:
            _record(line, at_bat)
        line.r += at_bat.runs_scored.count(player_id)
    return line


def player_lines(at_bats: Sequence[AtBat]) -> List[BattingLine]:
    """Return one line per batter in order of first appearance."""

    order: List[str] = []
    for at_bat in at_bats:
        if at_bat.batter_id not in order:
            order.append(at_bat.batter_id)
    return [batting_line(pid, at_bats) for pid in order]


def team_totals(lines: Iterable[BattingLine], team_id: str = "TEAM") -> BattingLine:
    total = BattingLine(team_id)
    for line in lines:
        total.add(line)
    return total


def compute_batting_derived(stats: BattingLine) -> Dict[str, float]:
    """Return derived batting statistics from counting stats."""

    tb = stats.b1 + 2 * stats.b2 + 3 * stats.b3 + 4 * stats.hr
    xbh = stats.b2 + stats.b3 + stats.hr
    return {"tb": tb, "xbh": xbh}


def compute_batting_rates(stats: BattingLine) -> Dict[str, float]:
    """Return rate-based batting metrics."""
    ab = stats.ab
    h = stats.h
    bb = stats.bb
    hbp = stats.hbp
    sf = stats.sf
    tb = compute_batting_derived(stats)["tb"]

    avg = h / ab if ab else 0.0
    obp_den = ab + bb + hbp + sf
    obp = (h + bb + hbp) / obp_den if obp_den else 0.0
    slg = tb / ab if ab else 0.0
    ops = obp + slg
    return {"avg": avg, "obp": obp, "slg": slg, "ops": ops}


batting_rates = compute_batting_rates


def validate(stats: BattingLine) -> List[str]:
    """Return a description of every inconsistency in ``stats``."""

    problems: List[str] = []
    if stats.h > stats.ab:
        problems.append(f"Hits ({stats.h}) cannot exceed at-bats ({stats.ab})")
    if stats.b1 + stats.b2 + stats.b3 + stats.hr != stats.h:
        problems.append("Singles, doubles, triples and home runs must add up to hits")
    if stats.ab + stats.bb + stats.hbp + stats.sf > stats.pa:
        problems.append("At-bats, walks, hit batsmen and sacrifice flies exceed plate appearances")
    for f in fields(stats):
        value = getattr(stats, f.name)
        if isinstance(value, int) and value < 0:
            problems.append(f"{f.name} cannot be negative")
    return problems


__all__ = [
    "BattingLine",
    "batting_line",
    "batting_rates",
    "compute_batting_derived",
    "compute_batting_rates",
    "player_lines",
    "team_totals",
    "validate",
]
