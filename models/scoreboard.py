from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

HOME = "home"
AWAY = "away"


@dataclass(frozen=True)
class InningScore:
    inning: int
    home_runs: int = 0
    away_runs: int = 0

    def __post_init__(self) -> None:
        if self.inning < 1:
            raise ValueError(f"Inning must be at least 1, got {self.inning}")
        if self.home_runs < 0 or self.away_runs < 0:
            raise ValueError("Runs cannot be negative")


@dataclass(frozen=True)
class Scoreboard:
    """Per-inning run tally; totals are always derived from the innings."""

    innings: Tuple[InningScore, ...] = field(default_factory=tuple)

    @classmethod
    def start(cls) -> "Scoreboard":
        return cls((InningScore(1),))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def ensure_inning(self, inning: int) -> "Scoreboard":
        if inning < 1:
            raise ValueError(f"Inning must be at least 1, got {inning}")
        present = {row.inning for row in self.innings}
        missing = [InningScore(n) for n in range(1, inning + 1) if n not in present]
        if not missing:
            return self
        rows = sorted(self.innings + tuple(missing), key=lambda row: row.inning)
        return replace(self, innings=tuple(rows))

    def add_runs(self, inning: int, side: str, runs: int) -> "Scoreboard":
        if side not in (HOME, AWAY):
            raise ValueError(f"Unknown side: {side}")
        if runs < 0:
            raise ValueError("Runs cannot be negative")
        board = self.ensure_inning(inning)
        rows: List[InningScore] = []
        for row in board.innings:
            if row.inning == inning:
                if side == HOME:
                    row = replace(row, home_runs=row.home_runs + runs)
                else:
                    row = replace(row, away_runs=row.away_runs + runs)
            rows.append(row)
        return replace(board, innings=tuple(rows))

    def add_home_runs(self, inning: int, runs: int) -> "Scoreboard":
        return self.add_runs(inning, HOME, runs)

    def add_away_runs(self, inning: int, runs: int) -> "Scoreboard":
        return self.add_runs(inning, AWAY, runs)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def home_total(self) -> int:
        return sum(row.home_runs for row in self.innings)

    @property
    def away_total(self) -> int:
        return sum(row.away_runs for row in self.innings)

    @property
    def innings_played(self) -> int:
        return max((row.inning for row in self.innings), default=0)

    def inning_score(self, inning: int) -> Optional[InningScore]:
        for row in self.innings:
            if row.inning == inning:
                return row
        return None

    def total_for(self, side: str) -> int:
        if side == HOME:
            return self.home_total
        if side == AWAY:
            return self.away_total
        raise ValueError(f"Unknown side: {side}")

    def run_differential(self) -> int:
        """Absolute margin between the two teams."""

        return abs(self.home_total - self.away_total)

    def winner(self) -> Optional[str]:
        if self.home_total > self.away_total:
            return HOME
        if self.away_total > self.home_total:
            return AWAY
        return None

    def is_mercy(self, threshold: int) -> bool:
        return self.run_differential() >= threshold

    def display(self) -> str:
        return f"{self.away_total}-{self.home_total}"

    def line_score(self, away_label: str = "Away", home_label: str = "Home") -> str:
        """Return a two-row text line score."""

        numbers = [str(row.inning) for row in self.innings]
        width = max(len(away_label), len(home_label), 4)
        header = " " * width + " | " + " ".join(f"{n:>2}" for n in numbers) + " |  R"
        away = f"{away_label:<{width}} | " + " ".join(
            f"{row.away_runs:>2}" for row in self.innings
        ) + f" | {self.away_total:>2}"
        home = f"{home_label:<{width}} | " + " ".join(
            f"{row.home_runs:>2}" for row in self.innings
        ) + f" | {self.home_total:>2}"
        return "\n".join([header, away, home])

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "innings": [
                {"inning": r.inning, "home_runs": r.home_runs, "away_runs": r.away_runs}
                for r in self.innings
            ],
            "home_total": self.home_total,
            "away_total": self.away_total,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "Scoreboard":
        if not data:
            return cls()
        rows = [
            InningScore(
                int(item["inning"]),
                int(item.get("home_runs", 0)),
                int(item.get("away_runs", 0)),
            )
            for item in data.get("innings", [])
        ]
        rows.sort(key=lambda row: row.inning)
        return cls(tuple(rows))


__all__ = ["AWAY", "HOME", "InningScore", "Scoreboard"]
