from __future__ import annotations

"""Game aggregate and its life-cycle transitions.

A :class:`Game` is a frozen snapshot.  Every transition validates the current
status and returns a new snapshot with ``version`` incremented, leaving the
original untouched so readers holding an older value always see a consistent
game.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from models.at_bat import AtBat
from models.baserunner_state import BaserunnerState
from models.lineup import MAX_BATTING_ORDER, Lineup
from models.scoreboard import AWAY, HOME, Scoreboard
from utils.exceptions import (
    BatterMismatch,
    IncompleteLineup,
    InvalidRunCount,
    WrongGameStatus,
    WrongHalf,
)

SETUP = "setup"
IN_PROGRESS = "in_progress"
SUSPENDED = "suspended"
COMPLETED = "completed"
STATUSES = (SETUP, IN_PROGRESS, SUSPENDED, COMPLETED)

TOP = "top"
BOTTOM = "bottom"

MAX_OUTS = 3


def half_inning_id(game_id: str, inning: int, half: str) -> str:
    return f"{game_id}:{inning}:{half}"


@dataclass(frozen=True)
class Game:
    game_id: str
    name: str
    opponent: str
    date: str
    team_id: str
    home_away: str
    season_id: Optional[str] = None
    game_type_id: Optional[str] = None
    status: str = SETUP
    lineup_id: Optional[str] = None
    lineup: Tuple[str, ...] = ()
    inning_ids: Tuple[str, ...] = ()
    inning: int = 1
    half: str = TOP
    outs: int = 0
    batter_index: int = 0
    bases: BaserunnerState = field(default_factory=BaserunnerState)
    scoreboard: Scoreboard = field(default_factory=Scoreboard)
    version: int = 0
    at_bat_count: int = 0
    completion_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.home_away not in (HOME, AWAY):
            raise ValueError(f"home_away must be 'home' or 'away', got {self.home_away!r}")
        if self.status not in STATUSES:
            raise ValueError(f"Unknown game status: {self.status}")
        if self.half not in (TOP, BOTTOM):
            raise ValueError(f"Unknown half: {self.half}")
        if not 0 <= self.outs < MAX_OUTS:
            raise ValueError(f"Outs must be between 0 and {MAX_OUTS - 1}, got {self.outs}")
        if self.status != SETUP and not self.lineup_id:
            raise ValueError("A lineup is required once the game has started")

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def team_side(self) -> str:
        return self.home_away

    @property
    def opponent_side(self) -> str:
        return AWAY if self.home_away == HOME else HOME

    @property
    def batting_half(self) -> str:
        """Half in which the scoring team bats."""

        return BOTTOM if self.home_away == HOME else TOP

    @property
    def is_team_batting(self) -> bool:
        return self.half == self.batting_half

    @property
    def batting_side(self) -> str:
        return AWAY if self.half == TOP else HOME

    @property
    def lineup_size(self) -> int:
        return len(self.lineup)

    @property
    def current_batter_id(self) -> Optional[str]:
        if not self.lineup:
            return None
        return self.lineup[self.batter_index % len(self.lineup)]

    @property
    def current_half_inning_id(self) -> str:
        return half_inning_id(self.game_id, self.inning, self.half)

    @property
    def is_active(self) -> bool:
        return self.status == IN_PROGRESS

    @property
    def is_final(self) -> bool:
        return self.status == COMPLETED

    def team_score(self) -> int:
        return self.scoreboard.total_for(self.team_side)

    def opponent_score(self) -> int:
        return self.scoreboard.total_for(self.opponent_side)

    def describe(self) -> str:
        half = "Top" if self.half == TOP else "Bottom"
        return (
            f"{self.name}: {half} {self.inning}, {self.outs} out, "
            f"{self.scoreboard.display()}, {self.bases.describe()}"
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _require(self, action: str, *expected: str) -> None:
        if self.status not in expected:
            raise WrongGameStatus(self.game_id, self.status, expected, action)

    def _next(self, **changes: Any) -> "Game":
        return replace(self, version=self.version + 1, **changes)

    def start(
        self,
        lineup: Lineup,
        *,
        min_size: int = 1,
        max_size: int = MAX_BATTING_ORDER,
    ) -> "Game":
        self._require("start", SETUP)
        problems = lineup.problems(min_size, max_size)
        if problems:
            raise IncompleteLineup(problems, lineup.lineup_id)
        return self._next(
            status=IN_PROGRESS,
            lineup_id=lineup.lineup_id,
            lineup=tuple(lineup.batting_order),
            inning=1,
            half=TOP,
            outs=0,
            batter_index=0,
            bases=BaserunnerState.empty(),
            scoreboard=Scoreboard.start(),
            inning_ids=(half_inning_id(self.game_id, 1, TOP),),
        )

    def record_at_bat(self, at_bat: AtBat) -> "Game":
        """Apply a resolved at-bat and return the following snapshot."""

        self._require("record an at-bat for", IN_PROGRESS)
        if not self.is_team_batting:
            raise WrongHalf(
                self.game_id,
                self.inning,
                self.half,
                f"Cannot record an at-bat in the {self.half} of inning {self.inning}: "
                f"{self.opponent} is batting",
            )
        if at_bat.game_id != self.game_id:
            raise ValueError(f"At-bat belongs to game {at_bat.game_id}, not {self.game_id}")
        if at_bat.sequence != self.at_bat_count:
            raise ValueError(
                f"At-bat sequence {at_bat.sequence} does not follow {self.at_bat_count}"
            )
        expected = self.current_batter_id
        if at_bat.batter_id != expected:
            raise BatterMismatch(self.game_id, expected or "", at_bat.batter_id)

        scoreboard = self.scoreboard.add_runs(self.inning, self.batting_side, at_bat.runs)
        outs = min(self.outs + at_bat.outs_recorded, MAX_OUTS)
        snapshot = self._next(
            bases=at_bat.bases_after,
            scoreboard=scoreboard,
            batter_index=(self.batter_index + 1) % self.lineup_size,
            at_bat_count=self.at_bat_count + 1,
            outs=outs % MAX_OUTS,
        )
        if outs >= MAX_OUTS:
            snapshot = snapshot._end_half()
        return snapshot

    def record_opponent_half(self, runs: int) -> "Game":
        """Credit the opponent's half-inning and hand the bat back to the team."""

        self._require("record the opponent's half for", IN_PROGRESS)
        if runs < 0:
            raise InvalidRunCount(runs)
        if self.is_team_batting:
            raise WrongHalf(
                self.game_id,
                self.inning,
                self.half,
                f"Cannot record opponent runs in the {self.half} of inning {self.inning}: "
                "the team is batting",
            )
        scoreboard = self.scoreboard.add_runs(self.inning, self.batting_side, runs)
        return self._next(scoreboard=scoreboard)._end_half()

    def _end_half(self) -> "Game":
        if self.half == TOP:
            inning, half = self.inning, BOTTOM
        else:
            inning, half = self.inning + 1, TOP
        return replace(
            self,
            outs=0,
            bases=BaserunnerState.empty(),
            inning=inning,
            half=half,
            scoreboard=self.scoreboard.ensure_inning(inning),
            inning_ids=self.inning_ids + (half_inning_id(self.game_id, inning, half),),
        )

    def suspend(self) -> "Game":
        self._require("suspend", IN_PROGRESS)
        return self._next(status=SUSPENDED)

    def resume(self) -> "Game":
        self._require("resume", SUSPENDED)
        return self._next(status=IN_PROGRESS)

    def complete(
        self,
        final_scoreboard: Optional[Scoreboard] = None,
        reason: Optional[str] = None,
    ) -> "Game":
        self._require("complete", IN_PROGRESS)
        return self._next(
            status=COMPLETED,
            scoreboard=final_scoreboard or self.scoreboard,
            completion_reason=reason,
        )

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "game_id": self.game_id,
            "name": self.name,
            "opponent": self.opponent,
            "date": self.date,
            "team_id": self.team_id,
            "home_away": self.home_away,
            "season_id": self.season_id,
            "game_type_id": self.game_type_id,
            "status": self.status,
            "lineup_id": self.lineup_id,
            "lineup": list(self.lineup),
            "inning_ids": list(self.inning_ids),
            "inning": self.inning,
            "half": self.half,
            "outs": self.outs,
            "batter_index": self.batter_index,
            "bases": self.bases.to_dict(),
            "scoreboard": self.scoreboard.to_dict(),
            "version": self.version,
            "at_bat_count": self.at_bat_count,
            "completion_reason": self.completion_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Game":
        return cls(
            game_id=str(data["game_id"]),
            name=str(data.get("name", "")),
            opponent=str(data.get("opponent", "")),
            date=str(data.get("date", "")),
            team_id=str(data.get("team_id", "")),
            home_away=str(data.get("home_away", HOME)),
            season_id=data.get("season_id"),
            game_type_id=data.get("game_type_id"),
            status=str(data.get("status", SETUP)),
            lineup_id=data.get("lineup_id"),
            lineup=tuple(data.get("lineup") or ()),
            inning_ids=tuple(data.get("inning_ids") or ()),
            inning=int(data.get("inning", 1)),
            half=str(data.get("half", TOP)),
            outs=int(data.get("outs", 0)),
            batter_index=int(data.get("batter_index", 0)),
            bases=BaserunnerState.from_dict(data.get("bases")),
            scoreboard=Scoreboard.from_dict(data.get("scoreboard")),
            version=int(data.get("version", 0)),
            at_bat_count=int(data.get("at_bat_count", 0)),
            completion_reason=data.get("completion_reason"),
        )


__all__ = [
    "BOTTOM",
    "COMPLETED",
    "Game",
    "IN_PROGRESS",
    "MAX_OUTS",
    "SETUP",
    "STATUSES",
    "SUSPENDED",
    "TOP",
    "half_inning_id",
]
