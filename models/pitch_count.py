from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from models.batting_result import BattingResult

PITCHES = ("ball", "strike", "foul")


@dataclass(frozen=True)
class PitchCount:
    """Balls and strikes for the plate appearance in progress."""

    balls: int = 0
    strikes: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.balls <= 3:
            raise ValueError(f"Balls must be between 0 and 3, got {self.balls}")
        if not 0 <= self.strikes <= 2:
            raise ValueError(f"Strikes must be between 0 and 2, got {self.strikes}")

    def record(self, pitch: str) -> Tuple["PitchCount", Optional[BattingResult]]:
        """Apply ``pitch`` and return the new count plus any automatic result.

        A fourth ball ends the plate appearance with a walk and a third strike
        with a strikeout; in both cases the returned count is reset.  A foul
        ball with two strikes leaves the count unchanged.
        """

        kind = pitch.strip().lower()
        if kind not in PITCHES:
            raise ValueError(f"Unknown pitch: {pitch}")
        if kind == "ball":
            if self.balls == 3:
                return PitchCount(), BattingResult.WALK
            return replace(self, balls=self.balls + 1), None
        if kind == "strike":
            if self.strikes == 2:
                return PitchCount(), BattingResult.STRIKEOUT
            return replace(self, strikes=self.strikes + 1), None
        if self.strikes < 2:
            return replace(self, strikes=self.strikes + 1), None
        return self, None

    @classmethod
    def replay(cls, pitches: Iterable[str]) -> Tuple["PitchCount", Optional[BattingResult]]:
        count = cls()
        for pitch in pitches:
            count, result = count.record(pitch)
            if result is not None:
                return count, result
        return count, None

    def __str__(self) -> str:
        return f"{self.balls}-{self.strikes}"


__all__ = ["PITCHES", "PitchCount"]
