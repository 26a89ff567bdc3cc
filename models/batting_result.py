"""Closed vocabulary of plate appearance outcomes."""
from __future__ import annotations

from enum import Enum


class BattingResult(str, Enum):
    """Outcome of a completed plate appearance.

    Values are the scorebook abbreviations so results serialize as the codes
    an operator would write on a scoresheet.
    """

    SINGLE = "1B"
    DOUBLE = "2B"
    TRIPLE = "3B"
    HOME_RUN = "HR"
    WALK = "BB"
    HIT_BY_PITCH = "HBP"
    STRIKEOUT = "SO"
    GROUND_OUT = "GO"
    FLY_OUT = "FO"
    SAC_FLY = "SF"
    FIELDERS_CHOICE = "FC"
    ERROR = "E"
    DOUBLE_PLAY = "DP"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def parse(cls, value: "BattingResult | str") -> "BattingResult":
        """Return the result for a code (``"2B"``) or member name (``"double"``)."""

        if isinstance(value, cls):
            return value
        token = str(value).strip()
        for member in cls:
            if token.upper() == member.value:
                return member
        key = token.upper().replace("-", "_").replace(" ", "_").replace("'", "")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Invalid batting result: {value}") from None

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------
    def reaches_base(self) -> bool:
        return self in _REACHES_BASE

    def is_out(self) -> bool:
        return self in _BATTER_OUT

    def is_hit(self) -> bool:
        return self in _HITS

    def forces_runners(self) -> bool:
        """True when only runners forced by the batter's award may advance."""

        return self in (BattingResult.WALK, BattingResult.HIT_BY_PITCH)

    def counts_as_at_bat(self) -> bool:
        """Walks, hit batsmen and sacrifice flies are not official at-bats."""

        return self not in (
            BattingResult.WALK,
            BattingResult.HIT_BY_PITCH,
            BattingResult.SAC_FLY,
        )

    def requires_advancement_choice(self) -> bool:
        """Whether the operator should be asked where runners ended up."""

        return self in _PROMPTS_FOR_RUNNERS

    def outs_on_batter(self) -> int:
        return 1 if self.is_out() else 0

    def batter_destination(self) -> str | None:
        """Base the batter finishes on, ``"home"`` for a home run, else ``None``."""

        return _BATTER_DESTINATION.get(self)

    def total_bases(self) -> int:
        return _TOTAL_BASES.get(self, 0)


_HITS = frozenset(
    {
        BattingResult.SINGLE,
        BattingResult.DOUBLE,
        BattingResult.TRIPLE,
        BattingResult.HOME_RUN,
    }
)

_REACHES_BASE = _HITS | {
    BattingResult.WALK,
    BattingResult.HIT_BY_PITCH,
    BattingResult.ERROR,
    BattingResult.FIELDERS_CHOICE,
}

_BATTER_OUT = frozenset(
    {
        BattingResult.STRIKEOUT,
        BattingResult.GROUND_OUT,
        BattingResult.FLY_OUT,
        BattingResult.SAC_FLY,
        BattingResult.DOUBLE_PLAY,
    }
)

_PROMPTS_FOR_RUNNERS = frozenset(
    {
        BattingResult.SINGLE,
        BattingResult.DOUBLE,
        BattingResult.TRIPLE,
        BattingResult.WALK,
        BattingResult.HIT_BY_PITCH,
        BattingResult.ERROR,
        BattingResult.FIELDERS_CHOICE,
        BattingResult.SAC_FLY,
    }
)

_BATTER_DESTINATION = {
    BattingResult.SINGLE: "first",
    BattingResult.DOUBLE: "second",
    BattingResult.TRIPLE: "third",
    BattingResult.HOME_RUN: "home",
    BattingResult.WALK: "first",
    BattingResult.HIT_BY_PITCH: "first",
    BattingResult.ERROR: "first",
    BattingResult.FIELDERS_CHOICE: "first",
}

_TOTAL_BASES = {
    BattingResult.SINGLE: 1,
    BattingResult.DOUBLE: 2,
    BattingResult.TRIPLE: 3,
    BattingResult.HOME_RUN: 4,
}


__all__ = ["BattingResult"]
