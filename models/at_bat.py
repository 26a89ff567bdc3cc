from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from models.baserunner_state import BaserunnerState
from models.batting_result import BattingResult


def at_bat_id(game_id: str, sequence: int) -> str:
    return f"{game_id}:ab{sequence:03d}"


@dataclass(frozen=True)
class AtBat:
    """Immutable record of one completed plate appearance.

    ``sequence`` is zero-based and matches the number of at-bats the game had
    recorded before this one, which lets stores detect log entries that were
    written without the matching game update.
    """

    game_id: str
    sequence: int
    batter_id: str
    batting_position: int
    inning: int
    half: str
    result: BattingResult
    bases_before: BaserunnerState = field(default_factory=BaserunnerState)
    bases_after: BaserunnerState = field(default_factory=BaserunnerState)
    decision: Mapping[str, str] = field(default_factory=dict)
    runs_scored: Tuple[str, ...] = ()
    rbi: int = 0
    outs_recorded: int = 0
    balls: int = 0
    strikes: int = 0
    pitch_sequence: Tuple[str, ...] = ()
    id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.sequence < 0:
            raise ValueError("At-bat sequence cannot be negative")
        if self.rbi < 0 or self.rbi > len(self.runs_scored):
            raise ValueError(
                f"RBI count ({self.rbi}) cannot exceed runs scored ({len(self.runs_scored)})"
            )
        object.__setattr__(self, "decision", MappingProxyType(dict(self.decision)))
        if self.id is None:
            object.__setattr__(self, "id", at_bat_id(self.game_id, self.sequence))

    @property
    def runs(self) -> int:
        return len(self.runs_scored)

    def summary(self) -> str:
        parts = [self.result.value]
        if self.rbi:
            parts.append(f"{self.rbi} RBI")
        text = " ".join(parts)
        if self.runs:
            noun = "run" if self.runs == 1 else "runs"
            text += f" ({self.runs} {noun} scored)"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "game_id": self.game_id,
            "sequence": self.sequence,
            "batter_id": self.batter_id,
            "batting_position": self.batting_position,
            "inning": self.inning,
            "half": self.half,
            "result": self.result.value,
            "bases_before": self.bases_before.to_dict(),
            "bases_after": self.bases_after.to_dict(),
            "decision": dict(self.decision),
            "runs_scored": list(self.runs_scored),
            "rbi": self.rbi,
            "outs_recorded": self.outs_recorded,
            "balls": self.balls,
            "strikes": self.strikes,
            "pitch_sequence": list(self.pitch_sequence),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AtBat":
        return cls(
            game_id=str(data["game_id"]),
            sequence=int(data["sequence"]),
            batter_id=str(data["batter_id"]),
            batting_position=int(data.get("batting_position", 0)),
            inning=int(data["inning"]),
            half=str(data["half"]),
            result=BattingResult.parse(data["result"]),
            bases_before=BaserunnerState.from_dict(data.get("bases_before")),
            bases_after=BaserunnerState.from_dict(data.get("bases_after")),
            decision={str(k): str(v) for k, v in (data.get("decision") or {}).items()},
            runs_scored=tuple(data.get("runs_scored") or ()),
            rbi=int(data.get("rbi", 0)),
            outs_recorded=int(data.get("outs_recorded", 0)),
            balls=int(data.get("balls", 0)),
            strikes=int(data.get("strikes", 0)),
            pitch_sequence=tuple(data.get("pitch_sequence") or ()),
            id=data.get("id") or None,
        )


__all__ = ["AtBat", "at_bat_id"]
