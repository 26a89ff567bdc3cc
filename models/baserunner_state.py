"""Base occupancy snapshots and the advancement vocabulary."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

BASES: Tuple[str, str, str] = ("first", "second", "third")

# Destinations an operator may pick for a runner already on base.
STAY = "stay"
HOME = "home"
OUT = "out"
DESTINATIONS: Tuple[str, ...] = ("second", "third", HOME, OUT, STAY)

# Ordering used to compare where runners finished; "home" outranks every base.
BASE_RANK: Dict[str, int] = {"first": 1, "second": 2, "third": 3, HOME: 4}

AdvancementDecision = Dict[str, Optional[str]]


def advance_base(base: str, bases: int) -> str:
    """Return the base ``bases`` steps past ``base`` capped at home."""

    rank = min(BASE_RANK[base] + bases, BASE_RANK[HOME])
    if rank == BASE_RANK[HOME]:
        return HOME
    return BASES[rank - 1]


@dataclass(frozen=True)
class BaserunnerState:
    """Which runner (by player id) occupies each base.

    Instances are never modified; every at-bat and every new half-inning
    produces a fresh value.
    """

    first: Optional[str] = None
    second: Optional[str] = None
    third: Optional[str] = None

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for base in BASES:
            runner = getattr(self, base)
            if runner is None:
                continue
            if not isinstance(runner, str) or not runner.strip():
                raise ValueError(f"Invalid runner id on {base} base: {runner!r}")
            if runner in seen:
                raise ValueError(f"Runner {runner} cannot occupy more than one base")
            seen.add(runner)

    @classmethod
    def empty(cls) -> "BaserunnerState":
        return cls()

    @classmethod
    def from_mapping(cls, occupants: Mapping[str, Optional[str]]) -> "BaserunnerState":
        unknown = set(occupants) - set(BASES)
        if unknown:
            raise ValueError(f"Unknown base(s): {', '.join(sorted(unknown))}")
        return cls(**{base: occupants.get(base) or None for base in BASES})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def runner_on(self, base: str) -> Optional[str]:
        if base not in BASES:
            raise ValueError(f"Unknown base: {base}")
        return getattr(self, base)

    def occupied_bases(self) -> List[str]:
        return [base for base in BASES if getattr(self, base) is not None]

    def runners(self) -> List[str]:
        return [getattr(self, base) for base in self.occupied_bases()]

    def items(self) -> Iterator[Tuple[str, str]]:
        for base in self.occupied_bases():
            yield base, getattr(self, base)

    def base_of(self, runner: str) -> Optional[str]:
        for base, occupant in self.items():
            if occupant == runner:
                return base
        return None

    @property
    def is_empty(self) -> bool:
        return not self.occupied_bases()

    @property
    def is_loaded(self) -> bool:
        return len(self.occupied_bases()) == 3

    @property
    def runner_count(self) -> int:
        return len(self.occupied_bases())

    def forced_bases(self) -> List[str]:
        """Bases in the unbroken occupied chain starting at first."""

        chain: List[str] = []
        for base in BASES:
            if getattr(self, base) is None:
                break
            chain.append(base)
        return chain

    def lead_base(self) -> Optional[str]:
        occupied = self.occupied_bases()
        return occupied[-1] if occupied else None

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Optional[str]]:
        return {base: getattr(self, base) for base in BASES}

    @classmethod
    def from_dict(cls, data: Mapping[str, Optional[str]] | None) -> "BaserunnerState":
        if not data:
            return cls()
        return cls.from_mapping({base: data.get(base) for base in BASES})

    def describe(self) -> str:
        labels = {"first": "1B", "second": "2B", "third": "3B"}
        parts = [f"{labels[base]}: {runner}" for base, runner in self.items()]
        return ", ".join(parts) if parts else "Bases empty"


__all__ = [
    "BASES",
    "BASE_RANK",
    "DESTINATIONS",
    "HOME",
    "OUT",
    "STAY",
    "AdvancementDecision",
    "BaserunnerState",
    "advance_base",
]
