from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence

MAX_BATTING_ORDER = 15


@dataclass(frozen=True)
class LineupSlot:
    batting_order: int
    player_id: str
    defensive_position: str = ""
    is_starter: bool = True


@dataclass
class Lineup:
    """Batting order and defensive assignments for one game.

    ``slots`` may contain non-starters (for example a designated runner kept
    on the card); only starters take part in the batting rotation.
    """

    lineup_id: str
    slots: List[LineupSlot] = field(default_factory=list)
    substitutes: List[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_rows(
        cls,
        lineup_id: str,
        rows: Iterable[Mapping[str, object]],
        substitutes: Sequence[str] = (),
    ) -> "Lineup":
        """Build a lineup from ``order,player_id,position[,starter]`` rows."""

        slots: List[LineupSlot] = []
        for row in rows:
            player_id = str(row.get("player_id") or "").strip()
            raw_order = str(row.get("order") or row.get("batting_order") or "").strip()
            if not player_id and not raw_order:
                continue
            starter_raw = str(row.get("starter", "1")).strip().lower()
            is_starter = starter_raw not in {"0", "false", "no", "n", "bench"}
            if not raw_order and not is_starter:
                # Bench players need not have a batting order.
                order = 0
            else:
                try:
                    order = int(raw_order)
                except ValueError:
                    raise ValueError(
                        f"Invalid batting order {raw_order!r} for {player_id or 'unknown player'}"
                    ) from None
            position = str(row.get("position") or row.get("defensive_position") or "").strip()
            slots.append(LineupSlot(order, player_id, position, is_starter))
        return cls(lineup_id, slots, list(substitutes))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def starters(self) -> List[LineupSlot]:
        return sorted(
            (slot for slot in self.slots if slot.is_starter),
            key=lambda slot: slot.batting_order,
        )

    @property
    def batting_order(self) -> List[str]:
        return [slot.player_id for slot in self.starters]

    def __len__(self) -> int:
        return len(self.starters)

    def batter_at(self, index: int) -> str:
        order = self.batting_order
        if not order:
            raise ValueError("Lineup has no starters")
        return order[index % len(order)]

    def slot_for(self, player_id: str) -> Optional[LineupSlot]:
        for slot in self.slots:
            if slot.player_id == player_id:
                return slot
        return None

    def problems(self, min_size: int = 1, max_size: int = MAX_BATTING_ORDER) -> List[str]:
        """Return every reason this lineup cannot start a game."""

        issues: List[str] = []
        starters = self.starters
        if not starters:
            return ["Lineup has no starting players."]

        if len(starters) < min_size:
            issues.append(
                f"Lineup needs at least {min_size} starters; found {len(starters)}."
            )
        if len(starters) > max_size:
            issues.append(
                f"Lineup allows at most {max_size} starters; found {len(starters)}."
            )

        orders = [slot.batting_order for slot in starters]
        out_of_range = sorted(o for o in set(orders) if o < 1 or o > MAX_BATTING_ORDER)
        if out_of_range:
            issues.append(
                "Batting order must be between 1 and "
                f"{MAX_BATTING_ORDER}: {', '.join(str(o) for o in out_of_range)}."
            )

        duplicates = sorted({o for o in orders if orders.count(o) > 1})
        if duplicates:
            issues.append(
                f"Duplicate batting order: {', '.join(str(o) for o in duplicates)}."
            )

        missing = sorted(set(range(1, len(starters) + 1)) - set(orders))
        if missing and not duplicates:
            issues.append(
                f"Batting order has gaps: {', '.join(str(o) for o in missing)} missing."
            )

        players = [slot.player_id for slot in starters]
        blank = [slot.batting_order for slot in starters if not slot.player_id]
        if blank:
            issues.append(
                f"No player assigned to batting order {', '.join(str(o) for o in blank)}."
            )
        repeated = sorted({p for p in players if p and players.count(p) > 1})
        if repeated:
            issues.append(f"Player listed more than once: {', '.join(repeated)}.")

        benched = sorted(set(self.substitutes) & set(players))
        if benched:
            issues.append(
                f"Starter also listed as substitute: {', '.join(benched)}."
            )
        return issues

    def is_complete(self, min_size: int = 1, max_size: int = MAX_BATTING_ORDER) -> bool:
        return not self.problems(min_size, max_size)

    # ------------------------------------------------------------------
    # Substitutes
    # ------------------------------------------------------------------
    def add_substitute(self, player_id: str) -> None:
        if player_id in self.batting_order:
            raise ValueError(f"{player_id} is already in the starting lineup")
        if player_id not in self.substitutes:
            self.substitutes.append(player_id)

    def remove_substitute(self, player_id: str) -> None:
        if player_id not in self.substitutes:
            raise ValueError(f"{player_id} is not a substitute")
        self.substitutes.remove(player_id)
