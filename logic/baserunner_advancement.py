"""Baserunner advancement for a single plate appearance.

Defaults and operator overrides go through one rule set.  The default
decision for a result is computed first and validated; an operator override
is then layered on top (bases it does not mention keep their default) and the
merged decision is validated again with the same rules before anything is
applied.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from logic.scoring_config import ScoringConfig
from models.baserunner_state import (
    BASE_RANK,
    BASES,
    DESTINATIONS,
    HOME,
    OUT,
    STAY,
    BaserunnerState,
    advance_base,
)
from models.batting_result import BattingResult
from models.game import MAX_OUTS
from utils.exceptions import (
    BaseConflict,
    IllegalPlay,
    IncompleteAdvancement,
    InvalidAdvancement,
    InvalidOutCount,
    ValidationError,
)

_LOGGER = logging.getLogger(__name__)

BATTER = "Batter"

# Bases every runner moves on a clean hit.
_HIT_ADVANCE = {
    BattingResult.SINGLE: 1,
    BattingResult.DOUBLE: 2,
}

_NO_RBI = (BattingResult.ERROR, BattingResult.DOUBLE_PLAY)


@dataclass(frozen=True)
class AdvancementOutcome:
    """Validated result of applying a decision to the bases."""

    result: BattingResult
    bases_before: BaserunnerState
    bases_after: BaserunnerState
    decision: Mapping[str, str] = field(default_factory=dict)
    runs_scored: Tuple[str, ...] = ()
    rbi: int = 0
    batter_outs: int = 0
    runner_outs: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "decision", MappingProxyType(dict(self.decision)))

    @property
    def runs(self) -> int:
        return len(self.runs_scored)

    @property
    def outs_recorded(self) -> int:
        return self.batter_outs + self.runner_outs


def _normalize(destination: object) -> Optional[str]:
    if destination is None:
        return None
    text = str(destination).strip().lower()
    return text or None


class BaserunnerAdvancementService:
    """Compute and validate where runners end up after a batting result."""

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self.config = config or ScoringConfig()

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------
    def check_preconditions(
        self, result: BattingResult, bases: BaserunnerState, outs: int
    ) -> None:
        """Raise :class:`IllegalPlay` when ``result`` cannot happen right now."""

        if result is BattingResult.SAC_FLY and outs > MAX_OUTS - 2:
            raise IllegalPlay(result.value, f"a sacrifice fly cannot be recorded with {outs} outs")
        if result is BattingResult.DOUBLE_PLAY:
            if bases.is_empty:
                raise IllegalPlay(result.value, "a double play needs at least one runner on base")
            if outs > MAX_OUTS - 2:
                raise IllegalPlay(result.value, f"a double play cannot be recorded with {outs} outs")

    def default_decision(
        self, result: BattingResult, bases: BaserunnerState, outs: int = 0
    ) -> Dict[str, str]:
        """Return the standard destination for every occupied base."""

        self.check_preconditions(result, bases, outs)
        decision: Dict[str, str] = {}
        occupied = bases.occupied_bases()
        forced = bases.forced_bases()

        # Evaluated lead runner first so no assignment depends on a later one.
        for base in reversed(occupied):
            if result in (BattingResult.HOME_RUN, BattingResult.TRIPLE):
                decision[base] = HOME
            elif result in _HIT_ADVANCE:
                decision[base] = advance_base(base, _HIT_ADVANCE[result])
            elif result in (BattingResult.WALK, BattingResult.HIT_BY_PITCH, BattingResult.ERROR):
                decision[base] = advance_base(base, 1) if base in forced else STAY
            elif result is BattingResult.FIELDERS_CHOICE:
                lead = forced[-1] if forced else occupied[-1]
                if base == lead:
                    decision[base] = OUT
                elif base in forced:
                    decision[base] = advance_base(base, 1)
                else:
                    decision[base] = STAY
            elif result is BattingResult.DOUBLE_PLAY:
                lead = forced[-1] if forced else occupied[-1]
                decision[base] = OUT if base == lead else STAY
            elif result is BattingResult.SAC_FLY:
                decision[base] = HOME if base == "third" else STAY
            else:
                decision[base] = STAY
        return decision

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def merge(
        self,
        defaults: Mapping[str, str],
        override: Mapping[str, Optional[str]] | None,
        bases: BaserunnerState,
    ) -> Dict[str, Optional[str]]:
        """Layer ``override`` onto ``defaults``."""

        merged: Dict[str, Optional[str]] = dict(defaults)
        for base, destination in (override or {}).items():
            key = str(base).strip().lower()
            value = _normalize(destination)
            if value is None and key in BASES and bases.runner_on(key) is None:
                continue
            merged[key] = value
        return merged

    def violations(
        self,
        result: BattingResult,
        bases: BaserunnerState,
        outs: int,
        decision: Mapping[str, Optional[str]],
    ) -> List[ValidationError]:
        """Return every rule ``decision`` breaks, in rule order."""

        problems: List[ValidationError] = []
        occupied = bases.occupied_bases()

        missing = [base for base in occupied if not decision.get(base)]
        if missing:
            problems.append(
                IncompleteAdvancement(missing, {b: bases.runner_on(b) for b in missing})
            )

        valid: Dict[str, str] = {}
        for base, destination in decision.items():
            if base not in BASES or bases.runner_on(base) is None:
                problems.append(
                    InvalidAdvancement(
                        f"No runner on {base} to advance",
                        base=base,
                        destination=destination,
                    )
                )
                continue
            if not destination:
                continue
            if destination not in DESTINATIONS:
                problems.append(
                    InvalidAdvancement(
                        f"Unknown destination {destination!r} for runner on {base} base",
                        base=base,
                        destination=destination,
                    )
                )
                continue
            if destination == base:
                problems.append(
                    InvalidAdvancement(
                        f"Runner on {base} base cannot advance to {base}; use 'stay'",
                        base=base,
                        destination=destination,
                    )
                )
                continue
            if destination in BASE_RANK and BASE_RANK[destination] < BASE_RANK[base]:
                problems.append(
                    InvalidAdvancement(
                        f"Runner on {base} base cannot move back to {destination}",
                        base=base,
                        destination=destination,
                    )
                )
                continue
            valid[base] = destination

        batter_outs = result.outs_on_batter()
        runner_outs = sum(1 for dest in valid.values() if dest == OUT)
        total = outs + batter_outs + runner_outs
        if total > MAX_OUTS:
            problems.append(
                InvalidOutCount(
                    f"Play records {batter_outs + runner_outs} out(s) with {outs} already; "
                    f"a half-inning has only {MAX_OUTS}",
                    outs_before=outs,
                    outs_on_play=batter_outs + runner_outs,
                )
            )
        elif (
            total == MAX_OUTS
            and HOME in valid.values()
            and (batter_outs or self._force_out(result, bases, valid))
        ):
            problems.append(
                InvalidOutCount(
                    "No run can score when the third out is the batter or a force out",
                    outs_before=outs,
                    outs_on_play=batter_outs + runner_outs,
                )
            )

        problems.extend(self._conflicts(result, bases, valid))
        problems.extend(self._passing(result, bases, valid))
        return problems

    @staticmethod
    def _force_out(
        result: BattingResult,
        bases: BaserunnerState,
        decision: Mapping[str, str],
    ) -> bool:
        """True when a fielder's choice retires a runner who was forced to run."""

        if result is not BattingResult.FIELDERS_CHOICE:
            return False
        forced = bases.forced_bases()
        return any(dest == OUT and base in forced for base, dest in decision.items())

    def _final_base(self, base: str, destination: str) -> Optional[str]:
        if destination == STAY:
            return base
        if destination in BASES:
            return destination
        return None

    def _conflicts(
        self,
        result: BattingResult,
        bases: BaserunnerState,
        decision: Mapping[str, str],
    ) -> List[BaseConflict]:
        occupancy: Dict[str, List[str]] = {base: [] for base in BASES}
        batter_base = result.batter_destination()
        if batter_base in occupancy:
            occupancy[batter_base].append(BATTER)
        for base, runner in bases.items():
            destination = decision.get(base)
            if destination is None:
                continue
            final = self._final_base(base, destination)
            if final is not None:
                occupancy[final].append(runner)
        return [
            BaseConflict(base, occupants)
            for base, occupants in occupancy.items()
            if len(occupants) > 1
        ]

    def _passing(
        self,
        result: BattingResult,
        bases: BaserunnerState,
        decision: Mapping[str, str],
    ) -> List[InvalidAdvancement]:
        # (start rank, finish rank, label) for everyone still on the field
        movers: List[Tuple[int, int, str, Optional[str]]] = []
        batter_base = result.batter_destination()
        if batter_base is not None:
            movers.append((0, BASE_RANK[batter_base], BATTER, None))
        for base, runner in bases.items():
            destination = decision.get(base)
            if destination is None or destination == OUT:
                continue
            final = base if destination == STAY else destination
            movers.append((BASE_RANK[base], BASE_RANK[final], runner, base))

        problems: List[InvalidAdvancement] = []
        for start, finish, label, base in movers:
            for other_start, other_finish, other_label, _ in movers:
                if other_start > start and finish > other_finish:
                    problems.append(
                        InvalidAdvancement(
                            f"{label} cannot pass {other_label} on the bases",
                            base=base,
                            destination=decision.get(base) if base else batter_base,
                        )
                    )
        return problems

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def resolve(
        self,
        result: BattingResult | str,
        bases: BaserunnerState,
        outs: int = 0,
        batter_id: str = BATTER,
        override: Mapping[str, Optional[str]] | None = None,
    ) -> AdvancementOutcome:
        """Return the validated outcome of ``result`` with ``override`` applied.

        Raises the first :class:`ValidationError` found, or
        :class:`IllegalPlay` when the result is impossible in this situation.
        """

        result = BattingResult.parse(result)
        defaults = self.default_decision(result, bases, outs)
        default_problems = self.violations(result, bases, outs, defaults)
        if default_problems:  # pragma: no cover - defaults are always valid
            raise default_problems[0]

        decision = self.merge(defaults, override, bases)
        problems = self.violations(result, bases, outs, decision)
        if problems:
            _LOGGER.debug(
                "Rejected advancement for %s with %s: %s", result.value, decision, problems
            )
            raise problems[0]
        outcome = self._apply(result, bases, batter_id, {k: v for k, v in decision.items() if v})
        _LOGGER.debug(
            "%s with %s -> %s (runs=%d, rbi=%d, outs=%d)",
            result.value,
            bases.describe(),
            outcome.bases_after.describe(),
            outcome.runs,
            outcome.rbi,
            outcome.outs_recorded,
        )
        return outcome

    def _apply(
        self,
        result: BattingResult,
        bases: BaserunnerState,
        batter_id: str,
        decision: Dict[str, str],
    ) -> AdvancementOutcome:
        after: Dict[str, Optional[str]] = {base: None for base in BASES}
        scored: List[str] = []
        runner_outs = 0
        for base in reversed(BASES):
            runner = bases.runner_on(base)
            if runner is None:
                continue
            destination = decision[base]
            if destination == HOME:
                scored.append(runner)
            elif destination == OUT:
                runner_outs += 1
            else:
                after[self._final_base(base, destination)] = runner

        batter_base = result.batter_destination()
        if batter_base == HOME:
            scored.append(batter_id)
        elif batter_base is not None:
            after[batter_base] = batter_id

        return AdvancementOutcome(
            result=result,
            bases_before=bases,
            bases_after=BaserunnerState.from_mapping(after),
            decision=decision,
            runs_scored=tuple(scored),
            rbi=self._rbi(result, bases, decision, len(scored)),
            batter_outs=result.outs_on_batter(),
            runner_outs=runner_outs,
        )

    @staticmethod
    def _rbi(
        result: BattingResult,
        bases: BaserunnerState,
        decision: Mapping[str, str],
        runs: int,
    ) -> int:
        if result in _NO_RBI:
            return 0
        if result.forces_runners():
            return 1 if bases.is_loaded and decision.get("third") == HOME else 0
        return runs

    def messages(
        self,
        result: BattingResult | str,
        bases: BaserunnerState,
        outs: int = 0,
        override: Mapping[str, Optional[str]] | None = None,
        display_name: Callable[[str], str] | None = None,
    ) -> List[str]:
        """Return operator-facing text for every problem without raising."""

        result = BattingResult.parse(result)
        try:
            defaults = self.default_decision(result, bases, outs)
        except IllegalPlay as exc:
            return exc.user_messages(display_name)
        decision = self.merge(defaults, override, bases)
        texts: List[str] = []
        for problem in self.violations(result, bases, outs, decision):
            texts.extend(problem.user_messages(display_name))
        return texts


__all__ = ["AdvancementOutcome", "BaserunnerAdvancementService", "BATTER"]
