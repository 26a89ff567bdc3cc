from __future__ import annotations

"""Transactional entry points for scoring a game.

Every operation that changes a game follows the same path: take the game's
commit lock, load the stored snapshot, check the caller's version, compute the
next snapshot and persist it with a compare-and-swap on ``Game.version``.
Expected user conditions (bad advancement, wrong status, lost race) come back
as failed results; store failures raise :class:`PersistenceError`.

Recording an at-bat writes the at-bat log entry before the game.  If the game
write fails the log holds one entry past ``Game.at_bat_count``; see
:meth:`AtBatProcessingService.orphaned_at_bats`.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from logic.baserunner_advancement import AdvancementOutcome, BaserunnerAdvancementService
from logic.game_rules import completion_reason
from logic.scoring_config import ScoringConfig
from models.at_bat import AtBat
from models.batting_result import BattingResult
from models.game import IN_PROGRESS, Game
from models.lineup import Lineup
from models.pitch_count import PitchCount
from models.scoreboard import Scoreboard
from services.at_bat_store import AtBatStore
from services.game_locks import GameLockRegistry
from services.game_store import GameStore
from services.roster_provider import RosterProvider
from services.unified_data_service import EventBus, get_unified_data_service
from utils.exceptions import (
    BatterMismatch,
    ConcurrentUpdate,
    ConflictError,
    GameNotFound,
    IllegalPlay,
    IncompleteLineup,
    PersistenceError,
    ScoringError,
    StateError,
    ValidationError,
    WrongGameStatus,
    WrongHalf,
)

_LOGGER = logging.getLogger(__name__)

_EXPECTED_ERRORS = (ValidationError, StateError, ConflictError)


@dataclass(frozen=True)
class RecordAtBatResult:
    success: bool
    game: Optional[Game] = None
    at_bat: Optional[AtBat] = None
    runs_scored: int = 0
    rbi: int = 0
    error: Optional[ScoringError] = None
    messages: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GameUpdateResult:
    success: bool
    game: Optional[Game] = None
    error: Optional[ScoringError] = None
    messages: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AdvancementPreview:
    """What an at-bat would do, without committing anything."""

    outcome: Optional[AdvancementOutcome] = None
    messages: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.outcome is not None and not self.messages


def needs_advancement_prompt(game: Game, result: BattingResult | str) -> bool:
    """True when the operator should confirm where runners ended up."""

    return not game.bases.is_empty and BattingResult.parse(result).requires_advancement_choice()


class AtBatProcessingService:
    """Records at-bats and life-cycle transitions for stored games."""

    def __init__(
        self,
        game_store: GameStore,
        at_bat_store: AtBatStore,
        roster_provider: RosterProvider | None = None,
        *,
        config: ScoringConfig | None = None,
        locks: GameLockRegistry | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.game_store = game_store
        self.at_bat_store = at_bat_store
        self.roster_provider = roster_provider
        self.config = config or ScoringConfig()
        self.locks = locks or GameLockRegistry()
        self.events = events or get_unified_data_service().events
        self.advancement = BaserunnerAdvancementService(self.config)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def display_name(self, player_id: str) -> str:
        if self.roster_provider is None:
            return player_id
        return self.roster_provider.display_name(player_id)

    def _messages(self, exc: ScoringError) -> Tuple[str, ...]:
        return tuple(exc.user_messages(self.display_name))

    def _load(self, game_id: str, expected_version: Optional[int] = None) -> Game:
        game = self.game_store.find_by_id(game_id)
        if game is None:
            raise GameNotFound(game_id)
        if expected_version is not None and game.version != expected_version:
            raise ConcurrentUpdate(game_id, expected_version, game.version)
        return game

    def _transition(
        self,
        game_id: str,
        action: str,
        change: Callable[[Game], Game],
        expected_version: Optional[int] = None,
    ) -> GameUpdateResult:
        try:
            with self.locks.hold(game_id):
                game = self._load(game_id, expected_version)
                updated = change(game)
                saved = self.game_store.save(updated, expected_version=game.version)
        except _EXPECTED_ERRORS as exc:
            _LOGGER.warning("Rejected %s for game %s: %s", action, game_id, exc)
            return GameUpdateResult(False, error=exc, messages=self._messages(exc))
        _LOGGER.info("Game %s: %s (status=%s, version=%d)", game_id, action, saved.status, saved.version)
        self.events.publish(
            f"games.{action}",
            {"game_id": game_id, "version": saved.version, "status": saved.status},
        )
        return GameUpdateResult(True, game=saved)

    # ------------------------------------------------------------------
    # Life cycle
    # ------------------------------------------------------------------
    def start_game(
        self,
        game_id: str,
        lineup_id: Optional[str] = None,
        *,
        lineup: Optional[Lineup] = None,
        expected_version: Optional[int] = None,
    ) -> GameUpdateResult:
        """Move a game from setup to in progress with a validated lineup."""

        def _start(game: Game) -> Game:
            chosen = lineup
            if chosen is None:
                if lineup_id is None or self.roster_provider is None:
                    raise IncompleteLineup(
                        ["No lineup was supplied and no roster provider can load one."],
                        lineup_id,
                    )
                chosen = self.roster_provider.get_lineup(lineup_id)
            return game.start(
                chosen,
                min_size=self.config.min_lineup_size,
                max_size=self.config.max_lineup_size,
            )

        return self._transition(game_id, "started", _start, expected_version)

    def suspend_game(self, game_id: str, *, expected_version: Optional[int] = None) -> GameUpdateResult:
        return self._transition(game_id, "suspended", lambda g: g.suspend(), expected_version)

    def resume_game(self, game_id: str, *, expected_version: Optional[int] = None) -> GameUpdateResult:
        return self._transition(game_id, "resumed", lambda g: g.resume(), expected_version)

    def complete_game(
        self,
        game_id: str,
        final_scoreboard: Optional[Scoreboard] = None,
        reason: Optional[str] = None,
        *,
        expected_version: Optional[int] = None,
    ) -> GameUpdateResult:
        """Finish the game; ``reason`` defaults to the applicable completion rule."""

        def _complete(game: Game) -> Game:
            why = reason or completion_reason(game, self.config) or "manual"
            return game.complete(final_scoreboard, why)

        return self._transition(game_id, "completed", _complete, expected_version)

    def record_opponent_half(
        self,
        game_id: str,
        runs: int,
        *,
        expected_version: Optional[int] = None,
    ) -> GameUpdateResult:
        return self._transition(
            game_id,
            "opponent_half_recorded",
            lambda g: g.record_opponent_half(runs),
            expected_version,
        )

    # ------------------------------------------------------------------
    # At-bats
    # ------------------------------------------------------------------
    def record_at_bat(
        self,
        game_id: str,
        batter_id: str,
        result: BattingResult | str,
        override: Mapping[str, Optional[str]] | None = None,
        *,
        count: PitchCount | None = None,
        pitch_sequence: Sequence[str] = (),
        expected_version: Optional[int] = None,
    ) -> RecordAtBatResult:
        """Validate, apply and persist one plate appearance."""

        result = BattingResult.parse(result)
        count = count or PitchCount()
        try:
            with self.locks.hold(game_id):
                game = self._load(game_id, expected_version)
                if game.status != IN_PROGRESS:
                    raise WrongGameStatus(game_id, game.status, (IN_PROGRESS,), "record an at-bat for")
                if not game.is_team_batting:
                    raise WrongHalf(
                        game_id,
                        game.inning,
                        game.half,
                        f"{game.opponent} is batting in the {game.half} of inning {game.inning}",
                    )
                expected_batter = game.current_batter_id
                if batter_id != expected_batter:
                    raise BatterMismatch(game_id, expected_batter or "", batter_id)

                outcome = self.advancement.resolve(
                    result, game.bases, game.outs, batter_id, override
                )
                at_bat = AtBat(
                    game_id=game_id,
                    sequence=game.at_bat_count,
                    batter_id=batter_id,
                    batting_position=game.batter_index + 1,
                    inning=game.inning,
                    half=game.half,
                    result=result,
                    bases_before=game.bases,
                    bases_after=outcome.bases_after,
                    decision=dict(outcome.decision),
                    runs_scored=outcome.runs_scored,
                    rbi=outcome.rbi,
                    outs_recorded=outcome.outs_recorded,
                    balls=count.balls,
                    strikes=count.strikes,
                    pitch_sequence=tuple(pitch_sequence),
                )
                updated = game.record_at_bat(at_bat)

                self.at_bat_store.save(at_bat)
                try:
                    saved = self.game_store.save(updated, expected_version=game.version)
                except ConcurrentUpdate:
                    _LOGGER.warning(
                        "Game %s changed underneath at-bat %s; log entry left orphaned",
                        game_id,
                        at_bat.id,
                    )
                    raise
                except PersistenceError:
                    _LOGGER.exception(
                        "Game %s not saved after logging at-bat %s", game_id, at_bat.id
                    )
                    raise
        except _EXPECTED_ERRORS as exc:
            _LOGGER.warning("Rejected %s by %s in game %s: %s", result.value, batter_id, game_id, exc)
            return RecordAtBatResult(False, error=exc, messages=self._messages(exc))

        _LOGGER.info(
            "Game %s: %s %s (%d run(s), %d RBI) -> inning %d %s, %d out",
            game_id,
            batter_id,
            result.value,
            at_bat.runs,
            at_bat.rbi,
            saved.inning,
            saved.half,
            saved.outs,
        )
        self.events.publish(
            "games.at_bat_recorded",
            {"game_id": game_id, "at_bat_id": at_bat.id, "version": saved.version},
        )
        return RecordAtBatResult(
            True,
            game=saved,
            at_bat=at_bat,
            runs_scored=at_bat.runs,
            rbi=at_bat.rbi,
        )

    def preview(
        self,
        game: Game,
        result: BattingResult | str,
        override: Mapping[str, Optional[str]] | None = None,
    ) -> AdvancementPreview:
        """Resolve advancement for ``game`` without recording anything."""

        result = BattingResult.parse(result)
        messages = self.advancement.messages(
            result, game.bases, game.outs, override, self.display_name
        )
        if messages:
            return AdvancementPreview(None, messages)
        batter = game.current_batter_id or "Batter"
        try:
            outcome = self.advancement.resolve(result, game.bases, game.outs, batter, override)
        except (ValidationError, IllegalPlay) as exc:
            return AdvancementPreview(None, list(self._messages(exc)))
        return AdvancementPreview(outcome, [])

    def needs_advancement_prompt(self, game: Game, result: BattingResult | str) -> bool:
        return needs_advancement_prompt(game, result)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_game(self, game_id: str) -> Game:
        return self._load(game_id)

    def at_bats(self, game_id: str) -> List[AtBat]:
        game = self._load(game_id)
        return [ab for ab in self.at_bat_store.find_by_game_id(game_id) if ab.sequence < game.at_bat_count]

    def orphaned_at_bats(self, game_id: str) -> List[AtBat]:
        """Log entries the stored game never acknowledged."""

        game = self._load(game_id)
        return [ab for ab in self.at_bat_store.find_by_game_id(game_id) if ab.sequence >= game.at_bat_count]


__all__ = [
    "AdvancementPreview",
    "AtBatProcessingService",
    "GameUpdateResult",
    "RecordAtBatResult",
    "needs_advancement_prompt",
]
