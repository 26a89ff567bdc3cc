from __future__ import annotations

"""Advisory checks for when a game may be ended.

The engine never completes a game on its own; callers consult
:func:`completion_reason` after each transition and decide whether to call
``complete``.
"""

from typing import Optional

from logic.scoring_config import ScoringConfig
from models.game import BOTTOM, IN_PROGRESS, TOP, Game

REGULATION = "regulation"
MERCY_RULE = "mercy-rule"


def completed_innings(game: Game) -> int:
    """Number of full innings (both halves) already played."""

    return game.inning - 1


def _home_needs_no_bat(game: Game, through_inning: int) -> bool:
    """True when the home team leads during the bottom of ``through_inning`` or later."""

    board = game.scoreboard
    return (
        game.half == BOTTOM
        and game.inning >= through_inning
        and board.home_total > board.away_total
    )


def is_regulation_complete(game: Game, config: ScoringConfig | None = None) -> bool:
    config = config or ScoringConfig()
    board = game.scoreboard
    if _home_needs_no_bat(game, config.regulation_innings):
        return True
    return (
        game.half == TOP
        and completed_innings(game) >= config.regulation_innings
        and board.home_total != board.away_total
    )


def is_mercy(game: Game, config: ScoringConfig | None = None) -> bool:
    config = config or ScoringConfig()
    board = game.scoreboard
    if not board.is_mercy(config.mercy_run_threshold):
        return False
    if game.half == TOP and completed_innings(game) >= config.mercy_min_innings:
        return True
    return _home_needs_no_bat(game, config.mercy_min_innings)


def completion_reason(game: Game, config: ScoringConfig | None = None) -> Optional[str]:
    """Return why ``game`` could end now, or ``None`` when play continues."""

    if game.status != IN_PROGRESS:
        return None
    if is_regulation_complete(game, config):
        return REGULATION
    if is_mercy(game, config):
        return MERCY_RULE
    return None


__all__ = [
    "MERCY_RULE",
    "REGULATION",
    "completed_innings",
    "completion_reason",
    "is_mercy",
    "is_regulation_complete",
]
