from __future__ import annotations

"""Shared exception types for the scoring engine.

Every error raised by the engine derives from :class:`ScoringError`.  The four
families mirror how callers are expected to react:

``ValidationError``
    The operator's input (usually a baserunner advancement choice) is not
    acceptable.  Nothing was applied; re-prompt and try again.
``StateError``
    The game is not in a state that permits the operation.  Rejected before
    any mutation.
``ConflictError``
    Another commit for the same game won the race.  Reload and retry.
``PersistenceError``
    A store failed.  Carries the game id and the payload being written.
"""

from typing import Any, Callable, Iterable, Mapping

DisplayName = Callable[[str], str]


def _same(name: str) -> str:
    return name


class ScoringError(RuntimeError):
    """Base class for all scoring engine failures."""

    def user_messages(self, display_name: DisplayName | None = None) -> list[str]:
        """Return operator-facing text for this error."""

        return [str(self)]


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------
class ValidationError(ScoringError):
    """Raised when an advancement decision breaks a baserunning rule."""


class IncompleteAdvancement(ValidationError):
    """Raised when an occupied base has no advancement decision."""

    def __init__(self, missing: Iterable[str], runners: Mapping[str, str] | None = None):
        self.missing = tuple(missing)
        self.runners = dict(runners or {})
        bases = ", ".join(self.missing)
        super().__init__(f"Advancement required for runner(s) on: {bases}")

    def user_messages(self, display_name: DisplayName | None = None) -> list[str]:
        name = display_name or _same
        messages = []
        for base in self.missing:
            runner = self.runners.get(base)
            label = name(runner) if runner else "Runner"
            messages.append(f"Select advancement for {label} on {base} base")
        return messages


class BaseConflict(ValidationError):
    """Raised when more than one player would finish on the same base."""

    def __init__(self, base: str, occupants: Iterable[str]):
        self.base = base
        self.occupants = tuple(occupants)
        super().__init__(
            f"Multiple runners cannot occupy {base} base: {', '.join(self.occupants)}"
        )

    def user_messages(self, display_name: DisplayName | None = None) -> list[str]:
        name = display_name or _same
        labels = [occ if occ == "Batter" else name(occ) for occ in self.occupants]
        return [f"Multiple runners cannot occupy {self.base} base: {', '.join(labels)}"]


class InvalidOutCount(ValidationError):
    """Raised when a play records more outs than the half-inning allows."""

    def __init__(self, message: str, *, outs_before: int = 0, outs_on_play: int = 0):
        self.outs_before = outs_before
        self.outs_on_play = outs_on_play
        super().__init__(message)


class InvalidAdvancement(ValidationError):
    """Raised for unknown bases, unknown destinations, or backward movement."""

    def __init__(self, message: str, *, base: str | None = None, destination: Any = None):
        self.base = base
        self.destination = destination
        super().__init__(message)


class InvalidRunCount(ValidationError):
    """Raised when a run total entered by the operator is not possible."""

    def __init__(self, runs: int, message: str | None = None):
        self.runs = runs
        super().__init__(message or f"Runs cannot be negative, got {runs}")


# ---------------------------------------------------------------------------
# State errors
# ---------------------------------------------------------------------------
class StateError(ScoringError):
    """Raised when the game cannot perform the requested transition."""


class WrongGameStatus(StateError):
    def __init__(self, game_id: str, status: str, expected: Iterable[str], action: str):
        self.game_id = game_id
        self.status = status
        self.expected = tuple(expected)
        self.action = action
        wanted = " or ".join(self.expected)
        super().__init__(
            f"Cannot {action} game {game_id}: status is {status}, expected {wanted}"
        )


class BatterMismatch(StateError):
    def __init__(self, game_id: str, expected: str, supplied: str):
        self.game_id = game_id
        self.expected = expected
        self.supplied = supplied
        super().__init__(
            f"Batter {supplied} is not due up in game {game_id}; expected {expected}"
        )


class IncompleteLineup(StateError):
    def __init__(self, problems: Iterable[str], lineup_id: str | None = None):
        self.problems = list(problems)
        self.lineup_id = lineup_id
        message = "Lineup is not ready to start the game."
        if self.problems:
            message += " " + " ".join(self.problems)
        super().__init__(message)

    def user_messages(self, display_name: DisplayName | None = None) -> list[str]:
        return list(self.problems) or [str(self)]


class WrongHalf(StateError):
    """Raised when an at-bat is recorded while the opponent is batting, or
    opponent runs are entered during the team's own half."""

    def __init__(self, game_id: str, inning: int, half: str, message: str):
        self.game_id = game_id
        self.inning = inning
        self.half = half
        super().__init__(message)


class IllegalPlay(StateError):
    """Raised when the batting result is impossible in the current situation."""

    def __init__(self, result: str, reason: str):
        self.result = result
        self.reason = reason
        super().__init__(f"{result} is not possible: {reason}")


class GameNotFound(StateError):
    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Game {game_id} does not exist")


# ---------------------------------------------------------------------------
# Conflict / persistence
# ---------------------------------------------------------------------------
class ConflictError(ScoringError):
    """Raised when a concurrent commit for the same game won."""


class ConcurrentUpdate(ConflictError):
    def __init__(self, game_id: str, expected_version: int | None = None, actual_version: int | None = None):
        self.game_id = game_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        message = f"Game {game_id} was updated by another request"
        if expected_version is not None and actual_version is not None:
            message += f" (expected version {expected_version}, found {actual_version})"
        super().__init__(message + "; reload and retry.")


class PersistenceError(ScoringError):
    """Raised when a store could not read or write a record."""

    def __init__(self, message: str, *, game_id: str | None = None, payload: Any = None):
        self.game_id = game_id
        self.payload = payload
        if game_id:
            message = f"{message} (game {game_id})"
        super().__init__(message)


__all__ = [
    "ScoringError",
    "ValidationError",
    "IncompleteAdvancement",
    "BaseConflict",
    "InvalidOutCount",
    "InvalidAdvancement",
    "InvalidRunCount",
    "StateError",
    "WrongGameStatus",
    "BatterMismatch",
    "IncompleteLineup",
    "WrongHalf",
    "IllegalPlay",
    "GameNotFound",
    "ConflictError",
    "ConcurrentUpdate",
    "PersistenceError",
]
