from __future__ import annotations

import logging
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator

from utils.exceptions import ConcurrentUpdate

_LOGGER = logging.getLogger(__name__)


class GameLockRegistry:
    """One commit lock per game id.

    Locks are taken without waiting (or with a short ``timeout``) so a second
    submission for the same game fails fast instead of queueing behind the
    first one.
    """

    def __init__(self, timeout: float = 0.0) -> None:
        self.timeout = timeout
        self._guard = Lock()
        self._locks: Dict[str, Lock] = {}

    def lock_for(self, game_id: str) -> Lock:
        with self._guard:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = self._locks[game_id] = Lock()
            return lock

    def is_held(self, game_id: str) -> bool:
        return self.lock_for(game_id).locked()

    @contextmanager
    def hold(self, game_id: str) -> Iterator[None]:
        lock = self.lock_for(game_id)
        if self.timeout > 0:
            acquired = lock.acquire(timeout=self.timeout)
        else:
            acquired = lock.acquire(blocking=False)
        if not acquired:
            _LOGGER.warning("Commit already in progress for game %s", game_id)
            raise ConcurrentUpdate(game_id)
        try:
            yield
        finally:
            lock.release()


__all__ = ["GameLockRegistry"]
