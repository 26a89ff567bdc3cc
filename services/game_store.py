from __future__ import annotations

"""Game persistence.

``save`` is an upsert keyed by ``game_id``.  When ``expected_version`` is
given the store only writes if the stored game still carries that version,
which is how a stale snapshot is kept from overwriting a newer one.
"""

import json
import logging
from abc import ABC, abstractmethod
import os
import time
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from models.game import Game
from services.unified_data_service import get_unified_data_service
from utils.exceptions import ConcurrentUpdate, PersistenceError
from utils.path_utils import get_data_dir

_LOGGER = logging.getLogger(__name__)

_TOPIC = "games"


class GameStore(ABC):
    """Where games live between transitions."""

    @abstractmethod
    def find_by_id(self, game_id: str) -> Optional[Game]:
        """Return the stored game or ``None``."""
        ...

    @abstractmethod
    def save(self, game: Game, expected_version: Optional[int] = None) -> Game:
        """Upsert ``game``; raise :class:`ConcurrentUpdate` on a stale version."""
        ...


def _check_version(game_id: str, current: Optional[Game], expected_version: Optional[int]) -> None:
    if expected_version is None:
        return
    actual = current.version if current is not None else None
    if actual != expected_version:
        raise ConcurrentUpdate(game_id, expected_version, actual)


class InMemoryGameStore(GameStore):
    """Dictionary backed store used by tests and short-lived sessions."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._games: Dict[str, Game] = {}

    def find_by_id(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    def save(self, game: Game, expected_version: Optional[int] = None) -> Game:
        with self._lock:
            _check_version(game.game_id, self._games.get(game.game_id), expected_version)
            self._games[game.game_id] = game
        return game

    def all(self) -> List[Game]:
        with self._lock:
            return list(self._games.values())


def _read_game(path: Path) -> Optional[Dict[str, Any]]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as exc:
        raise PersistenceError(f"Unable to read {path.name}: {exc}") from exc
    if not isinstance(payload, dict):
        raise PersistenceError(f"Unexpected content in {path.name}")
    return payload


def _write_json(path: Path, payload: Dict[str, Any], *, retries: int, delay: float) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    attempts = max(int(retries), 1)
    last_exc: Exception | None = None
    for attempt in range(attempts):
        suffix = f".tmp.{os.getpid()}.{int(time.time() * 1_000_000)}.{attempt}"
        tmp_path = path.with_suffix(path.suffix + suffix)
        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
                fh.flush()
                try:
                    os.fsync(fh.fileno())
                except OSError:
                    pass
            os.replace(tmp_path, path)
            return
        except OSError as exc:
            last_exc = exc
            try:
                if tmp_path.exists():
                    tmp_path.unlink()
            except OSError:
                pass
            if attempt == attempts - 1:
                break
            time.sleep(max(delay, 0.0))
    if last_exc is not None:
        raise last_exc


class JsonGameStore(GameStore):
    """One JSON document per game under ``<data dir>/games``."""

    def __init__(
        self,
        base_dir: Path | str | None = None,
        *,
        retries: int = 3,
        delay: float = 0.05,
    ) -> None:
        root = Path(base_dir) if base_dir is not None else get_data_dir()
        self.directory = root / "games"
        self.retries = retries
        self.delay = delay
        self._lock = RLock()

    def path_for(self, game_id: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in game_id)
        return self.directory / f"{safe}.json"

    def find_by_id(self, game_id: str) -> Optional[Game]:
        service = get_unified_data_service()
        document = service.get_document(self.path_for(game_id), _read_game, topic=_TOPIC)
        if document is None:
            return None
        return Game.from_dict(document)

    def save(self, game: Game, expected_version: Optional[int] = None) -> Game:
        path = self.path_for(game.game_id)
        payload = game.to_dict()
        with self._lock:
            if expected_version is not None:
                current = _read_game(path)
                _check_version(
                    game.game_id,
                    Game.from_dict(current) if current is not None else None,
                    expected_version,
                )
            try:
                _write_json(path, payload, retries=self.retries, delay=self.delay)
            except OSError as exc:
                raise PersistenceError(
                    f"Unable to write {path.name}: {exc}",
                    game_id=game.game_id,
                    payload=payload,
                ) from exc
            service = get_unified_data_service()
            service.update_document(
                path,
                payload,
                topic=_TOPIC,
                payload={"game_id": game.game_id, "version": game.version},
            )
        _LOGGER.debug("Saved game %s version %d to %s", game.game_id, game.version, path)
        return game

    def invalidate(self, game_id: str) -> None:
        """Drop the cached copy so the next read goes to disk."""

        get_unified_data_service().invalidate_document(self.path_for(game_id), topic=_TOPIC)

    def game_ids(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))


__all__ = ["GameStore", "InMemoryGameStore", "JsonGameStore"]
