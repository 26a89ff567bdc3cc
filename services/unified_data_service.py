from __future__ import annotations

import copy
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from utils import path_utils

_LOGGER = logging.getLogger(__name__)

EventPayload = Dict[str, Any]
EventCallback = Callable[[EventPayload], None]
T = TypeVar("T")

WILDCARD = "*"


class EventBus:
    """Pub/sub bus for committed game changes.

    Topics are dotted (``games.at_bat_recorded``).  Subscribing to
    ``games.*`` receives every ``games.`` topic; ``*`` receives everything.
    Each delivered payload carries the concrete ``topic``.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventCallback]] = defaultdict(list)
        self._lock = RLock()

    def subscribe(self, topic: str, callback: EventCallback) -> Callable[[], None]:
        """Register *callback* for *topic*; returns an unsubscribe closure."""

        with self._lock:
            self._subscribers[topic].append(callback)
        return lambda: self.unsubscribe(topic, callback)

    def unsubscribe(self, topic: str, callback: EventCallback) -> None:
        with self._lock:
            callbacks = self._subscribers.get(topic, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._subscribers.pop(topic, None)

    def _listeners(self, topic: str) -> List[EventCallback]:
        keys = [topic, WILDCARD]
        parts = topic.split(".")
        for size in range(1, len(parts)):
            keys.append(".".join(parts[:size]) + "." + WILDCARD)
        with self._lock:
            found: List[EventCallback] = []
            for key in keys:
                found.extend(self._subscribers.get(key, ()))
        return found

    def publish(self, topic: str, payload: Optional[EventPayload] = None) -> int:
        """Deliver *payload* to matching subscribers; returns how many ran cleanly."""

        event = dict(payload or {})
        event.setdefault("topic", topic)
        delivered = 0
        for callback in self._listeners(topic):
            try:
                callback(dict(event))
            except Exception:  # pragma: no cover - subscriber bugs must not break commits
                _LOGGER.exception("Subscriber failed for %s", topic)
            else:
                delivered += 1
        return delivered


@dataclass
class _Entry:
    document: Any
    mtime: Optional[float]


def _mtime(path: Path) -> Optional[float]:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


class UnifiedDataService:
    """Cache of file-backed scoring documents (games, lineups, players).

    Entries are keyed by topic and resolved path.  A cached entry is reused
    while the file's modification time is unchanged, so a file rewritten by
    another process is picked up on the next read.  Callers always receive a
    deep copy.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._entries: Dict[Tuple[str, Path], _Entry] = {}
        self.events = EventBus()

    def _resolve_path(self, path: Path | str) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = path_utils.get_base_dir() / candidate
        return candidate.resolve(strict=False)

    def get_document(
        self,
        file_path: Path | str,
        loader: Callable[[Path], T],
        *,
        topic: str,
    ) -> T:
        resolved = self._resolve_path(file_path)
        key = (topic, resolved)
        current = _mtime(resolved)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or entry.mtime != current:
            document = loader(resolved)
            with self._lock:
                self._entries[key] = _Entry(document, current)
            _LOGGER.debug("Loaded %s document %s", topic, resolved)
            self.events.publish(f"{topic}.loaded", {"path": resolved})
        else:
            document = entry.document
        return copy.deepcopy(document)

    def update_document(
        self,
        file_path: Path | str,
        document: T,
        *,
        topic: str,
        payload: Optional[EventPayload] = None,
    ) -> None:
        """Record *document* as the current contents of *file_path* and announce it."""

        resolved = self._resolve_path(file_path)
        with self._lock:
            self._entries[(topic, resolved)] = _Entry(copy.deepcopy(document), _mtime(resolved))
        event: EventPayload = {"path": resolved}
        event.update(payload or {})
        self.events.publish(f"{topic}.updated", event)

    def invalidate_document(
        self,
        file_path: Path | str | None = None,
        *,
        topic: str | None = None,
    ) -> int:
        """Drop cached entries matching *file_path* and/or *topic*; returns the count."""

        resolved = self._resolve_path(file_path) if file_path is not None else None
        with self._lock:
            doomed = [
                key
                for key in self._entries
                if (topic is None or key[0] == topic) and (resolved is None or key[1] == resolved)
            ]
            for key in doomed:
                del self._entries[key]
        for entry_topic, path in doomed:
            self.events.publish(f"{entry_topic}.invalidated", {"path": path})
        return len(doomed)

    def cached_paths(self, topic: str) -> List[Path]:
        with self._lock:
            return sorted(path for entry_topic, path in self._entries if entry_topic == topic)


_SERVICE: UnifiedDataService | None = None


def get_unified_data_service() -> UnifiedDataService:
    """Return the process-wide singleton service instance."""

    global _SERVICE
    if _SERVICE is None:
        _SERVICE = UnifiedDataService()
    return _SERVICE


def reset_unified_data_service() -> None:
    """Drop the singleton so the next call starts with empty caches."""

    global _SERVICE
    _SERVICE = None


__all__ = [
    "EventBus",
    "UnifiedDataService",
    "WILDCARD",
    "get_unified_data_service",
    "reset_unified_data_service",
]
