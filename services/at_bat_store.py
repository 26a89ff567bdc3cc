from __future__ import annotations

import csv
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Dict, List

from models.at_bat import AtBat
from models.baserunner_state import BASES
from utils.exceptions import PersistenceError
from utils.path_utils import get_data_dir

_LOGGER = logging.getLogger(__name__)

_LIST_SEP = "|"

FIELDNAMES = [
    "id",
    "game_id",
    "sequence",
    "batter_id",
    "batting_position",
    "inning",
    "half",
    "result",
    *[f"{base}_before" for base in BASES],
    *[f"{base}_after" for base in BASES],
    "decision",
    "runs_scored",
    "rbi",
    "outs_recorded",
    "balls",
    "strikes",
    "pitch_sequence",
]


class AtBatStore(ABC):
    """Append-only at-bat log."""

    @abstractmethod
    def save(self, at_bat: AtBat) -> AtBat:
        ...

    @abstractmethod
    def find_by_game_id(self, game_id: str) -> List[AtBat]:
        """Return the game's at-bats ordered by sequence."""
        ...


def _latest_by_id(at_bats: List[AtBat]) -> List[AtBat]:
    # A retried at-bat reuses its sequence, so the latest write wins.
    latest: Dict[str, AtBat] = {}
    for at_bat in at_bats:
        latest[at_bat.id] = at_bat
    return sorted(latest.values(), key=lambda ab: ab.sequence)


class InMemoryAtBatStore(AtBatStore):
    def __init__(self) -> None:
        self._lock = RLock()
        self._log: Dict[str, List[AtBat]] = {}

    def save(self, at_bat: AtBat) -> AtBat:
        with self._lock:
            self._log.setdefault(at_bat.game_id, []).append(at_bat)
        return at_bat

    def find_by_game_id(self, game_id: str) -> List[AtBat]:
        with self._lock:
            entries = list(self._log.get(game_id, []))
        return _latest_by_id(entries)


def to_row(at_bat: AtBat) -> Dict[str, object]:
    row: Dict[str, object] = {
        "id": at_bat.id,
        "game_id": at_bat.game_id,
        "sequence": at_bat.sequence,
        "batter_id": at_bat.batter_id,
        "batting_position": at_bat.batting_position,
        "inning": at_bat.inning,
        "half": at_bat.half,
        "result": at_bat.result.value,
        "decision": json.dumps(dict(at_bat.decision), sort_keys=True),
        "runs_scored": _LIST_SEP.join(at_bat.runs_scored),
        "rbi": at_bat.rbi,
        "outs_recorded": at_bat.outs_recorded,
        "balls": at_bat.balls,
        "strikes": at_bat.strikes,
        "pitch_sequence": _LIST_SEP.join(at_bat.pitch_sequence),
    }
    for base in BASES:
        row[f"{base}_before"] = at_bat.bases_before.runner_on(base) or ""
        row[f"{base}_after"] = at_bat.bases_after.runner_on(base) or ""
    return row


def from_row(row: Dict[str, str]) -> AtBat:
    def _split(value: str | None) -> List[str]:
        return [item for item in (value or "").split(_LIST_SEP) if item]

    data = {
        "id": row.get("id") or None,
        "game_id": row["game_id"],
        "sequence": row["sequence"],
        "batter_id": row["batter_id"],
        "batting_position": row.get("batting_position") or 0,
        "inning": row["inning"],
        "half": row["half"],
        "result": row["result"],
        "bases_before": {base: row.get(f"{base}_before") or None for base in BASES},
        "bases_after": {base: row.get(f"{base}_after") or None for base in BASES},
        "decision": json.loads(row.get("decision") or "{}"),
        "runs_scored": _split(row.get("runs_scored")),
        "rbi": row.get("rbi") or 0,
        "outs_recorded": row.get("outs_recorded") or 0,
        "balls": row.get("balls") or 0,
        "strikes": row.get("strikes") or 0,
        "pitch_sequence": _split(row.get("pitch_sequence")),
    }
    return AtBat.from_dict(data)


class CsvAtBatStore(AtBatStore):
    """Append-only CSV log, one file per game under ``<data dir>/at_bats``."""

    def __init__(self, base_dir: Path | str | None = None) -> None:
        root = Path(base_dir) if base_dir is not None else get_data_dir()
        self.directory = root / "at_bats"
        self._lock = RLock()

    def path_for(self, game_id: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in game_id)
        return self.directory / f"{safe}.csv"

    def save(self, at_bat: AtBat) -> AtBat:
        path = self.path_for(at_bat.game_id)
        row = to_row(at_bat)
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                new_file = not path.exists() or path.stat().st_size == 0
                with path.open("a", newline="", encoding="utf-8") as fh:
                    writer = csv.DictWriter(fh, fieldnames=FIELDNAMES)
                    if new_file:
                        writer.writeheader()
                    writer.writerow(row)
            except OSError as exc:
                raise PersistenceError(
                    f"Unable to append to {path.name}: {exc}",
                    game_id=at_bat.game_id,
                    payload=at_bat.to_dict(),
                ) from exc
        _LOGGER.debug("Logged at-bat %s to %s", at_bat.id, path)
        return at_bat

    def find_by_game_id(self, game_id: str) -> List[AtBat]:
        path = self.path_for(game_id)
        if not path.exists():
            return []
        try:
            with path.open(newline="", encoding="utf-8") as fh:
                rows = list(csv.DictReader(fh))
        except OSError as exc:
            raise PersistenceError(f"Unable to read {path.name}: {exc}", game_id=game_id) from exc
        at_bats: List[AtBat] = []
        for row in rows:
            try:
                at_bats.append(from_row(row))
            except (KeyError, ValueError) as exc:
                raise PersistenceError(
                    f"Corrupt at-bat row in {path.name}: {exc}", game_id=game_id, payload=row
                ) from exc
        return _latest_by_id(at_bats)


__all__ = [
    "AtBatStore",
    "CsvAtBatStore",
    "FIELDNAMES",
    "InMemoryAtBatStore",
    "from_row",
    "to_row",
]
