from __future__ import annotations

import csv
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping

from models.lineup import Lineup
from services.unified_data_service import get_unified_data_service
from utils.exceptions import IncompleteLineup
from utils.path_utils import get_data_dir


class RosterProvider(ABC):
    """Source of lineups and player display names."""

    @abstractmethod
    def get_lineup(self, lineup_id: str) -> Lineup:
        ...

    @abstractmethod
    def display_name(self, player_id: str) -> str:
        ...


class StaticRosterProvider(RosterProvider):
    """Roster provider over lineups and names held in memory."""

    def __init__(
        self,
        lineups: Mapping[str, Lineup] | None = None,
        names: Mapping[str, str] | None = None,
    ) -> None:
        self.lineups: Dict[str, Lineup] = dict(lineups or {})
        self.names: Dict[str, str] = dict(names or {})

    def add_lineup(self, lineup: Lineup) -> None:
        self.lineups[lineup.lineup_id] = lineup

    def get_lineup(self, lineup_id: str) -> Lineup:
        try:
            return self.lineups[lineup_id]
        except KeyError:
            raise IncompleteLineup([f"Lineup {lineup_id} was not found."], lineup_id) from None

    def display_name(self, player_id: str) -> str:
        return self.names.get(player_id, player_id)


def _read_rows(path: Path) -> List[Dict[str, str]]:
    if not path.exists():
        return []
    with path.open(newline="", encoding="utf-8") as fh:
        return [
            {(k or "").strip(): (v or "").strip() for k, v in row.items()}
            for row in csv.DictReader(fh)
        ]


class CsvRosterProvider(RosterProvider):
    """Reads lineups from ``<lineup_dir>/<lineup_id>.csv``.

    Lineup files contain ``order,player_id,position`` columns with an optional
    ``starter`` column; rows marked ``0``/``false`` are substitutes.  Display
    names come from an optional ``players.csv`` with ``player_id``,
    ``first_name`` and ``last_name`` columns.
    """

    def __init__(
        self,
        lineup_dir: Path | str | None = None,
        players_file: Path | str | None = None,
    ) -> None:
        data_dir = get_data_dir()
        self.lineup_dir = Path(lineup_dir) if lineup_dir is not None else data_dir / "lineups"
        self.players_file = (
            Path(players_file) if players_file is not None else data_dir / "players.csv"
        )

    def get_lineup(self, lineup_id: str) -> Lineup:
        path = self.lineup_dir / f"{lineup_id}.csv"
        if not path.exists():
            raise IncompleteLineup([f"Lineup file not found: {path}"], lineup_id)
        rows = get_unified_data_service().get_document(path, _read_rows, topic="lineups")
        try:
            lineup = Lineup.from_rows(lineup_id, rows)
        except ValueError as exc:
            raise IncompleteLineup([str(exc)], lineup_id) from exc
        starters = set(lineup.batting_order)
        lineup.substitutes = [
            slot.player_id
            for slot in lineup.slots
            if not slot.is_starter and slot.player_id not in starters
        ]
        return lineup

    def _names(self) -> Dict[str, str]:
        rows = get_unified_data_service().get_document(
            self.players_file, _read_rows, topic="players"
        )
        names: Dict[str, str] = {}
        for row in rows:
            pid = row.get("player_id", "")
            if not pid:
                continue
            full = " ".join(part for part in (row.get("first_name"), row.get("last_name")) if part)
            names[pid] = full or row.get("name", "") or pid
        return names

    def display_name(self, player_id: str) -> str:
        return self._names().get(player_id, player_id)


__all__ = ["CsvRosterProvider", "RosterProvider", "StaticRosterProvider"]
