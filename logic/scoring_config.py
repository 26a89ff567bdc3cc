from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping

from utils.path_utils import get_base_dir

_LOGGER = logging.getLogger(__name__)

DATA_DIR = get_base_dir() / "data"
_OVERRIDE_PATH = DATA_DIR / "scoring_overrides.json"
ENV_VAR = "SB_SCORING_CONFIG"

# Defaults follow common softball scoring rules: seven regulation innings and
# a ten-run rule once five innings are complete.
_DEFAULTS: Dict[str, int] = {
    "regulation_innings": 7,
    "mercy_run_threshold": 10,
    "mercy_min_innings": 5,
    "min_lineup_size": 1,
    "max_lineup_size": 15,
}


@dataclass(frozen=True)
class ScoringConfig:
    """Rule parameters shared by the scoring engine."""

    regulation_innings: int = _DEFAULTS["regulation_innings"]
    mercy_run_threshold: int = _DEFAULTS["mercy_run_threshold"]
    mercy_min_innings: int = _DEFAULTS["mercy_min_innings"]
    min_lineup_size: int = _DEFAULTS["min_lineup_size"]
    max_lineup_size: int = _DEFAULTS["max_lineup_size"]

    def __post_init__(self) -> None:
        if self.regulation_innings < 1:
            raise ValueError("regulation_innings must be at least 1")
        if self.min_lineup_size < 1 or self.max_lineup_size < self.min_lineup_size:
            raise ValueError("Lineup size limits are inconsistent")
        if self.max_lineup_size > 15:
            raise ValueError("max_lineup_size cannot exceed 15")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoringConfig":
        """Build a config from ``data`` ignoring unknown or non-integer keys."""

        known = {f.name for f in fields(cls)}
        values: Dict[str, int] = {}
        for key, value in data.items():
            if key not in known:
                _LOGGER.debug("Ignoring unknown scoring config key %s", key)
                continue
            try:
                values[key] = int(value)
            except (TypeError, ValueError):
                _LOGGER.warning("Ignoring non-numeric scoring config %s=%r", key, value)
        return cls(**values)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def save_overrides(self, path: Path | None = None) -> None:
        """Persist values that differ from the defaults."""

        path = _resolve_path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        changed = {k: v for k, v in self.to_dict().items() if _DEFAULTS.get(k) != v}
        with path.open("w", encoding="utf-8") as fh:
            json.dump(changed, fh, indent=2, sort_keys=True)


def _resolve_path(path: Path | str | None) -> Path:
    if path is not None:
        return Path(path)
    override = os.getenv(ENV_VAR)
    if override:
        return Path(override)
    return _OVERRIDE_PATH


def load_config(path: Path | str | None = None) -> ScoringConfig:
    """Return defaults merged with JSON overrides from ``path``.

    When ``path`` is omitted the ``SB_SCORING_CONFIG`` environment variable is
    consulted before falling back to ``data/scoring_overrides.json``.  A missing
    or malformed file yields the defaults.
    """

    target = _resolve_path(path)
    if not target.exists():
        return ScoringConfig()
    try:
        with target.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError):
        _LOGGER.warning("Could not read scoring overrides from %s", target)
        return ScoringConfig()
    if not isinstance(data, dict):
        return ScoringConfig()
    return ScoringConfig.from_dict({**_DEFAULTS, **data})


__all__ = ["ScoringConfig", "load_config", "ENV_VAR"]
