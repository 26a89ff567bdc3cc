"""Replay a scored game from a plays CSV and print the line score and batting table."""
from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
import sys
from typing import Dict, Iterable, List, Optional

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pandas as pd
from tqdm import tqdm

from logic.game_rules import completion_reason
from logic.scoring_config import load_config
from logic.stats import compute_batting_rates, player_lines, team_totals
from models.at_bat import AtBat
from models.baserunner_state import BASES
from models.game import IN_PROGRESS, SETUP, Game
from services.at_bat_processing import AtBatProcessingService
from services.at_bat_store import CsvAtBatStore
from services.game_store import JsonGameStore
from services.roster_provider import CsvRosterProvider
from utils.path_utils import get_data_dir

_LOGGER = logging.getLogger(__name__)


def read_plays(path: Path) -> List[Dict[str, str]]:
    """Return play rows from ``path``.

    Each row is either an at-bat (``batter_id,result`` plus optional
    ``first``/``second``/``third`` destinations) or an opponent half-inning
    with only ``opponent_runs`` filled in.
    """

    with path.open(newline="", encoding="utf-8") as fh:
        return [
            {(k or "").strip(): (v or "").strip() for k, v in row.items()}
            for row in csv.DictReader(fh)
        ]


def batting_table(at_bats: List[AtBat], display_name=None) -> pd.DataFrame:
    lines = player_lines(at_bats)
    records = []
    for line in lines + [team_totals(lines)]:
        rates = compute_batting_rates(line)
        name = line.player_id
        if display_name is not None and line.player_id != "TEAM":
            name = display_name(line.player_id)
        records.append(
            {
                "player": name,
                "PA": line.pa,
                "AB": line.ab,
                "R": line.r,
                "H": line.h,
                "2B": line.b2,
                "3B": line.b3,
                "HR": line.hr,
                "RBI": line.rbi,
                "BB": line.bb,
                "SO": line.so,
                "AVG": round(rates["avg"], 3),
                "OBP": round(rates["obp"], 3),
                "SLG": round(rates["slg"], 3),
            }
        )
    return pd.DataFrame.from_records(records)


def _override(row: Dict[str, str]) -> Dict[str, str]:
    return {base: row[base] for base in BASES if row.get(base)}


def replay(
    service: AtBatProcessingService,
    game_id: str,
    plays: Iterable[Dict[str, str]],
    *,
    use_tqdm: bool = True,
    auto_complete: bool = False,
) -> Game:
    """Apply ``plays`` to ``game_id`` stopping at the first rejected play."""

    rows = list(plays)
    iterator: Iterable[Dict[str, str]] = rows
    if use_tqdm:
        iterator = tqdm(rows, total=len(rows), desc="Scoring plays")
    game = service.get_game(game_id)
    for number, row in enumerate(iterator, start=1):
        if row.get("opponent_runs") and not row.get("result"):
            outcome = service.record_opponent_half(game_id, int(row["opponent_runs"]))
        else:
            batter = row.get("batter_id") or game.current_batter_id or ""
            outcome = service.record_at_bat(game_id, batter, row["result"], _override(row))
        if not outcome.success:
            messages = "; ".join(outcome.messages) or str(outcome.error)
            raise SystemExit(f"Play {number} rejected: {messages}")
        game = outcome.game
        reason = completion_reason(game, service.config)
        if reason and auto_complete:
            done = service.complete_game(game_id, reason=reason)
            if not done.success:
                raise SystemExit(str(done.error))
            _LOGGER.info("Game %s ended (%s) after play %d", game_id, reason, number)
            return done.game
    return game


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay scored plays into a game and print a box score")
    parser.add_argument("plays", type=Path, help="CSV of plays (batter_id,result[,first,second,third] or opponent_runs)")
    parser.add_argument("--game-id", required=True, help="Identifier of the game to create or continue")
    parser.add_argument(
        "--lineup",
        type=Path,
        help="Lineup CSV (order,player_id,position[,starter]); required for a new game",
    )
    parser.add_argument("--name", default="", help="Game name")
    parser.add_argument("--opponent", default="Opponent", help="Opponent name")
    parser.add_argument("--date", default="", help="Game date (YYYY-MM-DD)")
    parser.add_argument("--team-id", default="TEAM", help="Scoring team ID")
    parser.add_argument("--home-away", choices=["home", "away"], default="home")
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory for game and at-bat files (default: SB_DATA_DIR or data/)",
    )
    parser.add_argument("--players-file", type=Path, help="players.csv used for display names")
    parser.add_argument("--config", type=Path, help="JSON scoring overrides (default: SB_SCORING_CONFIG)")
    parser.add_argument(
        "--auto-complete",
        action="store_true",
        help="Complete the game as soon as the regulation or mercy rule applies",
    )
    parser.add_argument("--stats-output", type=Path, help="Optional CSV path for the batting table")
    parser.add_argument("--disable-tqdm", action="store_true", help="Disable the progress bar")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return parser.parse_args(argv)


def _ensure_started(
    service: AtBatProcessingService,
    args: argparse.Namespace,
) -> Game:
    game: Optional[Game] = service.game_store.find_by_id(args.game_id)
    if game is None:
        game = Game(
            game_id=args.game_id,
            name=args.name or f"{args.team_id} vs {args.opponent}",
            opponent=args.opponent,
            date=args.date,
            team_id=args.team_id,
            home_away=args.home_away,
        )
        service.game_store.save(game)
    if game.status == SETUP:
        if args.lineup is None:
            raise SystemExit("--lineup is required to start a new game")
        started = service.start_game(args.game_id, args.lineup.stem)
        if not started.success:
            raise SystemExit("; ".join(started.messages) or str(started.error))
        game = started.game
    if game.status != IN_PROGRESS:
        raise SystemExit(f"Game {args.game_id} is {game.status}; nothing to score")
    return game


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    data_dir = args.data_dir or get_data_dir()
    lineup_dir = args.lineup.parent if args.lineup is not None else data_dir / "lineups"
    roster = CsvRosterProvider(lineup_dir, args.players_file)
    service = AtBatProcessingService(
        JsonGameStore(data_dir),
        CsvAtBatStore(data_dir),
        roster,
        config=load_config(args.config),
    )

    _ensure_started(service, args)
    game = replay(
        service,
        args.game_id,
        read_plays(args.plays),
        use_tqdm=not args.disable_tqdm,
        auto_complete=args.auto_complete,
    )

    team, other = args.team_id, game.opponent
    away_label, home_label = (other, team) if game.home_away == "home" else (team, other)
    print(game.scoreboard.line_score(away_label, home_label))
    if game.completion_reason:
        print(f"Final ({game.completion_reason})")

    table = batting_table(service.at_bats(args.game_id), roster.display_name)
    print()
    print(table.to_string(index=False))
    if args.stats_output:
        args.stats_output.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(args.stats_output, index=False)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
