#!/usr/bin/env python3
"""
Print a tournament's current standings and round state.

Usage:
    python scripts/show_standings.py 12
    python scripts/show_standings.py 12 --json
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from draftswiss.config import settings
from draftswiss.db import get_session
from draftswiss.exceptions import DraftSwissError
from draftswiss.services.rounds import current_round_number, get_standings
from draftswiss.services.tournaments import get_tournament

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Show tournament standings")
    parser.add_argument("tournament_id", type=int, help="Tournament ID")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    args = parser.parse_args()

    with get_session() as session:
        try:
            tournament = get_tournament(session, args.tournament_id)
            standings = get_standings(session, args.tournament_id)
            current = current_round_number(session, args.tournament_id)
        except DraftSwissError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

        if args.json:
            print(json.dumps(
                {
                    "tournament": tournament.name,
                    "status": tournament.status.value,
                    "round": current,
                    "standings": [s.to_dict() for s in standings],
                },
                indent=2,
            ))
            return 0

        print(
            f"{tournament.name}  status={tournament.status.value}  "
            f"round={current}/{tournament.max_rounds}"
        )
        print(f"{'#':>3}  {'Player':<20} {'Pts':>4} {'W-L-D':>7} {'OMW%':>7} {'GW%':>7}")
        for rank, s in enumerate(standings, start=1):
            record = f"{s.match_wins}-{s.match_losses}-{s.match_draws}"
            bye = " (bye)" if s.received_bye else ""
            print(
                f"{rank:>3}  {s.player_id:<20} {s.points:>4} {record:>7} "
                f"{s.opponent_match_win_percentage:>7.1%} {s.game_win_percentage:>7.1%}{bye}"
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
