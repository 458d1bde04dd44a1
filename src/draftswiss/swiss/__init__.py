"""
Pure Swiss engine: no database access, no side effects.

- standings: match history -> ranked standings with tiebreakers
- pairing: ranked standings + pairing history -> next round's pairings
- seating: draft seats -> Round 1 cross-table pairings
- timer: round clock state and display arithmetic
"""

from draftswiss.swiss.pairing import Pairing, PairingResult, generate_pairings, select_bye
from draftswiss.swiss.seating import cross_table_pairings, random_seating, validate_seat
from draftswiss.swiss.standings import (
    EntryRecord,
    MatchRecord,
    Standing,
    calculate_standings,
    played_pairs,
    rank_players,
    sort_standings,
)
from draftswiss.swiss.timer import TimerFields, TimerState, TimerView

__all__ = [
    # Standings
    "EntryRecord",
    "MatchRecord",
    "Standing",
    "calculate_standings",
    "played_pairs",
    "rank_players",
    "sort_standings",
    # Pairing
    "Pairing",
    "PairingResult",
    "generate_pairings",
    "select_bye",
    # Seating
    "cross_table_pairings",
    "random_seating",
    "validate_seat",
    # Timer
    "TimerFields",
    "TimerState",
    "TimerView",
]
