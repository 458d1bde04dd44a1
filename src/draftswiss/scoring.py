"""Match results and the canonical scoring table.

This module is the single source of truth for how a match outcome turns
into points. Standings and pairing-seed ordering both read from
``SCORING``; nothing else in the package hard-codes point values.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class MatchResult(str, enum.Enum):
    """Outcome recorded for one participant of a match."""

    PENDING = "pending"
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"

    @property
    def is_resolved(self) -> bool:
        return self is not MatchResult.PENDING


class TournamentStatus(str, enum.Enum):
    """Lifecycle status of a tournament. Transitions only move forward."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = (TournamentStatus.PENDING, TournamentStatus.ACTIVE, TournamentStatus.COMPLETED)


@dataclass(frozen=True)
class ScoringTable:
    """Points awarded per match result."""

    win: int = 3
    draw: int = 1
    loss: int = 0

    def points_for(self, result: MatchResult) -> int:
        if result is MatchResult.WIN:
            return self.win
        if result is MatchResult.DRAW:
            return self.draw
        if result is MatchResult.LOSS:
            return self.loss
        return 0


# Win=3 / Draw=1 / Loss=0
SCORING = ScoringTable()

# A bye is recorded as a 2-0 win
BYE_GAMES_WON = 2

# Swiss floor for match/game win percentages
MIN_WIN_PERCENTAGE = 1 / 3


@dataclass(frozen=True)
class ResultEntry:
    """One participant's reported outcome for a match."""

    player_id: str
    result: MatchResult
    games_won: int = 0


def results_from_games(
    player_a_id: str,
    games_a: int,
    player_b_id: str,
    games_b: int,
) -> list[ResultEntry]:
    """
    Derive both participants' results from the games each won.

    More games won wins the match; equal games is a draw.

    Examples:
        >>> [e.result.value for e in results_from_games("a", 2, "b", 1)]
        ['win', 'loss']
        >>> [e.result.value for e in results_from_games("a", 1, "b", 1)]
        ['draw', 'draw']
    """
    if games_a == games_b:
        result_a = result_b = MatchResult.DRAW
    elif games_a > games_b:
        result_a, result_b = MatchResult.WIN, MatchResult.LOSS
    else:
        result_a, result_b = MatchResult.LOSS, MatchResult.WIN

    return [
        ResultEntry(player_a_id, result_a, games_a),
        ResultEntry(player_b_id, result_b, games_b),
    ]
