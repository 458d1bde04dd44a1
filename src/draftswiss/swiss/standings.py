"""
Swiss standings calculator.

Turns a tournament's match history into ranked standings. Pure functions
only: the same roster and history always produce the same standings, so
they can be recomputed on every request.

Tiebreak order (descending unless noted):
  1. Points (SCORING table, Win=3 / Draw=1 / Loss=0)
  2. OMW%  - average of each opponent's match win percentage
  3. GW%   - games won / games played
  4. Registration order (ascending) as the final deterministic tiebreak

Percentages are floored at MIN_WIN_PERCENTAGE once a player has played,
so opponents of a winless player are not punished below 1/3. A player with
no matches (or no games) has 0, never NaN.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from draftswiss.scoring import (
    MIN_WIN_PERCENTAGE,
    SCORING,
    MatchResult,
    ScoringTable,
)


@dataclass(frozen=True)
class EntryRecord:
    """One participant's side of a historical match."""
    player_id: str
    result: MatchResult
    games_won: int = 0


@dataclass(frozen=True)
class MatchRecord:
    """
    A match from history, independent of storage.

    One entry means a bye (always scored as a win); two entries is a
    regular match.
    """
    match_id: int
    round_number: int
    entries: tuple[EntryRecord, ...]

    @property
    def is_bye(self) -> bool:
        return len(self.entries) == 1

    @property
    def is_resolved(self) -> bool:
        return bool(self.entries) and all(e.result.is_resolved for e in self.entries)


@dataclass
class Standing:
    """A player's derived record. Never persisted."""
    player_id: str
    registration_index: int
    match_wins: int = 0
    match_losses: int = 0
    match_draws: int = 0
    points: int = 0
    games_won: int = 0
    games_played: int = 0
    match_win_percentage: float = 0.0
    opponent_match_win_percentage: float = 0.0
    game_win_percentage: float = 0.0
    received_bye: bool = False
    bye_count: int = 0
    opponents: list[str] = field(default_factory=list)

    @property
    def matches_played(self) -> int:
        return self.match_wins + self.match_losses + self.match_draws

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "match_wins": self.match_wins,
            "match_losses": self.match_losses,
            "match_draws": self.match_draws,
            "points": self.points,
            "match_win_percentage": self.match_win_percentage,
            "opponent_match_win_percentage": self.opponent_match_win_percentage,
            "game_win_percentage": self.game_win_percentage,
            "received_bye": self.received_bye,
        }


def floored_percentage(numerator: int, denominator: int, floor: float) -> float:
    """Return numerator/denominator floored at ``floor``, or 0.0 when nothing was played."""
    if denominator <= 0:
        return 0.0
    return max(numerator / denominator, floor)


def calculate_standings(
    player_ids: Sequence[str],
    history: Iterable[MatchRecord],
    *,
    scoring: ScoringTable = SCORING,
    min_percentage: float = MIN_WIN_PERCENTAGE,
) -> dict[str, Standing]:
    """
    Build standings for every registered player from match history.

    Matches that are not fully resolved are ignored, as are entries for
    players outside the roster: historical data is trusted to have been
    validated at write time, so this never raises on it.

    Args:
        player_ids: Registered players in registration order
        history: Matches in any order
        scoring: Points table
        min_percentage: Floor for match and game win percentages

    Returns:
        Map of player ID to Standing
    """
    standings: dict[str, Standing] = {
        player_id: Standing(player_id=player_id, registration_index=index)
        for index, player_id in enumerate(player_ids)
    }

    for match in history:
        if not match.is_resolved:
            continue

        if match.is_bye:
            entry = match.entries[0]
            standing = standings.get(entry.player_id)
            if standing is None:
                continue
            standing.match_wins += 1
            standing.points += scoring.win
            standing.games_won += entry.games_won
            standing.games_played += entry.games_won
            standing.received_bye = True
            standing.bye_count += 1
            # Byes do not count as opponents for OMW%
            continue

        games_in_match = sum(e.games_won for e in match.entries)
        for entry in match.entries:
            standing = standings.get(entry.player_id)
            if standing is None:
                continue

            if entry.result is MatchResult.WIN:
                standing.match_wins += 1
            elif entry.result is MatchResult.LOSS:
                standing.match_losses += 1
            elif entry.result is MatchResult.DRAW:
                standing.match_draws += 1
            standing.points += scoring.points_for(entry.result)
            standing.games_won += entry.games_won
            standing.games_played += games_in_match

            for other in match.entries:
                # A rematched opponent counts once
                if other.player_id != entry.player_id and other.player_id not in standing.opponents:
                    standing.opponents.append(other.player_id)

    for standing in standings.values():
        standing.match_win_percentage = floored_percentage(
            standing.match_wins, standing.matches_played, min_percentage
        )
        standing.game_win_percentage = floored_percentage(
            standing.games_won, standing.games_played, min_percentage
        )

    # OMW% needs every player's MWP first
    for standing in standings.values():
        faced = [standings[o] for o in standing.opponents if o in standings]
        if not faced:
            standing.opponent_match_win_percentage = 0.0
            continue
        standing.opponent_match_win_percentage = (
            sum(o.match_win_percentage for o in faced) / len(faced)
        )

    return standings


def standing_sort_key(standing: Standing) -> tuple:
    return (
        -standing.points,
        -standing.opponent_match_win_percentage,
        -standing.game_win_percentage,
        standing.registration_index,
    )


def sort_standings(standings: Iterable[Standing]) -> list[Standing]:
    """Rank standings by points, OMW%, GW%, then registration order."""
    return sorted(standings, key=standing_sort_key)


def rank_players(
    player_ids: Sequence[str],
    history: Iterable[MatchRecord],
    **kwargs,
) -> list[Standing]:
    """Convenience wrapper: calculate and rank in one call."""
    return sort_standings(calculate_standings(player_ids, history, **kwargs).values())


def played_pairs(history: Iterable[MatchRecord]) -> set[frozenset[str]]:
    """Every pair of players who have already met, as unordered pairs."""
    pairs: set[frozenset[str]] = set()
    for match in history:
        if match.is_bye:
            continue
        ids = [e.player_id for e in match.entries]
        if len(ids) == 2 and ids[0] != ids[1]:
            pairs.add(frozenset(ids))
    return pairs
