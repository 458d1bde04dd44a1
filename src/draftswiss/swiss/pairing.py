"""
Swiss pairing generator for rounds 2..max_rounds.

Given ranked standings and the set of pairs that already met, produce the
next round's pairings:

1. Odd player count: the bye goes to the lowest-ranked player with the
   fewest byes so far. Repeat byes only happen once everyone has had one.
2. Walk the ranking top-down, pairing each player with the nearest-ranked
   opponent still available. A rematch is skipped in favour of the next
   eligible opponent, backtracking when a choice leaves lower players
   stranded, so a rematch-free round is always found when one exists.
3. Only when no rematch-free round exists are rematches allowed, fewest
   first, and each one is reported as a warning.

Round 1 is not paired here: it comes from draft seats (see seating.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from draftswiss.swiss.standings import Standing


@dataclass(frozen=True)
class Pairing:
    """Two players, or a single player receiving a bye (player2 is None)."""
    player1: str
    player2: Optional[str] = None

    @property
    def is_bye(self) -> bool:
        return self.player2 is None


@dataclass
class PairingResult:
    pairings: list[Pairing] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def bye(self) -> Optional[Pairing]:
        return next((p for p in self.pairings if p.is_bye), None)


def select_bye(ranked: Sequence[Standing]) -> Standing:
    """
    Pick the bye recipient from a ranked list.

    Lowest-ranked among the players with the fewest byes, so nobody gets a
    second bye while an equal-or-lower-ranked player has none.
    """
    fewest = min(s.bye_count for s in ranked)
    for standing in reversed(ranked):
        if standing.bye_count == fewest:
            return standing
    raise ValueError("Cannot select a bye from an empty ranking")


def have_played(a: str, b: str, played: set[frozenset[str]]) -> bool:
    return frozenset((a, b)) in played


def _pair_ranked(
    players: tuple[str, ...],
    played: set[frozenset[str]],
    allowed_rematches: int,
    failed: set[tuple[tuple[str, ...], int]],
) -> Optional[list[tuple[str, str]]]:
    """
    Pair an even-length ranked tuple, using at most ``allowed_rematches``.

    Depth-first: the top player tries opponents in rank order, non-rematches
    before rematches. ``failed`` memoizes sub-problems already proven
    impossible.
    """
    if not players:
        return []
    if (players, allowed_rematches) in failed:
        return None

    top, rest = players[0], players[1:]
    fresh = [i for i, p in enumerate(rest) if not have_played(top, p, played)]
    repeat = [i for i, p in enumerate(rest) if have_played(top, p, played)]

    candidates = [(i, 0) for i in fresh]
    if allowed_rematches > 0:
        candidates += [(i, 1) for i in repeat]

    for index, cost in candidates:
        opponent = rest[index]
        remaining = rest[:index] + rest[index + 1:]
        tail = _pair_ranked(remaining, played, allowed_rematches - cost, failed)
        if tail is not None:
            return [(top, opponent)] + tail

    failed.add((players, allowed_rematches))
    return None


def generate_pairings(
    ranked: Sequence[Standing],
    played: set[frozenset[str]],
) -> PairingResult:
    """
    Generate the next round's pairings.

    Args:
        ranked: Standings of the players to pair, already sorted by tiebreak
            order (see standings.sort_standings)
        played: Unordered pairs of players who have already met

    Returns:
        PairingResult with table order following rank, bye last
    """
    result = PairingResult()
    pool = list(ranked)

    bye_pairing = None
    if len(pool) % 2 == 1:
        bye_player = select_bye(pool)
        if bye_player.bye_count > 0:
            result.warnings.append(
                f"{bye_player.player_id} receives bye #{bye_player.bye_count + 1} "
                f"(every remaining player has already had a bye)"
            )
        bye_pairing = Pairing(player1=bye_player.player_id)
        pool = [s for s in pool if s.player_id != bye_player.player_id]

    players = tuple(s.player_id for s in pool)
    failed: set[tuple[tuple[str, ...], int]] = set()
    pairs = None
    for allowed in range(len(players) // 2 + 1):
        pairs = _pair_ranked(players, played, allowed, failed)
        if pairs is not None:
            break

    for player1, player2 in pairs or []:
        if have_played(player1, player2, played):
            result.warnings.append(
                f"Forced rematch between {player1} and {player2} (no other valid opponents)"
            )
        result.pairings.append(Pairing(player1=player1, player2=player2))

    if bye_pairing is not None:
        result.pairings.append(bye_pairing)

    return result
