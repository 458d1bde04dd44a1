"""
Draft seat utility functions.

Seats are 1-indexed positions around the draft table. Round 1 pairs each
player with the player sitting across the table:

    Seat k plays seat k + floor(N/2), for k in 1..floor(N/2)

With an odd player count the highest seat is left over and receives the bye.

Examples:
    8 players: 1v5, 2v6, 3v7, 4v8
    7 players: 1v4, 2v5, 3v6, seat 7 bye
"""

import random
from typing import Mapping, Optional

from draftswiss.exceptions import IncompleteSeating, InvalidSeat
from draftswiss.swiss.pairing import Pairing


def validate_seat(seat: int, player_count: int) -> int:
    """
    Check a seat number against the table size.

    Raises:
        InvalidSeat: if seat is outside [1, player_count]
    """
    if seat < 1 or seat > player_count:
        raise InvalidSeat(f"Seat number must be between 1 and {player_count}, got {seat}")
    return seat


def random_seating(player_ids: list[str], rng: Optional[random.Random] = None) -> dict[str, int]:
    """Assign a uniformly random permutation of seats 1..N."""
    rng = rng or random.SystemRandom()
    seats = list(range(1, len(player_ids) + 1))
    rng.shuffle(seats)
    return dict(zip(player_ids, seats))


def cross_table_pairings(seats: Mapping[str, Optional[int]]) -> list[Pairing]:
    """
    Derive Round 1 pairings from a complete seating.

    Args:
        seats: Player ID -> seat number; every seat 1..N must be taken once

    Returns:
        Pairings in seat order, bye (if any) last

    Raises:
        IncompleteSeating: if any player is unseated or seats are not 1..N
    """
    unseated = sorted(p for p, seat in seats.items() if seat is None)
    if unseated:
        raise IncompleteSeating(
            f"All players must select their seats before starting the draft "
            f"(unseated: {', '.join(unseated)})"
        )

    player_count = len(seats)
    holders: dict[int, list[str]] = {}
    for player, seat in seats.items():
        holders.setdefault(seat, []).append(player)

    problems = [
        f"{player} has seat {seat}"
        for seat, players in sorted(holders.items())
        if not 1 <= seat <= player_count
        for player in sorted(players)
    ]
    problems += [
        f"seat {seat} held by {', '.join(sorted(players))}"
        for seat, players in sorted(holders.items())
        if 1 <= seat <= player_count and len(players) > 1
    ]
    problems += [
        f"seat {seat} empty" for seat in range(1, player_count + 1) if seat not in holders
    ]
    if problems:
        raise IncompleteSeating(
            f"Seats must cover 1..{player_count} exactly once ({'; '.join(problems)})"
        )
    by_seat = {seat: players[0] for seat, players in holders.items()}

    half = player_count // 2
    pairings = [
        Pairing(player1=by_seat[seat], player2=by_seat[seat + half])
        for seat in range(1, half + 1)
    ]
    if player_count % 2 == 1:
        pairings.append(Pairing(player1=by_seat[player_count]))
    return pairings
