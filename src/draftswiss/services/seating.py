"""
Draft seating and draft start.

Seats can be assigned, cleared and reshuffled while the tournament is
pending. Taking a seat someone else holds displaces them rather than
failing. Starting the draft freezes the seating, activates the tournament
and creates Round 1 from the cross-table rule.
"""

import logging
import random
from typing import Optional

from sqlalchemy.orm import Session

from draftswiss.db.models import Participant, Round, Tournament
from draftswiss.exceptions import AlreadyStarted, InsufficientPlayers, ParticipantDropped
from draftswiss.scoring import TournamentStatus
from draftswiss.services.rounds import create_round, round_exists
from draftswiss.services.tournaments import advance_status, get_participant, get_tournament
from draftswiss.swiss.seating import cross_table_pairings, random_seating, validate_seat

logger = logging.getLogger(__name__)


def _seated_players(tournament: Tournament) -> list[Participant]:
    return [p for p in tournament.participants if not p.dropped]


def _require_pending(session: Session, tournament: Tournament) -> None:
    if tournament.status is not TournamentStatus.PENDING or round_exists(session, tournament.id, 1):
        raise AlreadyStarted(
            f"Tournament {tournament.id} has already started; seats are locked"
        )


def assign_seat(
    session: Session,
    tournament_id: int,
    participant_id: int,
    seat: Optional[int],
) -> Participant:
    """
    Put a participant in a draft seat, or clear it when ``seat`` is None.

    A different participant holding the seat is unseated first.

    Raises:
        InvalidSeat: seat outside [1, N] where N is the active player count
        AlreadyStarted: the draft has started
        ParticipantDropped: the participant has dropped out
    """
    tournament = get_tournament(session, tournament_id, for_update=True)
    _require_pending(session, tournament)
    participant = get_participant(session, tournament_id, participant_id)

    if seat is None:
        return clear_seat(session, tournament_id, participant_id)

    if participant.dropped:
        raise ParticipantDropped(
            f"{participant.player_id} has dropped from tournament {tournament_id}"
        )
    validate_seat(seat, len(_seated_players(tournament)))
    if participant.draft_seat == seat:
        return participant

    holder = (
        session.query(Participant)
        .filter(
            Participant.tournament_id == tournament_id,
            Participant.draft_seat == seat,
            Participant.id != participant.id,
        )
        .first()
    )
    if holder is not None:
        holder.draft_seat = None
        # Free the seat before taking it so the unique index never sees two holders
        session.flush()
        logger.info(
            "Seat %d in tournament %d: %s displaced by %s",
            seat, tournament_id, holder.player_id, participant.player_id,
        )

    participant.draft_seat = seat
    session.flush()
    return participant


def clear_seat(session: Session, tournament_id: int, participant_id: int) -> Participant:
    participant = get_participant(session, tournament_id, participant_id)
    if participant.draft_seat is not None:
        participant.draft_seat = None
        session.flush()
    return participant


def randomize_seating(
    session: Session,
    tournament_id: int,
    rng: Optional[random.Random] = None,
) -> dict[str, int]:
    """
    Seat every active participant at random, overwriting existing seats.

    Returns:
        Player ID -> seat number
    """
    tournament = get_tournament(session, tournament_id, for_update=True)
    _require_pending(session, tournament)

    players = _seated_players(tournament)
    for participant in tournament.participants:
        participant.draft_seat = None
    session.flush()

    seats = random_seating([p.player_id for p in players], rng=rng)
    for participant in players:
        participant.draft_seat = seats[participant.player_id]
    session.flush()

    logger.info("Randomized seating for %d players in tournament %d", len(players), tournament_id)
    return seats


def start_draft(session: Session, tournament_id: int) -> Round:
    """
    Lock seating, activate the tournament and create Round 1.

    Raises:
        AlreadyStarted: the tournament is not pending or Round 1 exists
        InsufficientPlayers: fewer than 2 active participants
        IncompleteSeating: someone has no seat
    """
    tournament = get_tournament(session, tournament_id, for_update=True)
    _require_pending(session, tournament)

    players = _seated_players(tournament)
    if len(players) < 2:
        raise InsufficientPlayers(
            f"Tournament {tournament_id} has {len(players)} active players, need at least 2"
        )

    pairings = cross_table_pairings({p.player_id: p.draft_seat for p in players})

    advance_status(tournament, TournamentStatus.ACTIVE)
    round_row = create_round(session, tournament, 1, pairings)
    if round_row is None:
        raise AlreadyStarted(f"Round 1 of tournament {tournament_id} already exists")

    logger.info("Draft started for tournament %d with %d players", tournament_id, len(players))
    return round_row
