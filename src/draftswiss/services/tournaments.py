"""
Tournament setup and status management.

Covers creating a tournament with its participants, loading records with
not-found errors, dropping players, and the one-way status guard used by
every component that changes Tournament.status.

Usage:
    from draftswiss.services.tournaments import create_tournament

    with get_session() as session:
        tournament = create_tournament(session, "Friday Draft", ["ana", "ben", "cy", "dee"])
"""

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from draftswiss.config import settings
from draftswiss.db.models import Participant, Tournament
from draftswiss.exceptions import (
    InvalidStatusTransition,
    ParticipantNotFound,
    TournamentNotFound,
    ValidationError,
)
from draftswiss.scoring import TournamentStatus
from draftswiss.swiss.timer import validate_duration

logger = logging.getLogger(__name__)

MIN_ROUNDS = 1
MAX_ROUNDS = 10


def create_tournament(
    session: Session,
    name: str,
    player_ids: Sequence[str],
    *,
    format: str = "draft",
    max_rounds: Optional[int] = None,
    round_duration_minutes: Optional[int] = None,
    prizes: Sequence[Optional[str]] = (),
) -> Tournament:
    """
    Create a pending tournament with unseated participants.

    Participants are registered in the order given; that order is the
    final standings tiebreak.

    Raises:
        ValidationError: empty name, fewer than 2 players, duplicate players,
            rounds outside [1, 10], duration outside [1, 300] or more than
            three prizes
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Tournament name is required")

    player_ids = [p.strip() for p in player_ids]
    if len(player_ids) < 2:
        raise ValidationError("At least 2 players are required")
    if len(set(player_ids)) != len(player_ids) or not all(player_ids):
        raise ValidationError("Player references must be unique and non-empty")

    max_rounds = max_rounds if max_rounds is not None else settings.default_max_rounds
    if max_rounds < MIN_ROUNDS or max_rounds > MAX_ROUNDS:
        raise ValidationError(
            f"Number of rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}"
        )

    duration = (
        round_duration_minutes
        if round_duration_minutes is not None
        else settings.default_round_duration_minutes
    )
    validate_duration(duration)

    if len(prizes) > 3:
        raise ValidationError("At most three prizes can be set")
    prize_slots = list(prizes) + [None] * (3 - len(prizes))

    tournament = Tournament(
        name=name,
        format=format,
        status=TournamentStatus.PENDING,
        max_rounds=max_rounds,
        round_duration_minutes=duration,
        prize_1st=prize_slots[0] or None,
        prize_2nd=prize_slots[1] or None,
        prize_3rd=prize_slots[2] or None,
    )
    tournament.participants = [Participant(player_id=p) for p in player_ids]
    session.add(tournament)
    session.flush()

    logger.info(
        "Created tournament %d '%s' with %d players, %d rounds",
        tournament.id, tournament.name, len(player_ids), max_rounds,
    )
    return tournament


def get_tournament(session: Session, tournament_id: int, *, for_update: bool = False) -> Tournament:
    """Load a tournament, optionally locking its row, or raise TournamentNotFound."""
    query = session.query(Tournament).filter(Tournament.id == tournament_id)
    if for_update:
        query = query.with_for_update()
    tournament = query.first()
    if tournament is None:
        raise TournamentNotFound(f"Tournament {tournament_id} not found")
    return tournament


def get_participant(session: Session, tournament_id: int, participant_id: int) -> Participant:
    participant = (
        session.query(Participant)
        .filter(
            Participant.id == participant_id,
            Participant.tournament_id == tournament_id,
        )
        .first()
    )
    if participant is None:
        raise ParticipantNotFound(
            f"Participant {participant_id} not found in tournament {tournament_id}"
        )
    return participant


def advance_status(tournament: Tournament, new_status: TournamentStatus) -> bool:
    """
    Move a tournament's status forward.

    Returns:
        True if the status changed, False if it already had that status

    Raises:
        InvalidStatusTransition: if the change would move backwards
    """
    if tournament.status is new_status:
        return False
    if new_status.rank < tournament.status.rank:
        raise InvalidStatusTransition(
            f"Tournament {tournament.id} cannot go from "
            f"{tournament.status.value} back to {new_status.value}"
        )
    logger.info(
        "Tournament %d status %s -> %s",
        tournament.id, tournament.status.value, new_status.value,
    )
    tournament.status = new_status
    return True


def complete_tournament(session: Session, tournament_id: int) -> Tournament:
    """Administrative override: close an active tournament early."""
    tournament = get_tournament(session, tournament_id, for_update=True)
    if tournament.status is TournamentStatus.PENDING:
        raise InvalidStatusTransition(
            f"Tournament {tournament_id} has not started and cannot be completed"
        )
    advance_status(tournament, TournamentStatus.COMPLETED)
    session.flush()
    return tournament


def drop_participant(session: Session, tournament_id: int, participant_id: int) -> Participant:
    """
    Withdraw a player from future pairings.

    The player's matches stay in history, so their record still counts
    towards opponents' tiebreakers.
    """
    tournament = get_tournament(session, tournament_id)
    if tournament.status is TournamentStatus.COMPLETED:
        raise InvalidStatusTransition(f"Tournament {tournament_id} is already completed")

    participant = get_participant(session, tournament_id, participant_id)
    if not participant.dropped:
        participant.dropped = True
        if tournament.status is TournamentStatus.PENDING:
            participant.draft_seat = None
        session.flush()
        logger.info("Player %s dropped from tournament %d", participant.player_id, tournament_id)
    return participant
