"""
Round timer controls backed by the ``rounds`` table.

Each control re-reads the round row under a row lock, checks the
transition against the stored state and writes the new clock fields.
Two conflicting controls therefore serialize: the second one sees the
first one's result and is rejected if it no longer applies.

``now`` is injectable on every call for tests and replays; it defaults to
the current UTC time.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from draftswiss.db.models import Match, Round
from draftswiss.exceptions import RoundNotFound
from draftswiss.services.rounds import current_round_number, get_round
from draftswiss.services.tournaments import get_tournament
from draftswiss.swiss import timer as clock
from draftswiss.swiss.timer import TimerFields, TimerView

logger = logging.getLogger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _fields(round_row: Round) -> TimerFields:
    return TimerFields(
        started_at=round_row.started_at,
        paused_at=round_row.paused_at,
        remaining_seconds=round_row.remaining_seconds,
    )


def _store(round_row: Round, fields: TimerFields) -> None:
    round_row.started_at = fields.started_at
    round_row.paused_at = fields.paused_at
    round_row.remaining_seconds = fields.remaining_seconds


def _locked_round(
    session: Session,
    tournament_id: int,
    round_number: Optional[int],
) -> Round:
    if round_number is None:
        round_number = current_round_number(session, tournament_id)
    return get_round(session, tournament_id, round_number, for_update=True)


def get_timer(
    session: Session,
    tournament_id: int,
    round_number: Optional[int] = None,
    now: Optional[datetime] = None,
) -> TimerView:
    """Derived clock view for a round (the current round by default)."""
    tournament = get_tournament(session, tournament_id)
    if round_number is None:
        round_number = current_round_number(session, tournament_id)
    round_row = get_round(session, tournament_id, round_number)
    return clock.view(_fields(round_row), tournament.round_duration_minutes, _now(now))


def start_timer(
    session: Session,
    tournament_id: int,
    round_number: Optional[int] = None,
    now: Optional[datetime] = None,
) -> TimerView:
    """
    Start a round's clock at the full round duration.

    Raises:
        RoundNotFound: the round has not been generated, or has no matches
        InvalidTimerTransition: the clock is already running or paused
    """
    tournament = get_tournament(session, tournament_id)
    round_row = _locked_round(session, tournament_id, round_number)
    has_matches = (
        session.query(Match.id).filter(Match.round_id == round_row.id).first() is not None
    )
    if not has_matches:
        raise RoundNotFound(
            f"Round {round_row.round_number} of tournament {tournament_id} has no matches yet"
        )

    now = _now(now)
    duration = tournament.round_duration_minutes
    _store(round_row, clock.start(_fields(round_row), duration, now))
    session.flush()
    logger.info(
        "Timer started for tournament %d round %d (%d min)",
        tournament_id, round_row.round_number, duration,
    )
    return clock.view(_fields(round_row), duration, now)


def pause_timer(
    session: Session,
    tournament_id: int,
    round_number: Optional[int] = None,
    now: Optional[datetime] = None,
) -> TimerView:
    tournament = get_tournament(session, tournament_id)
    round_row = _locked_round(session, tournament_id, round_number)

    now = _now(now)
    duration = tournament.round_duration_minutes
    _store(round_row, clock.pause(_fields(round_row), duration, now))
    session.flush()
    logger.info(
        "Timer paused for tournament %d round %d with %.1fs left",
        tournament_id, round_row.round_number, round_row.remaining_seconds,
    )
    return clock.view(_fields(round_row), duration, now)


def resume_timer(
    session: Session,
    tournament_id: int,
    round_number: Optional[int] = None,
    now: Optional[datetime] = None,
) -> TimerView:
    tournament = get_tournament(session, tournament_id)
    round_row = _locked_round(session, tournament_id, round_number)

    now = _now(now)
    duration = tournament.round_duration_minutes
    _store(round_row, clock.resume(_fields(round_row), duration, now))
    session.flush()
    logger.info(
        "Timer resumed for tournament %d round %d with %.1fs left",
        tournament_id, round_row.round_number, round_row.remaining_seconds,
    )
    return clock.view(_fields(round_row), duration, now)


def update_timer_duration(
    session: Session,
    tournament_id: int,
    minutes: int,
    now: Optional[datetime] = None,
) -> Optional[TimerView]:
    """
    Change the round duration and reset the current round's clock.

    The new duration becomes the tournament default for later rounds. The
    current round (if any) goes back to its initial state showing the full
    new duration; time already elapsed is discarded.

    Returns:
        The reset clock view, or None if no round exists yet
    """
    clock.validate_duration(minutes)
    tournament = get_tournament(session, tournament_id, for_update=True)
    tournament.round_duration_minutes = minutes

    current = current_round_number(session, tournament_id)
    if current == 0:
        session.flush()
        logger.info("Round duration for tournament %d set to %d min", tournament_id, minutes)
        return None

    round_row = get_round(session, tournament_id, current, for_update=True)
    _store(round_row, clock.reset())
    session.flush()
    logger.info(
        "Round duration for tournament %d set to %d min; round %d timer reset",
        tournament_id, minutes, current,
    )
    return clock.view(_fields(round_row), minutes, _now(now))
