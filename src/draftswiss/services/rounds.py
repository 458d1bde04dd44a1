"""
Round lifecycle: results in, rounds and tournament completion out.

Every result submission runs the same check:

    result written -> is every match in round r resolved?
        no  -> done
        yes -> r < max_rounds: pair and create round r+1
               r >= max_rounds: mark the tournament completed

Round creation is single-writer per (tournament, round): the insert of the
``rounds`` row runs inside a SAVEPOINT and the table's unique constraint
rejects a concurrent second insert. That conflict is logged and treated as
"already generated", never surfaced to the submitter.

Administrative corrections rewrite a match's results directly. They never
re-pair rounds that already exist: standings will reflect the corrected
history while later pairings keep the history they were built from.

Usage:
    from draftswiss.services.rounds import submit_result
    from draftswiss.scoring import results_from_games

    with get_session() as session:
        outcome = submit_result(session, match_id, results_from_games("ana", 2, "ben", 1))
        if outcome.next_round_generated:
            ...
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from draftswiss.config import settings
from draftswiss.db.models import Match, MatchParticipant, Round, Tournament
from draftswiss.exceptions import (
    InsufficientPlayers,
    InvalidMatch,
    InvalidResult,
    MatchNotFound,
    RoundAlreadyGenerated,
    RoundNotFound,
    StateError,
    TournamentCompleted,
)
from draftswiss.scoring import BYE_GAMES_WON, MatchResult, ResultEntry, TournamentStatus
from draftswiss.services.tournaments import advance_status, get_tournament
from draftswiss.swiss.pairing import Pairing, generate_pairings
from draftswiss.swiss.standings import (
    EntryRecord,
    MatchRecord,
    Standing,
    calculate_standings,
    played_pairs,
    sort_standings,
)

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    """What happened as a side effect of a result submission."""
    match_id: int
    round_number: int
    round_complete: bool = False
    next_round_generated: bool = False
    tournament_completed: bool = False


# =============================================================================
# Queries
# =============================================================================

def current_round_number(session: Session, tournament_id: int) -> int:
    """
    The tournament's current round: the highest generated round number.

    Returns 0 before the draft starts. This is the only place the notion of
    "current round" is derived.
    """
    value = (
        session.query(func.max(Round.round_number))
        .filter(Round.tournament_id == tournament_id)
        .scalar()
    )
    return value or 0


def get_round(
    session: Session,
    tournament_id: int,
    round_number: int,
    *,
    for_update: bool = False,
) -> Round:
    query = session.query(Round).filter(
        Round.tournament_id == tournament_id,
        Round.round_number == round_number,
    )
    if for_update:
        query = query.with_for_update()
    round_row = query.first()
    if round_row is None:
        raise RoundNotFound(f"Round {round_number} of tournament {tournament_id} not found")
    return round_row


def round_exists(session: Session, tournament_id: int, round_number: int) -> bool:
    return (
        session.query(Round.id)
        .filter(
            Round.tournament_id == tournament_id,
            Round.round_number == round_number,
        )
        .first()
        is not None
    )


def _round_matches(session: Session, tournament_id: int, round_number: int) -> list[Match]:
    return (
        session.query(Match)
        .options(selectinload(Match.participants))
        .filter(
            Match.tournament_id == tournament_id,
            Match.round_number == round_number,
        )
        .order_by(Match.table_number)
        .all()
    )


def is_round_complete(session: Session, tournament_id: int, round_number: int) -> bool:
    """
    A round is complete when it has matches and every one of them is
    either a bye won by its single participant or a two-player match with
    both results in.
    """
    matches = _round_matches(session, tournament_id, round_number)
    if not matches:
        return False
    for match in matches:
        if match.is_bye:
            if match.participants[0].result is not MatchResult.WIN:
                return False
        elif len(match.participants) != 2 or not match.is_resolved:
            return False
    return True


def to_match_record(match: Match) -> MatchRecord:
    if match.is_bye:
        # A bye is always scored as a win, whatever the stored row says
        entry = match.participants[0]
        entries = (EntryRecord(entry.player_id, MatchResult.WIN, entry.games_won),)
    else:
        entries = tuple(
            EntryRecord(p.player_id, p.result, p.games_won) for p in match.participants
        )
    return MatchRecord(match_id=match.id, round_number=match.round_number, entries=entries)


def load_history(
    session: Session,
    tournament_id: int,
    through_round: Optional[int] = None,
) -> list[MatchRecord]:
    """Load a tournament's matches as storage-independent records."""
    query = (
        session.query(Match)
        .options(selectinload(Match.participants))
        .filter(Match.tournament_id == tournament_id)
    )
    if through_round is not None:
        query = query.filter(Match.round_number <= through_round)
    matches = query.order_by(Match.round_number, Match.table_number).all()
    return [to_match_record(m) for m in matches if m.participants]


def registered_player_ids(tournament: Tournament) -> list[str]:
    """All participants, dropped or not, in registration order."""
    return [p.player_id for p in sorted(tournament.participants, key=lambda p: p.id)]


def get_standings(session: Session, tournament_id: int) -> list[Standing]:
    """Ranked standings recomputed from the stored match history."""
    tournament = get_tournament(session, tournament_id)
    history = load_history(session, tournament_id)
    standings = calculate_standings(
        registered_player_ids(tournament),
        history,
        min_percentage=settings.min_win_percentage,
    )
    return sort_standings(standings.values())


# =============================================================================
# Round creation
# =============================================================================

def create_round(
    session: Session,
    tournament: Tournament,
    round_number: int,
    pairings: Sequence[Pairing],
) -> Optional[Round]:
    """
    Persist a round and all of its matches atomically.

    Byes are written already scored (win, 2 games). If another writer
    created the same round first, nothing is written and None is returned.
    """
    try:
        with session.begin_nested():
            round_row = Round(tournament_id=tournament.id, round_number=round_number)
            session.add(round_row)
            session.flush()

            for table_number, pairing in enumerate(pairings, start=1):
                match = Match(
                    tournament_id=tournament.id,
                    round=round_row,
                    round_number=round_number,
                    game_type=tournament.format,
                    table_number=table_number,
                )
                if pairing.is_bye:
                    match.participants = [
                        MatchParticipant(
                            player_id=pairing.player1,
                            result=MatchResult.WIN,
                            games_won=BYE_GAMES_WON,
                        )
                    ]
                else:
                    match.participants = [
                        MatchParticipant(player_id=pairing.player1, result=MatchResult.PENDING),
                        MatchParticipant(player_id=pairing.player2, result=MatchResult.PENDING),
                    ]
                session.add(match)
            session.flush()
    except IntegrityError:
        if not round_exists(session, tournament.id, round_number):
            raise
        logger.info(
            "Round %d of tournament %d already generated by another writer, skipping",
            round_number, tournament.id,
        )
        return None

    logger.info(
        "Generated round %d of tournament %d: %d matches",
        round_number, tournament.id, len(pairings),
    )
    return round_row


def generate_next_round(
    session: Session,
    tournament_id: int,
    completed_round: int,
) -> Optional[Round]:
    """
    Pair and create the round after ``completed_round``.

    Standings are computed over every registered player so dropped players
    still feed their opponents' tiebreakers; only active players are paired.

    Returns:
        The new Round, or None if it already existed

    Raises:
        StateError: if the next round would exceed max_rounds
        InsufficientPlayers: if fewer than 2 active players remain
    """
    tournament = get_tournament(session, tournament_id)
    next_number = completed_round + 1
    if next_number > tournament.max_rounds:
        raise StateError(
            f"Tournament {tournament_id} only has {tournament.max_rounds} rounds"
        )
    if round_exists(session, tournament_id, next_number):
        logger.info("Round %d of tournament %d already exists", next_number, tournament_id)
        return None

    active_ids = {p.player_id for p in tournament.participants if not p.dropped}
    if len(active_ids) < 2:
        raise InsufficientPlayers(
            f"Tournament {tournament_id} has {len(active_ids)} active players, need at least 2"
        )

    history = load_history(session, tournament_id, through_round=completed_round)
    standings = calculate_standings(
        registered_player_ids(tournament),
        history,
        min_percentage=settings.min_win_percentage,
    )
    ranked = [s for s in sort_standings(standings.values()) if s.player_id in active_ids]

    pairing_result = generate_pairings(ranked, played_pairs(history))
    for warning in pairing_result.warnings:
        logger.warning("Tournament %d round %d: %s", tournament_id, next_number, warning)

    return create_round(session, tournament, next_number, pairing_result.pairings)


# =============================================================================
# Results
# =============================================================================

def _get_match(session: Session, match_id: int) -> Match:
    match = (
        session.query(Match)
        .options(selectinload(Match.participants))
        .filter(Match.id == match_id)
        .first()
    )
    if match is None:
        raise MatchNotFound(f"Match {match_id} not found")
    return match


def _apply_entries(match: Match, entries: Sequence[ResultEntry]) -> None:
    """
    Validate and write a two-player match's results.

    Raises:
        InvalidMatch: if the match does not have exactly two participants
        InvalidResult: if the entries do not name exactly the match's players,
            are not one win plus one loss or two draws, or have negative games
    """
    if len(match.participants) != 2:
        raise InvalidMatch(
            f"Match {match.id} has {len(match.participants)} participant(s); "
            f"results can only be reported for two-player matches"
        )

    by_player = {p.player_id: p for p in match.participants}
    reported = {e.player_id: e for e in entries}
    if len(reported) != len(entries) or set(reported) != set(by_player):
        raise InvalidResult(
            f"Results for match {match.id} must cover exactly players "
            f"{', '.join(sorted(by_player))}"
        )

    results = sorted(e.result.value for e in entries)
    if results not in (["loss", "win"], ["draw", "draw"]):
        raise InvalidResult(
            f"Match {match.id} needs one win and one loss, or two draws; got {results}"
        )
    for entry in entries:
        if entry.games_won < 0:
            raise InvalidResult(f"games_won cannot be negative ({entry.player_id})")

    for player_id, entry in reported.items():
        row = by_player[player_id]
        row.result = entry.result
        row.games_won = entry.games_won


def submit_result(
    session: Session,
    match_id: int,
    entries: Sequence[ResultEntry],
) -> SubmissionOutcome:
    """
    Record a match result and advance the tournament if the round is done.

    Re-submitting a result overwrites it. Next-round creation is guarded, so
    racing submissions of a round's last results create the round once.

    Raises:
        MatchNotFound: unknown match
        TournamentCompleted: the tournament is already completed
        InvalidMatch / InvalidResult: see _apply_entries
        InsufficientPlayers: the round completed but fewer than 2 active
            players remain; the tournament stays active without a new round
    """
    match = _get_match(session, match_id)
    # Row lock: submissions for one tournament are serialized
    tournament = get_tournament(session, match.tournament_id, for_update=True)
    if tournament.status is TournamentStatus.COMPLETED:
        raise TournamentCompleted(f"Tournament {tournament.id} is completed")

    _apply_entries(match, entries)
    session.flush()
    logger.debug("Recorded result for match %d (round %d)", match.id, match.round_number)

    outcome = SubmissionOutcome(match_id=match.id, round_number=match.round_number)
    if not is_round_complete(session, tournament.id, match.round_number):
        return outcome
    outcome.round_complete = True

    if match.round_number < current_round_number(session, tournament.id):
        return outcome

    if match.round_number >= tournament.max_rounds:
        if advance_status(tournament, TournamentStatus.COMPLETED):
            logger.info(
                "Tournament %d completed after %d rounds", tournament.id, match.round_number
            )
        session.flush()
        outcome.tournament_completed = True
        return outcome

    new_round = generate_next_round(session, tournament.id, match.round_number)
    outcome.next_round_generated = new_round is not None
    return outcome


def correct_result(
    session: Session,
    match_id: int,
    entries: Sequence[ResultEntry],
) -> Match:
    """
    Administrative override of a match's results.

    Allowed in any tournament status. Does not generate rounds, complete the
    tournament, or re-pair rounds that were already created.
    """
    match = _get_match(session, match_id)
    _apply_entries(match, entries)
    session.flush()

    latest = current_round_number(session, match.tournament_id)
    if match.round_number < latest:
        logger.warning(
            "Corrected match %d in round %d of tournament %d; rounds %d-%d keep their "
            "existing pairings",
            match.id, match.round_number, match.tournament_id,
            match.round_number + 1, latest,
        )
    return match


def retry_next_round(session: Session, tournament_id: int) -> Round:
    """
    Generate the next round on request, e.g. after a round completed while
    too few players were active and an operator has since intervened.

    Raises:
        StateError: the tournament is not active or the current round is open
        RoundAlreadyGenerated: another writer created the round first
    """
    tournament = get_tournament(session, tournament_id, for_update=True)
    if tournament.status is not TournamentStatus.ACTIVE:
        raise StateError(f"Tournament {tournament_id} is {tournament.status.value}, not active")

    latest = current_round_number(session, tournament_id)
    if not is_round_complete(session, tournament_id, latest):
        raise StateError(f"Round {latest} of tournament {tournament_id} is not complete")

    new_round = generate_next_round(session, tournament_id, latest)
    if new_round is None:
        raise RoundAlreadyGenerated(
            f"Round {latest + 1} of tournament {tournament_id} already exists"
        )
    return new_round
