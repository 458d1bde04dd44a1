from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from draftswiss.db.models import Match, Tournament
from draftswiss.db.session import get_db
from draftswiss.exceptions import (
    ConflictError,
    DraftSwissError,
    InsufficientPlayers,
    NotFoundError,
    StateError,
    ValidationError,
)
from draftswiss.scoring import results_from_games
from draftswiss.services import rounds, seating, timer, tournaments

app = FastAPI(title="DraftSwiss")

ERROR_STATUS = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StateError, 409),
)


@app.exception_handler(DraftSwissError)
async def draftswiss_error_handler(request: Request, exc: DraftSwissError):
    """Map engine error kinds onto HTTP status codes."""
    status_code = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 400)
    return JSONResponse(
        {"error": type(exc).__name__, "detail": str(exc)},
        status_code=status_code,
    )


# ========== Request bodies ==========


class TournamentCreate(BaseModel):
    name: str
    players: List[str] = Field(..., description="Player references in registration order")
    format: str = "draft"
    max_rounds: Optional[int] = None
    round_duration_minutes: Optional[int] = None
    prizes: List[Optional[str]] = Field(default_factory=list)


class SeatUpdate(BaseModel):
    seat: Optional[int] = Field(None, description="Seat number, or null to clear")


class GameScore(BaseModel):
    player_id: str
    games_won: int = Field(..., ge=0)


class ResultSubmission(BaseModel):
    scores: List[GameScore] = Field(..., min_length=2, max_length=2)


class DurationUpdate(BaseModel):
    minutes: int


# ========== Serialization ==========


def _tournament_payload(tournament: Tournament, current_round: int) -> dict:
    return {
        "id": tournament.id,
        "name": tournament.name,
        "format": tournament.format,
        "status": tournament.status.value,
        "max_rounds": tournament.max_rounds,
        "round_duration_minutes": tournament.round_duration_minutes,
        "current_round": current_round,
        "prizes": [tournament.prize_1st, tournament.prize_2nd, tournament.prize_3rd],
        "participants": [
            {
                "id": p.id,
                "player_id": p.player_id,
                "draft_seat": p.draft_seat,
                "dropped": p.dropped,
            }
            for p in tournament.participants
        ],
    }


def _match_payload(match: Match) -> dict:
    return {
        "id": match.id,
        "round_number": match.round_number,
        "table_number": match.table_number,
        "is_bye": match.is_bye,
        "participants": [
            {
                "player_id": p.player_id,
                "result": p.result.value,
                "games_won": p.games_won,
            }
            for p in match.participants
        ],
    }


# ========== Tournaments ==========


@app.post("/api/tournaments", status_code=201)
async def api_create_tournament(body: TournamentCreate, db: Session = Depends(get_db)):
    tournament = tournaments.create_tournament(
        db,
        body.name,
        body.players,
        format=body.format,
        max_rounds=body.max_rounds,
        round_duration_minutes=body.round_duration_minutes,
        prizes=body.prizes,
    )
    db.commit()
    return JSONResponse(_tournament_payload(tournament, 0), status_code=201)


@app.get("/api/tournaments/{tournament_id}")
async def api_get_tournament(tournament_id: int, db: Session = Depends(get_db)):
    tournament = tournaments.get_tournament(db, tournament_id)
    return JSONResponse(
        _tournament_payload(tournament, rounds.current_round_number(db, tournament_id))
    )


@app.post("/api/tournaments/{tournament_id}/complete")
async def api_complete_tournament(tournament_id: int, db: Session = Depends(get_db)):
    tournament = tournaments.complete_tournament(db, tournament_id)
    db.commit()
    return JSONResponse({"id": tournament.id, "status": tournament.status.value})


@app.post("/api/tournaments/{tournament_id}/participants/{participant_id}/drop")
async def api_drop_participant(
    tournament_id: int,
    participant_id: int,
    db: Session = Depends(get_db),
):
    participant = tournaments.drop_participant(db, tournament_id, participant_id)
    db.commit()
    return JSONResponse({"id": participant.id, "dropped": participant.dropped})


@app.get("/api/tournaments/{tournament_id}/standings")
async def api_standings(tournament_id: int, db: Session = Depends(get_db)):
    """Ranked standings, recomputed from match history on every call."""
    standings = rounds.get_standings(db, tournament_id)
    return JSONResponse({
        "tournament_id": tournament_id,
        "standings": [
            {"rank": rank, **standing.to_dict()}
            for rank, standing in enumerate(standings, start=1)
        ],
    })


# ========== Seating ==========


@app.put("/api/tournaments/{tournament_id}/participants/{participant_id}/seat")
async def api_assign_seat(
    tournament_id: int,
    participant_id: int,
    body: SeatUpdate,
    db: Session = Depends(get_db),
):
    participant = seating.assign_seat(db, tournament_id, participant_id, body.seat)
    db.commit()
    return JSONResponse({"id": participant.id, "draft_seat": participant.draft_seat})


@app.post("/api/tournaments/{tournament_id}/seating/randomize")
async def api_randomize_seating(tournament_id: int, db: Session = Depends(get_db)):
    seats = seating.randomize_seating(db, tournament_id)
    db.commit()
    return JSONResponse({"seats": seats})


@app.post("/api/tournaments/{tournament_id}/start")
async def api_start_draft(tournament_id: int, db: Session = Depends(get_db)):
    round_row = seating.start_draft(db, tournament_id)
    db.commit()
    return JSONResponse({
        "round_number": round_row.round_number,
        "matches": [_match_payload(m) for m in round_row.matches],
    })


# ========== Rounds and results ==========


@app.get("/api/tournaments/{tournament_id}/rounds/{round_number}")
async def api_get_round(tournament_id: int, round_number: int, db: Session = Depends(get_db)):
    round_row = rounds.get_round(db, tournament_id, round_number)
    return JSONResponse({
        "round_number": round_row.round_number,
        "matches": [_match_payload(m) for m in round_row.matches],
    })


@app.post("/api/tournaments/{tournament_id}/rounds/next")
async def api_retry_next_round(tournament_id: int, db: Session = Depends(get_db)):
    round_row = rounds.retry_next_round(db, tournament_id)
    db.commit()
    return JSONResponse({
        "round_number": round_row.round_number,
        "matches": [_match_payload(m) for m in round_row.matches],
    })


@app.post("/api/matches/{match_id}/result")
async def api_submit_result(
    match_id: int,
    body: ResultSubmission,
    db: Session = Depends(get_db),
):
    """
    Report a match by games won. Returns whether the round completed and
    whether a new round was generated or the tournament finished.
    """
    a, b = body.scores
    entries = results_from_games(a.player_id, a.games_won, b.player_id, b.games_won)
    try:
        outcome = rounds.submit_result(db, match_id, entries)
    except InsufficientPlayers:
        # The result stands; only the next round could not be paired
        db.commit()
        raise
    db.commit()
    return JSONResponse({
        "match_id": outcome.match_id,
        "round_number": outcome.round_number,
        "round_complete": outcome.round_complete,
        "next_round_generated": outcome.next_round_generated,
        "tournament_completed": outcome.tournament_completed,
    })


@app.put("/api/matches/{match_id}/result")
async def api_correct_result(
    match_id: int,
    body: ResultSubmission,
    db: Session = Depends(get_db),
):
    """Administrative correction. Later rounds are not re-paired."""
    a, b = body.scores
    entries = results_from_games(a.player_id, a.games_won, b.player_id, b.games_won)
    match = rounds.correct_result(db, match_id, entries)
    db.commit()
    return JSONResponse(_match_payload(match))


# ========== Timer ==========


@app.get("/api/tournaments/{tournament_id}/timer")
async def api_get_timer(
    tournament_id: int,
    round_number: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return JSONResponse(timer.get_timer(db, tournament_id, round_number).to_dict())


@app.post("/api/tournaments/{tournament_id}/timer/{action}")
async def api_timer_control(
    tournament_id: int,
    action: str,
    round_number: Optional[int] = None,
    db: Session = Depends(get_db),
):
    controls = {
        "start": timer.start_timer,
        "pause": timer.pause_timer,
        "resume": timer.resume_timer,
    }
    if action not in controls:
        return JSONResponse({"error": f"Unknown timer action '{action}'"}, status_code=404)
    view = controls[action](db, tournament_id, round_number)
    db.commit()
    return JSONResponse(view.to_dict())


@app.put("/api/tournaments/{tournament_id}/timer/duration")
async def api_update_duration(
    tournament_id: int,
    body: DurationUpdate,
    db: Session = Depends(get_db),
):
    view = timer.update_timer_duration(db, tournament_id, body.minutes)
    db.commit()
    return JSONResponse({
        "round_duration_minutes": body.minutes,
        "timer": view.to_dict() if view is not None else None,
    })


if __name__ == "__main__":
    import uvicorn

    from draftswiss.config import settings

    uvicorn.run("draftswiss.web.main:app", host=settings.api_host, port=settings.api_port, reload=True)
