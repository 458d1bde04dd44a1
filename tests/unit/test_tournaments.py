"""Tests for tournament setup, status transitions and scoring helpers."""

import pytest

from draftswiss.exceptions import (
    InvalidStatusTransition,
    ParticipantNotFound,
    TournamentNotFound,
    ValidationError,
)
from draftswiss.scoring import SCORING, MatchResult, TournamentStatus, results_from_games
from draftswiss.services.tournaments import (
    advance_status,
    complete_tournament,
    create_tournament,
    drop_participant,
    get_participant,
    get_tournament,
)


class TestCreateTournament:

    def test_registers_players_in_order(self, db_session):
        tournament = create_tournament(
            db_session, "  Friday Draft ", ["ana", "ben", "cy"], prizes=["Booster box"]
        )
        assert tournament.name == "Friday Draft"
        assert tournament.status is TournamentStatus.PENDING
        assert [p.player_id for p in tournament.participants] == ["ana", "ben", "cy"]
        assert all(p.draft_seat is None for p in tournament.participants)
        assert tournament.prize_1st == "Booster box"
        assert tournament.prize_2nd is None

    @pytest.mark.parametrize(
        "name, players, kwargs",
        [
            ("", ["a", "b"], {}),
            ("Solo", ["a"], {}),
            ("Dupes", ["a", "a"], {}),
            ("Blank", ["a", " "], {}),
            ("Zero rounds", ["a", "b"], {"max_rounds": 0}),
            ("Eleven rounds", ["a", "b"], {"max_rounds": 11}),
            ("Short", ["a", "b"], {"round_duration_minutes": 0}),
            ("Long", ["a", "b"], {"round_duration_minutes": 301}),
            ("Prizes", ["a", "b"], {"prizes": ["1", "2", "3", "4"]}),
        ],
    )
    def test_rejects_bad_setup(self, db_session, name, players, kwargs):
        with pytest.raises(ValidationError):
            create_tournament(db_session, name, players, **kwargs)


class TestStatus:

    def test_forward_only(self, db_session):
        tournament = create_tournament(db_session, "Status", ["a", "b"])
        assert advance_status(tournament, TournamentStatus.ACTIVE)
        assert not advance_status(tournament, TournamentStatus.ACTIVE)
        with pytest.raises(InvalidStatusTransition):
            advance_status(tournament, TournamentStatus.PENDING)

    def test_cannot_complete_pending(self, db_session):
        tournament = create_tournament(db_session, "Status", ["a", "b"])
        with pytest.raises(InvalidStatusTransition):
            complete_tournament(db_session, tournament.id)

    def test_admin_completion(self, db_session, started_tournament):
        tournament = started_tournament(["a", "b"])
        complete_tournament(db_session, tournament.id)
        assert tournament.status is TournamentStatus.COMPLETED


class TestLookups:

    def test_missing_tournament(self, db_session):
        with pytest.raises(TournamentNotFound):
            get_tournament(db_session, 12345)

    def test_participant_must_belong_to_tournament(self, db_session):
        first = create_tournament(db_session, "One", ["a", "b"])
        second = create_tournament(db_session, "Two", ["c", "d"])
        with pytest.raises(ParticipantNotFound):
            get_participant(db_session, second.id, first.participants[0].id)


def test_drop_is_idempotent(db_session):
    tournament = create_tournament(db_session, "Drops", ["a", "b", "c"])
    participant = tournament.participants[2]
    drop_participant(db_session, tournament.id, participant.id)
    drop_participant(db_session, tournament.id, participant.id)
    assert participant.dropped


def test_results_from_games():
    win, loss = results_from_games("a", 2, "b", 1)
    assert (win.result, loss.result) == (MatchResult.WIN, MatchResult.LOSS)
    assert (win.games_won, loss.games_won) == (2, 1)

    first, second = results_from_games("a", 0, "b", 2)
    assert (first.result, second.result) == (MatchResult.LOSS, MatchResult.WIN)

    draw = results_from_games("a", 1, "b", 1)
    assert {e.result for e in draw} == {MatchResult.DRAW}


def test_scoring_table():
    assert SCORING.points_for(MatchResult.WIN) == 3
    assert SCORING.points_for(MatchResult.DRAW) == 1
    assert SCORING.points_for(MatchResult.LOSS) == 0
    assert SCORING.points_for(MatchResult.PENDING) == 0
