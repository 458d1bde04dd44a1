"""
Tests for the round lifecycle: results, round generation, completion.

Run with: pytest tests/unit/test_lifecycle.py -v
"""

import logging

import pytest

from draftswiss.db.models import Match, Round
from draftswiss.exceptions import (
    InsufficientPlayers,
    InvalidMatch,
    InvalidResult,
    MatchNotFound,
    RoundAlreadyGenerated,
    StateError,
    TournamentCompleted,
)
from draftswiss.scoring import MatchResult, ResultEntry, TournamentStatus, results_from_games
from draftswiss.services import rounds
from draftswiss.services.rounds import (
    correct_result,
    create_round,
    current_round_number,
    generate_next_round,
    get_standings,
    retry_next_round,
    submit_result,
)
from draftswiss.services.tournaments import complete_tournament, drop_participant
from draftswiss.swiss.pairing import Pairing


def _matches(session, tournament_id, round_number):
    return (
        session.query(Match)
        .filter(Match.tournament_id == tournament_id, Match.round_number == round_number)
        .order_by(Match.table_number)
        .all()
    )


def _match_between(session, tournament_id, round_number, a, b):
    for match in _matches(session, tournament_id, round_number):
        if {p.player_id for p in match.participants} == {a, b}:
            return match
    raise AssertionError(f"No round {round_number} match between {a} and {b}")


def _report(session, match, winner, games=(2, 0)):
    """Report ``winner`` beating the other participant."""
    loser = next(p.player_id for p in match.participants if p.player_id != winner)
    return submit_result(session, match.id, results_from_games(winner, games[0], loser, games[1]))


def _round_count(session, tournament_id):
    return session.query(Round).filter(Round.tournament_id == tournament_id).count()


# =============================================================================
# Full tournaments
# =============================================================================

class TestFourPlayerTournament:

    def test_three_rounds_to_completion(self, db_session, started_tournament):
        """
        Seats 1..4 = A, B, C, D, so Round 1 is A-C and B-D by cross-table.
        A and B win, meet in Round 2, and the tournament completes after Round 3.
        """
        tournament = started_tournament(["A", "B", "C", "D"], max_rounds=3)
        tid = tournament.id
        assert current_round_number(db_session, tid) == 1

        first = _report(db_session, _match_between(db_session, tid, 1, "A", "C"), "A")
        assert not first.round_complete
        assert not first.next_round_generated

        second = _report(db_session, _match_between(db_session, tid, 1, "B", "D"), "B")
        assert second.round_complete
        assert second.next_round_generated
        assert current_round_number(db_session, tid) == 2

        # Winners meet, losers meet
        _report(db_session, _match_between(db_session, tid, 2, "A", "B"), "A")
        outcome = _report(db_session, _match_between(db_session, tid, 2, "C", "D"), "D")
        assert outcome.next_round_generated

        # Round 3 avoids every earlier pairing
        pairs = {
            frozenset(p.player_id for p in m.participants) for m in _matches(db_session, tid, 3)
        }
        assert pairs == {frozenset(("A", "D")), frozenset(("B", "C"))}

        _report(db_session, _match_between(db_session, tid, 3, "A", "D"), "A")
        final = _report(db_session, _match_between(db_session, tid, 3, "B", "C"), "B")

        assert final.tournament_completed
        assert not final.next_round_generated
        assert tournament.status is TournamentStatus.COMPLETED
        assert _round_count(db_session, tid) == 3

        standings = get_standings(db_session, tid)
        assert [s.player_id for s in standings][:2] == ["A", "B"]
        assert [s.points for s in standings] == [9, 6, 3, 0]

    def test_round_two_pairs_by_standings(self, db_session, started_tournament):
        """A beats B, C beats D: Round 2 is A vs C and B vs D."""
        tournament = started_tournament(["A", "C", "B", "D"], max_rounds=3)
        tid = tournament.id
        # Seats: A=1, C=2, B=3, D=4 -> Round 1 is A-B and C-D
        _report(db_session, _match_between(db_session, tid, 1, "A", "B"), "A")
        _report(db_session, _match_between(db_session, tid, 1, "C", "D"), "C")

        pairs = {
            frozenset(p.player_id for p in m.participants) for m in _matches(db_session, tid, 2)
        }
        assert pairs == {frozenset(("A", "C")), frozenset(("B", "D"))}

        _report(db_session, _match_between(db_session, tid, 2, "A", "C"), "A")
        _report(db_session, _match_between(db_session, tid, 2, "B", "D"), "D")

        standings = get_standings(db_session, tid)
        assert [s.player_id for s in standings] == ["A", "C", "D", "B"]
        assert [s.points for s in standings] == [6, 3, 3, 0]


class TestOddPlayerCount:

    def test_byes_rotate(self, db_session, started_tournament):
        tournament = started_tournament(["p1", "p2", "p3", "p4", "p5"], max_rounds=3)
        tid = tournament.id

        round_one = _matches(db_session, tid, 1)
        bye_one = next(m for m in round_one if m.is_bye)
        # Highest seat sits out Round 1
        assert bye_one.participants[0].player_id == "p5"
        assert bye_one.participants[0].result is MatchResult.WIN

        for match in round_one:
            if not match.is_bye:
                _report(db_session, match, match.participants[0].player_id)

        round_two = _matches(db_session, tid, 2)
        assert len(round_two) == 3
        bye_two = next(m for m in round_two if m.is_bye)
        assert bye_two.participants[0].player_id != "p5"
        assert bye_two.table_number == 3

    def test_bye_match_rejects_results(self, db_session, started_tournament):
        tournament = started_tournament(["a", "b", "c"])
        bye = next(m for m in _matches(db_session, tournament.id, 1) if m.is_bye)
        with pytest.raises(InvalidMatch):
            submit_result(db_session, bye.id, [ResultEntry("c", MatchResult.WIN, 2)])


# =============================================================================
# Duplicate round protection
# =============================================================================

class TestRoundGenerationGuard:

    def test_resubmitting_last_result_does_not_create_another_round(
        self, db_session, started_tournament
    ):
        tournament = started_tournament(["A", "B", "C", "D"])
        tid = tournament.id
        _report(db_session, _match_between(db_session, tid, 1, "A", "C"), "A")
        last = _match_between(db_session, tid, 1, "B", "D")

        first = _report(db_session, last, "B")
        again = _report(db_session, last, "B")

        assert first.next_round_generated
        assert again.round_complete
        assert not again.next_round_generated
        assert _round_count(db_session, tid) == 2

    def test_create_round_twice_is_a_noop(self, db_session, started_tournament, caplog):
        tournament = started_tournament(["A", "B", "C", "D"])
        pairings = [Pairing("A", "B"), Pairing("C", "D")]

        created = create_round(db_session, tournament, 2, pairings)
        with caplog.at_level(logging.INFO, logger="draftswiss.services.rounds"):
            duplicate = create_round(db_session, tournament, 2, pairings)

        assert created is not None
        assert duplicate is None
        assert "already generated" in caplog.text
        assert len(_matches(db_session, tournament.id, 2)) == 2

    def test_stale_existence_check_resolved_by_constraint(
        self, db_session, started_tournament, monkeypatch
    ):
        """Two writers both see 'no round 2 yet'; only one insert lands."""
        tournament = started_tournament(["A", "B", "C", "D"])
        tid = tournament.id
        _report(db_session, _match_between(db_session, tid, 1, "A", "C"), "A")
        _report(db_session, _match_between(db_session, tid, 1, "B", "D"), "B")
        assert _round_count(db_session, tid) == 2

        real_round_exists = rounds.round_exists
        calls = []

        def stale_round_exists(session, tournament_id, round_number):
            calls.append(round_number)
            if len(calls) == 1:
                return False
            return real_round_exists(session, tournament_id, round_number)

        monkeypatch.setattr(rounds, "round_exists", stale_round_exists)

        assert generate_next_round(db_session, tid, 1) is None
        assert _round_count(db_session, tid) == 2
        assert len(_matches(db_session, tid, 2)) == 2

    def test_retry_next_round_conflict(self, db_session, started_tournament, monkeypatch):
        tournament = started_tournament(["A", "B", "C", "D"])
        tid = tournament.id
        # Another writer always wins the race for the next round
        monkeypatch.setattr(rounds, "generate_next_round", lambda *args: None)

        _report(db_session, _match_between(db_session, tid, 1, "A", "C"), "A")
        outcome = _report(db_session, _match_between(db_session, tid, 1, "B", "D"), "B")
        assert outcome.round_complete
        assert not outcome.next_round_generated

        with pytest.raises(RoundAlreadyGenerated):
            retry_next_round(db_session, tid)


# =============================================================================
# Validation and state errors
# =============================================================================

class TestSubmitResultErrors:

    @pytest.fixture
    def round_one(self, db_session, started_tournament):
        tournament = started_tournament(["A", "B", "C", "D"])
        return tournament, _match_between(db_session, tournament.id, 1, "A", "C")

    def test_unknown_match(self, db_session):
        with pytest.raises(MatchNotFound):
            submit_result(db_session, 999, results_from_games("A", 2, "B", 0))

    def test_wrong_players(self, db_session, round_one):
        _, match = round_one
        with pytest.raises(InvalidResult):
            submit_result(db_session, match.id, results_from_games("A", 2, "B", 0))

    def test_two_winners(self, db_session, round_one):
        _, match = round_one
        entries = [ResultEntry("A", MatchResult.WIN, 2), ResultEntry("C", MatchResult.WIN, 2)]
        with pytest.raises(InvalidResult):
            submit_result(db_session, match.id, entries)

    def test_pending_result(self, db_session, round_one):
        _, match = round_one
        entries = [ResultEntry("A", MatchResult.PENDING), ResultEntry("C", MatchResult.PENDING)]
        with pytest.raises(InvalidResult):
            submit_result(db_session, match.id, entries)

    def test_negative_games(self, db_session, round_one):
        _, match = round_one
        entries = [ResultEntry("A", MatchResult.WIN, -1), ResultEntry("C", MatchResult.LOSS, 0)]
        with pytest.raises(InvalidResult):
            submit_result(db_session, match.id, entries)

    def test_draw_accepted(self, db_session, round_one):
        _, match = round_one
        outcome = submit_result(db_session, match.id, results_from_games("A", 1, "C", 1))
        assert not outcome.round_complete
        assert {p.result for p in match.participants} == {MatchResult.DRAW}

    def test_completed_tournament_rejects_results(self, db_session, round_one):
        tournament, match = round_one
        complete_tournament(db_session, tournament.id)
        with pytest.raises(TournamentCompleted):
            submit_result(db_session, match.id, results_from_games("A", 2, "C", 0))


def test_insufficient_players_leaves_tournament_active(db_session, started_tournament):
    tournament = started_tournament(["A", "B", "C", "D"])
    tid = tournament.id
    for player_id in ("B", "C", "D"):
        participant = next(p for p in tournament.participants if p.player_id == player_id)
        drop_participant(db_session, tid, participant.id)

    _report(db_session, _match_between(db_session, tid, 1, "A", "C"), "A")
    with pytest.raises(InsufficientPlayers):
        _report(db_session, _match_between(db_session, tid, 1, "B", "D"), "B")

    assert tournament.status is TournamentStatus.ACTIVE
    assert current_round_number(db_session, tid) == 1


def test_dropped_player_not_paired_but_counted(db_session, started_tournament):
    tournament = started_tournament(["A", "B", "C", "D"])
    tid = tournament.id
    _report(db_session, _match_between(db_session, tid, 1, "A", "C"), "A")
    d = next(p for p in tournament.participants if p.player_id == "D")
    drop_participant(db_session, tid, d.id)
    _report(db_session, _match_between(db_session, tid, 1, "B", "D"), "B")

    round_two = _matches(db_session, tid, 2)
    paired = {p.player_id for m in round_two for p in m.participants}
    assert paired == {"A", "B", "C"}
    assert any(m.is_bye for m in round_two)

    standings = {s.player_id: s for s in get_standings(db_session, tid)}
    assert standings["D"].match_losses == 1


def test_retry_requires_complete_round(db_session, started_tournament):
    tournament = started_tournament(["A", "B", "C", "D"])
    with pytest.raises(StateError):
        retry_next_round(db_session, tournament.id)


# =============================================================================
# Administrative correction
# =============================================================================

class TestCorrectResult:

    def test_correction_updates_standings_not_pairings(self, db_session, started_tournament, caplog):
        tournament = started_tournament(["A", "B", "C", "D"])
        tid = tournament.id
        first = _match_between(db_session, tid, 1, "A", "C")
        _report(db_session, first, "A")
        _report(db_session, _match_between(db_session, tid, 1, "B", "D"), "B")
        round_two_before = {
            frozenset(p.player_id for p in m.participants) for m in _matches(db_session, tid, 2)
        }

        with caplog.at_level(logging.WARNING, logger="draftswiss.services.rounds"):
            correct_result(db_session, first.id, results_from_games("A", 0, "C", 2))

        round_two_after = {
            frozenset(p.player_id for p in m.participants) for m in _matches(db_session, tid, 2)
        }
        assert round_two_after == round_two_before
        assert _round_count(db_session, tid) == 2
        assert "keep their existing pairings" in caplog.text

        standings = {s.player_id: s for s in get_standings(db_session, tid)}
        assert standings["C"].points == 3
        assert standings["A"].points == 0

    def test_correction_allowed_after_completion(self, db_session, started_tournament):
        tournament = started_tournament(["A", "B"], max_rounds=1)
        match = _match_between(db_session, tournament.id, 1, "A", "B")
        outcome = _report(db_session, match, "A")
        assert outcome.tournament_completed

        correct_result(db_session, match.id, results_from_games("A", 1, "B", 2))

        assert tournament.status is TournamentStatus.COMPLETED
        assert _round_count(db_session, tournament.id) == 1
        standings = get_standings(db_session, tournament.id)
        assert standings[0].player_id == "B"
