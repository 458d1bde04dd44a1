"""Tests for Swiss pairing generation."""

from draftswiss.scoring import MatchResult
from draftswiss.swiss.pairing import Pairing, generate_pairings, select_bye
from draftswiss.swiss.standings import EntryRecord, MatchRecord, Standing, played_pairs, rank_players


def _ranked(*player_ids, byes=None):
    byes = byes or {}
    return [
        Standing(
            player_id=p,
            registration_index=i,
            bye_count=byes.get(p, 0),
            received_bye=byes.get(p, 0) > 0,
        )
        for i, p in enumerate(player_ids)
    ]


def _pair(a, b):
    return frozenset((a, b))


def _as_sets(result):
    return {frozenset(filter(None, (p.player1, p.player2))) for p in result.pairings}


class TestSelectBye:

    def test_lowest_ranked_gets_bye(self):
        assert select_bye(_ranked("A", "B", "C")).player_id == "C"

    def test_no_second_bye_while_others_have_none(self):
        ranked = _ranked("A", "B", "C", "D", "E", byes={"E": 1})
        assert select_bye(ranked).player_id == "D"

    def test_repeat_bye_when_everyone_had_one(self):
        ranked = _ranked("A", "B", "C", byes={"A": 1, "B": 1, "C": 1})
        assert select_bye(ranked).player_id == "C"


class TestGeneratePairings:

    def test_rank_adjacent_pairs_without_history(self):
        result = generate_pairings(_ranked("A", "B", "C", "D"), set())
        assert result.pairings == [Pairing("A", "B"), Pairing("C", "D")]
        assert result.warnings == []

    def test_avoids_rematch(self):
        """After A-B and C-D, the standings-adjacent A-C / B-D round is used."""
        played = {_pair("A", "B"), _pair("C", "D")}
        result = generate_pairings(_ranked("A", "C", "B", "D"), played)
        assert _as_sets(result) == {_pair("A", "C"), _pair("B", "D")}

    def test_backtracks_instead_of_stranding_last_pair(self):
        # Greedy A-B would leave C-D, a rematch
        played = {_pair("C", "D")}
        result = generate_pairings(_ranked("A", "B", "C", "D"), played)
        assert _pair("C", "D") not in _as_sets(result)
        assert result.warnings == []

    def test_forced_rematch_reported(self):
        played = {_pair("A", "B")}
        result = generate_pairings(_ranked("A", "B"), played)
        assert result.pairings == [Pairing("A", "B")]
        assert len(result.warnings) == 1
        assert "rematch" in result.warnings[0].lower()

    def test_odd_count_bye_last(self):
        result = generate_pairings(_ranked("A", "B", "C", "D", "E"), set())
        assert result.bye == Pairing("E")
        assert result.pairings[-1].is_bye
        assert len(result.pairings) == 3

    def test_bye_rotates(self):
        ranked = _ranked("A", "B", "C", "D", "E", byes={"E": 1})
        result = generate_pairings(ranked, set())
        assert result.bye.player1 == "D"
        assert result.warnings == []

    def test_every_player_paired_once(self):
        players = [f"p{i}" for i in range(9)]
        result = generate_pairings(_ranked(*players), set())
        seen = [p for pairing in result.pairings for p in (pairing.player1, pairing.player2) if p]
        assert sorted(seen) == sorted(players)

    def test_from_history(self):
        """Pairing driven by real standings: winners meet, losers meet."""
        history = [
            MatchRecord(1, 1, (EntryRecord("A", MatchResult.WIN, 2), EntryRecord("B", MatchResult.LOSS, 0))),
            MatchRecord(2, 1, (EntryRecord("C", MatchResult.WIN, 2), EntryRecord("D", MatchResult.LOSS, 0))),
        ]
        ranked = rank_players(["A", "B", "C", "D"], history)
        result = generate_pairings(ranked, played_pairs(history))
        assert _as_sets(result) == {_pair("A", "C"), _pair("B", "D")}
