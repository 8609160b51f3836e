"""Tests for tournamentflow.bracket — pure functions, no manager."""

import random

import pytest

from tournamentflow.bracket import (
    bracket_champion,
    generate_bracket,
    get_match,
    is_final_match,
    record_result,
)
from tournamentflow.errors import InvalidMatchResultError
from tournamentflow.models import Player


def _players(n: int) -> list[Player]:
    return [Player(address=f"0x{i:04d}", username=f"p{i}", registered_at=float(i)) for i in range(n)]


def _rng():
    return random.Random(1234)


# ============================================================================
# Shape
# ============================================================================


class TestGenerateShape:
    def test_two_players_single_match(self):
        players = _players(2)
        bracket = generate_bracket(players, _rng())
        assert len(bracket) == 1
        assert len(bracket[0]) == 1
        match = bracket[0][0]
        assert {match.player1.address, match.player2.address} == {"0x0000", "0x0001"}
        assert match.completed is False
        assert match.winner is None

    def test_three_players_match_and_bye(self):
        bracket = generate_bracket(_players(3), _rng())
        assert len(bracket) == 2

        match, bye = bracket[0]
        assert not match.is_bye
        assert match.completed is False
        assert match.winner is None
        assert bye.is_bye
        assert bye.player2 is None
        assert bye.completed is True
        assert bye.winner is bye.player1

        final = bracket[1][0]
        assert final.player1 is None
        assert final.player2 is bye.player1
        assert len(bracket[1]) == 1

    @pytest.mark.parametrize("n,rounds", [(2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (16, 4)])
    def test_round_count(self, n, rounds):
        assert len(generate_bracket(_players(n), _rng())) == rounds

    @pytest.mark.parametrize("n", range(2, 18))
    def test_every_player_seeded_once(self, n):
        bracket = generate_bracket(_players(n), _rng())
        first_round = [
            p.address
            for m in bracket[0]
            for p in (m.player1, m.player2)
            if p is not None
        ]
        assert sorted(first_round) == [f"0x{i:04d}" for i in range(n)]

    @pytest.mark.parametrize("n", range(2, 18))
    def test_final_round_is_one_real_match(self, n):
        bracket = generate_bracket(_players(n), _rng())
        assert len(bracket[-1]) == 1
        assert not bracket[-1][0].is_bye

    def test_indexes_recorded(self):
        bracket = generate_bracket(_players(8), _rng())
        for r, round_ in enumerate(bracket):
            for i, m in enumerate(round_):
                assert (m.round_index, m.match_index) == (r, i)

    def test_fewer_than_two_players_has_no_rounds(self):
        assert generate_bracket(_players(1), _rng()) == []
        assert generate_bracket([], _rng()) == []

    def test_does_not_reorder_input(self):
        players = _players(6)
        generate_bracket(players, _rng())
        assert [p.address for p in players] == [f"0x{i:04d}" for i in range(6)]

    def test_same_seed_same_draw(self):
        a = generate_bracket(_players(8), random.Random(5))
        b = generate_bracket(_players(8), random.Random(5))
        assert [m.player1.address for m in a[0]] == [m.player1.address for m in b[0]]


class TestCascadingByes:
    def test_five_players_second_round_bye_resolves_immediately(self):
        bracket = generate_bracket(_players(5), _rng())
        # Round 0: 2 matches + bye; round 1: 1 match + bye; round 2: final
        assert [len(r) for r in bracket] == [3, 2, 1]
        first_bye = bracket[0][2]
        second_bye = bracket[1][1]
        assert first_bye.is_bye and first_bye.completed
        assert second_bye.is_bye and second_bye.completed
        assert second_bye.player1 is first_bye.player1
        assert bracket[2][0].player2 is first_bye.player1

    def test_six_players_bye_waits_for_feeder(self):
        bracket = generate_bracket(_players(6), _rng())
        assert [len(r) for r in bracket] == [3, 2, 1]
        bye = bracket[1][1]
        assert bye.is_bye
        assert bye.player1 is None
        assert bye.completed is False

        feeder = bracket[0][2]
        record_result(bracket, 0, 2, feeder.player2.address)
        assert bye.completed is True
        assert bye.winner is feeder.player2
        assert bracket[2][0].player2 is feeder.player2


# ============================================================================
# Results
# ============================================================================


class TestRecordResult:
    def test_winner_advances_to_correct_slot(self):
        bracket = generate_bracket(_players(4), _rng())
        m0, m1 = bracket[0]

        match, loser = record_result(bracket, 0, 0, m0.player2.address)
        assert match.completed
        assert match.winner is m0.player2
        assert loser is m0.player1
        assert bracket[1][0].player1 is m0.player2
        assert bracket[1][0].player2 is None

        record_result(bracket, 0, 1, m1.player1.address)
        assert bracket[1][0].player2 is m1.player1
        assert bracket[1][0].is_ready

    def test_champion_after_final(self):
        bracket = generate_bracket(_players(2), _rng())
        assert bracket_champion(bracket) is None
        final = bracket[0][0]
        record_result(bracket, 0, 0, final.player1.address)
        assert bracket_champion(bracket) is final.player1
        assert is_final_match(bracket, final)

    def test_champion_of_missing_bracket(self):
        assert bracket_champion(None) is None
        assert bracket_champion([]) is None

    def test_already_decided(self):
        bracket = generate_bracket(_players(4), _rng())
        m0 = bracket[0][0]
        record_result(bracket, 0, 0, m0.player1.address)
        with pytest.raises(InvalidMatchResultError):
            record_result(bracket, 0, 0, m0.player2.address)
        assert m0.winner is m0.player1

    def test_not_ready(self):
        bracket = generate_bracket(_players(4), _rng())
        with pytest.raises(InvalidMatchResultError):
            record_result(bracket, 1, 0, bracket[0][0].player1.address)

    def test_bye_cannot_be_reported(self):
        bracket = generate_bracket(_players(3), _rng())
        with pytest.raises(InvalidMatchResultError):
            record_result(bracket, 0, 1, bracket[0][1].player1.address)

    def test_winner_must_be_in_match(self):
        bracket = generate_bracket(_players(4), _rng())
        outsider = bracket[0][1].player1.address
        with pytest.raises(InvalidMatchResultError):
            record_result(bracket, 0, 0, outsider)
        assert bracket[0][0].completed is False

    @pytest.mark.parametrize("round_index,match_index", [(-1, 0), (5, 0), (0, 9), (0, -1)])
    def test_out_of_range(self, round_index, match_index):
        bracket = generate_bracket(_players(4), _rng())
        with pytest.raises(InvalidMatchResultError):
            get_match(bracket, round_index, match_index)
