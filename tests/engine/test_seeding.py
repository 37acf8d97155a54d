from datetime import datetime, timedelta, timezone

import pytest

from cueclub.core.exceptions import InvalidRoster
from cueclub.engine.bracket_order import (
    calculate_bracket_size,
    calculate_byes,
    calculate_total_rounds,
    generate_bracket_order,
)
from cueclub.engine.seeding import generate_single_elimination, order_roster
from cueclub.models.bracket_model import RosterEntry
from cueclub.models.enums import MatchStatus, SeedingMethod

START = datetime(2025, 5, 1, 9, 0, tzinfo=timezone.utc)


def roster(count, ratings=None):
    return [
        RosterEntry(
            registration_id=f"reg-{i}",
            player_id=f"p{i:02d}",
            elo_rating=ratings[i] if ratings else 2000 - i * 25,
            registration_date=START + timedelta(hours=i),
        )
        for i in range(count)
    ]


class TestBracketShape:

    @pytest.mark.parametrize("players,size,byes,rounds", [
        (2, 2, 0, 1),
        (5, 8, 3, 3),
        (8, 8, 0, 3),
        (13, 16, 3, 4),
        (16, 16, 0, 4),
        (17, 32, 15, 5),
    ])
    def test_sizes(self, players, size, byes, rounds):
        assert calculate_bracket_size(players) == size
        assert calculate_byes(players) == byes
        assert calculate_total_rounds(size) == rounds

    def test_standard_order_for_eight(self):
        assert generate_bracket_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]

    def test_opening_pairs_sum_to_size_plus_one(self):
        order = generate_bracket_order(16)
        pairs = [order[i:i + 2] for i in range(0, 16, 2)]
        assert all(a + b == 17 for a, b in pairs)
        assert sorted(order) == list(range(1, 17))


class TestOrderRoster:

    def test_elo_ranking_highest_first(self):
        entries = roster(4, ratings=[1200, 1800, 1500, 1900])
        ordered = order_roster(entries, SeedingMethod.ELO_RANKING)
        assert [e.player_id for e in ordered] == ["p03", "p01", "p02", "p00"]

    def test_elo_ties_keep_registration_order(self):
        entries = roster(3, ratings=[1500, 1500, 1600])
        ordered = order_roster(list(reversed(entries)), SeedingMethod.ELO_RANKING)
        assert [e.player_id for e in ordered] == ["p02", "p00", "p01"]

    def test_registration_order(self):
        entries = roster(4, ratings=[1000, 2000, 1500, 1800])
        ordered = order_roster(list(reversed(entries)), "registration_order")
        assert [e.player_id for e in ordered] == ["p00", "p01", "p02", "p03"]

    def test_random_is_reproducible_per_tournament(self):
        entries = roster(12)
        first = order_roster(entries, SeedingMethod.RANDOM, rng_seed="tournament-a")
        second = order_roster(list(reversed(entries)), SeedingMethod.RANDOM, rng_seed="tournament-a")
        assert [e.player_id for e in first] == [e.player_id for e in second]
        assert sorted(e.player_id for e in first) == [e.player_id for e in entries]

    def test_unknown_method_rejected(self):
        with pytest.raises(InvalidRoster):
            order_roster(roster(4), "swiss")


class TestGenerateSingleElimination:

    def test_thirteen_players(self):
        bracket = generate_single_elimination("t-13", roster(13))

        assert bracket.bracket_size == 16
        assert bracket.total_rounds == 4
        assert bracket.total_players == 13
        assert len(bracket.matches) == 15
        assert [len(bracket.round(r)) for r in range(1, 5)] == [8, 4, 2, 1]

        byes = [m for m in bracket.round(1) if m.is_bye]
        assert len(byes) == 3
        assert all(m.status == MatchStatus.COMPLETED.value for m in byes)
        # Seeds 1-3 (highest rated) get the byes, spread over the bracket
        assert sorted(m.winner_id for m in byes) == ["p00", "p01", "p02"]
        assert sorted(m.match_number for m in byes) == [1, 5, 7]

        assert len([s for s in bracket.seeds if s.is_bye]) == 3
        assert all(s.player_id is None for s in bracket.seeds if s.is_bye)

    def test_bye_winners_are_pushed_into_round_two(self):
        bracket = generate_single_elimination("t-13", roster(13))
        round_two = {m.match_number: m for m in bracket.round(2)}
        assert round_two[1].player1_id == "p00"
        assert round_two[3].player1_id == "p01"
        assert round_two[4].player1_id == "p02"
        assert round_two[2].player1_id is None and round_two[2].player2_id is None

    def test_full_bracket_first_round_pairings(self):
        bracket = generate_single_elimination("t-8", roster(8), SeedingMethod.REGISTRATION_ORDER)
        pairs = [(m.player1_id, m.player2_id) for m in bracket.round(1)]
        assert pairs == [("p00", "p07"), ("p03", "p04"), ("p01", "p06"), ("p02", "p05")]
        assert not any(m.is_bye for m in bracket.matches)
        assert all(m.player1_id is None for m in bracket.round(2))

    def test_two_players_make_a_final(self):
        bracket = generate_single_elimination("t-2", roster(2))
        assert bracket.total_rounds == 1
        assert len(bracket.matches) == 1
        assert bracket.matches[0].players == ["p00", "p01"]

    def test_seeds_record_rating_and_registration_order(self):
        bracket = generate_single_elimination("t-4", roster(4, ratings=[1000, 1900, 1500, 1200]))
        first_seed = bracket.seeds[0]
        assert first_seed.seed_position == 1
        assert first_seed.player_id == "p01"
        assert first_seed.elo_rating == 1900
        assert first_seed.registration_order == 2

    @pytest.mark.parametrize("count", [0, 1])
    def test_too_small_roster_rejected(self, count):
        with pytest.raises(InvalidRoster):
            generate_single_elimination("t-x", roster(count))

    def test_duplicate_player_rejected(self):
        entries = roster(3)
        entries.append(entries[0].model_copy(update={"registration_id": "reg-dup"}))
        with pytest.raises(InvalidRoster):
            generate_single_elimination("t-x", entries)
