"""
Single elimination bracket generation from a confirmed roster.
"""
import random
from typing import List, Optional, Sequence, Union

from cueclub.core.clock import as_utc
from cueclub.core.exceptions import InvalidRoster
from cueclub.engine.advancement import resolve_byes
from cueclub.engine.bracket_order import calculate_bracket_size, calculate_total_rounds, round_one_slots
from cueclub.models.bracket_model import BracketModel, MatchModel, RosterEntry, SeedModel
from cueclub.models.enums import MatchStatus, SeedingMethod


def _registration_key(entry: RosterEntry):
    return (as_utc(entry.registration_date), entry.player_id)


def order_roster(
    roster: Sequence[RosterEntry],
    method: Union[str, SeedingMethod],
    rng_seed: Optional[str] = None,
) -> List[RosterEntry]:
    try:
        method = SeedingMethod(method)
    except ValueError:
        raise InvalidRoster(f"Unknown seeding method '{method}'", step="seeding")

    # Always start from registration order so the result never depends on input order
    by_registration = sorted(roster, key=_registration_key)

    if method == SeedingMethod.ELO_RANKING:
        # sorted() is stable: equal ratings keep registration order
        return sorted(by_registration, key=lambda e: -e.elo_rating)
    if method == SeedingMethod.REGISTRATION_ORDER:
        return by_registration

    # Random, but reproducible for the same tournament
    shuffled = list(by_registration)
    random.Random(rng_seed).shuffle(shuffled)
    return shuffled


def build_seed_entries(ordered: Sequence[RosterEntry], bracket_size: int) -> List[SeedModel]:
    registration_rank = {
        e.player_id: i + 1 for i, e in enumerate(sorted(ordered, key=_registration_key))
    }
    seeds = []
    for position in range(1, bracket_size + 1):
        if position <= len(ordered):
            entry = ordered[position - 1]
            seeds.append(SeedModel(
                seed_position=position,
                player_id=entry.player_id,
                elo_rating=entry.elo_rating,
                registration_order=registration_rank[entry.player_id],
            ))
        else:
            seeds.append(SeedModel(seed_position=position, is_bye=True))
    return seeds


def validate_roster(roster: Sequence[RosterEntry]) -> None:
    if not roster:
        raise InvalidRoster("Tournament has no confirmed players. Cannot generate bracket.", step="roster")
    if len(roster) < 2:
        raise InvalidRoster("Single elimination bracket requires at least 2 players.", step="roster")
    player_ids = [e.player_id for e in roster]
    if len(set(player_ids)) != len(player_ids):
        raise InvalidRoster("Roster contains the same player more than once.", step="roster")


def generate_single_elimination(
    tournament_id: str,
    roster: Sequence[RosterEntry],
    method: Union[str, SeedingMethod] = SeedingMethod.ELO_RANKING,
) -> BracketModel:
    """
    Seeds the roster and materialises every match of the bracket.

    Round 1 is fully populated; later rounds are empty shells except where a
    BYE winner has already been pushed forward.
    """
    validate_roster(roster)
    ordered = order_roster(roster, method, rng_seed=tournament_id)

    bracket_size = calculate_bracket_size(len(ordered))
    rounds = calculate_total_rounds(bracket_size)
    seeds = build_seed_entries(ordered, bracket_size)

    matches: List[MatchModel] = []
    for match_number, (player1_id, player2_id) in enumerate(round_one_slots(seeds, bracket_size), start=1):
        matches.append(MatchModel(
            tournament_id=tournament_id,
            round_number=1,
            match_number=match_number,
            player1_id=player1_id,
            player2_id=player2_id,
            status=MatchStatus.SCHEDULED,
        ))

    matches_in_round = bracket_size // 2
    for round_number in range(2, rounds + 1):
        matches_in_round //= 2
        for match_number in range(1, matches_in_round + 1):
            matches.append(MatchModel(
                tournament_id=tournament_id,
                round_number=round_number,
                match_number=match_number,
                status=MatchStatus.SCHEDULED,
            ))

    resolve_byes(matches)

    return BracketModel(
        tournament_id=tournament_id,
        seeding_method=SeedingMethod(method),
        total_players=len(ordered),
        bracket_size=bracket_size,
        total_rounds=rounds,
        seeds=seeds,
        matches=matches,
    )
