"""
Bracket shape helpers shared by seeding and advancement.
"""
import math
from typing import List, Optional, Sequence, Tuple

from cueclub.models.bracket_model import SeedModel


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_players <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_players))


def calculate_byes(num_players: int) -> int:
    return calculate_bracket_size(num_players) - num_players


def calculate_total_rounds(bracket_size: int) -> int:
    if bracket_size < 2:
        return 0
    return int(math.log2(bracket_size))


def generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Standard bracket order: if all higher seeds win they meet as late as possible.

    For 8 players: [1, 8, 4, 5, 2, 7, 3, 6] -> 1v8, 4v5, 2v7, 3v6.
    Every pair sums to bracket_size + 1, so seed i always opens against seed N+1-i
    and the BYEs (the highest positions) land on the top seeds.
    """
    if bracket_size < 2:
        return [1] if bracket_size == 1 else []
    if bracket_size == 2:
        return [1, 2]

    upper_half = generate_bracket_order(bracket_size // 2)
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])
    return result


def round_one_slots(seeds: Sequence[SeedModel], bracket_size: int) -> List[Tuple[Optional[str], Optional[str]]]:
    """Pairs seed entries into round 1 (player1, player2) slots."""
    by_position = {s.seed_position: s.player_id for s in seeds}
    order = generate_bracket_order(bracket_size)
    return [(by_position.get(order[i]), by_position.get(order[i + 1])) for i in range(0, len(order), 2)]
