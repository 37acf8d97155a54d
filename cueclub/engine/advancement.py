"""
Single elimination advancement rules on match snapshots.

Round r match m feeds round r+1 match ceil(m/2): odd match numbers fill
slot 1, even ones slot 2.
"""
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from cueclub.core.exceptions import InvalidState, InvalidWinner
from cueclub.models.bracket_model import MatchModel, SeedModel
from cueclub.models.enums import MatchStatus
from cueclub.engine.bracket_order import round_one_slots


def next_position(round_number: int, match_number: int) -> Tuple[int, int, int]:
    """Returns (round, match_number, slot) fed by the winner of the given match."""
    return round_number + 1, math.ceil(match_number / 2), 1 if match_number % 2 == 1 else 2


def index_matches(matches: Iterable[MatchModel]) -> Dict[Tuple[int, int], MatchModel]:
    return {(m.round_number, m.match_number): m for m in matches}


def total_rounds(matches: Sequence[MatchModel]) -> int:
    return max((m.round_number for m in matches), default=0)


def is_final(match: MatchModel, rounds: int) -> bool:
    return match.round_number >= rounds


def is_round_complete(matches: Sequence[MatchModel], round_number: int) -> bool:
    round_matches = [m for m in matches if m.round_number == round_number]
    return bool(round_matches) and all(m.is_terminal for m in round_matches)


def current_round(matches: Sequence[MatchModel]) -> int:
    """First round that still has open matches (the last round once everything is done)."""
    rounds = total_rounds(matches)
    for round_number in range(1, rounds + 1):
        if not is_round_complete(matches, round_number):
            return round_number
    return rounds


def validate_result(match: MatchModel, winner_id: str) -> None:
    if match.is_terminal:
        raise InvalidState(
            f"Match R{match.round_number}M{match.match_number} is already {MatchStatus(match.status).value}",
            step="validate_result",
        )
    if not match.player1_id or not match.player2_id:
        raise InvalidState(
            f"Match R{match.round_number}M{match.match_number} does not have two players yet",
            step="validate_result",
        )
    if winner_id not in (match.player1_id, match.player2_id):
        raise InvalidWinner(
            f"Winner {winner_id} is not a participant of match R{match.round_number}M{match.match_number}",
            step="validate_result",
        )


def place_winner(next_match: MatchModel, slot: int, winner_id: str) -> bool:
    """
    Writes winner_id into the given slot. Returns False when it was already
    there (retries are no-ops) and raises InvalidState if another player holds it.
    """
    attr = "player1_id" if slot == 1 else "player2_id"
    occupant = getattr(next_match, attr)
    if occupant == winner_id:
        return False
    if occupant is not None:
        raise InvalidState(
            f"Slot {slot} of match R{next_match.round_number}M{next_match.match_number} is already taken by {occupant}",
            step="propagate_winner",
        )
    setattr(next_match, attr, winner_id)
    return True


def propagate(matches: Sequence[MatchModel], match: MatchModel) -> Optional[Tuple[MatchModel, int, bool]]:
    """
    Moves a completed match's winner forward. Returns (next_match, slot, changed)
    or None when the match was the final.
    """
    index = index_matches(matches)
    round_number, match_number, slot = next_position(match.round_number, match.match_number)
    next_match = index.get((round_number, match_number))
    if next_match is None:
        return None
    changed = place_winner(next_match, slot, match.winner_id)
    return next_match, slot, changed


def feeders(index: Dict[Tuple[int, int], MatchModel], match: MatchModel) -> List[MatchModel]:
    """The (up to two) previous-round matches whose winners fill this match's slots."""
    if match.round_number == 1:
        return []
    previous = match.round_number - 1
    return [
        index[key]
        for key in ((previous, 2 * match.match_number - 1), (previous, 2 * match.match_number))
        if key in index
    ]


def resolve_bye(match: MatchModel, index: Optional[Dict[Tuple[int, int], MatchModel]] = None) -> Optional[str]:
    """
    Settles a match that can never be played. In round 1 a lone player wins by
    BYE. In later rounds this only happens once both feeders are terminal: a
    lone player wins by walkover and an empty match (both feeders cancelled)
    is cancelled. Returns the new status, or None when nothing changed.
    """
    if match.is_terminal:
        return None
    if match.round_number > 1:
        if index is None:
            return None
        sources = feeders(index, match)
        if len(sources) != 2 or not all(m.is_terminal for m in sources):
            return None
    players = match.players
    if len(players) == 1:
        match.winner_id = players[0]
        match.status = MatchStatus.COMPLETED.value
        match.is_bye = True
        return match.status
    if not players and match.round_number > 1:
        match.status = MatchStatus.CANCELLED.value
        return match.status
    return None


def resolve_byes(matches: Sequence[MatchModel]) -> List[MatchModel]:
    """Auto-completes every BYE match and pushes its player forward. Returns the touched matches."""
    index = index_matches(matches)
    touched: Dict[str, MatchModel] = {}
    for match in sorted(matches, key=lambda m: (m.round_number, m.match_number)):
        if resolve_bye(match, index) is not None:
            touched[match.id] = match
            if match.status == MatchStatus.COMPLETED.value:
                advanced = propagate(matches, match)
                if advanced is not None:
                    touched[advanced[0].id] = advanced[0]
    return list(touched.values())


def resolve_walkovers(matches: Sequence[MatchModel], settled: MatchModel) -> List[MatchModel]:
    """
    Follows a match that just became terminal up the bracket, settling every
    next match that can no longer be played. Winners of walkovers are
    propagated on the snapshots. Returns the settled matches, lowest round first.
    """
    index = index_matches(matches)
    resolved = []
    current = settled
    while True:
        round_number, match_number, _ = next_position(current.round_number, current.match_number)
        next_match = index.get((round_number, match_number))
        if next_match is None or resolve_bye(next_match, index) is None:
            break
        resolved.append(next_match)
        if next_match.status == MatchStatus.COMPLETED.value:
            propagate(matches, next_match)
        current = next_match
    return resolved


def retract_winner(next_match: MatchModel, slot: int, winner_id: str) -> None:
    """Takes a propagated winner back out of its next-round slot."""
    if next_match.is_terminal:
        raise InvalidState(
            f"Match R{next_match.round_number}M{next_match.match_number} is already "
            f"{MatchStatus(next_match.status).value}; restore it first",
            step="retract_winner",
        )
    attr = "player1_id" if slot == 1 else "player2_id"
    if getattr(next_match, attr) != winner_id:
        raise InvalidState(
            f"Slot {slot} of match R{next_match.round_number}M{next_match.match_number} no longer holds {winner_id}",
            step="retract_winner",
        )
    setattr(next_match, attr, None)
    next_match.status = MatchStatus.SCHEDULED.value
    next_match.score_player1 = None
    next_match.score_player2 = None


def reset_matches(matches: Sequence[MatchModel], seeds: Sequence[SeedModel]) -> List[MatchModel]:
    """
    Returns the matches rebuilt to their freshly generated state, ordered from
    the last round down so stale winners are cleared before earlier rounds are
    rewritten.
    """
    bracket_size = len(seeds)
    slots = round_one_slots(seeds, bracket_size)
    ordered = sorted(matches, key=lambda m: (-m.round_number, m.match_number))
    for match in ordered:
        match.winner_id = None
        match.score_player1 = None
        match.score_player2 = None
        match.status = MatchStatus.SCHEDULED.value
        match.is_bye = False
        if match.round_number == 1:
            match.player1_id, match.player2_id = slots[match.match_number - 1]
        else:
            match.player1_id = None
            match.player2_id = None
    resolve_byes(ordered)
    return ordered
