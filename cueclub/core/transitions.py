"""
Explicit state machines for tournaments and matches.

Every status change in the services goes through ensure_*_transition so that
moves outside these tables are rejected with InvalidState.
"""
from typing import Dict, FrozenSet, Union

from cueclub.core.exceptions import InvalidState
from cueclub.models.enums import MatchStatus, TournamentStatus

TOURNAMENT_TRANSITIONS: Dict[TournamentStatus, FrozenSet[TournamentStatus]] = {
    TournamentStatus.UPCOMING: frozenset({
        TournamentStatus.REGISTRATION_OPEN,
        TournamentStatus.REGISTRATION_CLOSED,
        TournamentStatus.CANCELLED,
    }),
    TournamentStatus.REGISTRATION_OPEN: frozenset({
        TournamentStatus.REGISTRATION_CLOSED,
        TournamentStatus.CANCELLED,
    }),
    TournamentStatus.REGISTRATION_CLOSED: frozenset({
        TournamentStatus.ONGOING,
        TournamentStatus.CANCELLED,
    }),
    TournamentStatus.ONGOING: frozenset({TournamentStatus.COMPLETED}),
    # Only reachable through a bracket reset or restoring the final
    TournamentStatus.COMPLETED: frozenset({TournamentStatus.ONGOING}),
    TournamentStatus.CANCELLED: frozenset(),
}

MATCH_TRANSITIONS: Dict[MatchStatus, FrozenSet[MatchStatus]] = {
    MatchStatus.SCHEDULED: frozenset({
        MatchStatus.IN_PROGRESS,
        MatchStatus.COMPLETED,
        MatchStatus.CANCELLED,
    }),
    MatchStatus.IN_PROGRESS: frozenset({MatchStatus.COMPLETED, MatchStatus.CANCELLED}),
    # Restore or bracket reset
    MatchStatus.COMPLETED: frozenset({MatchStatus.SCHEDULED}),
    MatchStatus.CANCELLED: frozenset({MatchStatus.SCHEDULED}),
}


def can_transition_tournament(current: Union[str, TournamentStatus], target: Union[str, TournamentStatus]) -> bool:
    return TournamentStatus(target) in TOURNAMENT_TRANSITIONS[TournamentStatus(current)]


def can_transition_match(current: Union[str, MatchStatus], target: Union[str, MatchStatus]) -> bool:
    return MatchStatus(target) in MATCH_TRANSITIONS[MatchStatus(current)]


def ensure_tournament_transition(current, target, step: str = "tournament_status") -> None:
    if not can_transition_tournament(current, target):
        raise InvalidState(
            f"Tournament cannot move from '{TournamentStatus(current).value}' to '{TournamentStatus(target).value}'",
            step=step,
        )


def ensure_match_transition(current, target, step: str = "match_status") -> None:
    if not can_transition_match(current, target):
        raise InvalidState(
            f"Match cannot move from '{MatchStatus(current).value}' to '{MatchStatus(target).value}'",
            step=step,
        )


def tournament_sources_for(target: Union[str, TournamentStatus]):
    """All statuses from which `target` is reachable; used as the CAS guard in UPDATEs."""
    target = TournamentStatus(target)
    return [status for status, targets in TOURNAMENT_TRANSITIONS.items() if target in targets]


def match_sources_for(target: Union[str, MatchStatus]):
    target = MatchStatus(target)
    return [status for status, targets in MATCH_TRANSITIONS.items() if target in targets]
