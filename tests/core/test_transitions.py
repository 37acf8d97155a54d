import pytest

from cueclub.core.exceptions import InvalidState
from cueclub.core.transitions import (
    can_transition_match,
    can_transition_tournament,
    ensure_match_transition,
    ensure_tournament_transition,
    match_sources_for,
    tournament_sources_for,
)
from cueclub.models.enums import MatchStatus, TournamentStatus


class TestTournamentTransitions:

    @pytest.mark.parametrize("current,target", [
        ("registration_open", "registration_closed"),
        ("registration_open", "cancelled"),
        ("upcoming", "registration_closed"),
        ("registration_closed", "ongoing"),
        ("ongoing", "completed"),
        ("completed", "ongoing"),
    ])
    def test_allowed(self, current, target):
        assert can_transition_tournament(current, target)
        ensure_tournament_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        ("cancelled", "registration_open"),
        ("completed", "cancelled"),
        ("ongoing", "registration_open"),
        ("registration_closed", "registration_open"),
    ])
    def test_rejected(self, current, target):
        assert not can_transition_tournament(current, target)
        with pytest.raises(InvalidState) as exc_info:
            ensure_tournament_transition(current, target, step="close_registration")
        assert exc_info.value.step == "close_registration"

    def test_sources_for_cancel(self):
        assert set(tournament_sources_for(TournamentStatus.CANCELLED)) == {
            TournamentStatus.UPCOMING,
            TournamentStatus.REGISTRATION_OPEN,
            TournamentStatus.REGISTRATION_CLOSED,
        }


class TestMatchTransitions:

    def test_terminal_statuses(self):
        assert not can_transition_match(MatchStatus.CANCELLED, MatchStatus.IN_PROGRESS)
        assert not can_transition_match(MatchStatus.COMPLETED, MatchStatus.IN_PROGRESS)
        assert can_transition_match(MatchStatus.COMPLETED, MatchStatus.SCHEDULED)

    def test_completed_cannot_be_completed_again(self):
        with pytest.raises(InvalidState):
            ensure_match_transition("completed", "completed")

    def test_sources_for_completed(self):
        assert set(match_sources_for("completed")) == {MatchStatus.SCHEDULED, MatchStatus.IN_PROGRESS}

    def test_restore_sources(self):
        assert can_transition_match(MatchStatus.CANCELLED, MatchStatus.SCHEDULED)
        assert set(match_sources_for(MatchStatus.SCHEDULED)) == {MatchStatus.COMPLETED, MatchStatus.CANCELLED}
