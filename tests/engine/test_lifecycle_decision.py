import uuid
from datetime import datetime, timedelta, timezone

import pytest

from cueclub.engine.lifecycle import decide, hours_until, select_roster
from cueclub.models.enums import LifecycleAction, TournamentStatus
from cueclub.models.tournament_model import RegistrationSnapshot, TournamentSnapshot

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
TARGET = 16


def paid_registrations(count, start=None):
    start = start or NOW - timedelta(days=5)
    return [
        RegistrationSnapshot(
            id=str(uuid.uuid4()),
            player_id=f"player-{i}",
            registration_date=start + timedelta(minutes=i),
        )
        for i in range(count)
    ]


def snapshot(paid, registration_end):
    return TournamentSnapshot(
        id="t-1",
        name="Sunday Snooker",
        status=TournamentStatus.REGISTRATION_OPEN,
        registration_end=registration_end,
        paid_registrations=paid_registrations(paid),
    )


class TestDecide:

    def test_finalizes_after_deadline_with_full_roster(self):
        decision = decide(snapshot(20, NOW - timedelta(hours=1)), NOW, TARGET)
        assert decision.action == LifecycleAction.FINALIZE
        assert decision.paid_count == 20
        assert decision.hours_remaining == -1.0

    def test_finalizes_early_inside_lock_window(self):
        decision = decide(snapshot(16, NOW + timedelta(hours=12)), NOW, TARGET)
        assert decision.action == LifecycleAction.FINALIZE
        assert "Early finalization" in decision.reason
        assert decision.hours_remaining == 12.0

    def test_exactly_24_hours_left_finalizes(self):
        decision = decide(snapshot(16, NOW + timedelta(hours=24)), NOW, TARGET)
        assert decision.action == LifecycleAction.FINALIZE

    def test_just_outside_lock_window_waits(self):
        decision = decide(snapshot(30, NOW + timedelta(hours=24, minutes=1)), NOW, TARGET)
        assert decision.action == LifecycleAction.WAIT

    def test_deadline_instant_waits(self):
        # now == registration_end: neither elapsed nor inside the early window
        assert decide(snapshot(16, NOW), NOW, TARGET).action == LifecycleAction.WAIT
        assert decide(snapshot(3, NOW), NOW, TARGET).action == LifecycleAction.WAIT

    def test_cancels_after_deadline_without_roster(self):
        decision = decide(snapshot(15, NOW - timedelta(minutes=1)), NOW, TARGET)
        assert decision.action == LifecycleAction.CANCEL
        assert decision.paid_count == 15

    def test_waits_with_time_left_and_too_few_players(self):
        decision = decide(snapshot(4, NOW + timedelta(hours=2)), NOW, TARGET)
        assert decision.action == LifecycleAction.WAIT
        assert "4/16" in decision.reason

    def test_custom_early_lock_window(self):
        decision = decide(snapshot(16, NOW + timedelta(hours=30)), NOW, TARGET, early_lock_hours=48)
        assert decision.action == LifecycleAction.FINALIZE

    def test_naive_deadline_is_treated_as_utc(self):
        naive_end = (NOW - timedelta(hours=2)).replace(tzinfo=None)
        decision = decide(snapshot(16, naive_end), NOW, TARGET)
        assert decision.action == LifecycleAction.FINALIZE


class TestSelectRoster:

    def test_keeps_earliest_registrations(self):
        registrations = paid_registrations(20)
        selected, excess = select_roster(list(reversed(registrations)), TARGET)
        assert [r.id for r in selected] == [r.id for r in registrations[:16]]
        assert [r.id for r in excess] == [r.id for r in registrations[16:]]

    def test_ties_on_registration_date_broken_by_id(self):
        same_time = NOW - timedelta(days=1)
        registrations = [
            RegistrationSnapshot(id=rid, player_id=f"p-{rid}", registration_date=same_time)
            for rid in ("c", "a", "b")
        ]
        selected, excess = select_roster(registrations, 2)
        assert [r.id for r in selected] == ["a", "b"]
        assert [r.id for r in excess] == ["c"]

    def test_selection_is_deterministic(self):
        registrations = paid_registrations(18)
        first, _ = select_roster(registrations, TARGET)
        second, _ = select_roster(list(reversed(registrations)), TARGET)
        assert [r.id for r in first] == [r.id for r in second]


def test_hours_until():
    assert hours_until(NOW + timedelta(minutes=90), NOW) == pytest.approx(1.5)
    assert hours_until(NOW - timedelta(hours=3), NOW) == pytest.approx(-3.0)
