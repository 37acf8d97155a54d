"""
Registration lifecycle decision rule.

`decide` is a pure function of a tournament snapshot and the current time;
the lifecycle service executes whatever it returns.
"""
from datetime import datetime
from typing import List, Sequence, Tuple

from cueclub.core.clock import as_utc
from cueclub.models.enums import LifecycleAction
from cueclub.models.tournament_model import LifecycleDecision, RegistrationSnapshot, TournamentSnapshot

DEFAULT_EARLY_LOCK_HOURS = 24.0

REASON_FINALIZE_ENDED = "Registration ended with enough participants"
REASON_FINALIZE_EARLY = "Early finalization - enough participants with {hours:g}h remaining"
REASON_CANCEL = "Registration ended without enough participants"
REASON_WAIT = "Waiting: {paid}/{target} paid, {hours:.1f}h remaining"


def hours_until(deadline: datetime, now: datetime) -> float:
    return (as_utc(deadline) - as_utc(now)).total_seconds() / 3600.0


def decide(
    snapshot: TournamentSnapshot,
    now: datetime,
    target_size: int,
    early_lock_hours: float = DEFAULT_EARLY_LOCK_HOURS,
) -> LifecycleDecision:
    paid_count = snapshot.paid_count
    registration_end = as_utc(snapshot.registration_end)
    now = as_utc(now)
    hours_left = hours_until(registration_end, now)
    window_elapsed = now > registration_end
    has_roster = paid_count >= target_size

    if has_roster and window_elapsed:
        action, reason = LifecycleAction.FINALIZE, REASON_FINALIZE_ENDED
    elif has_roster and 0 < hours_left <= early_lock_hours:
        action, reason = LifecycleAction.FINALIZE, REASON_FINALIZE_EARLY.format(hours=early_lock_hours)
    elif window_elapsed and not has_roster:
        action, reason = LifecycleAction.CANCEL, REASON_CANCEL
    else:
        action = LifecycleAction.WAIT
        reason = REASON_WAIT.format(paid=paid_count, target=target_size, hours=hours_left)

    return LifecycleDecision(
        action=action,
        reason=reason,
        paid_count=paid_count,
        hours_remaining=round(hours_left, 2),
    )


def order_paid_registrations(registrations: Sequence[RegistrationSnapshot]) -> List[RegistrationSnapshot]:
    """Earliest registration first; the id breaks ties so the order is stable across runs."""
    return sorted(registrations, key=lambda r: (as_utc(r.registration_date), r.id))


def select_roster(
    registrations: Sequence[RegistrationSnapshot],
    target_size: int,
) -> Tuple[List[RegistrationSnapshot], List[RegistrationSnapshot]]:
    """Splits paid registrations into (selected, excess)."""
    ordered = order_paid_registrations(registrations)
    return ordered[:target_size], ordered[target_size:]
