"""
Registration lifecycle automation.

One pass looks at every tournament still taking registrations and either
finalizes its roster, cancels it, or leaves it alone. Each tournament is
handled in its own transaction so one failure never blocks the others.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cueclub.core.clock import as_utc, utcnow
from cueclub.core.config import settings
from cueclub.core.events import table_events
from cueclub.core.exceptions import CueClubError, DependencyFailure, InvalidState
from cueclub.engine.lifecycle import decide, select_roster
from cueclub.models import tournament as tournament_model
from cueclub.models.enums import LifecycleAction, TournamentStatus
from cueclub.models.tournament_model import (
    LifecycleDecision,
    LifecyclePassResult,
    LifecycleResult,
    RegistrationSnapshot,
    TournamentSnapshot,
)
from cueclub.services import notification_service, registration_service, tournament_service

logger = logging.getLogger(__name__)


def build_snapshot(db: Session, tournament: tournament_model.Tournament) -> TournamentSnapshot:
    paid = registration_service.list_paid_registrations(db, tournament.id)
    return TournamentSnapshot(
        id=tournament.id,
        name=tournament.name,
        status=tournament.status,
        registration_end=tournament.registration_end,
        paid_registrations=[RegistrationSnapshot.model_validate(r) for r in paid],
    )


def finalize_tournament(
    db: Session,
    tournament: tournament_model.Tournament,
    snapshot: TournamentSnapshot,
    decision: LifecycleDecision,
    target_size: int,
) -> LifecycleResult:
    """
    Keeps the first `target_size` paid registrations, deletes the rest and
    closes registration, all in a single commit. Notifications go out after
    the commit; a failure there is reported but does not undo the finalize.
    """
    selected, excess = select_roster(snapshot.paid_registrations, target_size)
    selected_ids = [r.id for r in selected]

    step = "prune_registrations"
    try:
        removed = registration_service.prune_registrations(db, tournament.id, selected_ids)

        step = "confirm_registrations"
        confirmed = registration_service.confirm_registrations(db, selected_ids)
        if confirmed != len(selected_ids):
            raise DependencyFailure(
                f"Only {confirmed} of {len(selected_ids)} selected registrations could be confirmed",
                step=step,
            )

        step = "close_registration"
        tournament_service.transition_status(
            db,
            tournament,
            TournamentStatus.REGISTRATION_CLOSED,
            extra_values={"current_participants": len(selected_ids)},
            step=step,
        )

        step = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Finalize failed at {step}: {exc}", step=step) from exc
    except CueClubError:
        db.rollback()
        raise

    table_events.publish("tournaments", [snapshot.id])
    table_events.publish("tournament_registrations", selected_ids)

    notifications_sent = _notify(
        db,
        [notification_service.finalized_notice(r.player_id, snapshot.id, snapshot.name) for r in selected],
        snapshot,
    )

    logger.info(
        "Finalized tournament %s (%s): %d selected, %d removed, %d notified",
        snapshot.name, snapshot.id, len(selected_ids), removed, notifications_sent,
    )
    return LifecycleResult(
        tournament_id=snapshot.id,
        tournament_name=snapshot.name,
        action="finalized",
        reason=decision.reason,
        paid_count=decision.paid_count,
        hours_remaining=decision.hours_remaining,
        selected_participants=len(selected_ids),
        removed_participants=removed,
        notifications_sent=notifications_sent,
    )


def cancel_tournament(
    db: Session,
    tournament: tournament_model.Tournament,
    snapshot: TournamentSnapshot,
    decision: LifecycleDecision,
) -> LifecycleResult:
    """Cancels the tournament and tells every paid registrant a refund is due."""
    step = "cancel_tournament"
    try:
        tournament_service.transition_status(db, tournament, TournamentStatus.CANCELLED, step=step)
        step = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Cancel failed at {step}: {exc}", step=step) from exc
    except CueClubError:
        db.rollback()
        raise

    table_events.publish("tournaments", [snapshot.id])

    notifications_sent = _notify(
        db,
        [notification_service.cancelled_notice(r.player_id, snapshot.id, snapshot.name)
         for r in snapshot.paid_registrations],
        snapshot,
    )

    logger.info(
        "Cancelled tournament %s (%s): %d paid players to refund",
        snapshot.name, snapshot.id, snapshot.paid_count,
    )
    return LifecycleResult(
        tournament_id=snapshot.id,
        tournament_name=snapshot.name,
        action="cancelled",
        reason=decision.reason,
        paid_count=decision.paid_count,
        hours_remaining=decision.hours_remaining,
        participants_to_refund=snapshot.paid_count,
        notifications_sent=notifications_sent,
    )


def _notify(db: Session, notices, snapshot: TournamentSnapshot) -> int:
    try:
        return len(notification_service.create_notifications(db, notices))
    except DependencyFailure:
        logger.exception("Could not notify players of tournament %s", snapshot.id)
        return 0


def process_tournament(
    db: Session,
    tournament: tournament_model.Tournament,
    now: datetime,
    target_size: int,
    early_lock_hours: float,
) -> LifecycleResult:
    tournament_id, tournament_name = tournament.id, tournament.name
    try:
        snapshot = build_snapshot(db, tournament)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Could not load registrations of tournament %s", tournament_id)
        return LifecycleResult(
            tournament_id=tournament_id,
            tournament_name=tournament_name,
            action="failed",
            error=str(exc),
            failed_step="load_registrations",
        )

    target = tournament_service.roster_target(tournament, target_size)
    decision = decide(snapshot, now, target, early_lock_hours)
    logger.info(
        "Tournament %s: %d/%d paid, %.2fh remaining -> %s",
        snapshot.name, decision.paid_count, target, decision.hours_remaining, decision.action,
    )

    try:
        if decision.action == LifecycleAction.FINALIZE:
            return finalize_tournament(db, tournament, snapshot, decision, target)
        if decision.action == LifecycleAction.CANCEL:
            return cancel_tournament(db, tournament, snapshot, decision)
    except InvalidState as exc:
        # Another run (or an admin) changed the tournament under us
        logger.warning("Skipping tournament %s: %s", snapshot.id, exc.message)
        return LifecycleResult(
            tournament_id=snapshot.id,
            tournament_name=snapshot.name,
            action="skipped",
            reason=exc.message,
            paid_count=decision.paid_count,
            hours_remaining=decision.hours_remaining,
            failed_step=exc.step,
        )
    except CueClubError as exc:
        logger.error("Tournament %s failed at %s: %s", snapshot.id, exc.step, exc.message)
        return LifecycleResult(
            tournament_id=snapshot.id,
            tournament_name=snapshot.name,
            action="failed",
            paid_count=decision.paid_count,
            hours_remaining=decision.hours_remaining,
            error=exc.message,
            failed_step=exc.step,
        )

    return LifecycleResult(
        tournament_id=snapshot.id,
        tournament_name=snapshot.name,
        action="waiting",
        reason=decision.reason,
        paid_count=decision.paid_count,
        hours_remaining=decision.hours_remaining,
    )


def run_lifecycle_pass(
    db: Session,
    now: Optional[datetime] = None,
    target_size: Optional[int] = None,
    early_lock_hours: Optional[float] = None,
) -> LifecyclePassResult:
    now = as_utc(now) if now is not None else utcnow()
    target_size = target_size if target_size is not None else settings.TARGET_ROSTER_SIZE
    early_lock_hours = early_lock_hours if early_lock_hours is not None else settings.EARLY_LOCK_HOURS

    logger.info("Tournament lifecycle pass started at %s", now.isoformat())
    try:
        tournaments = tournament_service.list_lifecycle_candidates(db)
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Could not list tournaments: {exc}", step="list_tournaments") from exc

    results: List[LifecycleResult] = []
    for tournament in tournaments:
        results.append(process_tournament(db, tournament, now, target_size, early_lock_hours))

    logger.info(
        "Tournament lifecycle pass finished: %d processed, %d finalized, %d cancelled, %d failed",
        len(results),
        sum(1 for r in results if r.action == "finalized"),
        sum(1 for r in results if r.action == "cancelled"),
        sum(1 for r in results if r.action == "failed"),
    )
    return LifecyclePassResult(success=True, processed_tournaments=len(results), results=results)
