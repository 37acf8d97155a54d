import logging
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cueclub.core.events import table_events
from cueclub.core.exceptions import DependencyFailure, NotFound
from cueclub.models import notification as notification_model
from cueclub.models.enums import NotificationType
from cueclub.schemas import notification_schemas

logger = logging.getLogger(__name__)


def _tournament_metadata(tournament_id: str, tournament_name: str, **extra) -> dict:
    return {"tournament_id": tournament_id, "tournament_name": tournament_name, **extra}


def finalized_notice(player_id: str, tournament_id: str, tournament_name: str) -> notification_schemas.NotificationCreate:
    return notification_schemas.NotificationCreate(
        user_id=player_id,
        type=NotificationType.TOURNAMENT_FINALIZED.value,
        title="Tournament roster finalized",
        message=f'Congratulations! You have been selected to play in "{tournament_name}". The tournament will start soon.',
        priority="high",
        metadata=_tournament_metadata(tournament_id, tournament_name),
    )


def cancelled_notice(player_id: str, tournament_id: str, tournament_name: str) -> notification_schemas.NotificationCreate:
    return notification_schemas.NotificationCreate(
        user_id=player_id,
        type=NotificationType.TOURNAMENT_CANCELLED.value,
        title="Tournament cancelled",
        message=f'"{tournament_name}" has been cancelled because not enough players registered. Your entry fee will be refunded.',
        priority="high",
        metadata=_tournament_metadata(tournament_id, tournament_name, refund_due=True),
    )


def match_ready_notice(player_id: str, opponent_id: str, tournament_id: str, tournament_name: str,
                       round_number: int, match_number: int) -> notification_schemas.NotificationCreate:
    return notification_schemas.NotificationCreate(
        user_id=player_id,
        type=NotificationType.MATCH_READY.value,
        title=f"Round {round_number} match ready",
        message=f'Your round {round_number} match in "{tournament_name}" is ready to be played.',
        metadata=_tournament_metadata(
            tournament_id, tournament_name,
            round_number=round_number, match_number=match_number, opponent_id=opponent_id,
        ),
    )


def champion_notice(player_id: str, tournament_id: str, tournament_name: str) -> notification_schemas.NotificationCreate:
    return notification_schemas.NotificationCreate(
        user_id=player_id,
        type=NotificationType.TOURNAMENT_COMPLETED.value,
        title="Tournament won",
        message=f'You won "{tournament_name}"!',
        priority="high",
        metadata=_tournament_metadata(tournament_id, tournament_name),
    )


def build_notification(notification_in: notification_schemas.NotificationCreate) -> notification_model.Notification:
    return notification_model.Notification(
        user_id=notification_in.user_id,
        type=notification_in.type,
        title=notification_in.title,
        message=notification_in.message,
        priority=notification_in.priority,
        details=notification_in.metadata,
        # is_read and created_at have defaults in the model
    )


def create_notifications(db: Session, notifications_in: Iterable[notification_schemas.NotificationCreate]) -> List[notification_model.Notification]:
    """Bulk insert in its own commit. Raises DependencyFailure if the sink rejects the batch."""
    db_notifications = [build_notification(n) for n in notifications_in]
    if not db_notifications:
        return []
    try:
        db.add_all(db_notifications)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Could not store notifications: {exc}", step="notify") from exc
    table_events.publish("notifications", [n.id for n in db_notifications])
    return db_notifications


def create_notification(db: Session, notification_in: notification_schemas.NotificationCreate) -> notification_model.Notification:
    return create_notifications(db, [notification_in])[0]


def get_user_notifications(db: Session, user_id: str, skip: int = 0, limit: int = 100) -> List[notification_model.Notification]:
    return db.query(notification_model.Notification)\
        .filter(notification_model.Notification.user_id == user_id)\
        .order_by(notification_model.Notification.created_at.desc())\
        .offset(skip)\
        .limit(limit)\
        .all()


def mark_notification_as_read(db: Session, notification_id: str, current_user_id: str) -> Optional[notification_model.Notification]:
    db_notification = db.query(notification_model.Notification).filter(notification_model.Notification.id == notification_id).first()

    if not db_notification:
        raise NotFound("Notification not found", step="mark_read")

    if db_notification.user_id != current_user_id:
        # Other users' notifications are indistinguishable from missing ones
        raise NotFound("Notification not found", step="mark_read")

    if not db_notification.is_read: # Avoid unnecessary db write if already read
        db_notification.is_read = True
        db.commit()
        db.refresh(db_notification)

    return db_notification


def mark_all_user_notifications_as_read(db: Session, current_user_id: str) -> List[notification_model.Notification]:
    unread = db.query(notification_model.Notification).filter(
        notification_model.Notification.user_id == current_user_id,
        notification_model.Notification.is_read.is_(False),
    ).all()
    for notification in unread:
        notification.is_read = True
    if unread:
        db.commit()
    return unread
