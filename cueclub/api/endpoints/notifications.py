from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cueclub.services import notification_service
from cueclub.schemas import notification_schemas
from cueclub.api.dependencies import get_db, get_current_user_id

router = APIRouter()

@router.get("/", response_model=List[notification_schemas.NotificationRead])
async def get_user_notifications_endpoint(
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
    skip: int = 0,
    limit: int = 100,
):
    return notification_service.get_user_notifications(
        db=db, user_id=current_user_id, skip=skip, limit=limit
    )

@router.patch("/{notification_id}/read", response_model=notification_schemas.NotificationRead)
async def mark_notification_as_read_endpoint(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    # Raises NotFound for missing notifications and ones that belong to someone else
    return notification_service.mark_notification_as_read(
        db=db, notification_id=notification_id, current_user_id=current_user_id
    )

@router.post("/read-all", response_model=List[notification_schemas.NotificationRead])
async def mark_all_user_notifications_as_read_endpoint(
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return notification_service.mark_all_user_notifications_as_read(db=db, current_user_id=current_user_id)
