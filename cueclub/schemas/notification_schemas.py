from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime

class NotificationBase(BaseModel):
    type: str # e.g., "tournament_finalized", "tournament_cancelled", "match_ready"
    title: str
    message: str
    priority: str = "normal"

class NotificationCreate(NotificationBase):
    user_id: str
    metadata: Optional[Dict[str, Any]] = None

class NotificationRead(NotificationBase):
    id: str
    user_id: str
    details: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
