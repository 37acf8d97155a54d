from sqlalchemy import Column, String, DateTime, Boolean, JSON
from cueclub.core.database import Base
from cueclub.core.clock import new_id, utcnow

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    type = Column(String(32), nullable=False) # see NotificationType
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    priority = Column(String(16), nullable=False, default="normal")
    # `metadata` is reserved on declarative classes
    details = Column("metadata", JSON, nullable=True)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
