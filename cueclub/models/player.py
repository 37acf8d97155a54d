from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from cueclub.core.database import Base
from cueclub.core.clock import new_id, utcnow

class Player(Base):
    __tablename__ = "players"

    # Same id the identity provider puts in the token's `sub` claim
    id = Column(String(36), primary_key=True, default=new_id)
    display_name = Column(String, nullable=True)
    elo_rating = Column(Integer, nullable=False, default=1000)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    registrations = relationship("Registration", back_populates="player")
