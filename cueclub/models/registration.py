from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from cueclub.core.database import Base
from cueclub.core.clock import new_id, utcnow
from cueclub.models.enums import PaymentStatus, RegistrationStatus

class Registration(Base):
    __tablename__ = "tournament_registrations"

    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(String(36), ForeignKey("players.id"), nullable=False)
    payment_status = Column(String(16), nullable=False, default=PaymentStatus.UNPAID.value)
    registration_status = Column(String(16), nullable=False, default=RegistrationStatus.PENDING.value)
    registration_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    priority_order = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    tournament = relationship("Tournament", back_populates="registrations")
    player = relationship("Player", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("tournament_id", "player_id", name="uq_registration_tournament_player"),
    )
