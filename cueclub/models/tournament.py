from sqlalchemy import Column, Integer, String, DateTime, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from cueclub.core.database import Base
from cueclub.core.clock import new_id, utcnow
from cueclub.models.enums import TournamentStatus

class Tournament(Base):
    __tablename__ = "tournaments"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    max_participants = Column(Integer, nullable=False, default=16)
    # Written together with the status change that fixes the roster, never bumped on its own
    current_participants = Column(Integer, nullable=False, default=0)
    entry_fee = Column(Numeric(12, 2), nullable=False, default=0)
    registration_start = Column(DateTime(timezone=True), nullable=True)
    registration_end = Column(DateTime(timezone=True), nullable=False)
    tournament_start = Column(DateTime(timezone=True), nullable=True)
    tournament_end = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(32), nullable=False, default=TournamentStatus.UPCOMING.value, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True) # soft delete, restored by admins only

    registrations = relationship("Registration", back_populates="tournament", cascade="all, delete-orphan")
    matches = relationship("Match", back_populates="tournament", cascade="all, delete-orphan")
    seeds = relationship("SeedEntry", back_populates="tournament", cascade="all, delete-orphan")
    bracket = relationship("Bracket", back_populates="tournament", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("current_participants <= max_participants", name="ck_tournament_capacity"),
    )
