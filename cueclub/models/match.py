from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from cueclub.core.database import Base
from cueclub.core.clock import new_id, utcnow
from cueclub.models.enums import MatchStatus

class Match(Base):
    __tablename__ = "tournament_matches"

    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    match_number = Column(Integer, nullable=False)
    # Empty slot in round 1 = BYE, empty slot later = waiting for the feeding match
    player1_id = Column(String(36), ForeignKey("players.id"), nullable=True)
    player2_id = Column(String(36), ForeignKey("players.id"), nullable=True)
    score_player1 = Column(Integer, nullable=True)
    score_player2 = Column(Integer, nullable=True)
    winner_id = Column(String(36), ForeignKey("players.id"), nullable=True)
    status = Column(String(16), nullable=False, default=MatchStatus.SCHEDULED.value)
    is_bye = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    tournament = relationship("Tournament", back_populates="matches")

    __table_args__ = (
        UniqueConstraint("tournament_id", "round_number", "match_number", name="uq_match_position"),
    )
