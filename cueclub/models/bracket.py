from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from cueclub.core.database import Base
from cueclub.core.clock import new_id, utcnow

class Bracket(Base):
    __tablename__ = "tournament_brackets"

    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, unique=True)
    bracket_type = Column(String(32), nullable=False, default="single_elimination")
    seeding_method = Column(String(32), nullable=False)
    total_players = Column(Integer, nullable=False)
    bracket_size = Column(Integer, nullable=False)
    total_rounds = Column(Integer, nullable=False)
    current_round = Column(Integer, nullable=False, default=1)
    generated_at = Column(DateTime(timezone=True), default=utcnow)

    tournament = relationship("Tournament", back_populates="bracket")


class SeedEntry(Base):
    __tablename__ = "tournament_seeding"

    id = Column(String(36), primary_key=True, default=new_id)
    tournament_id = Column(String(36), ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    seed_position = Column(Integer, nullable=False)
    player_id = Column(String(36), ForeignKey("players.id"), nullable=True) # NULL = BYE
    is_bye = Column(Boolean, nullable=False, default=False)
    elo_rating = Column(Integer, nullable=True)
    registration_order = Column(Integer, nullable=True)

    tournament = relationship("Tournament", back_populates="seeds")

    __table_args__ = (
        UniqueConstraint("tournament_id", "seed_position", name="uq_seed_position"),
    )
