from datetime import datetime
from uuid import uuid4
from typing import List, Optional

from pydantic import BaseModel, Field

from cueclub.models.enums import MatchStatus, SeedingMethod

class MatchModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tournament_id: str
    round_number: int
    match_number: int

    player1_id: Optional[str] = None
    player2_id: Optional[str] = None

    winner_id: Optional[str] = None

    score_player1: Optional[int] = None
    score_player2: Optional[int] = None

    status: MatchStatus = MatchStatus.SCHEDULED
    is_bye: bool = False

    class Config:
        from_attributes = True
        use_enum_values = True

    @property
    def players(self) -> List[str]:
        return [p for p in (self.player1_id, self.player2_id) if p]

    @property
    def is_terminal(self) -> bool:
        return self.status in (MatchStatus.COMPLETED.value, MatchStatus.CANCELLED.value)

class SeedModel(BaseModel):
    seed_position: int
    player_id: Optional[str] = None # None = BYE
    is_bye: bool = False
    elo_rating: Optional[int] = None
    registration_order: Optional[int] = None

    class Config:
        from_attributes = True

class RosterEntry(BaseModel):
    """A confirmed participant as seen by the seeding algorithm."""
    registration_id: str
    player_id: str
    elo_rating: int = 1000
    registration_date: datetime

    class Config:
        from_attributes = True

class BracketModel(BaseModel):
    tournament_id: str
    seeding_method: SeedingMethod
    total_players: int
    bracket_size: int
    total_rounds: int

    seeds: List[SeedModel] = Field(default_factory=list)
    matches: List[MatchModel] = Field(default_factory=list)

    class Config:
        from_attributes = True
        use_enum_values = True

    def round(self, round_number: int) -> List[MatchModel]:
        return sorted(
            (m for m in self.matches if m.round_number == round_number),
            key=lambda m: m.match_number,
        )

class ReportOutcome(BaseModel):
    """What a reported result changed: the match itself and where its winner went."""
    match: MatchModel
    advanced: bool = False
    next_round: Optional[int] = None
    next_match_number: Optional[int] = None
    next_slot: Optional[int] = None
    round_complete: bool = False
    tournament_complete: bool = False
    champion_id: Optional[str] = None
    notifications_sent: int = 0
