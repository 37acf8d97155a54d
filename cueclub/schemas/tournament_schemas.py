from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from cueclub.models.bracket_model import MatchModel, SeedModel
from cueclub.models.enums import SeedingMethod

class TournamentBase(BaseModel):
    name: str
    max_participants: int
    entry_fee: Decimal
    registration_start: Optional[datetime] = None
    registration_end: datetime
    tournament_start: Optional[datetime] = None
    tournament_end: Optional[datetime] = None

class TournamentRead(TournamentBase):
    id: str
    status: str
    current_participants: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RegistrationRead(BaseModel):
    id: str
    tournament_id: str
    player_id: str
    payment_status: str
    registration_status: str
    registration_date: datetime
    priority_order: Optional[int] = None

    class Config:
        from_attributes = True

class BracketGenerateRequest(BaseModel):
    seeding_method: SeedingMethod = SeedingMethod.ELO_RANKING
    force_regenerate: bool = False

class BracketRead(BaseModel):
    tournament_id: str
    bracket_type: str = "single_elimination"
    seeding_method: str
    total_players: int
    bracket_size: int
    total_rounds: int
    current_round: int
    generated_at: Optional[datetime] = None
    seeds: List[SeedModel] = []
    matches: List[MatchModel] = []

class EligibilityRead(BaseModel):
    tournament_id: str
    participant_count: int
    bracket_exists: bool
    valid: bool
    reason: Optional[str] = None

class RoundStatusRead(BaseModel):
    tournament_id: str
    round_number: int
    total_matches: int
    completed_matches: int
    is_complete: bool
