from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from cueclub.models.bracket_model import ReportOutcome

class MatchBase(BaseModel):
    tournament_id: str
    round_number: int
    match_number: int
    player1_id: Optional[str] = None
    player2_id: Optional[str] = None

class MatchRead(MatchBase):
    id: str
    status: str
    is_bye: bool = False
    score_player1: Optional[int] = None
    score_player2: Optional[int] = None
    winner_id: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MatchResultCreate(BaseModel):
    score1: int = Field(ge=0)
    score2: int = Field(ge=0)
    winner_id: str

class MatchScoreUpdate(BaseModel):
    score1: int = Field(ge=0)
    score2: int = Field(ge=0)

class ReportOutcomeRead(ReportOutcome):
    pass
