from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from cueclub.models.enums import LifecycleAction, PaymentStatus, TournamentStatus

class RegistrationSnapshot(BaseModel):
    id: str
    player_id: str
    payment_status: PaymentStatus = PaymentStatus.PAID
    registration_date: datetime

    class Config:
        from_attributes = True
        use_enum_values = True

class TournamentSnapshot(BaseModel):
    id: str
    name: str
    status: TournamentStatus
    registration_end: datetime
    # Only the paid registrations, earliest first
    paid_registrations: List[RegistrationSnapshot] = Field(default_factory=list)

    class Config:
        from_attributes = True
        use_enum_values = True

    @property
    def paid_count(self) -> int:
        return len(self.paid_registrations)

class LifecycleDecision(BaseModel):
    action: LifecycleAction
    reason: str = ""
    paid_count: int
    hours_remaining: float

    class Config:
        use_enum_values = True

class LifecycleResult(BaseModel):
    """One line of the action log returned by a lifecycle pass."""
    tournament_id: str
    tournament_name: str
    action: str # finalized | cancelled | waiting | skipped | failed
    reason: Optional[str] = None
    paid_count: Optional[int] = None
    hours_remaining: Optional[float] = None
    selected_participants: Optional[int] = None
    removed_participants: Optional[int] = None
    participants_to_refund: Optional[int] = None
    notifications_sent: Optional[int] = None
    error: Optional[str] = None
    failed_step: Optional[str] = None

class LifecyclePassResult(BaseModel):
    success: bool = True
    processed_tournaments: int = 0
    results: List[LifecycleResult] = Field(default_factory=list)
