from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cueclub.services import lifecycle_service
from cueclub.models.tournament_model import LifecyclePassResult
from cueclub.api.dependencies import get_db, get_current_user_id

router = APIRouter()

@router.post("/run", response_model=LifecyclePassResult)
async def run_lifecycle_endpoint(
    now: Optional[datetime] = None, # lets admins simulate a pass at another point in time
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return lifecycle_service.run_lifecycle_pass(db, now=now)
