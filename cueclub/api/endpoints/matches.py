from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cueclub.services import match_service
from cueclub.schemas import match_schemas
from cueclub.api.dependencies import get_db, get_current_user_id

router = APIRouter()

@router.get("/{match_id}", response_model=match_schemas.MatchRead)
async def get_match_endpoint(
    match_id: str,
    db: Session = Depends(get_db),
):
    return match_service.get_match_or_404(db, match_id)

@router.post("/{match_id}/result", response_model=match_schemas.ReportOutcomeRead)
async def submit_match_result_endpoint(
    match_id: str,
    result: match_schemas.MatchResultCreate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    outcome = match_service.report_result(
        db, match_id, score1=result.score1, score2=result.score2, winner_id=result.winner_id
    )
    return outcome.model_dump()

@router.post("/{match_id}/start", response_model=match_schemas.MatchRead)
async def start_match_endpoint(
    match_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return match_service.start_match(db, match_id)

@router.post("/{match_id}/cancel", response_model=match_schemas.MatchRead)
async def cancel_match_endpoint(
    match_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return match_service.cancel_match(db, match_id)

@router.post("/{match_id}/restore", response_model=match_schemas.MatchRead)
async def restore_match_endpoint(
    match_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return match_service.restore_match(db, match_id)

@router.patch("/{match_id}/score", response_model=match_schemas.MatchRead)
async def update_score_endpoint(
    match_id: str,
    score: match_schemas.MatchScoreUpdate,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return match_service.update_score(db, match_id, score1=score.score1, score2=score.score2)
