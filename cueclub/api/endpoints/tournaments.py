from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cueclub.services import bracket_service, match_service, registration_service, tournament_service
from cueclub.schemas import match_schemas, tournament_schemas
from cueclub.api.dependencies import get_db, get_current_user_id

router = APIRouter()

@router.get("/{tournament_id}", response_model=tournament_schemas.TournamentRead)
async def get_tournament_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
):
    return tournament_service.get_tournament_or_404(db, tournament_id)

@router.get("/{tournament_id}/registrations", response_model=List[tournament_schemas.RegistrationRead])
async def get_registrations_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
):
    tournament_service.get_tournament_or_404(db, tournament_id)
    return [
        tournament_schemas.RegistrationRead.model_validate(registration).model_copy(update={"priority_order": position})
        for registration, position in registration_service.rank_registrations(db, tournament_id)
    ]

@router.post("/{tournament_id}/registrations/priority", response_model=List[tournament_schemas.RegistrationRead])
async def store_registration_priority_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    tournament_service.get_tournament_or_404(db, tournament_id)
    registrations = registration_service.registration_priority(db, tournament_id)
    db.commit()
    return registrations

@router.get("/{tournament_id}/bracket/eligibility", response_model=tournament_schemas.EligibilityRead)
async def bracket_eligibility_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
):
    return bracket_service.can_generate_bracket(db, tournament_id)

@router.post("/{tournament_id}/bracket", response_model=tournament_schemas.BracketRead, status_code=status.HTTP_201_CREATED)
async def generate_bracket_endpoint(
    tournament_id: str,
    request: tournament_schemas.BracketGenerateRequest,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    bracket_service.generate_bracket(
        db,
        tournament_id,
        seeding_method=request.seeding_method,
        force_regenerate=request.force_regenerate,
    )
    return bracket_service.get_bracket(db, tournament_id)

@router.get("/{tournament_id}/bracket", response_model=tournament_schemas.BracketRead)
async def get_bracket_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
):
    bracket = bracket_service.get_bracket(db, tournament_id)
    if not bracket:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bracket not generated yet")
    return bracket

@router.get("/{tournament_id}/rounds/{round_number}/status", response_model=tournament_schemas.RoundStatusRead)
async def round_status_endpoint(
    tournament_id: str,
    round_number: int,
    db: Session = Depends(get_db),
):
    return match_service.round_status(db, tournament_id, round_number)

@router.post("/{tournament_id}/reset", response_model=List[match_schemas.MatchRead])
async def reset_tournament_endpoint(
    tournament_id: str,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    return match_service.reset_tournament(db, tournament_id)
