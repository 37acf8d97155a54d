import logging
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cueclub.core.clock import utcnow
from cueclub.core.events import table_events
from cueclub.core.exceptions import AlreadyExists, DependencyFailure, InvalidState
from cueclub.engine import advancement
from cueclub.engine.seeding import generate_single_elimination
from cueclub.models import bracket as bracket_orm
from cueclub.models import match as match_orm
from cueclub.models.bracket_model import BracketModel, MatchModel, SeedModel
from cueclub.models.enums import MatchStatus, SeedingMethod, TournamentStatus
from cueclub.services import registration_service, tournament_service

logger = logging.getLogger(__name__)

Match = match_orm.Match
Bracket = bracket_orm.Bracket
SeedEntry = bracket_orm.SeedEntry

BRACKET_STATUSES = (TournamentStatus.REGISTRATION_CLOSED.value, TournamentStatus.ONGOING.value)


def load_match_models(db: Session, tournament_id: str) -> List[MatchModel]:
    rows = db.query(Match).filter(Match.tournament_id == tournament_id)\
        .order_by(Match.round_number.asc(), Match.match_number.asc()).all()
    return [MatchModel.model_validate(row) for row in rows]


def load_seed_models(db: Session, tournament_id: str) -> List[SeedModel]:
    rows = db.query(SeedEntry).filter(SeedEntry.tournament_id == tournament_id)\
        .order_by(SeedEntry.seed_position.asc()).all()
    return [SeedModel.model_validate(row) for row in rows]


def has_matches(db: Session, tournament_id: str) -> bool:
    return db.query(Match.id).filter(Match.tournament_id == tournament_id).first() is not None


def can_generate_bracket(db: Session, tournament_id: str) -> dict:
    tournament = tournament_service.get_tournament_or_404(db, tournament_id)
    participant_count = len(registration_service.list_confirmed_roster(db, tournament_id))
    bracket_exists = has_matches(db, tournament_id)

    reason = None
    if tournament.status not in BRACKET_STATUSES:
        reason = f"Tournament status is '{tournament.status}', registration must be closed first"
    elif participant_count < 2:
        reason = f"At least 2 confirmed players are required, found {participant_count}"
    elif bracket_exists:
        reason = "Bracket already exists"

    return {
        "tournament_id": tournament_id,
        "participant_count": participant_count,
        "bracket_exists": bracket_exists,
        "valid": reason is None,
        "reason": reason,
    }


def _delete_bracket_rows(db: Session, tournament_id: str) -> None:
    db.query(Match).filter(Match.tournament_id == tournament_id).delete(synchronize_session=False)
    db.query(SeedEntry).filter(SeedEntry.tournament_id == tournament_id).delete(synchronize_session=False)
    db.query(Bracket).filter(Bracket.tournament_id == tournament_id).delete(synchronize_session=False)


def _persist(db: Session, bracket: BracketModel) -> None:
    for seed in bracket.seeds:
        db.add(SeedEntry(
            tournament_id=bracket.tournament_id,
            seed_position=seed.seed_position,
            player_id=seed.player_id,
            is_bye=seed.is_bye,
            elo_rating=seed.elo_rating,
            registration_order=seed.registration_order,
        ))
    for match in bracket.matches:
        db.add(Match(
            id=match.id,
            tournament_id=match.tournament_id,
            round_number=match.round_number,
            match_number=match.match_number,
            player1_id=match.player1_id,
            player2_id=match.player2_id,
            winner_id=match.winner_id,
            status=match.status,
            is_bye=match.is_bye,
            completed_at=utcnow() if match.status == MatchStatus.COMPLETED.value else None,
        ))
    db.add(Bracket(
        tournament_id=bracket.tournament_id,
        seeding_method=bracket.seeding_method,
        total_players=bracket.total_players,
        bracket_size=bracket.bracket_size,
        total_rounds=bracket.total_rounds,
        current_round=advancement.current_round(bracket.matches),
    ))


def generate_bracket(
    db: Session,
    tournament_id: str,
    seeding_method: Union[str, SeedingMethod] = SeedingMethod.ELO_RANKING,
    force_regenerate: bool = False,
) -> BracketModel:
    """
    Seeds the confirmed roster and writes seeds, matches and bracket metadata
    in one transaction. The tournament moves to ongoing.
    """
    tournament = tournament_service.get_tournament_or_404(db, tournament_id)
    if tournament.status not in BRACKET_STATUSES:
        raise InvalidState(
            f"Cannot generate a bracket for a tournament in status '{tournament.status}'",
            step="check_status",
        )

    if has_matches(db, tournament_id) and not force_regenerate:
        raise AlreadyExists(
            "Bracket already exists. Use force_regenerate to replace it.",
            step="check_existing",
        )

    roster = registration_service.list_confirmed_roster(db, tournament_id)
    bracket = generate_single_elimination(tournament_id, roster, seeding_method)

    step = "delete_existing"
    try:
        _delete_bracket_rows(db, tournament_id)
        step = "insert_bracket"
        _persist(db, bracket)
        if tournament.status == TournamentStatus.REGISTRATION_CLOSED.value:
            step = "start_tournament"
            tournament_service.transition_status(db, tournament, TournamentStatus.ONGOING, step=step)
        step = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise DependencyFailure(f"Bracket generation failed at {step}: {exc}", step=step) from exc
    except InvalidState:
        db.rollback()
        raise

    logger.info(
        "Generated %s bracket for tournament %s: %d players, %d slots, %d rounds",
        bracket.seeding_method, tournament_id, bracket.total_players, bracket.bracket_size, bracket.total_rounds,
    )
    table_events.publish("tournament_matches", [m.id for m in bracket.matches])
    table_events.publish("tournaments", [tournament_id])
    return bracket


def get_bracket(db: Session, tournament_id: str) -> Optional[dict]:
    tournament_service.get_tournament_or_404(db, tournament_id)
    bracket = db.query(Bracket).filter(Bracket.tournament_id == tournament_id).first()
    if not bracket:
        return None
    return {
        "tournament_id": tournament_id,
        "bracket_type": bracket.bracket_type,
        "seeding_method": bracket.seeding_method,
        "total_players": bracket.total_players,
        "bracket_size": bracket.bracket_size,
        "total_rounds": bracket.total_rounds,
        "current_round": bracket.current_round,
        "generated_at": bracket.generated_at,
        "seeds": load_seed_models(db, tournament_id),
        "matches": load_match_models(db, tournament_id),
    }

