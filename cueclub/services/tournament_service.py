from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy.orm import Session

from cueclub.core.clock import utcnow
from cueclub.core.exceptions import InvalidState, NotFound
from cueclub.core.transitions import ensure_tournament_transition
from cueclub.models import tournament as tournament_model
from cueclub.models.enums import LIFECYCLE_ELIGIBLE_STATUSES, TournamentStatus

Tournament = tournament_model.Tournament


def get_tournament(db: Session, tournament_id: str) -> Optional[tournament_model.Tournament]:
    return db.query(Tournament).filter(
        Tournament.id == tournament_id,
        Tournament.deleted_at.is_(None),
    ).first()


def get_tournament_or_404(db: Session, tournament_id: str) -> tournament_model.Tournament:
    tournament = get_tournament(db, tournament_id)
    if not tournament:
        raise NotFound(f"Tournament {tournament_id} not found", step="load_tournament")
    return tournament


def list_lifecycle_candidates(db: Session) -> List[tournament_model.Tournament]:
    """Tournaments the registration automation still has to decide on, closest deadline first."""
    return db.query(Tournament).filter(
        Tournament.status.in_([s.value for s in LIFECYCLE_ELIGIBLE_STATUSES]),
        Tournament.deleted_at.is_(None),
    ).order_by(Tournament.registration_end.asc(), Tournament.id.asc()).all()


def roster_target(tournament: tournament_model.Tournament, default_target: int) -> int:
    # Never select more players than the tournament can hold
    if tournament.max_participants:
        return min(default_target, tournament.max_participants)
    return default_target


def transition_status(
    db: Session,
    tournament: tournament_model.Tournament,
    target: TournamentStatus,
    expected: Optional[Iterable[Union[str, TournamentStatus]]] = None,
    extra_values: Optional[Dict] = None,
    step: str = "tournament_status",
) -> None:
    """
    Compare-and-swap status update: the UPDATE only matches while the row is
    still in one of the expected statuses (default: the status we loaded).
    Losing the race raises InvalidState. Does not commit.
    """
    ensure_tournament_transition(tournament.status, target, step=step)
    expected_values = [TournamentStatus(s).value for s in (expected or [tournament.status])]

    values = {Tournament.status: target.value, Tournament.updated_at: utcnow()}
    for key, value in (extra_values or {}).items():
        values[getattr(Tournament, key)] = value

    updated = db.query(Tournament).filter(
        Tournament.id == tournament.id,
        Tournament.status.in_(expected_values),
    ).update(values, synchronize_session=False)

    if updated != 1:
        raise InvalidState(
            f"Tournament {tournament.id} is no longer in status {', '.join(expected_values)}",
            step=step,
        )
    db.expire(tournament)
