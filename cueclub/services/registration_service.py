"""
Registration ledger: the filtered CRUD surface the lifecycle automation and
the bracket generator read and write. Nothing here commits; callers own the
transaction.
"""
from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from cueclub.core.clock import utcnow
from cueclub.models import registration as registration_model
from cueclub.models import player as player_model
from cueclub.models.bracket_model import RosterEntry
from cueclub.models.enums import PaymentStatus, RegistrationStatus

Registration = registration_model.Registration


def list_paid_registrations(db: Session, tournament_id: str) -> List[registration_model.Registration]:
    return db.query(Registration).filter(
        Registration.tournament_id == tournament_id,
        Registration.payment_status == PaymentStatus.PAID.value,
    ).order_by(Registration.registration_date.asc(), Registration.id.asc()).all()


def count_paid(db: Session, tournament_id: str) -> int:
    return db.query(Registration).filter(
        Registration.tournament_id == tournament_id,
        Registration.payment_status == PaymentStatus.PAID.value,
    ).count()


def prune_registrations(db: Session, tournament_id: str, keep_ids: Iterable[str]) -> int:
    """Deletes every registration of the tournament whose id is not in keep_ids."""
    keep_ids = list(keep_ids)
    query = db.query(Registration).filter(Registration.tournament_id == tournament_id)
    if keep_ids:
        query = query.filter(Registration.id.notin_(keep_ids))
    return query.delete(synchronize_session=False)


def confirm_registrations(db: Session, ids: Iterable[str]) -> int:
    ids = list(ids)
    if not ids:
        return 0
    return db.query(Registration).filter(Registration.id.in_(ids)).update(
        {
            Registration.registration_status: RegistrationStatus.CONFIRMED.value,
            Registration.updated_at: utcnow(),
        },
        synchronize_session=False,
    )


def list_confirmed_roster(db: Session, tournament_id: str) -> List[RosterEntry]:
    rows = db.query(Registration, player_model.Player).join(
        player_model.Player, player_model.Player.id == Registration.player_id
    ).filter(
        Registration.tournament_id == tournament_id,
        Registration.payment_status == PaymentStatus.PAID.value,
        Registration.registration_status == RegistrationStatus.CONFIRMED.value,
    ).order_by(Registration.registration_date.asc(), Registration.id.asc()).all()

    return [
        RosterEntry(
            registration_id=registration.id,
            player_id=registration.player_id,
            elo_rating=player.elo_rating if player.elo_rating is not None else 1000,
            registration_date=registration.registration_date,
        )
        for registration, player in rows
    ]


def rank_registrations(db: Session, tournament_id: str) -> List[Tuple[registration_model.Registration, int]]:
    """
    Orders every registration of the tournament without writing anything:
    paid before unpaid, then rating (highest first), then registration time.
    Returns (registration, position) pairs, positions starting at 1.
    """
    rows = db.query(Registration, player_model.Player).outerjoin(
        player_model.Player, player_model.Player.id == Registration.player_id
    ).filter(Registration.tournament_id == tournament_id).all()

    def sort_key(row):
        registration, player = row
        rating = player.elo_rating if player is not None and player.elo_rating is not None else 1000
        unpaid = registration.payment_status != PaymentStatus.PAID.value
        return (unpaid, -rating, registration.registration_date, registration.id)

    return [
        (registration, position)
        for position, (registration, _) in enumerate(sorted(rows, key=sort_key), start=1)
    ]


def registration_priority(db: Session, tournament_id: str) -> List[registration_model.Registration]:
    """Stores the ranked position in priority_order. Flushes, does not commit."""
    ordered = []
    for registration, position in rank_registrations(db, tournament_id):
        registration.priority_order = position
        ordered.append(registration)
    db.flush()
    return ordered
