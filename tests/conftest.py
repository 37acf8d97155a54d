import itertools
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cueclub.models import Base, Player, Registration, Tournament
from cueclub.models.enums import PaymentStatus, RegistrationStatus, TournamentStatus

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_player(db):
    counter = itertools.count(1)

    def _make(elo_rating=1000, display_name=None):
        n = next(counter)
        player = Player(display_name=display_name or f"Player {n}", elo_rating=elo_rating)
        db.add(player)
        db.commit()
        return player

    return _make


@pytest.fixture
def make_tournament(db):
    def _make(
        name="Friday Nine Ball",
        status=TournamentStatus.REGISTRATION_OPEN,
        registration_end=None,
        max_participants=16,
    ):
        tournament = Tournament(
            name=name,
            status=TournamentStatus(status).value,
            registration_end=registration_end or NOW + timedelta(days=3),
            max_participants=max_participants,
            entry_fee=20,
        )
        db.add(tournament)
        db.commit()
        return tournament

    return _make


@pytest.fixture
def make_registration(db, make_player):
    def _make(
        tournament,
        player=None,
        paid=True,
        confirmed=False,
        registration_date=None,
        elo_rating=1000,
    ):
        player = player or make_player(elo_rating=elo_rating)
        registration = Registration(
            tournament_id=tournament.id,
            player_id=player.id,
            payment_status=(PaymentStatus.PAID if paid else PaymentStatus.UNPAID).value,
            registration_status=(RegistrationStatus.CONFIRMED if confirmed else RegistrationStatus.PENDING).value,
            registration_date=registration_date or NOW - timedelta(days=10),
        )
        db.add(registration)
        db.commit()
        return registration

    return _make


@pytest.fixture
def fill_registrations(make_registration):
    """Adds `count` paid registrations, one hour apart, the earliest first."""
    def _fill(tournament, count, paid=True, confirmed=False, start=None, ratings=None):
        start = start or NOW - timedelta(days=10)
        registrations = []
        for i in range(count):
            registrations.append(make_registration(
                tournament,
                paid=paid,
                confirmed=confirmed,
                registration_date=start + timedelta(hours=i),
                elo_rating=ratings[i] if ratings else 1500 - i * 10,
            ))
        return registrations

    return _fill


@pytest.fixture
def closed_tournament(make_tournament, fill_registrations):
    """A tournament whose roster has been finalized with `count` confirmed players."""
    def _make(count, name="Closed Eight Ball"):
        tournament = make_tournament(
            name=name,
            status=TournamentStatus.REGISTRATION_CLOSED,
            registration_end=NOW - timedelta(days=1),
        )
        registrations = fill_registrations(tournament, count, confirmed=True)
        return tournament, registrations

    return _make
