from cueclub.core.database import Base, engine

# Import all models here to ensure they are registered with Base
from .player import Player
from .tournament import Tournament
from .registration import Registration
from .match import Match
from .bracket import Bracket, SeedEntry
from .notification import Notification


def create_all(bind=None):
    # Migrations are out of scope; the app and the cron job create missing tables on startup
    Base.metadata.create_all(bind=bind or engine)
