from enum import Enum

class TournamentStatus(str, Enum):
    UPCOMING = "upcoming"
    REGISTRATION_OPEN = "registration_open"
    REGISTRATION_CLOSED = "registration_closed"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"

class RegistrationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"

class SeedingMethod(str, Enum):
    ELO_RANKING = "elo_ranking"
    REGISTRATION_ORDER = "registration_order"
    RANDOM = "random"

class LifecycleAction(str, Enum):
    FINALIZE = "finalize"
    CANCEL = "cancel"
    WAIT = "wait"

class NotificationType(str, Enum):
    TOURNAMENT_FINALIZED = "tournament_finalized"
    TOURNAMENT_CANCELLED = "tournament_cancelled"
    MATCH_READY = "match_ready"
    TOURNAMENT_COMPLETED = "tournament_completed"

# Statuses the lifecycle pass looks at; everything else is terminal for it
LIFECYCLE_ELIGIBLE_STATUSES = (TournamentStatus.UPCOMING, TournamentStatus.REGISTRATION_OPEN)

OPEN_MATCH_STATUSES = (MatchStatus.SCHEDULED, MatchStatus.IN_PROGRESS)
TERMINAL_MATCH_STATUSES = (MatchStatus.COMPLETED, MatchStatus.CANCELLED)
