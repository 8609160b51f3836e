"""
TournamentFlow - Bracket tournaments with entry fees and prize payouts

Create a tournament, let players register until it fills, run the
elimination bracket, and pay the winner from the pool.
"""

__version__ = "0.1.0"

from .errors import (
    TournamentError,
    TournamentNotFoundError,
    TournamentFullError,
    DuplicateRegistrationError,
    WinnerNotRegisteredError,
    InvalidStateError,
    InvalidTournamentError,
    InvalidMatchResultError,
    PersistenceWarning,
)

from .models import (
    TournamentStatus,
    Player,
    Match,
    Tournament,
    PlayerProfile,
    Payout,
    Leaderboard,
    Statistics,
)

from .events import EventBus
from .storage import KeyValueStore, MemoryStore, SqliteStore
from .manager import TournamentManager

__all__ = [
    # Version
    "__version__",
    # Errors
    "TournamentError",
    "TournamentNotFoundError",
    "TournamentFullError",
    "DuplicateRegistrationError",
    "WinnerNotRegisteredError",
    "InvalidStateError",
    "InvalidTournamentError",
    "InvalidMatchResultError",
    "PersistenceWarning",
    # Records
    "TournamentStatus",
    "Player",
    "Match",
    "Tournament",
    "PlayerProfile",
    "Payout",
    "Leaderboard",
    "Statistics",
    # Services
    "EventBus",
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "TournamentManager",
]
