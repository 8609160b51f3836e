"""
tournamentflow/errors.py - Exceptions raised by the tournament manager.

Every mutating manager call raises one of these synchronously. Nothing is
retried internally; callers (CLI, HTTP layer) decide how to report them.
"""


class TournamentError(Exception):
    """Base class for tournament lifecycle errors."""


class TournamentNotFoundError(TournamentError, KeyError):
    """Raised when a tournament id is not in the catalog."""

    def __init__(self, tournament_id: str):
        super().__init__(f"Tournament not found: {tournament_id}")
        self.tournament_id = tournament_id

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise
        return self.args[0]


class TournamentFullError(TournamentError):
    """Raised when registering into a tournament that is at max_players."""


class DuplicateRegistrationError(TournamentError):
    """Raised when an address registers twice for the same tournament."""


class WinnerNotRegisteredError(TournamentError):
    """Raised when completing with an address that isn't on the roster."""


class InvalidStateError(TournamentError):
    """Raised when an operation doesn't fit the tournament's current status."""


class InvalidTournamentError(TournamentError, ValueError):
    """Raised when create_tournament gets bad input."""


class InvalidMatchResultError(TournamentError):
    """Raised when a reported match result can't be applied to the bracket."""


class PersistenceWarning(UserWarning):
    """Emitted when the catalog couldn't be written to the store.

    The in-memory state is kept; only the persisted copy is stale.
    """
