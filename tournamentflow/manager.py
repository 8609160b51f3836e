"""
tournamentflow/manager.py - Tournament lifecycle manager.

Owns the catalog of tournaments, payouts and player profiles. Every mutating
call rewrites the whole catalog to the injected key-value store and then
publishes an event on the injected EventBus.

Lifecycle:
    filling   -> players register; the registration that reaches max_players
                 starts the tournament in the same call
    active    -> bracket exists; match results advance winners; deciding the
                 final (or an explicit complete) ends the tournament
    completed -> terminal; winner paid 90% of the pool, platform keeps 10%

Usage:
    manager = TournamentManager(SqliteStore("tournamentflow.db"))
    t = manager.create_tournament("Friday Cup", "0xabc...", max_players=4, entry_fee=10, game_type="chess")
    manager.register_player(t.id, "0x1111...")
"""

import functools
import json
import logging
import math
import random
import secrets
import threading
import time
import uuid
import warnings
from typing import Any, Callable

from . import bracket as brackets
from . import events as ev
from .errors import (
    DuplicateRegistrationError,
    InvalidStateError,
    InvalidTournamentError,
    PersistenceWarning,
    TournamentFullError,
    TournamentNotFoundError,
    WinnerNotRegisteredError,
)
from .models import (
    Leaderboard,
    Match,
    Payout,
    Player,
    PlayerProfile,
    Statistics,
    Tournament,
    TournamentStatus,
    default_username,
)
from .storage import PAYOUTS_KEY, PLAYERS_KEY, TOURNAMENTS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

# Prize split on completion. The platform fee is whatever the winner doesn't
# get, so the two always add back up to the pool.
WINNER_SHARE = 0.9
FIRST_PLACE = "1st Place"
LEADERBOARD_SIZE = 10


def _locked(method):
    """Run a manager method while holding the manager lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class TournamentManager:
    """In-memory tournament catalog mirrored to a key-value store.

    Every public operation holds one re-entrant lock, so a single manager can
    serve concurrent request threads.
    """

    def __init__(
        self,
        store: KeyValueStore,
        events: ev.EventBus | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.store = store
        self.events = events or ev.EventBus()
        self._rng = rng or random.Random()
        self._clock = clock or time.time

        self.tournaments: dict[str, Tournament] = {}
        self.payouts: list[Payout] = []  # most recent first
        self.players: dict[str, PlayerProfile] = {}
        self.last_persistence_error: Exception | None = None
        self._lock = threading.RLock()

        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        for t in self._load_records(TOURNAMENTS_KEY, Tournament.from_dict):
            self.tournaments[t.id] = t
        self.payouts = self._load_records(PAYOUTS_KEY, Payout.from_dict)
        for p in self._load_records(PLAYERS_KEY, PlayerProfile.from_dict):
            self.players[p.address] = p

        if self.tournaments or self.payouts or self.players:
            logger.info(
                f"Loaded {len(self.tournaments)} tournaments, {len(self.payouts)} payouts, "
                f"{len(self.players)} players"
            )

    def _load_records(self, key: str, factory: Callable[[dict[str, Any]], Any]) -> list:
        """Read one JSON array from the store. Missing or unreadable means empty."""
        try:
            raw = self.store.get(key)
            if raw is None:
                return []
            return [factory(item) for item in json.loads(raw)]
        except Exception as e:
            logger.warning(f"Failed to load {key} from storage, starting empty: {e}")
            return []

    def _save(self) -> None:
        """Write the entire catalog in one batch. Failures are logged and warned, never raised."""
        try:
            self.store.set_many({
                TOURNAMENTS_KEY: json.dumps([t.to_dict() for t in self.tournaments.values()]),
                PAYOUTS_KEY: json.dumps([p.to_dict() for p in self.payouts]),
                PLAYERS_KEY: json.dumps([p.to_dict() for p in self.players.values()]),
            })
        except Exception as e:
            self.last_persistence_error = e
            logger.warning(f"Failed to save tournament data to storage: {e}")
            warnings.warn(
                f"Tournament data not persisted: {e}", PersistenceWarning, stacklevel=3
            )
            return
        self.last_persistence_error = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @_locked
    def create_tournament(
        self,
        name: str,
        creator: str,
        max_players: int,
        entry_fee: float,
        game_type: str,
        tournament_id: str | None = None,
    ) -> Tournament:
        """Create a tournament in the filling state.

        Raises:
            InvalidTournamentError: Empty name, max_players < 2, negative
                entry fee, or a tournament_id that is already taken.
        """
        if not name or not name.strip():
            raise InvalidTournamentError("Tournament name is required")
        if isinstance(max_players, bool) or not isinstance(max_players, int) or max_players < 2:
            raise InvalidTournamentError(f"max_players must be an integer >= 2, got {max_players!r}")
        try:
            fee = float(entry_fee)
        except (TypeError, ValueError):
            raise InvalidTournamentError(f"entry_fee must be a number, got {entry_fee!r}") from None
        if not math.isfinite(fee) or fee < 0:
            raise InvalidTournamentError(f"entry_fee must be a finite amount >= 0, got {entry_fee!r}")
        if tournament_id is not None and tournament_id in self.tournaments:
            raise InvalidTournamentError(f"Tournament id already exists: {tournament_id}")

        tournament = Tournament(
            id=tournament_id or _generate_id(),
            name=name,
            creator=creator,
            max_players=max_players,
            entry_fee=fee,
            game_type=game_type,
            created_at=self._clock(),
        )
        self.tournaments[tournament.id] = tournament
        logger.info(f"Created tournament {tournament.id} '{name}' ({max_players} players, fee {fee})")

        self._save()
        self.events.publish(ev.TOURNAMENT_CREATED, tournament)
        return tournament

    @_locked
    def register_player(
        self, tournament_id: str, address: str, username: str | None = None
    ) -> Tournament:
        """Add a player to a filling tournament.

        If this registration fills the roster the tournament starts before
        the call returns.

        Raises:
            TournamentNotFoundError: Unknown tournament id.
            TournamentFullError: Roster already at max_players.
            InvalidStateError: Tournament already started or completed.
            DuplicateRegistrationError: Address already on the roster.
        """
        tournament = self._require(tournament_id)

        if tournament.is_full:
            raise TournamentFullError(f"Tournament {tournament_id} is full")
        if tournament.status is not TournamentStatus.FILLING:
            raise InvalidStateError(
                f"Tournament {tournament_id} is {tournament.status.value}, registration is closed"
            )
        if tournament.find_player(address) is not None:
            raise DuplicateRegistrationError(
                f"{address} is already registered for tournament {tournament_id}"
            )

        player = Player(
            address=address,
            username=username or default_username(address),
            registered_at=self._clock(),
        )
        tournament.registered_players.append(player)
        tournament.prize_pool += tournament.entry_fee

        profile = self.players.get(address) or PlayerProfile(address=address)
        profile.username = player.username
        profile.tournaments_played += 1
        self.players[address] = profile

        logger.info(
            f"Registered {player.username} in {tournament_id} "
            f"({len(tournament.registered_players)}/{tournament.max_players})"
        )

        self._save()
        self.events.publish(ev.PLAYER_REGISTERED, {"tournament": tournament, "player": player})

        if tournament.is_full:
            self.start_tournament(tournament_id)
        return tournament

    @_locked
    def start_tournament(self, tournament_id: str) -> Tournament:
        """Move a filling tournament to active and draw its bracket.

        Raises:
            TournamentNotFoundError: Unknown tournament id.
            InvalidStateError: Tournament is not filling, or has fewer than 2 players.
        """
        tournament = self._require(tournament_id)
        if tournament.status is not TournamentStatus.FILLING:
            raise InvalidStateError(
                f"Tournament {tournament_id} is {tournament.status.value}, can't start"
            )
        if len(tournament.registered_players) < 2:
            raise InvalidStateError(f"Tournament {tournament_id} needs at least 2 players to start")

        tournament.status = TournamentStatus.ACTIVE
        tournament.started_at = self._clock()
        tournament.bracket = brackets.generate_bracket(tournament.registered_players, self._rng)
        logger.info(
            f"Started tournament {tournament_id} with {len(tournament.registered_players)} players, "
            f"{len(tournament.bracket)} rounds"
        )

        self._save()
        self.events.publish(ev.TOURNAMENT_STARTED, tournament)
        return tournament

    @_locked
    def report_match_result(
        self, tournament_id: str, round_index: int, match_index: int, winner_address: str
    ) -> Match:
        """Decide one bracket match. Deciding the final completes the tournament.

        Raises:
            TournamentNotFoundError: Unknown tournament id.
            InvalidStateError: Tournament is not active.
            InvalidMatchResultError: See bracket.record_result.
        """
        tournament = self._require(tournament_id)
        if tournament.status is not TournamentStatus.ACTIVE or tournament.bracket is None:
            raise InvalidStateError(
                f"Tournament {tournament_id} is {tournament.status.value}, no matches to report"
            )

        match, loser = brackets.record_result(
            tournament.bracket, round_index, match_index, winner_address
        )
        loser.is_eliminated = True
        roster_entry = tournament.find_player(loser.address)
        if roster_entry is not None:
            roster_entry.is_eliminated = True
        logger.info(
            f"Tournament {tournament_id} match {round_index}:{match_index}: "
            f"{match.winner.username} beat {loser.username}"
        )

        self._save()
        self.events.publish(ev.MATCH_REPORTED, {"tournament": tournament, "match": match})

        if brackets.is_final_match(tournament.bracket, match):
            self.complete_tournament(tournament_id, winner_address)
        return match

    @_locked
    def complete_tournament(self, tournament_id: str, winner_id: str) -> tuple[Tournament, Payout]:
        """Finish an active tournament and pay the winner.

        Raises:
            TournamentNotFoundError: Unknown tournament id.
            InvalidStateError: Tournament is not active (including already completed).
            WinnerNotRegisteredError: winner_id isn't on the roster.
        """
        tournament = self._require(tournament_id)
        if tournament.status is not TournamentStatus.ACTIVE:
            raise InvalidStateError(
                f"Tournament {tournament_id} is {tournament.status.value}, can't complete"
            )

        winner = tournament.find_player(winner_id)
        if winner is None:
            raise WinnerNotRegisteredError(f"{winner_id} is not registered in tournament {tournament_id}")

        tournament.status = TournamentStatus.COMPLETED
        tournament.completed_at = self._clock()
        tournament.winner = winner

        winner_prize, platform_fee = split_prize_pool(tournament.prize_pool)

        payout = Payout(
            id=_generate_id(),
            tournament_id=tournament.id,
            tournament_name=tournament.name,
            winner=Player.from_dict(winner.to_dict()),
            prize_amount=winner_prize,
            position=FIRST_PLACE,
            transaction_hash=_generate_tx_hash(),
            timestamp=self._clock(),
            game_type=tournament.game_type,
        )
        self.payouts.insert(0, payout)

        profile = self.players.get(winner.address) or PlayerProfile(
            address=winner.address, username=winner.username
        )
        profile.tournaments_won += 1
        profile.total_earnings += winner_prize
        self.players[winner.address] = profile

        logger.info(
            f"Completed tournament {tournament_id}: {winner.username} wins {winner_prize} "
            f"(platform fee {platform_fee}, tx {payout.transaction_hash[:10]}...)"
        )

        self._save()
        self.events.publish(ev.TOURNAMENT_COMPLETED, {"tournament": tournament, "payout": payout})
        return tournament, payout

    @_locked
    def simulate_tournament_completion(self, tournament_id: str) -> tuple[Tournament, Payout] | None:
        """Demo shortcut: complete an active tournament with a random winner.

        Ignores the bracket. Returns None if the tournament is unknown or
        not active.
        """
        tournament = self.tournaments.get(tournament_id)
        if tournament is None or tournament.status is not TournamentStatus.ACTIVE:
            return None
        winner = self._rng.choice(tournament.registered_players)
        return self.complete_tournament(tournament_id, winner.address)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @_locked
    def get_tournament(self, tournament_id: str) -> Tournament | None:
        return self.tournaments.get(tournament_id)

    @_locked
    def get_all_tournaments(self) -> list[Tournament]:
        """Newest first."""
        return sorted(self.tournaments.values(), key=lambda t: t.created_at, reverse=True)

    @_locked
    def get_active_tournaments(self) -> list[Tournament]:
        """Everything not completed (filling and active)."""
        return [t for t in self.get_all_tournaments() if t.status is not TournamentStatus.COMPLETED]

    @_locked
    def get_completed_tournaments(self) -> list[Tournament]:
        return [t for t in self.get_all_tournaments() if t.status is TournamentStatus.COMPLETED]

    @_locked
    def get_all_payouts(self) -> list[Payout]:
        return sorted(self.payouts, key=lambda p: p.timestamp, reverse=True)

    @_locked
    def get_player_stats(self, address: str) -> PlayerProfile:
        """Profile for an address. Unknown addresses get an all-zero profile."""
        return self.players.get(address) or PlayerProfile(address=address)

    @_locked
    def get_leaderboard(self) -> Leaderboard:
        profiles = list(self.players.values())
        top_winners = sorted(
            (p for p in profiles if p.tournaments_won > 0),
            key=lambda p: p.total_earnings,
            reverse=True,
        )
        most_active = sorted(
            (p for p in profiles if p.tournaments_played > 0),
            key=lambda p: p.tournaments_played,
            reverse=True,
        )
        return Leaderboard(
            top_winners=top_winners[:LEADERBOARD_SIZE],
            most_active=most_active[:LEADERBOARD_SIZE],
        )

    @_locked
    def get_statistics(self) -> Statistics:
        tournaments = list(self.tournaments.values())
        return Statistics(
            total_tournaments=len(tournaments),
            completed_tournaments=sum(1 for t in tournaments if t.status is TournamentStatus.COMPLETED),
            active_tournaments=sum(1 for t in tournaments if t.status is TournamentStatus.ACTIVE),
            total_prize_distributed=sum(p.prize_amount for p in self.payouts),
            total_players=len(self.players),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require(self, tournament_id: str) -> Tournament:
        tournament = self.tournaments.get(tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return tournament


def split_prize_pool(prize_pool: float) -> tuple[float, float]:
    """(winner_prize, platform_fee). Always sums to prize_pool exactly."""
    winner_prize = prize_pool * WINNER_SHARE
    return winner_prize, prize_pool - winner_prize


def _generate_id() -> str:
    return str(uuid.uuid4())


def _generate_tx_hash() -> str:
    """Simulated transaction hash. Not tied to any chain."""
    return "0x" + secrets.token_hex(32)
