"""
tournamentflow/models.py - Records owned by the tournament manager.

Plain dataclasses. Each one round-trips through to_dict()/from_dict() so the
whole catalog can be written to a key-value store as JSON.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


# ============================================================================
# Status
# ============================================================================


class TournamentStatus(str, Enum):
    """Lifecycle states. Only ever moves forward: filling -> active -> completed."""

    FILLING = "filling"
    ACTIVE = "active"
    COMPLETED = "completed"


# ============================================================================
# Registration / bracket records
# ============================================================================


@dataclass
class Player:
    """One address registered in one tournament."""

    address: str
    username: str
    registered_at: float
    is_eliminated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        return cls(
            address=data["address"],
            username=data.get("username") or default_username(data["address"]),
            registered_at=data.get("registered_at", 0.0),
            is_eliminated=data.get("is_eliminated", False),
        )


@dataclass
class Match:
    """A pairing in one bracket round.

    player2 is None for a bye. Either slot may also be None while the
    feeding match in the previous round is unresolved.
    """

    round_index: int
    match_index: int
    player1: Player | None = None
    player2: Player | None = None
    winner: Player | None = None
    completed: bool = False
    is_bye: bool = False

    @property
    def is_ready(self) -> bool:
        """Both players known and no result yet."""
        return (
            not self.completed
            and not self.is_bye
            and self.player1 is not None
            and self.player2 is not None
        )

    def has_player(self, address: str) -> bool:
        return any(p is not None and p.address == address for p in (self.player1, self.player2))

    def to_dict(self) -> dict[str, Any]:
        return {
            "round_index": self.round_index,
            "match_index": self.match_index,
            "player1": _player_or_none(self.player1),
            "player2": _player_or_none(self.player2),
            "winner": _player_or_none(self.winner),
            "completed": self.completed,
            "is_bye": self.is_bye,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Match:
        return cls(
            round_index=data["round_index"],
            match_index=data["match_index"],
            player1=_load_player(data.get("player1")),
            player2=_load_player(data.get("player2")),
            winner=_load_player(data.get("winner")),
            completed=data.get("completed", False),
            is_bye=data.get("is_bye", False),
        )


@dataclass
class Tournament:
    id: str
    name: str
    creator: str
    max_players: int
    entry_fee: float
    game_type: str
    status: TournamentStatus = TournamentStatus.FILLING
    registered_players: list[Player] = field(default_factory=list)
    prize_pool: float = 0.0
    created_at: float = 0.0
    started_at: float | None = None
    completed_at: float | None = None
    winner: Player | None = None
    bracket: list[list[Match]] | None = None

    @property
    def is_full(self) -> bool:
        return len(self.registered_players) >= self.max_players

    def find_player(self, address: str) -> Player | None:
        for player in self.registered_players:
            if player.address == address:
                return player
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "creator": self.creator,
            "max_players": self.max_players,
            "entry_fee": self.entry_fee,
            "game_type": self.game_type,
            "status": self.status.value,
            "registered_players": [p.to_dict() for p in self.registered_players],
            "prize_pool": self.prize_pool,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "winner": _player_or_none(self.winner),
            "bracket": (
                [[m.to_dict() for m in round_] for round_ in self.bracket]
                if self.bracket is not None
                else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Tournament:
        bracket = data.get("bracket")
        return cls(
            id=data["id"],
            name=data["name"],
            creator=data.get("creator", ""),
            max_players=int(data["max_players"]),
            entry_fee=float(data.get("entry_fee", 0.0)),
            game_type=data.get("game_type", ""),
            status=TournamentStatus(data.get("status", TournamentStatus.FILLING.value)),
            registered_players=[Player.from_dict(p) for p in data.get("registered_players", [])],
            prize_pool=float(data.get("prize_pool", 0.0)),
            created_at=data.get("created_at", 0.0),
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
            winner=_load_player(data.get("winner")),
            bracket=(
                [[Match.from_dict(m) for m in round_] for round_ in bracket]
                if bracket is not None
                else None
            ),
        )


# ============================================================================
# Cross-tournament records
# ============================================================================


@dataclass
class PlayerProfile:
    """Aggregate stats for one address across every tournament."""

    address: str
    username: str = ""
    tournaments_played: int = 0
    tournaments_won: int = 0
    total_earnings: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlayerProfile:
        return cls(
            address=data["address"],
            username=data.get("username", ""),
            tournaments_played=data.get("tournaments_played", 0),
            tournaments_won=data.get("tournaments_won", 0),
            total_earnings=data.get("total_earnings", 0.0),
        )


@dataclass(frozen=True)
class Payout:
    """Prize sent to a tournament winner. Never modified after creation."""

    id: str
    tournament_id: str
    tournament_name: str
    winner: Player
    prize_amount: float
    position: str
    transaction_hash: str
    timestamp: float
    game_type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "tournament_name": self.tournament_name,
            "winner": self.winner.to_dict(),
            "prize_amount": self.prize_amount,
            "position": self.position,
            "transaction_hash": self.transaction_hash,
            "timestamp": self.timestamp,
            "game_type": self.game_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Payout:
        return cls(
            id=data["id"],
            tournament_id=data["tournament_id"],
            tournament_name=data.get("tournament_name", ""),
            winner=Player.from_dict(data["winner"]),
            prize_amount=float(data["prize_amount"]),
            position=data.get("position", "1st Place"),
            transaction_hash=data.get("transaction_hash", ""),
            timestamp=data.get("timestamp", 0.0),
            game_type=data.get("game_type", ""),
        )


# ============================================================================
# Query results
# ============================================================================


@dataclass
class Leaderboard:
    top_winners: list[PlayerProfile]
    most_active: list[PlayerProfile]

    def to_dict(self) -> dict[str, Any]:
        return {
            "top_winners": [p.to_dict() for p in self.top_winners],
            "most_active": [p.to_dict() for p in self.most_active],
        }


@dataclass
class Statistics:
    total_tournaments: int
    completed_tournaments: int
    active_tournaments: int
    total_prize_distributed: float
    total_players: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================================================================
# Helpers
# ============================================================================


def default_username(address: str) -> str:
    """Display name used when a player registers without one."""
    return f"Player_{address[-4:]}"


def _player_or_none(player: Player | None) -> dict[str, Any] | None:
    return player.to_dict() if player is not None else None


def _load_player(data: dict[str, Any] | None) -> Player | None:
    return Player.from_dict(data) if data is not None else None
