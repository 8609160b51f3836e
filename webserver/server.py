"""
webserver/server.py - FastAPI server for TournamentFlow.

Serves the web assets and a JSON API over one TournamentManager.

Endpoints:
    GET    /health                                  Server health check
    GET    /api/tournaments?status=all|active|completed
    POST   /api/tournaments                         Create a tournament
    GET    /api/tournaments/{id}                    Tournament details + bracket
    POST   /api/tournaments/{id}/players            Register a player
    POST   /api/tournaments/{id}/start              Start a filling tournament
    POST   /api/tournaments/{id}/matches/result     Report a bracket match
    POST   /api/tournaments/{id}/complete           Complete with a winner
    POST   /api/tournaments/{id}/simulate           Complete with a random winner
    GET    /api/payouts                             Payouts, newest first
    GET    /api/players/{address}                   Player profile
    GET    /api/leaderboard                         Top winners / most active
    GET    /api/stats                               Aggregate statistics

Static assets:
    GET    /{path}                                  File under the web root
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from tournamentflow.config import DEFAULT_DB_PATH, DEFAULT_PORT, DEFAULT_WEB_ROOT
from tournamentflow.errors import (
    DuplicateRegistrationError,
    InvalidMatchResultError,
    InvalidStateError,
    InvalidTournamentError,
    TournamentError,
    TournamentFullError,
    TournamentNotFoundError,
    WinnerNotRegisteredError,
)
from tournamentflow.events import TOURNAMENT_COMPLETED
from tournamentflow.manager import TournamentManager
from tournamentflow.storage import SqliteStore

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

_ERROR_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; text-align: center; padding: 50px; background: #0f172a; color: #e2e8f0; }}
    h1 {{ color: {accent}; }}
    a {{ color: #6366f1; text-decoration: none; }}
    a:hover {{ text-decoration: underline; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p>{message}</p>
  <p><a href="/">Return to TournamentFlow</a></p>
</body>
</html>
"""

NOT_FOUND_PAGE = _ERROR_PAGE.format(
    title="404 - Page Not Found",
    accent="#6366f1",
    message="The requested page could not be found.",
)
SERVER_ERROR_PAGE = _ERROR_PAGE.format(
    title="500 - Server Error",
    accent="#ef4444",
    message="An error occurred while serving the file.",
)


# Global state — set during lifespan
_manager: TournamentManager | None = None
_web_root: Path | None = None


def get_manager() -> TournamentManager:
    assert _manager is not None, "Manager not initialized"
    return _manager


def get_web_root() -> Path:
    return _web_root if _web_root is not None else Path(DEFAULT_WEB_ROOT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _manager, _web_root
    db_path = getattr(app.state, "db_path", DEFAULT_DB_PATH)
    port = getattr(app.state, "port", DEFAULT_PORT)
    _web_root = Path(getattr(app.state, "web_root", DEFAULT_WEB_ROOT)).expanduser()

    store = SqliteStore(db_path)
    _manager = TournamentManager(store)
    _manager.events.subscribe(TOURNAMENT_COMPLETED, _log_payout)
    logger.info(f"Tournament store initialized: {db_path}")

    _log_startup_banner(port)

    yield

    logger.info("Shutting down TournamentFlow server...")
    _manager = None
    store.close()
    logger.info("Server closed successfully")


def _log_startup_banner(port: int):
    """Log where the server is and what it serves."""
    base = f"http://localhost:{port}"
    logger.info("=" * 50)
    logger.info(f"TournamentFlow server running at {base}")
    logger.info(f"  Serving files from: {get_web_root().resolve()}")
    logger.info("  Pages:")
    logger.info(f"    Home:          {base}/")
    logger.info(f"    Tournaments:   {base}/tournaments.html")
    logger.info(f"    Rewards:       {base}/rewards.html")
    logger.info(f"    Documentation: {base}/docs.html")
    logger.info(f"  API:             {base}/api/tournaments")
    logger.info("=" * 50)


def _log_payout(payload: dict[str, Any]):
    payout = payload["payout"]
    logger.info(
        f"Payout {payout.id}: {payout.prize_amount} to {payout.winner.address} "
        f"for '{payout.tournament_name}' (tx {payout.transaction_hash})"
    )


app = FastAPI(title="TournamentFlow", lifespan=lifespan)

# Allow pages served from elsewhere (dev servers) to call the API
from starlette.middleware.cors import CORSMiddleware

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ======================================================================
# Request/Response Models
# ======================================================================


class CreateTournamentRequest(BaseModel):
    name: str
    creator: str
    max_players: int
    entry_fee: float
    game_type: str
    tournament_id: str | None = None


class RegisterRequest(BaseModel):
    address: str
    username: str | None = None


class MatchResultRequest(BaseModel):
    round_index: int
    match_index: int
    winner: str


class CompleteRequest(BaseModel):
    winner: str


class HealthResponse(BaseModel):
    status: str
    tournaments: int
    active_tournaments: int
    persistence_ok: bool


# ======================================================================
# Error mapping
# ======================================================================


def _http_error(e: TournamentError) -> HTTPException:
    """Translate a manager error into the matching HTTP status."""
    if isinstance(e, TournamentNotFoundError):
        status = 404
    elif isinstance(e, (TournamentFullError, DuplicateRegistrationError, InvalidStateError)):
        status = 409
    elif isinstance(e, (WinnerNotRegisteredError, InvalidTournamentError, InvalidMatchResultError)):
        status = 400
    else:
        status = 500
    return HTTPException(status_code=status, detail=str(e))


def _completion(result) -> dict[str, Any]:
    tournament, payout = result
    return {"tournament": tournament.to_dict(), "payout": payout.to_dict()}


# ======================================================================
# API Endpoints
# ======================================================================


@app.get("/health", response_model=HealthResponse)
def health() -> dict[str, Any]:
    manager = get_manager()
    stats = manager.get_statistics()
    return {
        "status": "ok",
        "tournaments": stats.total_tournaments,
        "active_tournaments": stats.active_tournaments,
        "persistence_ok": manager.last_persistence_error is None,
    }


@app.get("/api/tournaments")
def list_tournaments(status: str = "all") -> dict[str, Any]:
    manager = get_manager()
    if status == "all":
        tournaments = manager.get_all_tournaments()
    elif status == "active":
        tournaments = manager.get_active_tournaments()
    elif status == "completed":
        tournaments = manager.get_completed_tournaments()
    else:
        raise HTTPException(status_code=400, detail=f"Unknown status filter: {status}")
    return {"tournaments": [t.to_dict() for t in tournaments]}


@app.post("/api/tournaments", status_code=201)
def create_tournament(req: CreateTournamentRequest) -> dict[str, Any]:
    try:
        tournament = get_manager().create_tournament(
            name=req.name,
            creator=req.creator,
            max_players=req.max_players,
            entry_fee=req.entry_fee,
            game_type=req.game_type,
            tournament_id=req.tournament_id,
        )
    except TournamentError as e:
        raise _http_error(e)
    return tournament.to_dict()


@app.get("/api/tournaments/{tournament_id}")
def get_tournament(tournament_id: str) -> dict[str, Any]:
    tournament = get_manager().get_tournament(tournament_id)
    if tournament is None:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament.to_dict()


@app.post("/api/tournaments/{tournament_id}/players")
def register_player(tournament_id: str, req: RegisterRequest) -> dict[str, Any]:
    try:
        tournament = get_manager().register_player(tournament_id, req.address, req.username)
    except TournamentError as e:
        raise _http_error(e)
    return tournament.to_dict()


@app.post("/api/tournaments/{tournament_id}/start")
def start_tournament(tournament_id: str) -> dict[str, Any]:
    try:
        tournament = get_manager().start_tournament(tournament_id)
    except TournamentError as e:
        raise _http_error(e)
    return tournament.to_dict()


@app.post("/api/tournaments/{tournament_id}/matches/result")
def report_match_result(tournament_id: str, req: MatchResultRequest) -> dict[str, Any]:
    manager = get_manager()
    try:
        match = manager.report_match_result(
            tournament_id, req.round_index, req.match_index, req.winner
        )
    except TournamentError as e:
        raise _http_error(e)
    return {
        "match": match.to_dict(),
        "tournament": manager.get_tournament(tournament_id).to_dict(),
    }


@app.post("/api/tournaments/{tournament_id}/complete")
def complete_tournament(tournament_id: str, req: CompleteRequest) -> dict[str, Any]:
    try:
        result = get_manager().complete_tournament(tournament_id, req.winner)
    except TournamentError as e:
        raise _http_error(e)
    return _completion(result)


@app.post("/api/tournaments/{tournament_id}/simulate")
def simulate_completion(tournament_id: str) -> dict[str, Any]:
    result = get_manager().simulate_tournament_completion(tournament_id)
    if result is None:
        raise HTTPException(status_code=409, detail="Tournament is not active")
    return _completion(result)


@app.get("/api/payouts")
def list_payouts() -> dict[str, Any]:
    return {"payouts": [p.to_dict() for p in get_manager().get_all_payouts()]}


@app.get("/api/players/{address}")
def get_player(address: str) -> dict[str, Any]:
    return get_manager().get_player_stats(address).to_dict()


@app.get("/api/leaderboard")
def leaderboard() -> dict[str, Any]:
    return get_manager().get_leaderboard().to_dict()


@app.get("/api/stats")
def statistics() -> dict[str, Any]:
    return get_manager().get_statistics().to_dict()


# ======================================================================
# Static Assets
# ======================================================================
# Registered last so the catch-all never shadows the API.


@app.get("/", include_in_schema=False)
def serve_index() -> Response:
    return serve_static("")


@app.get("/{file_path:path}", include_in_schema=False)
def serve_static(file_path: str) -> Response:
    """Return a file from the web root with a content type from its extension."""
    root = get_web_root().resolve()
    full_path = (root / (file_path or "index.html")).resolve()

    if not full_path.is_relative_to(root) or not full_path.exists():
        return HTMLResponse(NOT_FOUND_PAGE, status_code=404)

    try:
        data = full_path.read_bytes()
    except OSError as e:
        logger.error(f"Failed to read {full_path}: {e}")
        return HTMLResponse(SERVER_ERROR_PAGE, status_code=500)

    content_type = MIME_TYPES.get(full_path.suffix.lower(), DEFAULT_MIME_TYPE)
    return Response(content=data, media_type=content_type, headers={"Cache-Control": "no-cache"})
