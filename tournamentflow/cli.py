#!/usr/bin/env python3
"""
tournamentflow/cli.py - Command line interface for TournamentFlow

Usage:
    tournamentflow serve [--port 4000] [--web-root web]
    tournamentflow create <name> --creator <address> --max-players 8 --entry-fee 10 --game chess
    tournamentflow register <tournament_id> <address> [--username NAME]
    tournamentflow report <tournament_id> <round> <match> <winner_address>
    tournamentflow complete <tournament_id> <winner_address>
    tournamentflow list [--status all|active|completed]
    tournamentflow leaderboard
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .errors import TournamentError
from .formatting import format_address, format_time_ago
from .manager import TournamentManager
from .models import Tournament
from .storage import SqliteStore

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def open_manager(args) -> TournamentManager:
    """Build a manager over the configured (or --db) SQLite store."""
    config = load_config(args.config)
    db_path = args.db or config.storage.path
    return TournamentManager(SqliteStore(db_path))


# ============================================================================
# Server
# ============================================================================


def cmd_serve(args):
    """Start the web server."""
    import uvicorn

    from webserver.server import app

    config = load_config(args.config)
    port = args.port or config.server.port
    web_root = args.web_root or config.server.web_root
    db_path = args.db or config.storage.path

    # Lifespan reads these off app state
    app.state.db_path = db_path
    app.state.web_root = web_root
    app.state.port = port
    logger.info(f"Starting TournamentFlow on port {port} (db: {db_path}, web: {web_root})")
    uvicorn.run(app, host=config.server.host, port=port, log_level="info")
    return 0


# ============================================================================
# Lifecycle commands
# ============================================================================


def cmd_create(args):
    """Create a tournament."""
    manager = open_manager(args)
    try:
        t = manager.create_tournament(
            name=args.name,
            creator=args.creator,
            max_players=args.max_players,
            entry_fee=args.entry_fee,
            game_type=args.game,
            tournament_id=args.id,
        )
    except TournamentError as e:
        logger.error(str(e))
        return 1

    print(f"\n🏆 Created '{t.name}' ({t.id})")
    print(f"   {t.max_players} players, entry fee {t.entry_fee:g}, {t.game_type}\n")
    return 0


def cmd_register(args):
    """Register a player. Filling the last slot starts the tournament."""
    manager = open_manager(args)
    try:
        t = manager.register_player(args.tournament_id, args.address, args.username)
    except TournamentError as e:
        logger.error(str(e))
        return 1

    print(f"\n✅ Registered {format_address(args.address)} in '{t.name}'")
    print(f"   Players: {len(t.registered_players)}/{t.max_players}  Prize pool: {t.prize_pool:g}")
    if t.bracket is not None:
        print(f"   Tournament is full and has started ({len(t.bracket)} rounds)")
    print()
    return 0


def cmd_start(args):
    """Start a filling tournament early."""
    manager = open_manager(args)
    try:
        t = manager.start_tournament(args.tournament_id)
    except TournamentError as e:
        logger.error(str(e))
        return 1

    print(f"\n🚀 '{t.name}' started with {len(t.registered_players)} players")
    _print_bracket(t)
    return 0


def cmd_report(args):
    """Report the winner of one bracket match."""
    manager = open_manager(args)
    try:
        match = manager.report_match_result(
            args.tournament_id, args.round, args.match, args.winner
        )
    except TournamentError as e:
        logger.error(str(e))
        return 1

    print(f"\n⚔️  Round {args.round + 1}, match {args.match + 1}: {match.winner.username} advances")
    t = manager.get_tournament(args.tournament_id)
    if t.winner is not None:
        print(f"🏆 {t.winner.username} wins '{t.name}'!")
    print()
    return 0


def cmd_complete(args):
    """Complete an active tournament with a named winner."""
    manager = open_manager(args)
    try:
        t, payout = manager.complete_tournament(args.tournament_id, args.winner)
    except TournamentError as e:
        logger.error(str(e))
        return 1

    _print_payout(t, payout)
    return 0


def cmd_simulate(args):
    """Complete an active tournament with a random winner."""
    manager = open_manager(args)
    result = manager.simulate_tournament_completion(args.tournament_id)
    if result is None:
        logger.error(f"Tournament {args.tournament_id} is not active")
        return 1

    _print_payout(*result)
    return 0


# ============================================================================
# Queries
# ============================================================================


def cmd_list(args):
    """List tournaments, newest first."""
    manager = open_manager(args)
    if args.status == "active":
        tournaments = manager.get_active_tournaments()
    elif args.status == "completed":
        tournaments = manager.get_completed_tournaments()
    else:
        tournaments = manager.get_all_tournaments()

    print(f"\n📋 Tournaments ({args.status})\n")
    print(f"{'ID':<38} {'Name':<20} {'Status':<10} {'Players':<8} {'Pool'}")
    print("-" * 85)
    for t in tournaments:
        players = f"{len(t.registered_players)}/{t.max_players}"
        print(f"{t.id:<38} {t.name[:20]:<20} {t.status.value:<10} {players:<8} {t.prize_pool:g}")
    print()
    return 0


def cmd_show(args):
    """Show one tournament with its roster and bracket."""
    manager = open_manager(args)
    t = manager.get_tournament(args.tournament_id)
    if t is None:
        logger.error(f"Unknown tournament: {args.tournament_id}")
        return 1

    print(f"\n🎮 {t.name} ({t.game_type})")
    print(f"   Status: {t.status.value}  Created {format_time_ago(t.created_at)}")
    print(f"   Creator: {format_address(t.creator)}")
    print(f"   Entry fee: {t.entry_fee:g}  Prize pool: {t.prize_pool:g}")
    print(f"\n   Players ({len(t.registered_players)}/{t.max_players}):")
    for p in t.registered_players:
        out = " (eliminated)" if p.is_eliminated else ""
        print(f"     {p.username:<16} {format_address(p.address)}{out}")
    if t.winner is not None:
        print(f"\n   Winner: {t.winner.username}")
    _print_bracket(t)
    return 0


def cmd_payouts(args):
    """List payouts, newest first."""
    manager = open_manager(args)
    print("\n💰 Payouts\n")
    for p in manager.get_all_payouts():
        print(
            f"   {format_time_ago(p.timestamp):<16} {p.tournament_name[:20]:<20} "
            f"{p.winner.username:<16} {p.prize_amount:>10.2f}  {format_address(p.transaction_hash)}"
        )
    print()
    return 0


def cmd_profile(args):
    """Show one player's aggregate stats."""
    manager = open_manager(args)
    p = manager.get_player_stats(args.address)
    print(f"\n👤 {p.username or format_address(p.address)}")
    print(f"   Played: {p.tournaments_played}  Won: {p.tournaments_won}  Earnings: {p.total_earnings:.2f}\n")
    return 0


def cmd_leaderboard(args):
    """Top earners and most active players."""
    manager = open_manager(args)
    board = manager.get_leaderboard()

    print("\n🏆 Top Winners\n")
    for i, p in enumerate(board.top_winners, 1):
        print(f"   {i:>2}. {p.username:<16} {p.tournaments_won} wins  {p.total_earnings:.2f}")
    print("\n🔥 Most Active\n")
    for i, p in enumerate(board.most_active, 1):
        print(f"   {i:>2}. {p.username:<16} {p.tournaments_played} played")
    print()
    return 0


def cmd_stats(args):
    """Aggregate statistics."""
    s = open_manager(args).get_statistics()
    print("\n📊 TournamentFlow\n")
    print(f"   Tournaments: {s.total_tournaments} ({s.active_tournaments} active, {s.completed_tournaments} completed)")
    print(f"   Players: {s.total_players}")
    print(f"   Prizes distributed: {s.total_prize_distributed:.2f}\n")
    return 0


def _print_bracket(t: Tournament):
    if not t.bracket:
        print()
        return
    for round_ in t.bracket:
        print(f"\n   Round {round_[0].round_index + 1}:")
        for m in round_:
            p1 = m.player1.username if m.player1 else "TBD"
            if m.is_bye:
                p2 = "bye"
            else:
                p2 = m.player2.username if m.player2 else "TBD"
            result = f" -> {m.winner.username}" if m.completed else ""
            print(f"     [{m.match_index}] {p1} vs {p2}{result}")
    print()


def _print_payout(t: Tournament, payout):
    print(f"\n🏆 {payout.winner.username} wins '{t.name}'!")
    print(f"   Prize: {payout.prize_amount:.2f} ({payout.position})")
    print(f"   Tx: {payout.transaction_hash}\n")


# ============================================================================
# Entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tournamentflow",
        description="Bracket tournaments with entry fees and prize payouts",
    )
    parser.add_argument("--config", type=Path, default=None, help="Config file (default: ~/.tournamentflow/config.toml)")
    parser.add_argument("--db", default=None, help="SQLite database path (overrides config)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the web server")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Server port (default: 4000)")
    serve_parser.add_argument("--web-root", default=None, help="Directory of web assets (default: web)")
    serve_parser.set_defaults(func=cmd_serve)

    # create command
    create_parser = subparsers.add_parser("create", help="Create a tournament")
    create_parser.add_argument("name", help="Tournament name")
    create_parser.add_argument("--creator", required=True, help="Creator address")
    create_parser.add_argument("--max-players", "-n", type=int, required=True, help="Roster size (>= 2)")
    create_parser.add_argument("--entry-fee", "-f", type=float, default=0.0, help="Entry fee per player (default: 0)")
    create_parser.add_argument("--game", "-g", required=True, help="Game type tag")
    create_parser.add_argument("--id", default=None, help="Explicit tournament id")
    create_parser.set_defaults(func=cmd_create)

    # register command
    register_parser = subparsers.add_parser("register", help="Register a player")
    register_parser.add_argument("tournament_id", help="Tournament id")
    register_parser.add_argument("address", help="Player address")
    register_parser.add_argument("--username", "-u", default=None, help="Display name")
    register_parser.set_defaults(func=cmd_register)

    # start command
    start_parser = subparsers.add_parser("start", help="Start a tournament before it fills")
    start_parser.add_argument("tournament_id", help="Tournament id")
    start_parser.set_defaults(func=cmd_start)

    # report command
    report_parser = subparsers.add_parser("report", help="Report a bracket match winner")
    report_parser.add_argument("tournament_id", help="Tournament id")
    report_parser.add_argument("round", type=int, help="Round index (0-based)")
    report_parser.add_argument("match", type=int, help="Match index within the round (0-based)")
    report_parser.add_argument("winner", help="Winner address")
    report_parser.set_defaults(func=cmd_report)

    # complete command
    complete_parser = subparsers.add_parser("complete", help="Complete a tournament with a winner")
    complete_parser.add_argument("tournament_id", help="Tournament id")
    complete_parser.add_argument("winner", help="Winner address")
    complete_parser.set_defaults(func=cmd_complete)

    # simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Complete a tournament with a random winner")
    simulate_parser.add_argument("tournament_id", help="Tournament id")
    simulate_parser.set_defaults(func=cmd_simulate)

    # list command
    list_parser = subparsers.add_parser("list", help="List tournaments")
    list_parser.add_argument("--status", choices=["all", "active", "completed"], default="all")
    list_parser.set_defaults(func=cmd_list)

    # show command
    show_parser = subparsers.add_parser("show", help="Show a tournament")
    show_parser.add_argument("tournament_id", help="Tournament id")
    show_parser.set_defaults(func=cmd_show)

    subparsers.add_parser("payouts", help="List payouts").set_defaults(func=cmd_payouts)

    profile_parser = subparsers.add_parser("profile", help="Show a player's stats")
    profile_parser.add_argument("address", help="Player address")
    profile_parser.set_defaults(func=cmd_profile)

    subparsers.add_parser("leaderboard", help="Show the leaderboard").set_defaults(func=cmd_leaderboard)
    subparsers.add_parser("stats", help="Show aggregate statistics").set_defaults(func=cmd_stats)

    return parser


def main():
    args = build_parser().parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
