"""
webserver - HTTP front for TournamentFlow

Serves the web pages and exposes the tournament manager as a JSON API.
The server holds no tournament logic of its own.
"""

from .server import app

__all__ = ["app"]
