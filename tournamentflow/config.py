"""
tournamentflow/config.py - Local configuration management

Reads user config from a platform-appropriate config directory:
  - macOS/Linux: ~/.tournamentflow/config.toml
  - Windows: %APPDATA%\\tournamentflow\\config.toml

The PORT environment variable overrides [server] port, so hosted
deployments that inject a port keep working without a config file.

Example:
    [server]
    host = "0.0.0.0"
    port = 4000
    web_root = "~/tournamentflow/web"

    [storage]
    path = "~/.tournamentflow/tournamentflow.db"  # ":memory:" for a throwaway run
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================


def _get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "tournamentflow"
    return Path.home() / ".tournamentflow"


CONFIG_DIR = _get_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4000
DEFAULT_WEB_ROOT = "web"
DEFAULT_DB_PATH = "tournamentflow.db"


# ============================================================================
# Data Types
# ============================================================================


@dataclass
class ServerConfig:
    """Where the HTTP server listens and which directory it serves."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    web_root: str = DEFAULT_WEB_ROOT


@dataclass
class StorageConfig:
    """Backing store for the tournament catalog."""

    path: str = DEFAULT_DB_PATH


@dataclass
class TournamentFlowConfig:
    """Top-level configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


# ============================================================================
# Parsing
# ============================================================================


def _expand(path: str | None) -> str | None:
    """Expand ~ in a path string."""
    if path is None:
        return None
    return str(Path(path).expanduser())


def _port_from_env(default: int) -> int:
    raw = os.environ.get("PORT")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric PORT={raw!r}")
        return default


def load_config(path: Path | None = None) -> TournamentFlowConfig:
    """
    Read config from TOML file.

    Args:
        path: Override config file path (default: ~/.tournamentflow/config.toml)

    Returns:
        TournamentFlowConfig. Missing file or bad TOML returns defaults.
    """
    config_path = path or CONFIG_PATH
    raw: dict = {}

    if config_path.exists():
        try:
            with open(config_path, "rb") as f:
                raw = tomllib.load(f)
        except Exception as e:
            logger.warning(f"Failed to parse {config_path}: {e}")
            raw = {}

    # Parse [server] section
    server = ServerConfig()
    server_data = raw.get("server", {})
    if isinstance(server_data, dict):
        server = ServerConfig(
            host=server_data.get("host", DEFAULT_HOST),
            port=server_data.get("port", DEFAULT_PORT),
            web_root=_expand(server_data.get("web_root")) or DEFAULT_WEB_ROOT,
        )
    server.port = _port_from_env(server.port)

    # Parse [storage] section
    storage = StorageConfig()
    storage_data = raw.get("storage", {})
    if isinstance(storage_data, dict) and "path" in storage_data:
        db_path = storage_data["path"]
        storage = StorageConfig(path=db_path if db_path == ":memory:" else _expand(db_path))

    return TournamentFlowConfig(server=server, storage=storage)
