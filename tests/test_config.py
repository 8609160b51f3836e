"""Tests for tournamentflow.config — local config file management."""

import textwrap
from pathlib import Path

import pytest

from tournamentflow.config import (
    DEFAULT_DB_PATH,
    DEFAULT_PORT,
    DEFAULT_WEB_ROOT,
    TournamentFlowConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def no_port_env(monkeypatch):
    """Keep a PORT from the outer environment out of these tests."""
    monkeypatch.delenv("PORT", raising=False)


@pytest.fixture
def config_dir(tmp_path):
    """Temporary directory for config files."""
    return tmp_path


def _write_config(config_dir: Path, content: str) -> Path:
    """Write a config.toml and return the path."""
    config_path = config_dir / "config.toml"
    config_path.write_text(textwrap.dedent(content))
    return config_path


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, config_dir):
        cfg = load_config(config_dir / "nonexistent.toml")
        assert isinstance(cfg, TournamentFlowConfig)
        assert cfg.server.port == DEFAULT_PORT == 4000
        assert cfg.server.web_root == DEFAULT_WEB_ROOT
        assert cfg.storage.path == DEFAULT_DB_PATH

    def test_full_config(self, config_dir):
        path = _write_config(config_dir, """\
            [server]
            host = "127.0.0.1"
            port = 8080
            web_root = "/srv/tournamentflow/web"

            [storage]
            path = "/var/lib/tournamentflow.db"
        """)
        cfg = load_config(path)
        assert cfg.server.host == "127.0.0.1"
        assert cfg.server.port == 8080
        assert cfg.server.web_root == "/srv/tournamentflow/web"
        assert cfg.storage.path == "/var/lib/tournamentflow.db"

    def test_tilde_expansion(self, config_dir):
        path = _write_config(config_dir, """\
            [server]
            web_root = "~/tournamentflow/web"

            [storage]
            path = "~/.tournamentflow/data.db"
        """)
        cfg = load_config(path)
        home = str(Path.home())
        assert cfg.server.web_root.startswith(home)
        assert cfg.storage.path.startswith(home)
        assert "~" not in cfg.server.web_root
        assert "~" not in cfg.storage.path

    def test_memory_storage_not_expanded(self, config_dir):
        path = _write_config(config_dir, """\
            [storage]
            path = ":memory:"
        """)
        assert load_config(path).storage.path == ":memory:"

    def test_partial_server_section_keeps_defaults(self, config_dir):
        path = _write_config(config_dir, """\
            [server]
            port = 5000
        """)
        cfg = load_config(path)
        assert cfg.server.port == 5000
        assert cfg.server.web_root == DEFAULT_WEB_ROOT
        assert cfg.storage.path == DEFAULT_DB_PATH

    def test_corrupt_toml_returns_defaults(self, config_dir, caplog):
        path = config_dir / "config.toml"
        path.write_text("this is not [valid toml }{")
        with caplog.at_level("WARNING"):
            cfg = load_config(path)
        assert cfg.server.port == DEFAULT_PORT
        assert "Failed to parse" in caplog.text

    def test_empty_file(self, config_dir):
        path = config_dir / "config.toml"
        path.write_text("")
        cfg = load_config(path)
        assert cfg.server.port == DEFAULT_PORT


class TestPortEnv:
    def test_env_overrides_default(self, config_dir, monkeypatch):
        monkeypatch.setenv("PORT", "9001")
        cfg = load_config(config_dir / "nonexistent.toml")
        assert cfg.server.port == 9001

    def test_env_overrides_file(self, config_dir, monkeypatch):
        path = _write_config(config_dir, """\
            [server]
            port = 5000
        """)
        monkeypatch.setenv("PORT", "9001")
        assert load_config(path).server.port == 9001

    def test_non_numeric_env_ignored(self, config_dir, monkeypatch):
        monkeypatch.setenv("PORT", "eighty")
        assert load_config(config_dir / "nonexistent.toml").server.port == DEFAULT_PORT
