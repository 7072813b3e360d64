"""Tests for configuration loading."""

import pytest

from handoff.config import DEFAULT_DATABASE_URL, load_config
from handoff.db import TaskDB, get_db
from handoff.notifications import (
    DatabaseNotifier,
    InMemoryNotifier,
    LogNotifier,
    get_notifier,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("HANDOFF_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("HANDOFF_NOTIFIER", raising=False)
    monkeypatch.setenv("HANDOFF_CONFIG", str(tmp_path / "missing.yaml"))


def test_defaults_without_config_file():
    config = load_config()
    assert config.database_url == DEFAULT_DATABASE_URL
    assert config.commit_timeout == 5.0
    assert config.notifications.backend == "database"


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
database_url: sqlite+aiosqlite:///from-file.db
commit_timeout: 2.5
notifications:
  backend: log
"""
    )
    monkeypatch.setenv("HANDOFF_CONFIG", str(config_path))

    config = load_config()
    assert config.database_url == "sqlite+aiosqlite:///from-file.db"
    assert config.commit_timeout == 2.5
    assert config.notifications.backend == "log"


def test_database_url_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("database_url: sqlite+aiosqlite:///from-file.db\n")
    monkeypatch.setenv("HANDOFF_DATABASE_URL", "sqlite+aiosqlite:///from-env.db")

    config = load_config(str(config_path))
    assert config.database_url == "sqlite+aiosqlite:///from-env.db"


def test_get_db_uses_config(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'x.db'}"
    db = get_db(url)
    assert isinstance(db, TaskDB)
    assert db.database_url == url
    assert get_db(url) is not db


def test_get_db_rejects_unknown_backend():
    with pytest.raises(ValueError, match="Unsupported database backend"):
        get_db("mysql://localhost/db")


def test_get_notifier_backends(tmp_path, monkeypatch):
    assert isinstance(get_notifier("inmemory"), InMemoryNotifier)
    assert isinstance(get_notifier("log"), LogNotifier)
    db = get_db(f"sqlite+aiosqlite:///{tmp_path / 'n.db'}")
    assert isinstance(get_notifier("database", db=db), DatabaseNotifier)

    monkeypatch.setenv("HANDOFF_NOTIFIER", "log")
    assert isinstance(get_notifier(), LogNotifier)

    with pytest.raises(ValueError, match="needs a database handle"):
        get_notifier("database")
    with pytest.raises(ValueError, match="Unsupported notifier backend"):
        get_notifier("pigeon")
