"""
Tests for the toastctl CLI.
"""

import pytest

from toastline.cli import toastctl
from toastline.core.config import NotificationConfig, reload_config
from toastline.notifications.models import NotificationSummary
from toastline.notifications.persistence import PersistenceStore, SQLiteKeyValueStore


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    monkeypatch.setenv("TOASTLINE_STORAGE_BACKEND", "sqlite")
    reload_config()
    yield
    monkeypatch.delenv("TOASTLINE_STORAGE_BACKEND", raising=False)
    reload_config()


class TestToastctl:
    """Test CLI commands."""

    def test_version(self, capsys):
        assert toastctl.main(["version"]) == 0
        assert "toastctl version" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert toastctl.main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_history_empty(self, tmp_path, capsys):
        assert toastctl.main(["history", "--db", str(tmp_path / "empty.db")]) == 0
        assert "No stored notifications" in capsys.readouterr().out

    def test_history(self, tmp_path, capsys):
        db = tmp_path / "toastline.db"
        config = NotificationConfig()
        store = PersistenceStore(SQLiteKeyValueStore(str(db)), lambda: config)
        store.extend([
            NotificationSummary(id="a", kind="info", title="First", message="one"),
            NotificationSummary(id="b", kind="error", title="Second", message="two"),
        ])

        assert toastctl.main(["history", "--db", str(db), "--limit", "1"]) == 0

        out = capsys.readouterr().out
        assert "Second: two" in out
        assert "First: one" not in out
