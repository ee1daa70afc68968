"""Tests for the record-sync path constants."""

import importlib
from pathlib import Path

import pytest

from record_store import conf


@pytest.fixture
def reload_conf(monkeypatch, isolated_home):
    """Reload conf under a patched environment, then point it back at the test dir."""
    yield lambda: importlib.reload(conf)
    importlib.reload(conf)
    monkeypatch.setattr(conf, "RECORD_SYNC_HOME", isolated_home)
    monkeypatch.setattr(conf, "CONFIG_FILE", isolated_home / "config.json")
    monkeypatch.setattr(conf, "LOG_FILE", isolated_home / "record_sync.log")


class TestHome:
    def test_default_home(self, monkeypatch, reload_conf):
        monkeypatch.delenv("RECORD_SYNC_HOME", raising=False)
        reload_conf()
        assert conf.RECORD_SYNC_HOME == Path.home() / ".record_sync"
        assert conf.LOG_FILE.parent == conf.RECORD_SYNC_HOME
        assert conf.CONFIG_FILE.parent == conf.RECORD_SYNC_HOME

    def test_env_override(self, monkeypatch, tmp_path, reload_conf):
        monkeypatch.setenv("RECORD_SYNC_HOME", str(tmp_path / "custom"))
        reload_conf()
        assert conf.RECORD_SYNC_HOME == tmp_path / "custom"
        assert conf.CONFIG_FILE == tmp_path / "custom" / "config.json"
