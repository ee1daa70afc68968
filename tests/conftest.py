"""Shared fixtures: isolated log/config paths, an in-memory backend, a dispatcher."""

import pytest

from record_store import SyncConfig, conf
from record_sync import MemoryRemoteStore, OperationDispatcher, client


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point log and config files at a per-test directory."""
    monkeypatch.setattr(conf, "RECORD_SYNC_HOME", tmp_path)
    monkeypatch.setattr(conf, "CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.setattr(conf, "LOG_FILE", tmp_path / "record_sync.log")
    yield tmp_path
    client.reset()


@pytest.fixture
def remote():
    store = MemoryRemoteStore()
    yield store
    store.resume()


@pytest.fixture
def config():
    return SyncConfig(background_workers=4)


@pytest.fixture
def dispatcher(remote, config):
    d = OperationDispatcher(remote, config)
    yield d
    remote.resume()
    d.shutdown(wait=True)
