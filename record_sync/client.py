"""Process-wide default dispatcher.

Usage::

    from record_sync import MemoryRemoteStore, configure

    configure(MemoryRemoteStore())
    Record("Note").save()

Without an explicit ``configure`` call the first record operation builds an
``HttpRemoteStore`` from ``SyncConfig.from_json()``.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor

from record_store import SyncConfig
from record_store.log import sync_log

from .dispatcher import OperationDispatcher
from .http_remote import HttpRemoteStore
from .remote import RemoteStore

_lock = threading.Lock()
_default: OperationDispatcher | None = None


def _build(
    remote: RemoteStore | None,
    config: SyncConfig | None,
    callback_executor: Executor | None,
) -> OperationDispatcher:
    config = config or SyncConfig.from_json()
    dispatcher = OperationDispatcher(
        remote or HttpRemoteStore(config), config, callback_executor=callback_executor
    )
    sync_log(f"Default dispatcher configured: remote={type(dispatcher.remote).__name__}")
    return dispatcher


def configure(
    remote: RemoteStore | None = None,
    config: SyncConfig | None = None,
    callback_executor: Executor | None = None,
) -> OperationDispatcher:
    """Install a new default dispatcher, shutting down the previous one."""
    global _default
    dispatcher = _build(remote, config, callback_executor)
    with _lock:
        previous, _default = _default, dispatcher
    if previous is not None:
        previous.shutdown(wait=False)
    return dispatcher


def default_dispatcher() -> OperationDispatcher:
    global _default
    with _lock:
        if _default is None:
            _default = _build(None, None, None)
        return _default


def reset() -> None:
    """Drop the default dispatcher so the next access re-reads the config."""
    global _default
    with _lock:
        previous, _default = _default, None
    if previous is not None:
        previous.shutdown(wait=True)
