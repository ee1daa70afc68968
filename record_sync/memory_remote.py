"""In-process RemoteStore for tests and offline use."""

from __future__ import annotations

import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from record_store import NetworkError, RecordSyncError, ServerError
from record_store.codec import DELETE_OP

from .remote import FetchResult, RemoteStore, SaveRequest, SaveResult

# Parse-style error code for a missing object.
OBJECT_NOT_FOUND = 101


def _new_object_id() -> str:
    return uuid.uuid4().hex[:10]


class MemoryRemoteStore(RemoteStore):
    """Thread-safe dict-backed backend.

    Keeps a ``calls`` log of ``(operation, class_name, object_id)`` tuples,
    supports queued failures via ``fail_next`` and can hold every call at
    the door with ``pause`` / ``resume`` to keep an operation in flight.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._objects: dict[tuple[str, str], dict[str, Any]] = {}
        self._failures: list[tuple[str, RecordSyncError]] = []
        self._open = threading.Event()
        self._open.set()
        self.entered = threading.Event()
        self.calls: list[tuple[str, str, str | None]] = []

    # -- Test controls --

    def fail_next(self, operation: str, error: RecordSyncError | None = None) -> None:
        """Make the next ``operation`` call ("save", "delete", "fetch") raise."""
        with self._lock:
            self._failures.append((operation, error or NetworkError("simulated network failure")))

    def pause(self) -> None:
        self.entered.clear()
        self._open.clear()

    def resume(self) -> None:
        self._open.set()

    def stored(self, class_name: str, object_id: str) -> dict[str, Any] | None:
        """Raw stored field data for an object, or None."""
        with self._lock:
            obj = self._objects.get((class_name, object_id))
            return copy.deepcopy(obj["data"]) if obj else None

    def count(self, operation: str) -> int:
        with self._lock:
            return sum(1 for call in self.calls if call[0] == operation)

    # -- Internals --

    def _enter(self, operation: str, class_name: str, object_id: str | None) -> None:
        self.entered.set()
        self._open.wait()
        with self._lock:
            self.calls.append((operation, class_name, object_id))
            for i, (op, error) in enumerate(self._failures):
                if op == operation:
                    del self._failures[i]
                    raise error

    def _get(self, class_name: str, object_id: str) -> dict[str, Any]:
        obj = self._objects.get((class_name, object_id))
        if obj is None:
            raise ServerError(f"{class_name} {object_id} not found", code=OBJECT_NOT_FOUND)
        return obj

    # -- RemoteStore --

    def create_or_update(
        self,
        class_name: str,
        object_id: str | None,
        data: dict[str, Any],
        deleted_keys: list[str],
        acl: Any,
    ) -> SaveResult:
        self._enter("save", class_name, object_id)
        now = self._clock()
        with self._lock:
            if object_id is None:
                object_id = _new_object_id()
                obj = {"data": {}, "created_at": now, "acl": None}
                self._objects[(class_name, object_id)] = obj
            else:
                obj = self._get(class_name, object_id)
            for key, value in data.items():
                if value == DELETE_OP:
                    obj["data"].pop(key, None)
                else:
                    obj["data"][key] = copy.deepcopy(value)
            for key in deleted_keys:
                obj["data"].pop(key, None)
            obj["acl"] = copy.deepcopy(acl)
            obj["updated_at"] = now
            return SaveResult(object_id=object_id, created_at=obj["created_at"], updated_at=now)

    def delete(self, class_name: str, object_id: str) -> None:
        self._enter("delete", class_name, object_id)
        with self._lock:
            self._get(class_name, object_id)
            del self._objects[(class_name, object_id)]

    def fetch(self, class_name: str, object_id: str) -> FetchResult:
        self._enter("fetch", class_name, object_id)
        with self._lock:
            obj = self._get(class_name, object_id)
            return FetchResult(
                data=copy.deepcopy(obj["data"]),
                created_at=obj["created_at"],
                updated_at=obj["updated_at"],
                acl=copy.deepcopy(obj["acl"]),
            )

    def batch_create_or_update(
        self, requests: list[SaveRequest]
    ) -> list[SaveResult | RecordSyncError]:
        with self._lock:
            self.calls.append(("batch", ",".join(r.class_name for r in requests), None))
        return super().batch_create_or_update(requests)

    def put(self, class_name: str, data: dict[str, Any], acl: Any = None) -> str:
        """Seed an object directly, bypassing the call log. Returns its id."""
        now = self._clock()
        object_id = _new_object_id()
        with self._lock:
            self._objects[(class_name, object_id)] = {
                "data": copy.deepcopy(data),
                "created_at": now,
                "updated_at": now,
                "acl": acl,
            }
        return object_id
