"""Record: local representation of one backend object.

Holds the fields, identity and dirty state of the object and exposes every
remote operation in four calling conventions::

    note = Record("Note")
    note["title"] = "x"

    note.save()                                   # blocking -> bool
    err = ErrorRef()
    note.save(err)                                # blocking, error in err.error
    note.save_in_background(listener)             # listener.on_operation_result(result, error)
    note.save_in_background_with_callback(cb)     # cb(result, error)

Background variants return a ``Future`` resolving to an ``Outcome``.
Callbacks run on the dispatcher's callback thread.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from datetime import datetime
from typing import Any, Iterator

from record_store import (
    FieldSnapshot,
    FieldStore,
    InvalidStateError,
    OperationState,
    RecordIdentity,
    RecordPointer,
    ValidationError,
)
from record_store.codec import decode_value, encode_value, parse_date

from .batch import BatchCoordinator
from .dispatcher import ErrorRef, OperationDispatcher, OperationListener, Outcome, ResultCallback
from .gate import RecordGate
from .operations import DeleteOperation, RefreshOperation, SaveOperation
from .remote import FetchResult, SaveRequest, SaveResult

# Keys owned by the backend; never stored as ordinary fields.
RESERVED_KEYS = frozenset({"objectId", "createdAt", "updatedAt", "ACL"})
_ACL_KEY = "ACL"


class Record:
    def __init__(self, class_name: str, dispatcher: OperationDispatcher | None = None) -> None:
        self._lock = threading.RLock()
        self._identity = RecordIdentity(class_name=class_name)
        self._store = FieldStore(lock=self._lock)
        self._dispatcher = dispatcher
        self.gate = RecordGate()

    @classmethod
    def from_result(
        cls,
        class_name: str,
        result: dict[str, Any],
        dispatcher: OperationDispatcher | None = None,
    ) -> Record:
        """Rebuild an already-saved record from a wire-format server result.

        The record starts clean: it mirrors what the server holds.
        """
        if not result.get("objectId"):
            raise ValidationError("Server result has no objectId")
        record = cls(class_name, dispatcher)
        record._identity.object_id = result["objectId"]
        record._identity.apply_fetch_result(
            parse_date(result.get("createdAt")),
            parse_date(result.get("updatedAt")),
            result.get(_ACL_KEY),
        )
        data = {k: decode_value(v) for k, v in result.items() if k not in RESERVED_KEYS}
        record._store.replace(data)
        return record

    @classmethod
    def resolve(cls, pointer: RecordPointer, dispatcher: OperationDispatcher | None = None) -> Record:
        """Fetch the record a pointer refers to. Blocking; errors propagate."""
        dispatcher = dispatcher or _default_dispatcher()
        result = dispatcher.remote.fetch(pointer.class_name, pointer.object_id)
        record = cls(pointer.class_name, dispatcher)
        record._identity.object_id = pointer.object_id
        record.apply_fetch(result)
        return record

    # -- Identity --

    @property
    def class_name(self) -> str:
        return self._identity.class_name

    @property
    def object_id(self) -> str | None:
        return self._identity.object_id

    @property
    def created_at(self) -> datetime | None:
        return self._identity.created_at

    @property
    def updated_at(self) -> datetime | None:
        return self._identity.updated_at

    @property
    def acl(self) -> Any:
        return self._identity.acl

    @acl.setter
    def acl(self, value: Any) -> None:
        with self._lock:
            self._identity.acl = value
            self._store.tracker.touch(_ACL_KEY)

    def address(self) -> RecordPointer:
        """Pointer to this record. Raises NotSavedError before the first save."""
        return self._identity.pointer

    @property
    def is_dirty(self) -> bool:
        return self._store.is_dirty

    @property
    def is_deleted(self) -> bool:
        return self._identity.deleted

    @property
    def operation_state(self) -> OperationState:
        return self.gate.state

    @property
    def dispatcher(self) -> OperationDispatcher:
        return self._dispatcher or _default_dispatcher()

    def describe(self) -> str:
        return f"{self.class_name}({self.object_id or 'new'})"

    def __repr__(self) -> str:
        return f"<Record {self.describe()} dirty={self.is_dirty}>"

    # -- Fields --

    def get(self, key: str, default: Any = None) -> Any:
        return self._store.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if key in RESERVED_KEYS:
            raise ValidationError(f"{key!r} is reserved")
        self._store.set(key, value)

    def remove(self, key: str) -> None:
        self._store.remove(key)

    def __getitem__(self, key: str) -> Any:
        if key not in self._store:
            raise KeyError(key)
        return self._store.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if key not in self._store:
            raise KeyError(key)
        self.remove(key)

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __iter__(self) -> Iterator[str]:
        return iter(self._store.keys())

    def keys(self) -> list[str]:
        return self._store.keys()

    @property
    def fields(self) -> dict[str, Any]:
        return self._store.fields

    @property
    def references(self) -> dict[str, Any]:
        return self._store.references

    @property
    def pending_removals(self) -> frozenset[str]:
        return self._store.pending_removals

    def referenced_records(self) -> list[Record]:
        return self._store.referenced_records()

    # -- Save --

    def save(self, error_out: ErrorRef | None = None) -> bool:
        return self.dispatcher.run_blocking(SaveOperation(self), error_out)

    def save_in_background(self, listener: OperationListener | None = None) -> Future[Outcome]:
        return self.dispatcher.run_with_listener(SaveOperation(self), listener)

    def save_in_background_with_callback(self, callback: ResultCallback) -> Future[Outcome]:
        return self.dispatcher.run_with_callback(SaveOperation(self), callback)

    # -- Delete --

    def delete(self, error_out: ErrorRef | None = None) -> bool:
        return self.dispatcher.run_blocking(DeleteOperation(self), error_out)

    def delete_in_background(self, listener: OperationListener | None = None) -> Future[Outcome]:
        return self.dispatcher.run_with_listener(DeleteOperation(self), listener)

    def delete_in_background_with_callback(self, callback: ResultCallback) -> Future[Outcome]:
        return self.dispatcher.run_with_callback(DeleteOperation(self), callback)

    # -- Refresh (discards unsaved local edits) --

    def refresh(self, error_out: ErrorRef | None = None) -> bool:
        return self.dispatcher.run_blocking(RefreshOperation(self), error_out)

    def refresh_in_background(self, listener: OperationListener | None = None) -> Future[Outcome]:
        return self.dispatcher.run_with_listener(RefreshOperation(self), listener)

    def refresh_in_background_with_callback(self, callback: ResultCallback) -> Future[Outcome]:
        return self.dispatcher.run_with_callback(RefreshOperation(self), callback)

    # -- Batch --

    @classmethod
    def save_all(
        cls,
        records: list[Record],
        error_out: ErrorRef | None = None,
        dispatcher: OperationDispatcher | None = None,
    ) -> bool:
        return BatchCoordinator(dispatcher or _default_dispatcher()).save_all(records, error_out)

    @classmethod
    def save_all_in_background(
        cls,
        records: list[Record],
        listener: OperationListener | None = None,
        dispatcher: OperationDispatcher | None = None,
    ) -> Future[Outcome]:
        coordinator = BatchCoordinator(dispatcher or _default_dispatcher())
        return coordinator.save_all_in_background(records, listener)

    @classmethod
    def save_all_in_background_with_callback(
        cls,
        records: list[Record],
        callback: ResultCallback,
        dispatcher: OperationDispatcher | None = None,
    ) -> Future[Outcome]:
        coordinator = BatchCoordinator(dispatcher or _default_dispatcher())
        return coordinator.save_all_in_background_with_callback(records, callback)

    # -- Hooks used by operations --

    def ensure_usable(self) -> None:
        if self._identity.deleted:
            raise InvalidStateError(f"{self.describe()} was deleted")

    def prepare_save(self) -> tuple[FieldSnapshot, SaveRequest]:
        """Snapshot the fields and encode the request. Raises on unsaved references."""
        with self._lock:
            snapshot = self._store.snapshot()
            object_id = self._identity.object_id
            acl = self._identity.acl
        request = SaveRequest(
            class_name=self.class_name,
            object_id=object_id,
            data={k: encode_value(v) for k, v in snapshot.fields.items()},
            deleted_keys=list(snapshot.deleted_keys),
            acl=acl,
        )
        return snapshot, request

    def apply_save(self, snapshot: FieldSnapshot, result: SaveResult) -> None:
        with self._lock:
            self._identity.apply_save_result(result.object_id, result.created_at, result.updated_at)
            self._store.commit(snapshot)

    def apply_fetch(self, result: FetchResult) -> None:
        data = {k: decode_value(v) for k, v in result.data.items() if k not in RESERVED_KEYS}
        with self._lock:
            self._identity.apply_fetch_result(result.created_at, result.updated_at, result.acl)
            self._store.replace(data)

    def mark_deleted(self) -> None:
        with self._lock:
            self._identity.deleted = True


def _default_dispatcher() -> OperationDispatcher:
    from .client import default_dispatcher

    return default_dispatcher()
