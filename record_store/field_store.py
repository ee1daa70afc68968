"""In-memory field store with removal and dirty tracking. No I/O."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from .codec import iter_records
from .dirty_tracker import DirtyTracker
from .errors import InvalidStateError, ValidationError
from .record_pointer import RecordPointer, is_record_like


@dataclass(frozen=True)
class FieldSnapshot:
    """Stable copy of the store taken when a save is dispatched."""

    fields: dict[str, Any]
    deleted_keys: tuple[str, ...]
    versions: dict[str, int] = field(default_factory=dict)


def _validate_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValidationError(f"Field key must be a non-empty string, got {key!r}")


def _is_reference(value: Any) -> bool:
    return isinstance(value, RecordPointer) or is_record_like(value)


class FieldStore:
    """Current field values, keys pending removal, and references.

    ``fields`` and ``pending_removals`` never share a key. Values that are
    records or pointers are mirrored into ``references`` under the same key.
    """

    def __init__(
        self,
        fields: dict[str, Any] | None = None,
        saved: bool = False,
        lock: threading.RLock | None = None,
    ) -> None:
        self._lock = lock or threading.RLock()
        self._fields: dict[str, Any] = {}
        self._references: dict[str, Any] = {}
        self._pending_removals: dict[str, None] = {}  # ordered set
        self.tracker = DirtyTracker(saved=saved)
        for key, value in (fields or {}).items():
            _validate_key(key)
            self._store(key, value)

    # -- Mutation --

    def set(self, key: str, value: Any) -> None:
        _validate_key(key)
        # Checked outside the lock: probing a live record takes its own lock.
        is_ref = _is_reference(value)
        with self._lock:
            self._store(key, value, is_ref)
            self._pending_removals.pop(key, None)
            self.tracker.touch(key)

    def remove(self, key: str) -> None:
        with self._lock:
            if key not in self._fields:
                return
            del self._fields[key]
            self._references.pop(key, None)
            self._pending_removals[key] = None
            self.tracker.touch(key)

    def _store(self, key: str, value: Any, is_ref: bool | None = None) -> None:
        self._fields[key] = value
        if is_ref is None:
            is_ref = _is_reference(value)
        if is_ref:
            self._references[key] = value
        else:
            self._references.pop(key, None)

    # -- Access --

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._fields.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._fields

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._fields)

    @property
    def fields(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._fields)

    @property
    def references(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._references)

    @property
    def pending_removals(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._pending_removals)

    @property
    def is_dirty(self) -> bool:
        with self._lock:
            return self.tracker.is_dirty

    def referenced_records(self) -> list[Any]:
        """Live records referenced anywhere in the field values, in field order."""
        with self._lock:
            values = list(self._fields.values())
        found: list[Any] = []
        for value in values:
            for record in iter_records(value):
                if not any(record is seen for seen in found):
                    found.append(record)
        return found

    # -- Save / refresh support --

    def snapshot(self) -> FieldSnapshot:
        with self._lock:
            return FieldSnapshot(
                fields=dict(self._fields),
                deleted_keys=tuple(self._pending_removals),
                versions=self.tracker.snapshot(),
            )

    def commit(self, snapshot: FieldSnapshot) -> None:
        """Apply a successful save of ``snapshot``; later edits stay dirty."""
        with self._lock:
            for key in snapshot.deleted_keys:
                if key in self._pending_removals and self.tracker.is_unchanged(
                    key, snapshot.versions.get(key, -1)
                ):
                    del self._pending_removals[key]
            self.tracker.commit(snapshot.versions)
            self.check_invariants()

    def replace(self, fields: dict[str, Any]) -> None:
        """Overwrite everything with server state, discarding local edits."""
        with self._lock:
            self._fields.clear()
            self._references.clear()
            self._pending_removals.clear()
            for key, value in fields.items():
                self._store(key, value)
            self.tracker.reset(saved=True)

    def check_invariants(self) -> None:
        with self._lock:
            overlap = self._fields.keys() & self._pending_removals.keys()
            if overlap:
                raise InvalidStateError(f"Keys both present and pending removal: {sorted(overlap)}")
            stray = self._references.keys() - self._fields.keys()
            if stray:
                raise InvalidStateError(f"References without a field: {sorted(stray)}")
