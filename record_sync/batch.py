"""Batch save: many records as one logical operation.

Records are saved in dependency layers. A record that references an unsaved
record lands in a later layer than its target, so the pointer can be encoded
with a real object id. Each layer is one ``batch_create_or_update`` call.

Failures are partial: a record that fails, and everything depending on it,
stays dirty; independent records still save. The caller gets one
``BatchSaveError`` listing every failure in batch order.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import TYPE_CHECKING

from record_store import (
    BatchSaveError,
    CircularReferenceError,
    InvalidStateError,
    OperationKind,
    RecordSyncError,
    ServerError,
    SyncConfig,
)
from record_store.log import sync_log_event

from .dispatcher import (
    ErrorRef,
    Operation,
    OperationDispatcher,
    OperationListener,
    Outcome,
    ResultCallback,
)
from .remote import RemoteStore

if TYPE_CHECKING:
    from .record import Record


def _index_of(records: list[Record], record: Record) -> int:
    for i, r in enumerate(records):
        if r is record:
            return i
    return -1


def collect_records(records: list[Record]) -> list[Record]:
    """The given records plus every unsaved record they reach, deduplicated, in discovery order."""
    collected: list[Record] = []
    stack = list(reversed(records))
    while stack:
        record = stack.pop()
        if _index_of(collected, record) >= 0:
            continue
        collected.append(record)
        pending = [r for r in record.referenced_records() if r.object_id is None]
        stack.extend(reversed(pending))
    return collected


def unsaved_dependencies(record: Record) -> list[Record]:
    """Unsaved records referenced by ``record``, including ``record`` itself if it points at itself."""
    return [r for r in record.referenced_records() if r.object_id is None]


def dependency_layers(records: list[Record]) -> list[list[Record]]:
    """Topological layering over references to unsaved records.

    Layer 0 holds records with no unsaved dependencies; each later layer
    depends only on earlier ones. Input order is kept inside a layer.
    Raises CircularReferenceError if unsaved records reference each other
    in a cycle.
    """
    remaining = list(records)
    placed: list[Record] = []
    layers: list[list[Record]] = []
    while remaining:
        layer = [
            r
            for r in remaining
            if all(
                _index_of(placed, dep) >= 0 or _index_of(records, dep) < 0
                for dep in unsaved_dependencies(r)
            )
        ]
        if not layer:
            names = ", ".join(r.describe() for r in remaining)
            raise CircularReferenceError(f"Unsaved records reference each other: {names}")
        layers.append(layer)
        placed.extend(layer)
        remaining = [r for r in remaining if _index_of(layer, r) < 0]
    return layers


class BatchSaveOperation(Operation):
    kind = OperationKind.SAVE_ALL

    def __init__(self, records: list[Record]) -> None:
        super().__init__(collect_records(records))

    def check(self) -> None:
        for record in self.records:
            record.ensure_usable()
        dependency_layers(self.records)

    def execute(self, remote: RemoteStore, config: SyncConfig) -> bool:
        failed: list[tuple[Record, Exception]] = []

        def has_failed(record: Record) -> bool:
            return any(r is record for r, _ in failed)

        for depth, layer in enumerate(dependency_layers(self.records)):
            pending = []
            requests = []
            for record in layer:
                blocker = next((d for d in unsaved_dependencies(record) if has_failed(d)), None)
                if blocker is not None:
                    failed.append(
                        (record, InvalidStateError(f"depends on unsaved {blocker.describe()}"))
                    )
                    continue
                try:
                    record.ensure_usable()
                    if config.skip_clean_saves and not record.is_dirty:
                        continue
                    snapshot, request = record.prepare_save()
                except RecordSyncError as e:
                    failed.append((record, e))
                    continue
                pending.append((record, snapshot))
                requests.append(request)
            if not requests:
                continue

            sync_log_event(self.kind, f"layer {depth} sending", self.describe(), f"{len(requests)} record(s)")
            try:
                results = remote.batch_create_or_update(requests)
                if len(results) != len(requests):
                    raise ServerError(
                        f"Batch returned {len(results)} results for {len(requests)} requests"
                    )
            except RecordSyncError as e:
                failed.extend((record, e) for record, _ in pending)
                continue

            for (record, snapshot), result in zip(pending, results):
                if isinstance(result, Exception):
                    failed.append((record, result))
                    continue
                try:
                    record.apply_save(snapshot, result)
                except RecordSyncError as e:
                    failed.append((record, e))

        if failed:
            failed.sort(key=lambda item: _index_of(self.records, item[0]))
            raise BatchSaveError(failed)
        return True


class BatchCoordinator:
    """Batch saves through a dispatcher, in the same four calling conventions."""

    def __init__(self, dispatcher: OperationDispatcher) -> None:
        self.dispatcher = dispatcher

    def save_all(self, records: list[Record], error_out: ErrorRef | None = None) -> bool:
        return self.dispatcher.run_blocking(BatchSaveOperation(records), error_out)

    def save_all_in_background(
        self, records: list[Record], listener: OperationListener | None = None
    ) -> Future[Outcome]:
        return self.dispatcher.run_with_listener(BatchSaveOperation(records), listener)

    def save_all_in_background_with_callback(
        self, records: list[Record], callback: ResultCallback
    ) -> Future[Outcome]:
        return self.dispatcher.run_with_callback(BatchSaveOperation(records), callback)
