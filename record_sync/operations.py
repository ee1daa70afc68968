"""Single-record operations: save, delete, refresh."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from record_store import NotSavedError, OperationKind, SyncConfig
from record_store.log import sync_log_event

from .dispatcher import Operation
from .remote import RemoteStore

if TYPE_CHECKING:
    from .record import Record


class SaveOperation(Operation):
    kind = OperationKind.SAVE

    def __init__(self, record: Record) -> None:
        super().__init__([record])
        self.record = record

    def check(self) -> None:
        self.record.ensure_usable()

    def execute(self, remote: RemoteStore, config: SyncConfig) -> bool:
        record = self.record
        record.ensure_usable()
        if config.skip_clean_saves and not record.is_dirty:
            sync_log_event(self.kind, "skipped", record.describe(), "nothing to send")
            return True
        snapshot, request = record.prepare_save()
        result = remote.create_or_update(
            request.class_name, request.object_id, request.data, request.deleted_keys, request.acl
        )
        record.apply_save(snapshot, result)
        return True


class DeleteOperation(Operation):
    kind = OperationKind.DELETE

    def __init__(self, record: Record) -> None:
        super().__init__([record])
        self.record = record

    def check(self) -> None:
        self.record.ensure_usable()
        if self.record.object_id is None:
            raise NotSavedError(f"Cannot delete {self.record.class_name}: never saved")

    def execute(self, remote: RemoteStore, config: SyncConfig) -> bool:
        self.check()
        remote.delete(self.record.class_name, self.record.object_id)
        self.record.mark_deleted()
        return True


class RefreshOperation(Operation):
    """Replace local state with the server copy. Pending local edits are lost."""

    kind = OperationKind.REFRESH
    failure_result = None

    def __init__(self, record: Record) -> None:
        super().__init__([record])
        self.record = record

    def check(self) -> None:
        self.record.ensure_usable()
        if self.record.object_id is None:
            raise NotSavedError(f"Cannot refresh {self.record.class_name}: never saved")

    def execute(self, remote: RemoteStore, config: SyncConfig) -> Any:
        self.check()
        result = remote.fetch(self.record.class_name, self.record.object_id)
        self.record.apply_fetch(result)
        return self.record
