"""Local record state: fields, identity, dirty tracking and wire encoding."""

from .dirty_tracker import DirtyTracker
from .errors import (
    BatchSaveError,
    CircularReferenceError,
    InvalidStateError,
    NetworkError,
    NotSavedError,
    RecordSyncError,
    ServerError,
    ValidationError,
)
from .field_store import FieldSnapshot, FieldStore
from .record_identity import RecordIdentity, validate_class_name
from .record_pointer import RecordPointer
from .sync_config import SyncConfig
from .sync_protocol import OperationKind, OperationState
