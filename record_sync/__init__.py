"""Remote operations for records: dispatch, batching and backends."""

from .batch import BatchCoordinator, BatchSaveOperation, dependency_layers
from .client import configure, default_dispatcher, reset
from .dispatcher import ErrorRef, Operation, OperationDispatcher, OperationListener, Outcome
from .gate import RecordGate
from .http_remote import HttpRemoteStore
from .memory_remote import MemoryRemoteStore
from .operations import DeleteOperation, RefreshOperation, SaveOperation
from .record import Record
from .remote import FetchResult, RemoteStore, SaveRequest, SaveResult
