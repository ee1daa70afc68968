"""Operation kinds and states shared by the dispatch layer."""

from enum import StrEnum


class OperationKind(StrEnum):
    SAVE = "save"
    DELETE = "delete"
    REFRESH = "refresh"
    SAVE_ALL = "save_all"


class OperationState(StrEnum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
