"""Remote store contract and its wire models.

The sync layer only talks to the backend through ``RemoteStore``. Field
payloads are already wire-encoded (see ``record_store.codec``) when they
reach an implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from record_store import RecordSyncError


class SaveRequest(BaseModel):
    """One create-or-update call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    class_name: str
    object_id: str | None = Field(default=None)
    data: dict[str, Any] = Field(default_factory=dict)
    deleted_keys: list[str] = Field(default_factory=list)
    acl: Any = Field(default=None)


class SaveResult(BaseModel):
    object_id: str
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)


class FetchResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)
    acl: Any = Field(default=None)


class RemoteStore(ABC):
    """Backend collaborator. Implementations raise ``RecordSyncError`` subclasses."""

    @abstractmethod
    def create_or_update(
        self,
        class_name: str,
        object_id: str | None,
        data: dict[str, Any],
        deleted_keys: list[str],
        acl: Any,
    ) -> SaveResult: ...

    @abstractmethod
    def delete(self, class_name: str, object_id: str) -> None: ...

    @abstractmethod
    def fetch(self, class_name: str, object_id: str) -> FetchResult: ...

    def batch_create_or_update(
        self, requests: list[SaveRequest]
    ) -> list[SaveResult | RecordSyncError]:
        """Save several records; results line up with ``requests``.

        The default sends one call per request and reports per-item errors
        in place. Backends with a native batch endpoint override this.
        """
        results: list[SaveResult | RecordSyncError] = []
        for req in requests:
            try:
                results.append(
                    self.create_or_update(
                        req.class_name, req.object_id, req.data, req.deleted_keys, req.acl
                    )
                )
            except RecordSyncError as e:
                results.append(e)
        return results
