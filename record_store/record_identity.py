"""Identity and metadata of a record: class name, object id, timestamps, ACL."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .errors import InvalidStateError, ValidationError
from .record_pointer import RecordPointer

# A class name is any alphanumeric string that begins with a letter.
_CLASS_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")


def validate_class_name(class_name: str) -> str:
    if not isinstance(class_name, str) or not _CLASS_NAME_RE.match(class_name):
        raise ValidationError(f"Invalid class name: {class_name!r}")
    return class_name


@dataclass
class RecordIdentity:
    """Who a record is on the backend.

    ``object_id`` and ``created_at`` go from absent to present exactly once,
    on the first successful save. ``updated_at`` follows every save.
    """

    class_name: str
    object_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    acl: Any = None
    deleted: bool = field(default=False, repr=False)

    def __post_init__(self):
        validate_class_name(self.class_name)

    @property
    def is_saved(self) -> bool:
        return self.object_id is not None

    @property
    def pointer(self) -> RecordPointer:
        """Pointer to this record; raises NotSavedError before the first save."""
        return RecordPointer.from_record(self)

    def apply_save_result(
        self,
        object_id: str,
        created_at: datetime | None,
        updated_at: datetime | None,
    ) -> None:
        """Merge a successful save response into this identity."""
        if not object_id:
            raise InvalidStateError("Save result carried no object id")
        if self.object_id is not None and self.object_id != object_id:
            raise InvalidStateError(
                f"{self.class_name} record {self.object_id} cannot become {object_id}"
            )
        if self.object_id is None:
            self.object_id = object_id
            self.created_at = created_at or updated_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or self.updated_at or self.created_at

    def apply_fetch_result(
        self,
        created_at: datetime | None,
        updated_at: datetime | None,
        acl: Any,
    ) -> None:
        if created_at is not None:
            self.created_at = created_at
        elif self.created_at is None and self.object_id is not None:
            self.created_at = updated_at or datetime.now(timezone.utc)
        self.updated_at = updated_at
        self.acl = acl
