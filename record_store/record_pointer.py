"""Lightweight reference to a saved record: class name and object id."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import NotSavedError

POINTER_TYPE = "Pointer"


@dataclass(frozen=True)
class RecordPointer:
    """Flat reference to a record. Never embeds the full record data."""

    class_name: str
    object_id: str

    def to_dict(self) -> dict:
        """Serialize to the wire pointer shape."""
        return {"__type": POINTER_TYPE, "className": self.class_name, "objectId": self.object_id}

    @classmethod
    def from_dict(cls, data: dict) -> RecordPointer:
        """Deserialize from a wire pointer dict. Extra keys are ignored."""
        return cls(class_name=data["className"], object_id=data["objectId"])

    @classmethod
    def from_record(cls, record: object) -> RecordPointer:
        """Build a pointer from any record with class_name/object_id attrs (duck-typed to avoid circular imports)."""
        object_id = record.object_id  # type: ignore[attr-defined]
        if not object_id:
            raise NotSavedError(
                f"{record.class_name} record has no object id yet"  # type: ignore[attr-defined]
            )
        return cls(class_name=record.class_name, object_id=object_id)  # type: ignore[attr-defined]


def is_pointer_dict(value: object) -> bool:
    return isinstance(value, dict) and value.get("__type") == POINTER_TYPE


def is_record_like(value: object) -> bool:
    """True for live record objects (anything exposing class_name + object_id + is_dirty)."""
    return (
        not isinstance(value, RecordPointer)
        and hasattr(value, "class_name")
        and hasattr(value, "object_id")
        and hasattr(value, "is_dirty")
    )
