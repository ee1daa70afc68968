"""Wire encoding for field values.

Records and pointers travel as ``{"__type": "Pointer", ...}``, datetimes as
``{"__type": "Date", "iso": ...}`` and removed keys as ``{"__op": "Delete"}``.
Everything else must already be JSON-compatible.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterator

from .errors import InvalidStateError
from .record_pointer import RecordPointer, is_pointer_dict, is_record_like

DATE_TYPE = "Date"
DELETE_OP = {"__op": "Delete"}


def format_date(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    iso = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z")


def parse_date(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def encode_value(value: Any) -> Any:
    """Convert a field value to its JSON-compatible wire form."""
    if isinstance(value, RecordPointer):
        return value.to_dict()
    if is_record_like(value):
        if not value.object_id:
            raise InvalidStateError(
                f"Field references an unsaved {value.class_name} record; save it first or use save_all"
            )
        return RecordPointer.from_record(value).to_dict()
    if isinstance(value, datetime):
        return {"__type": DATE_TYPE, "iso": format_date(value)}
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    """Convert a wire value back to its local form. Pointers stay unresolved."""
    if is_pointer_dict(value):
        return RecordPointer.from_dict(value)
    if isinstance(value, dict):
        if value.get("__type") == DATE_TYPE:
            return parse_date(value["iso"])
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def encode_fields(fields: dict[str, Any], deleted_keys: list[str] | tuple[str, ...] = ()) -> dict[str, Any]:
    """Encode a field mapping, adding a delete directive per removed key."""
    body = {k: encode_value(v) for k, v in fields.items()}
    for key in deleted_keys:
        body[key] = dict(DELETE_OP)
    return body


def iter_records(value: Any) -> Iterator[Any]:
    """Yield every live record nested anywhere inside ``value``."""
    if is_record_like(value):
        yield value
    elif isinstance(value, dict):
        for v in value.values():
            yield from iter_records(v)
    elif isinstance(value, (list, tuple)):
        for v in value:
            yield from iter_records(v)
