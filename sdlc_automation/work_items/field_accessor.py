"""
Typed access to the untyped field bag of a work item.

``get_field`` reports whether a field was found, absent or of an unusable
type. ``get_string`` and ``get_datetime`` collapse that to a value or None
so a single bad field never fails a projection.
"""

import enum
import logging
from datetime import datetime
from typing import Any, NamedTuple, Optional

from sdlc_automation.work_items.models import RawWorkItem

logger = logging.getLogger(__name__)


class FieldStatus(enum.Enum):
    FOUND = "found"
    ABSENT = "absent"
    TYPE_MISMATCH = "type_mismatch"


class FieldResult(NamedTuple):
    status: FieldStatus
    value: Any = None

    @property
    def found(self) -> bool:
        return self.status is FieldStatus.FOUND


_ABSENT = FieldResult(FieldStatus.ABSENT)
_MISMATCH = FieldResult(FieldStatus.TYPE_MISMATCH)


def _to_string(value: Any) -> FieldResult:
    if isinstance(value, str):
        return FieldResult(FieldStatus.FOUND, value)
    if isinstance(value, (bool, int, float)):
        return FieldResult(FieldStatus.FOUND, str(value))
    if isinstance(value, dict):
        # identity references, e.g. System.AssignedTo
        name = value.get("displayName") or value.get("uniqueName")
        if isinstance(name, str):
            return FieldResult(FieldStatus.FOUND, name)
    name = getattr(value, "display_name", None)
    if isinstance(name, str):
        return FieldResult(FieldStatus.FOUND, name)
    return _MISMATCH


def _to_datetime(value: Any) -> FieldResult:
    if isinstance(value, datetime):
        return FieldResult(FieldStatus.FOUND, value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return FieldResult(FieldStatus.FOUND, datetime.fromisoformat(text))
        except ValueError:
            return _MISMATCH
    return _MISMATCH


_CONVERTERS = {
    str: _to_string,
    datetime: _to_datetime,
}


def get_field(work_item: RawWorkItem, field_name: str, kind: type = str) -> FieldResult:
    """
    Look up a field and convert it to ``kind`` (``str`` or ``datetime``).

    A missing or None field is ABSENT; a value that cannot be converted is
    TYPE_MISMATCH. Never raises for bad data.
    """
    converter = _CONVERTERS.get(kind)
    if converter is None:
        raise TypeError(f"Unsupported field type: {kind!r}")

    value = work_item.fields.get(field_name)
    if value is None:
        return _ABSENT

    result = converter(value)
    if result.status is FieldStatus.TYPE_MISMATCH:
        logger.debug(f"Field {field_name} on work item {work_item.id} is not a {kind.__name__}: {value!r}")
    return result


def parse_datetime(value: Any) -> Optional[datetime]:
    """Best-effort datetime conversion for values outside a field bag."""
    if value is None:
        return None
    return _to_datetime(value).value


def get_string(work_item: RawWorkItem, field_name: str) -> Optional[str]:
    return get_field(work_item, field_name, str).value


def get_datetime(work_item: RawWorkItem, field_name: str) -> Optional[datetime]:
    return get_field(work_item, field_name, datetime).value
