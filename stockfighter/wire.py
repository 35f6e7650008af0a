"""
Stockfighter Client - Wire Field Access.

Read typed fields out of decoded JSON objects.

Field names are matched case-insensitively (the service emits
``ok`` on most responses and ``Ok`` on some frames). Absent
fields take zero values: 0, "", [], None for timestamps.
Present fields of the wrong type raise ValueError.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional


_RFC3339 = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC3339 timestamp.

    Fractional seconds beyond microseconds are truncated.

    Raises:
        ValueError: If value is not RFC3339
    """
    match = _RFC3339.match(value)
    if not match:
        raise ValueError(f"Invalid timestamp: {value!r}")

    frac = (match.group("frac") or "0")[:6].ljust(6, "0")
    tz = match.group("tz")
    if tz == "Z":
        tz = "+00:00"

    return datetime.fromisoformat(f"{match.group('base')}.{frac}{tz}")


def format_timestamp(value: datetime) -> str:
    """Format a datetime as RFC3339 (UTC as ``Z``)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    text = value.isoformat(timespec="microseconds")
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


class WireObject:
    """Case-insensitive, typed view of one JSON object."""

    def __init__(self, data: Mapping[str, Any]):
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected JSON object, got {type(data).__name__}")
        self._data: Dict[str, Any] = {key.lower(): value for key, value in data.items()}

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key.lower())
        return default if value is None else value

    def integer(self, key: str) -> int:
        value = self.get(key, 0)
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Field {key!r} is not a number: {value!r}")
        if isinstance(value, float):
            if not value.is_integer():
                raise ValueError(f"Field {key!r} is not an integer: {value!r}")
            value = int(value)
        return value

    def text(self, key: str) -> str:
        value = self.get(key, "")
        if not isinstance(value, str):
            raise ValueError(f"Field {key!r} is not a string: {value!r}")
        return value

    def flag(self, key: str) -> bool:
        value = self.get(key, False)
        if not isinstance(value, bool):
            raise ValueError(f"Field {key!r} is not a boolean: {value!r}")
        return value

    def timestamp(self, key: str) -> Optional[datetime]:
        value = self.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError(f"Field {key!r} is not a timestamp: {value!r}")
        return parse_timestamp(value)

    def items(self, key: str) -> List[Any]:
        value = self.get(key, [])
        if not isinstance(value, list):
            raise ValueError(f"Field {key!r} is not a list: {value!r}")
        return value

    def objects(self, key: str) -> List["WireObject"]:
        return [WireObject(item) for item in self.items(key)]

    def child(self, key: str) -> "WireObject":
        return WireObject(self.get(key, {}))

    def mapping(self, key: str) -> Dict[str, Any]:
        value = self.get(key, {})
        if not isinstance(value, Mapping):
            raise ValueError(f"Field {key!r} is not an object: {value!r}")
        return dict(value)
