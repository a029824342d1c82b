"""
Dynamic Value Access

Server responses arrive as loosely typed values decoded from XML-RPC
(dicts, lists, strings, booleans, numbers, datetimes, bytes, None).
This module classifies them into a closed set of kinds and provides two
families of accessors:

- ``expect_*`` helpers, which raise ``ParsingError`` when the value has the
  wrong shape, so every call site must handle that case;
- ``to_*`` converters, which are lenient and fall back to a default, for
  nested fields where a bad value must not sink the whole record.
"""

import xmlrpc.client
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from utils.exceptions import ParsingError


class ValueKind(Enum):
    """Kinds of values a server payload can hold."""
    MAP = "map"
    LIST = "list"
    STRING = "string"
    BOOL = "bool"
    NUMBER = "number"
    DATETIME = "datetime"
    BYTES = "bytes"
    NULL = "null"


def kind_of(value: Any) -> ValueKind:
    """
    Classify a decoded payload value.

    Args:
        value: Any value produced by the XML-RPC codec or a test.

    Returns:
        ValueKind: The kind of the value.

    Raises:
        ParsingError: If the value is of a type no server can produce.
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, dict):
        return ValueKind.MAP
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    if isinstance(value, (datetime, xmlrpc.client.DateTime)):
        return ValueKind.DATETIME
    if isinstance(value, (bytes, bytearray, xmlrpc.client.Binary)):
        return ValueKind.BYTES
    raise ParsingError(f"Unsupported value type in server response: {type(value).__name__}")


def _expect(value: Any, kind: ValueKind, what: str) -> Any:
    try:
        actual = kind_of(value)
    except ParsingError:
        actual = None
    if actual is not kind:
        got = actual.value if actual else type(value).__name__
        raise ParsingError(f"Could not read {what}, expected {kind.value} but got {got}.")
    return value


def expect_map(value: Any, what: str = "the result") -> Dict[str, Any]:
    """Return ``value`` if it is a map, else raise ``ParsingError``."""
    return _expect(value, ValueKind.MAP, what)


def expect_list(value: Any, what: str = "the result") -> List[Any]:
    """Return ``value`` as a list if it is one, else raise ``ParsingError``."""
    return list(_expect(value, ValueKind.LIST, what))


def expect_string(value: Any, what: str = "the result") -> str:
    """Return ``value`` if it is a string, else raise ``ParsingError``."""
    return _expect(value, ValueKind.STRING, what)


def expect_bool(value: Any, what: str = "the result") -> bool:
    """Return ``value`` if it is a boolean, else raise ``ParsingError``."""
    return _expect(value, ValueKind.BOOL, what)


def first_value(result: Any, what: str = "the result") -> Any:
    """
    Return the first element of a transport result list.

    The RPC transport delivers the decoded response parameters as a list;
    servers answer with exactly one value.
    """
    values = expect_list(result, what)
    if not values:
        raise ParsingError(f"Could not read {what}, the server sent an empty response.")
    return values[0]


def to_string(value: Any, default: str = "") -> str:
    """Convert scalars to text; maps, lists and None give ``default``."""
    try:
        kind = kind_of(value)
    except ParsingError:
        return default
    if kind is ValueKind.STRING:
        return value
    if kind is ValueKind.NUMBER:
        return str(value)
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.BYTES:
        raw = value.data if isinstance(value, xmlrpc.client.Binary) else bytes(value)
        return raw.decode("utf-8", errors="replace")
    if kind is ValueKind.DATETIME:
        dt = to_utc_datetime(value)
        return dt.isoformat() if dt else default
    return default


def to_bool(value: Any, default: bool = False) -> bool:
    """Convert booleans, 0/1 numbers and "0"/"1"/"true"/"false" strings."""
    try:
        kind = kind_of(value)
    except ParsingError:
        return default
    if kind is ValueKind.BOOL:
        return value
    if kind is ValueKind.NUMBER:
        return value != 0
    if kind is ValueKind.STRING:
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "open"):
            return True
        if lowered in ("0", "false", "no", "closed", ""):
            return False
    return default


def to_int(value: Any, default: int = 0) -> int:
    """Convert numbers and numeric strings to int."""
    try:
        kind = kind_of(value)
    except ParsingError:
        return default
    if kind is ValueKind.NUMBER:
        return int(value)
    if kind is ValueKind.STRING:
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def to_string_list(value: Any) -> List[str]:
    """Convert a list of scalars to a list of strings; anything else gives []."""
    try:
        kind = kind_of(value)
    except ParsingError:
        return []
    if kind is not ValueKind.LIST:
        return []
    items = []
    for item in value:
        text = to_string(item)
        if text:
            items.append(text)
    return items


_DATE_FORMATS = (
    "%Y%m%dT%H:%M:%S",
    "%Y%m%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
)


def to_utc_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a wire date to an aware UTC datetime.

    Naive values are taken as UTC. Returns None for missing or invalid
    values so callers can leave existing fields untouched.
    """
    if value is None:
        return None
    if isinstance(value, xmlrpc.client.DateTime):
        value = value.value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            parsed = None
            for fmt in _DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is not None:
            return to_utc_datetime(parsed)
    return None
