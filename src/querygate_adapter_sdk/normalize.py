"""
Value normalization shared by every adapter.

Backends hand back native values (Decimal, datetime, bytes, driver-specific
objects). Everything leaving an adapter is reduced to a GenericValue: None,
bool, int, float or str. Three strategies exist:

- typed decode, when the driver reports a column type name;
- a fallback chain (string, integer, float, null) when it does not;
- document flattening for schemaless records.
"""
import datetime
import json
import uuid
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import ValueDecodeError
from .models import GenericValue

Decoder = Callable[[Any], GenericValue]


def decode_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueDecodeError("binary value is not valid UTF-8") from exc
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return str(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    raise ValueDecodeError(f"cannot decode {type(value).__name__} as string")


def decode_integer(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    raise ValueDecodeError(f"cannot decode {type(value).__name__} as integer")


def decode_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueDecodeError("cannot decode bool as float")
    if isinstance(value, (float, int, Decimal)):
        return float(value)
    raise ValueDecodeError(f"cannot decode {type(value).__name__} as float")


def decode_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueDecodeError(f"cannot decode {type(value).__name__} as boolean")


FALLBACK_ORDER: Tuple[Decoder, ...] = (decode_string, decode_integer, decode_float)

TYPED_DECODERS: Dict[str, Decoder] = {
    "BOOL": decode_boolean,
    "BOOLEAN": decode_boolean,
    "INT2": decode_integer,
    "INT4": decode_integer,
    "INT8": decode_integer,
    "INTEGER": decode_integer,
    "FLOAT4": decode_float,
    "FLOAT8": decode_float,
    "NUMERIC": decode_float,
    "REAL": decode_float,
    "VARCHAR": decode_string,
    "TEXT": decode_string,
    "CHAR": decode_string,
    "BPCHAR": decode_string,
}


def decode_with_fallback(value: Any) -> GenericValue:
    """Tries string, then integer, then float; null if none accepts the value."""
    if value is None:
        return None
    for decoder in FALLBACK_ORDER:
        try:
            return decoder(value)
        except ValueDecodeError:
            continue
    return None


def decode_typed(
    value: Any,
    type_name: Optional[str],
    decoders: Mapping[str, Decoder] = TYPED_DECODERS,
) -> GenericValue:
    """Decodes by declared column type; unknown types decode as string.

    A value the selected decoder rejects becomes null.
    """
    if value is None:
        return None
    decoder = decoders.get((type_name or "").upper(), decode_string)
    try:
        return decoder(value)
    except ValueDecodeError:
        return None


def to_generic(value: Any) -> GenericValue:
    """Best-effort conversion used for document fields."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    try:
        return decode_string(value)
    except ValueDecodeError:
        return str(value)


def normalize_documents(
    documents: Iterable[Mapping[str, Any]],
    cell: Callable[[Any], GenericValue] = to_generic,
) -> Tuple[List[str], List[List[GenericValue]]]:
    """Flattens schemaless documents into sorted columns and aligned rows.

    The column list is the sorted union of every key seen; a document that
    lacks a column gets null in that cell.
    """
    documents = list(documents)
    keys = set()
    for document in documents:
        keys.update(document.keys())
    columns = sorted(keys)

    rows = []
    for document in documents:
        rows.append([cell(document[c]) if c in document else None for c in columns])
    return columns, rows
