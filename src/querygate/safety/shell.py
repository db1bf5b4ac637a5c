"""
Extractor for the small subset of mongo-shell syntax the document store accepts.

Recognized forms::

    db.<collection>.find(<filter>, <projection>).limit(<n>)
    db.getCollection("<collection>").find(...)
    db.<collection>.aggregate([<stage>, ...])

Arguments are located with a delimiter-depth scanner rather than a grammar.
Known limitation: brackets and commas inside string literals are not
special-cased, so a filter such as ``{"name": "a,b"}`` splits incorrectly
when it is followed by a projection.
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from bson import json_util
from bson.errors import BSONError

from querygate.common.logger import get_logger
from querygate.safety.limits import DEFAULT_LIMIT, MAX_LIMIT
from querygate.safety.operators import filter_document, filter_pipeline
from querygate_adapter_sdk import DocumentQuery

logger = get_logger("shell_extractor")

OPENING = "({["
CLOSING = ")}]"

_GET_COLLECTION = re.compile(r"""getCollection\(\s*(["'])(?P<name>.+?)\1\s*\)""")
_DB_PATH = re.compile(r"\bdb\.(?P<name>[^.(\s]+)")
_LIMIT_CALL = re.compile(r"\.limit\(\s*(?P<n>-?\d+)\s*\)")


def find_close_bracket(text: str, start: int) -> Optional[int]:
    """Index of the delimiter closing the span that begins at ``start``.

    ``start`` is the first character after an opening delimiter, so the
    scan begins at depth one. Returns None when the span never closes.
    """
    depth = 1
    for position in range(start, len(text)):
        char = text[position]
        if char in OPENING:
            depth += 1
        elif char in CLOSING:
            depth -= 1
            if depth == 0:
                return position
    return None


def split_top_level(text: str) -> List[str]:
    """Splits on commas that are not nested inside any delimiter."""
    parts = []
    depth = 0
    current = []
    for char in text:
        if char in OPENING:
            depth += 1
        elif char in CLOSING:
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [part.strip() for part in parts]


def _coerce_scalar(raw: str) -> Any:
    value = raw.strip()
    if value == "1":
        return 1
    if value == "0":
        return 0
    if value == "true":
        return True
    if value == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value.strip("\"'")


def _parse_json_document(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json_util.loads(text)
    except (ValueError, TypeError, BSONError):
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_filter(text: str) -> Optional[Dict[str, Any]]:
    """Parses a filter argument; None when empty, ``{}`` or unparseable."""
    text = text.strip()
    if not text or text == "{}":
        return None
    document = _parse_json_document(text)
    if document is None:
        logger.warning(f"Ignoring unparseable filter: {text}")
    return document


def extract_projection(text: str) -> Optional[Dict[str, Any]]:
    """Parses a projection, accepting JSON or the ``{ name: 1, _id: 0 }`` shorthand.

    Returns an empty document for ``{}`` and None for empty text.
    """
    text = text.strip()
    if not text:
        return None

    document = _parse_json_document(text)
    if document is not None:
        return document

    inner = text
    if inner.startswith("{"):
        inner = inner[1:]
    if inner.endswith("}"):
        inner = inner[:-1]

    projection: Dict[str, Any] = {}
    for pair in split_top_level(inner):
        key, separator, value = pair.partition(":")
        if not separator:
            continue
        key = key.strip().strip("\"'")
        if key:
            projection[key] = _coerce_scalar(value)
    return projection


def _collection_name(command: str) -> str:
    match = _GET_COLLECTION.search(command)
    if match:
        return match.group("name")
    match = _DB_PATH.search(command)
    if match:
        return match.group("name")
    return command.strip()


def _call_arguments(command: str, method: str) -> Optional[Tuple[str, int]]:
    """Returns the raw argument text of ``.method(...)`` and the index after it."""
    marker = f".{method}("
    position = command.find(marker)
    if position == -1:
        return None
    start = position + len(marker)
    end = find_close_bracket(command, start)
    if end is None:
        logger.warning(f"Unbalanced arguments in .{method}() call")
        return command[start:], len(command)
    return command[start:end], end + 1


def _chained_limit(rest: str) -> int:
    match = _LIMIT_CALL.search(rest)
    if not match:
        return DEFAULT_LIMIT
    requested = int(match.group("n"))
    if requested <= 0:
        return DEFAULT_LIMIT
    return min(requested, MAX_LIMIT)


def _parse_pipeline(text: str) -> List[Dict[str, Any]]:
    try:
        parsed = json_util.loads(text) if text.strip() else []
    except (ValueError, TypeError, BSONError):
        logger.warning(f"Ignoring unparseable aggregation pipeline: {text}")
        return []
    if not isinstance(parsed, list) or not all(isinstance(stage, dict) for stage in parsed):
        logger.warning("Aggregation pipeline must be an array of stage documents")
        return []
    return parsed


def extract(command: str) -> DocumentQuery:
    """Reduces a shell-style command to a collection plus filtered arguments.

    Filter and projection are absent when missing, empty or unparseable.
    Dangerous operators are stripped from both, and from every pipeline
    stage, before the query is returned.
    """
    collection = _collection_name(command)

    aggregate = _call_arguments(command, "aggregate")
    if aggregate is not None:
        raw_pipeline, _ = aggregate
        pipeline = filter_pipeline(_parse_pipeline(raw_pipeline))
        limits = [stage["$limit"] for stage in pipeline if "$limit" in stage]
        return DocumentQuery(
            collection=collection,
            method="aggregate",
            pipeline=pipeline,
            limit=min(limits) if limits else DEFAULT_LIMIT,
        )

    query_filter = None
    projection = None
    limit = DEFAULT_LIMIT

    find = _call_arguments(command, "find")
    if find is not None:
        raw_arguments, after = find
        arguments = split_top_level(raw_arguments)
        query_filter = extract_filter(arguments[0])
        if len(arguments) > 1:
            projection = extract_projection(arguments[1]) or None
        limit = _chained_limit(command[after:])

    return DocumentQuery(
        collection=collection,
        method="find",
        filter=filter_document(query_filter) if query_filter else None,
        projection=filter_document(projection) if projection else None,
        limit=limit,
    )
