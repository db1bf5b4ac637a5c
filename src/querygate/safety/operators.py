"""Denylist filtering for document-store filters, projections and pipelines."""
from typing import Any, Dict, List, Optional

from querygate.common.logger import get_logger
from querygate.safety.limits import DEFAULT_LIMIT, MAX_LIMIT

logger = get_logger("operator_filter")

# Keys of the form "$stage.$op" only apply beneath that stage.
DANGEROUS_OPERATORS = frozenset({
    "$where",
    "$eval",
    "$function",
    "$javascript",
    "$mapReduce",
    "$group.$push",
    "$group.$addToSet",
    "$out",
    "$merge",
    "$bucketAuto",
})


def _is_dangerous(key: str, stage: Optional[str]) -> bool:
    if key in DANGEROUS_OPERATORS:
        return True
    return stage is not None and f"{stage}.{key}" in DANGEROUS_OPERATORS


def _enclosing_stage(key: str, stage: Optional[str]) -> Optional[str]:
    if stage is None and key.startswith("$"):
        return key
    return stage


def contains_dangerous(value: Any, stage: Optional[str] = None) -> bool:
    """True when a denylisted operator key appears anywhere in the value."""
    if isinstance(value, dict):
        for key, nested in value.items():
            if _is_dangerous(key, stage):
                return True
            if contains_dangerous(nested, _enclosing_stage(key, stage)):
                return True
        return False
    if isinstance(value, list):
        return any(contains_dangerous(item, stage) for item in value)
    return False


def _strip(value: Any, stage: Optional[str]) -> Any:
    if isinstance(value, dict):
        return {
            key: _strip(nested, _enclosing_stage(key, stage))
            for key, nested in value.items()
            if not _is_dangerous(key, stage)
        }
    if isinstance(value, list):
        return [_strip(item, stage) for item in value]
    return value


def filter_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Returns a copy with every denylisted key removed at any depth.

    All other keys and nested structures are preserved unchanged.
    """
    if contains_dangerous(document):
        logger.warning(f"Stripped dangerous operators from document keys {sorted(document)}")
    return _strip(document, None)


def _coerce_limit(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_LIMIT
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return DEFAULT_LIMIT


def filter_pipeline(stages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Filters every stage and bounds the pipeline's row count.

    Existing ``$limit`` stages are coerced to integers and clamped to
    MAX_LIMIT; without one, ``{"$limit": DEFAULT_LIMIT}`` is appended.
    Stages left empty by filtering are dropped.
    """
    filtered = []
    for stage in stages:
        if contains_dangerous(stage):
            logger.warning(f"Stripped dangerous operators from pipeline stage {sorted(stage)}")
        cleaned = _strip(stage, None)
        if cleaned:
            filtered.append(cleaned)

    has_limit = False
    for stage in filtered:
        if "$limit" in stage:
            has_limit = True
            stage["$limit"] = min(_coerce_limit(stage["$limit"]), MAX_LIMIT)

    if not has_limit:
        filtered.append({"$limit": DEFAULT_LIMIT})
    return filtered
