from .injection import check, detect_injection
from .limits import DEFAULT_LIMIT, MAX_LIMIT, apply_limit, prepare_sql
from .operators import DANGEROUS_OPERATORS, contains_dangerous, filter_document, filter_pipeline
from .shell import extract, extract_filter, extract_projection

__all__ = [
    "check",
    "detect_injection",
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "apply_limit",
    "prepare_sql",
    "DANGEROUS_OPERATORS",
    "contains_dangerous",
    "filter_document",
    "filter_pipeline",
    "extract",
    "extract_filter",
    "extract_projection",
]
