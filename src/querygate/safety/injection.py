"""Heuristic injection guard applied to raw query text before execution.

This is defense in depth, not a security boundary: it rejects well-known
attack shapes and lets everything else through.
"""
import re
from typing import Optional, Tuple

from querygate.common.errors import InjectionDetected
from querygate.common.logger import get_logger

logger = get_logger("injection_guard")

# Evaluated in order against the lower-cased text; first match wins.
INJECTION_RULES: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"(?:;|--|\||\s)union\s+select"), "UNION SELECT injection attempt"),
    (re.compile(r"drop\s+table\s+"), "DROP TABLE statement"),
    (re.compile(r"alter\s+table\s+"), "ALTER TABLE statement"),
    (re.compile(r"(?:create|drop)\s+database"), "CREATE/DROP DATABASE statement"),
    (re.compile(r";\s*\w+"), "multiple statements"),
    (re.compile(r"exec\s*\(|sp_executesql|xp_cmdshell"), "dangerous function call"),
    (re.compile(r"(?:\s|^)(?:--|#|/\*)"), "SQL comment sequence"),
)

SUSPICIOUS_FRAGMENTS: Tuple[str, ...] = (
    "' or ",
    " or '",
    "'--",
    "' /*",
    "*/ '",
    "'= '",
    "'like '",
    "1=1",
    "' union ",
    "' and ",
    " and '",
    ") or (",
    "' or ''='",
    "' or 1=1",
    ") or 1=1--",
)


def detect_injection(query_text: str) -> Optional[str]:
    """Returns the reason the text looks like an injection, or None."""
    lowered = query_text.lower()

    for pattern, reason in INJECTION_RULES:
        if pattern.search(lowered):
            return reason

    for fragment in SUSPICIOUS_FRAGMENTS:
        if fragment in lowered:
            return f"suspicious character sequence {fragment.strip()!r}"

    return None


def check(query_text: str) -> None:
    """Raises InjectionDetected when the text matches a known attack shape.

    Args:
        query_text (str): Raw query text as submitted by the caller.

    Raises:
        InjectionDetected: With the human-readable reason of the first match.
    """
    reason = detect_injection(query_text)
    if reason is not None:
        logger.warning(f"Rejected query text: {reason}")
        raise InjectionDetected(reason)
