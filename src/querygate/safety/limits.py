"""
Row-limit enforcement for SQL text.

The canonical path parses the statement with sqlglot and rewrites the LIMIT
node. When the text cannot be parsed as exactly one statement, a textual
scan does a best-effort rewrite instead; the two paths may render the same
input differently.
"""
from typing import List, Optional, Tuple

import sqlglot
from sqlglot import expressions as exp
from sqlglot.errors import SqlglotError

from querygate.common.errors import StatementParseFailed
from querygate.common.logger import get_logger
from querygate_adapter_sdk import SqlQuery

logger = get_logger("limit_clamp")

MAX_LIMIT = 1500
DEFAULT_LIMIT = 200

_LIMIT_TOKEN = " limit "


def parse_single_statement(sql: str, dialect: Optional[str] = None) -> exp.Expression:
    """Parses text that must hold exactly one statement.

    Raises:
        StatementParseFailed: If the text does not parse or holds zero or
            several statements.
    """
    try:
        statements: List[exp.Expression] = [s for s in sqlglot.parse(sql, read=dialect) if s is not None]
    except SqlglotError as exc:
        raise StatementParseFailed(f"Could not parse statement: {exc}") from exc

    if len(statements) != 1:
        raise StatementParseFailed(f"Expected exactly one statement, found {len(statements)}")
    return statements[0]


def _literal_limit(value: Optional[exp.Expression]) -> Optional[int]:
    if isinstance(value, exp.Literal) and not value.is_string:
        try:
            return int(value.this)
        except ValueError:
            return None
    return None


def _clamp_statement(statement: exp.Expression) -> bool:
    """Rewrites the LIMIT of a query in place; returns whether it was a query."""
    if not isinstance(statement, exp.Query):
        return False

    limit = statement.args.get("limit")
    if isinstance(limit, (exp.Limit, exp.Fetch)):
        # FETCH FIRST n ROWS keeps its row count under "count".
        key = "expression" if isinstance(limit, exp.Limit) else "count"
        current = _literal_limit(limit.args.get(key))
        bounded = DEFAULT_LIMIT if current is None else min(current, MAX_LIMIT)
        limit.set(key, exp.Literal.number(bounded))
    else:
        statement.set("limit", exp.Limit(expression=exp.Literal.number(DEFAULT_LIMIT)))
    return True


def _append_default_limit(sql: str) -> str:
    return sql.rstrip().rstrip(";").rstrip() + f" LIMIT {DEFAULT_LIMIT}"


def _fallback_limit(sql: str) -> str:
    """Textual LIMIT rewrite used when the statement could not be parsed."""
    lowered = sql.lower()
    position = lowered.find(_LIMIT_TOKEN)
    if position == -1:
        return _append_default_limit(sql)

    start = position + len(_LIMIT_TOKEN)
    while start < len(sql) and sql[start].isspace():
        start += 1
    end = start
    while end < len(sql) and sql[end].isdigit():
        end += 1

    digits = sql[start:end]
    if not digits:
        return _append_default_limit(sql)
    return f"{sql[:start]}{min(int(digits), MAX_LIMIT)}{sql[end:]}"


def _clamp(sql: str, dialect: Optional[str] = None) -> Tuple[str, bool]:
    try:
        statement = parse_single_statement(sql, dialect)
    except StatementParseFailed as exc:
        logger.debug(f"Falling back to textual limit clamp: {exc.message}")
        is_query = sql.lstrip().lower().startswith(("select", "with"))
        return _fallback_limit(sql), is_query

    if not _clamp_statement(statement):
        return sql, False
    return statement.sql(dialect=dialect), True


def apply_limit(sql: str, dialect: Optional[str] = None) -> str:
    """Bounds the rows a SELECT-shaped statement can return.

    A missing LIMIT becomes ``LIMIT 200``; an existing one is clamped to
    ``min(N, 1500)``. Any other statement kind is returned unchanged.

    Args:
        sql (str): The statement text.
        dialect (Optional[str]): sqlglot dialect used to read and render it.

    Returns:
        str: The rewritten statement.
    """
    clamped, _ = _clamp(sql, dialect)
    return clamped


def prepare_sql(sql: str, dialect: Optional[str] = None) -> SqlQuery:
    """Clamps the statement and records whether it returns rows."""
    clamped, is_query = _clamp(sql, dialect)
    if clamped != sql:
        logger.debug(f"Limit clamp rewrote statement to: {clamped}")
    return SqlQuery(text=clamped, is_query=is_query)
