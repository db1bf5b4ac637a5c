from typing import Any, Dict

from querygate_adapter_sdk import ExecutionPlanResponse, SqlQuery, link_plan_nodes
from querygate_sqlalchemy_adapter import BaseSQLAlchemyAdapter

EXPLAIN_FIELDS = ("select_type", "table", "type", "possible_keys", "key", "key_len", "ref", "rows", "Extra")


def _as_int(value: Any):
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_text(value: Any):
    return None if value is None else str(value)


class MysqlAdapter(BaseSQLAlchemyAdapter):
    """MySQL / MariaDB over PyMySQL.

    The driver's column metadata is not trusted for decoding, so every cell
    goes through the string, integer, float fallback chain.
    """
    dialect = "mysql"

    def explain(self, query: SqlQuery) -> ExecutionPlanResponse:
        keys, rows = self.explain_rows(f"EXPLAIN {query.text}")

        steps = []
        for row in rows:
            record: Dict[str, Any] = dict(zip(keys, row))
            detail = "\n".join(
                f"{field}: {record.get(field) if record.get(field) is not None else 'NULL'}"
                for field in EXPLAIN_FIELDS
            )
            steps.append({
                "detail": detail,
                "operation": _as_text(record.get("select_type")),
                "table": _as_text(record.get("table")),
                "index": _as_text(record.get("key")),
                "rows": _as_int(record.get("rows")),
                "filter": _as_text(record.get("Extra")),
                "join_type": _as_text(record.get("type")),
            })

        return ExecutionPlanResponse(
            plan=link_plan_nodes(steps),
            query_plan="\n\n".join(step["detail"] for step in steps),
        )
