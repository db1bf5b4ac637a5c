import re
from typing import Any, Optional

from querygate_adapter_sdk import ExecutionPlanResponse, GenericValue, SqlQuery, link_plan_nodes
from querygate_adapter_sdk.normalize import decode_typed
from querygate_sqlalchemy_adapter import BaseSQLAlchemyAdapter

_SCAN = re.compile(r"^(?P<op>SCAN|SEARCH)\s+(?:TABLE\s+)?(?P<table>\w+)", re.IGNORECASE)
_INDEX = re.compile(r"USING\s+(?:COVERING\s+)?INDEX\s+(?P<index>\w+)", re.IGNORECASE)
_FILTER = re.compile(r"\((?P<filter>[^)]*)\)\s*$")


def storage_class(value: Any) -> str:
    """SQLite reports no column types for expressions, so decode by storage class."""
    if isinstance(value, bool) or isinstance(value, int):
        return "INTEGER"
    if isinstance(value, float):
        return "REAL"
    if isinstance(value, str):
        return "TEXT"
    return "BLOB"


class SqliteAdapter(BaseSQLAlchemyAdapter):
    dialect = "sqlite"

    def decode_cell(self, value: Any, type_name: Optional[str]) -> GenericValue:
        if value is None:
            return None
        return decode_typed(value, storage_class(value))

    def explain(self, query: SqlQuery) -> ExecutionPlanResponse:
        _, rows = self.explain_rows(f"EXPLAIN QUERY PLAN {query.text}")

        steps = []
        for row in rows:
            detail = str(row[-1])
            step = {"detail": detail}
            scan = _SCAN.match(detail)
            if scan:
                step["operation"] = scan.group("op").upper()
                step["table"] = scan.group("table")
            else:
                step["operation"] = detail
            index = _INDEX.search(detail)
            if index:
                step["index"] = index.group("index")
            condition = _FILTER.search(detail)
            if condition and index:
                step["filter"] = condition.group("filter")
            steps.append(step)

        return ExecutionPlanResponse(
            plan=link_plan_nodes(steps),
            query_plan="\n".join(step["detail"] for step in steps),
        )
