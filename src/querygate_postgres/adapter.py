import re
from typing import List, Optional

from sqlalchemy.engine import CursorResult

from querygate_adapter_sdk import ExecutionPlanResponse, SqlQuery, link_plan_nodes
from querygate_sqlalchemy_adapter import BaseSQLAlchemyAdapter

# psycopg2 reports column types as OIDs from pg_type.
PG_TYPE_NAMES = {
    16: "BOOL",
    20: "INT8",
    21: "INT2",
    23: "INT4",
    25: "TEXT",
    700: "FLOAT4",
    701: "FLOAT8",
    1042: "BPCHAR",
    1043: "VARCHAR",
    1700: "NUMERIC",
}

_PLAN_LINE = re.compile(
    r"^(?P<op>.+?)\s+\(cost=(?P<startup>[\d.]+)\.\.(?P<total>[\d.]+)"
    r"\s+rows=(?P<rows>\d+)\s+width=(?P<width>\d+)\)"
)
_ON_TABLE = re.compile(r"\bon\s+(?P<table>[\w.\"]+)")
_USING_INDEX = re.compile(r"\busing\s+(?P<index>[\w.\"]+)", re.IGNORECASE)
_JOIN_TYPE = re.compile(
    r"^(?:(?:Hash|Merge)(?:\s+(?:Left|Right|Full|Anti|Semi))?\s+Join"
    r"|Nested Loop(?:\s+(?:Left|Anti|Semi)(?:\s+Join)?)?)"
)


def parse_plan_line(line: str) -> dict:
    """Pulls the operator, relation, index and estimates out of one text-plan line."""
    stripped = line.strip()
    if stripped.startswith("->"):
        stripped = stripped[2:].strip()

    step = {"detail": line}
    match = _PLAN_LINE.match(stripped)
    if match is None:
        if ":" in stripped:
            label, _, value = stripped.partition(":")
            if label.endswith("Filter") or label.endswith("Cond"):
                step["filter"] = value.strip()
        return step

    operation = match.group("op")
    step["operation"] = operation
    step["cost"] = float(match.group("total"))
    step["rows"] = int(match.group("rows"))
    step["width"] = int(match.group("width"))

    table = _ON_TABLE.search(operation)
    if table:
        step["table"] = table.group("table")
    index = _USING_INDEX.search(operation)
    if index:
        step["index"] = index.group("index")
    join = _JOIN_TYPE.match(operation)
    if join:
        step["join_type"] = join.group(0)
    return step


class PostgresAdapter(BaseSQLAlchemyAdapter):
    dialect = "postgres"

    def column_type_names(self, result: CursorResult) -> List[Optional[str]]:
        description = result.cursor.description or []
        return [PG_TYPE_NAMES.get(column[1], "UNKNOWN") for column in description]

    def explain(self, query: SqlQuery) -> ExecutionPlanResponse:
        statement = f"EXPLAIN (ANALYZE false, VERBOSE false, FORMAT TEXT) {query.text}"
        _, rows = self.explain_rows(statement)
        lines = [str(row[0]) for row in rows]

        steps = []
        for position, line in enumerate(lines):
            step = parse_plan_line(line)
            step["detail"] = f"step {position + 1}: {line.strip()}"
            steps.append(step)

        return ExecutionPlanResponse(
            plan=link_plan_nodes(steps),
            query_plan="\n".join(lines),
        )
