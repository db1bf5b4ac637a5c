import json

from rich.table import Table
from rich.text import Text

from querygate import QueryGate, QueryResult
from querygate_cli.console import console, print_success, print_warning


def render_result(result: QueryResult) -> None:
    table = Table(show_lines=False, header_style="column")
    for column in result.columns:
        table.add_column(column, overflow="fold")
    for row in result.rows:
        table.add_row(*[Text("NULL", style="null") if value is None else Text(str(value)) for value in row])
    console.print(table)

    summary = f"{result.row_count} rows in {result.execution_time_ms:.1f}ms"
    if result.total_rows is not None:
        summary += f" (page {result.page}, {result.total_rows} total, more: {result.has_more})"
    print_success(summary)

    if result.performance:
        for warning in result.performance.warnings:
            print_warning(warning)


def run_query(gate: QueryGate, text: str, connection_id=None, as_json: bool = False, **options) -> None:
    """Executes a query and prints it as a table or JSON."""
    result = gate.run(text, connection_id=connection_id, **options)
    if as_json:
        console.print_json(json.dumps(result.model_dump(mode="json")))
    else:
        render_result(result)
