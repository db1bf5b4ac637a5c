#!/usr/bin/env python3
"""Command line interface for querygate."""
import pathlib
from typing import Annotated, Optional

import typer

from querygate import QueryGate
from querygate.common.errors import QueryGateError
from querygate.common.settings import settings

from querygate_cli.commands.connections import list_connections
from querygate_cli.commands.explain import explain_query
from querygate_cli.commands.query import run_query
from querygate_cli.console import print_error, print_query_error

app = typer.Typer(
    name="querygate",
    help="Guarded ad hoc queries against SQL and document databases.",
    no_args_is_help=True,
    add_completion=False,
)

ConnectionOption = Annotated[Optional[str], typer.Option("--connection", "-c", help="Connection ID (default: first active)")]


@app.callback()
def global_callback(
    ctx: typer.Context,
    env: Annotated[Optional[str], typer.Option("--env", "-e", help="Environment name; loads .env.<name>.")] = None,
    config: Annotated[Optional[pathlib.Path], typer.Option("--config", help="Path to connections YAML")] = None,
):
    """
    querygate CLI entry point.
    """
    if env:
        settings.configure_env(env)
    ctx.obj = {"config": config}


def _gate(ctx: typer.Context) -> QueryGate:
    try:
        return QueryGate(connections_path=(ctx.obj or {}).get("config"))
    except (FileNotFoundError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(code=1)


@app.command()
def query(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="SQL statement or shell-style document command")],
    connection: ConnectionOption = None,
    page: Annotated[Optional[int], typer.Option(min=1, help="1-based page number")] = None,
    page_size: Annotated[Optional[int], typer.Option("--page-size", min=1, help="Rows per page")] = None,
    timeout: Annotated[Optional[float], typer.Option(help="Timeout in seconds")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw result as JSON")] = False,
):
    """
    Execute a query and print the rows.
    """
    gate = _gate(ctx)
    try:
        run_query(
            gate,
            text,
            connection_id=connection,
            as_json=as_json,
            page=page,
            page_size=page_size,
            timeout_secs=timeout,
        )
    except QueryGateError as e:
        print_query_error(e)
        raise typer.Exit(code=1)
    finally:
        gate.close()


@app.command()
def explain(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="Statement to explain")],
    connection: ConnectionOption = None,
):
    """
    Show the execution plan of a query.
    """
    gate = _gate(ctx)
    try:
        explain_query(gate, text, connection_id=connection)
    except QueryGateError as e:
        print_query_error(e)
        raise typer.Exit(code=1)
    finally:
        gate.close()


@app.command()
def connections(ctx: typer.Context):
    """
    List configured connections.
    """
    gate = _gate(ctx)
    try:
        list_connections(gate)
    finally:
        gate.close()


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option(help="Host to bind to")] = None,
    port: Annotated[Optional[int], typer.Option(help="Port to bind to")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload (development)")] = False,
):
    """
    Start the HTTP API.
    """
    import uvicorn

    uvicorn.run(
        "querygate_api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    app()
