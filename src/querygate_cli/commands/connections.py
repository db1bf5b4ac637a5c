from rich.table import Table

from querygate import QueryGate
from querygate_cli.console import console


def list_connections(gate: QueryGate) -> None:
    """Displays configured connections; passwords are never shown."""
    connections = gate.list_connections()
    if not connections:
        console.print("[warning]No connections configured.[/warning]")
        return

    table = Table(title="Configured Connections")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Type", style="magenta")
    table.add_column("Target")
    table.add_column("Active", style="green")

    for conn in connections:
        if conn.file_path:
            target = conn.file_path
        elif conn.host:
            target = f"{conn.host}:{conn.port}/{conn.database_name}"
        else:
            target = "connection string"
        table.add_row(conn.id, conn.display_name, conn.db_type.value, target, "yes" if conn.is_active else "no")

    console.print(table)
