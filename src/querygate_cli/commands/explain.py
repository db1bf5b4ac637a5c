from rich.tree import Tree

from querygate import QueryGate
from querygate_cli.console import console


def explain_query(gate: QueryGate, text: str, connection_id=None) -> None:
    """Prints the plan chain, each node nested under its parent."""
    response = gate.explain(text, connection_id=connection_id)

    root = Tree("[bold]Execution plan[/bold]")
    branch = root
    for node in response.plan:
        label = node.operation or node.detail.splitlines()[0]
        extras = [
            f"{name}={value}"
            for name, value in (
                ("table", node.table),
                ("index", node.index),
                ("rows", node.rows),
                ("cost", node.cost),
            )
            if value is not None
        ]
        if extras:
            label = f"{label} [muted]({', '.join(extras)})[/muted]"
        branch = branch.add(f"#{node.id} {label}")
    console.print(root)
