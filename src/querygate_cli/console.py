from rich.console import Console
from rich.theme import Theme

from querygate.common.errors import ErrorSeverity, QueryGateError

console = Console(theme=Theme({
    "column": "bold cyan",
    "null": "dim italic",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "muted": "dim",
}))

_SEVERITY_STYLE = {
    ErrorSeverity.INFO: "muted",
    ErrorSeverity.WARNING: "warning",
    ErrorSeverity.ERROR: "error",
    ErrorSeverity.CRITICAL: "error",
}


def print_success(message: str) -> None:
    console.print(f"[success]{message}[/success]")


def print_warning(message: str) -> None:
    console.print(f"[warning]warning:[/warning] {message}")


def print_error(message: str) -> None:
    console.print(f"[error]error:[/error] {message}")


def print_query_error(error: QueryGateError) -> None:
    """Prints the caller-safe message of a failed query, styled by severity, plus its details."""
    style = _SEVERITY_STYLE.get(error.severity, "error")
    console.print(f"[{style}]{error.error_code.value}[/{style}] {error.get_safe_message()}", highlight=False)
    for key, value in (error.details or {}).items():
        console.print(f"  [muted]{key}:[/muted] {value}", highlight=False)
