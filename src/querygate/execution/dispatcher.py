"""Per-backend preparation of raw query text.

Relational backends get the limit-clamped SQL; the document store gets the
shell command reduced to a filtered DocumentQuery.
"""
from querygate.connections.models import BackendKind
from querygate.safety import limits, shell
from querygate_adapter_sdk import DatasourceAdapter, PreparedQuery, SqlQuery


def prepare_for_execution(kind: BackendKind, text: str, adapter: DatasourceAdapter) -> PreparedQuery:
    if kind is BackendKind.MONGODB:
        return shell.extract(text)
    return limits.prepare_sql(text, adapter.get_dialect())


def prepare_for_explain(kind: BackendKind, text: str) -> PreparedQuery:
    """Plans are not row-limited, so SQL passes through unclamped."""
    if kind is BackendKind.MONGODB:
        return shell.extract(text)
    return SqlQuery(text=text.strip().rstrip(";"), is_query=True)
