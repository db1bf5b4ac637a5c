from .config import load_connections
from .models import BackendKind, ConnectionConfig, normalize_kind
from .registry import ADAPTERS, DatasourceRegistry
from .store import ConnectionStore, InMemoryConnectionStore, resolve_connection
from .urls import build_connection_string, mask_url

__all__ = [
    "load_connections",
    "BackendKind",
    "ConnectionConfig",
    "normalize_kind",
    "ADAPTERS",
    "DatasourceRegistry",
    "ConnectionStore",
    "InMemoryConnectionStore",
    "resolve_connection",
    "build_connection_string",
    "mask_url",
]
