from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, runtime_checkable

from querygate.common.errors import ConnectionNotFound, NoActiveConnection
from querygate.connections.models import ConnectionConfig


@runtime_checkable
class ConnectionStore(Protocol):
    """Read side of whatever persists connection configurations."""

    def get_connection(self, connection_id: str) -> Optional[ConnectionConfig]:
        ...

    def get_active_connections(self) -> List[ConnectionConfig]:
        ...


class InMemoryConnectionStore:
    """ConnectionStore over a fixed list, typically loaded from YAML."""

    def __init__(self, connections: Iterable[ConnectionConfig] = ()):
        self._connections = {conn.id: conn for conn in connections}

    def add(self, conn: ConnectionConfig) -> None:
        self._connections[conn.id] = conn

    def get_connection(self, connection_id: str) -> Optional[ConnectionConfig]:
        return self._connections.get(connection_id)

    def get_active_connections(self) -> List[ConnectionConfig]:
        return [conn for conn in self._connections.values() if conn.is_active]

    def list_connections(self) -> List[ConnectionConfig]:
        return list(self._connections.values())


def resolve_connection(store: ConnectionStore, connection_id: Optional[str] = None) -> ConnectionConfig:
    """Picks the connection a request runs against.

    An explicit id must exist; without one, the first active connection is used.

    Raises:
        ConnectionNotFound: If the id is unknown.
        NoActiveConnection: If no id was given and nothing is active.
    """
    if connection_id:
        conn = store.get_connection(connection_id)
        if conn is None:
            raise ConnectionNotFound(
                f"Connection '{connection_id}' not found", {"connection_id": connection_id}
            )
        return conn

    active = store.get_active_connections()
    if not active:
        raise NoActiveConnection("No active connection configured")
    return active[0]
