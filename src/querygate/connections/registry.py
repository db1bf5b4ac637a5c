from __future__ import annotations

import threading
from typing import Dict, Type

from querygate.common.errors import ConnectionFailed
from querygate.common.logger import get_logger
from querygate.connections.models import BackendKind, ConnectionConfig
from querygate.connections.urls import build_connection_string, mask_url
from querygate_adapter_sdk import AdapterConnectionError, DatasourceAdapter
from querygate_mongodb import MongoAdapter
from querygate_mysql import MysqlAdapter
from querygate_postgres import PostgresAdapter
from querygate_sqlite import SqliteAdapter

logger = get_logger("datasource_registry")

ADAPTERS: Dict[BackendKind, Type[DatasourceAdapter]] = {
    BackendKind.POSTGRESQL: PostgresAdapter,
    BackendKind.MYSQL: MysqlAdapter,
    BackendKind.SQLITE: SqliteAdapter,
    BackendKind.MONGODB: MongoAdapter,
}


class DatasourceRegistry:
    """
    Factory and cache for adapters, one per connection id.

    Each cached adapter owns its driver pool, so concurrent requests against
    the same connection share sessions.
    """

    def __init__(self, slow_query_ms: float = 1000.0):
        self.slow_query_ms = slow_query_ms
        self._adapters: Dict[str, DatasourceAdapter] = {}
        self._lock = threading.Lock()

    def get_adapter(self, conn: ConnectionConfig) -> DatasourceAdapter:
        """
        Retrieves (or creates) the adapter serving a connection.

        Raises:
            InvalidConnectionConfig: If no connection-string rule applies.
            ConnectionFailed: If the driver rejects the connection string.
        """
        with self._lock:
            adapter = self._adapters.get(conn.id)
            if adapter is None:
                adapter = self._create_adapter(conn)
                self._adapters[conn.id] = adapter
            return adapter

    def _create_adapter(self, conn: ConnectionConfig) -> DatasourceAdapter:
        url = build_connection_string(conn)
        adapter_cls = ADAPTERS[conn.db_type]
        kwargs = {
            "datasource_id": conn.id,
            "datasource_engine_type": conn.db_type.value,
            "slow_query_ms": self.slow_query_ms,
        }
        if conn.db_type is BackendKind.MONGODB:
            kwargs["database_name"] = conn.database_name

        logger.info(f"Creating {adapter_cls.__name__} for '{conn.id}' at {mask_url(url)}")
        try:
            return adapter_cls(url, **kwargs)
        except AdapterConnectionError as exc:
            raise ConnectionFailed(
                f"Failed to connect to '{conn.display_name}': {exc.message}",
                {"connection_id": conn.id},
            ) from exc

    def evict(self, connection_id: str) -> None:
        """Closes and forgets the adapter of a connection."""
        with self._lock:
            adapter = self._adapters.pop(connection_id, None)
        if adapter is not None:
            adapter.close()

    def close_all(self) -> None:
        with self._lock:
            adapters = list(self._adapters.values())
            self._adapters.clear()
        for adapter in adapters:
            adapter.close()
