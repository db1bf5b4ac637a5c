"""
Public API for the querygate core package.

``QueryGate`` wires the connection store, the adapter registry and the
executor together from settings, and offers synchronous wrappers for
callers that do not run an event loop.
"""

from __future__ import annotations

import asyncio
import pathlib
from typing import Iterable, List, Optional, Union

from querygate.common.logger import get_logger
from querygate.common.settings import settings
from querygate.connections import (
    ConnectionConfig,
    ConnectionStore,
    DatasourceRegistry,
    InMemoryConnectionStore,
    load_connections,
)
from querygate.execution import ExplainRequest, QueryExecutor, QueryRequest
from querygate_adapter_sdk import ExecutionPlanResponse, QueryResult

logger = get_logger("querygate")


class QueryGate:
    """
    Entry point for running guarded queries.

    Connections come from, in order of precedence, an explicit ``store``,
    an explicit ``connections`` list, or the YAML file at
    ``connections_path`` (defaulting to ``settings.connections_config_path``).
    """

    def __init__(
        self,
        connections_path: Optional[Union[str, pathlib.Path]] = None,
        connections: Optional[Iterable[ConnectionConfig]] = None,
        store: Optional[ConnectionStore] = None,
    ):
        if store is None:
            if connections is None:
                connections = self._load(connections_path)
            store = InMemoryConnectionStore(connections)

        self.store = store
        self.registry = DatasourceRegistry(slow_query_ms=settings.slow_query_ms)
        self.executor = QueryExecutor(
            store,
            self.registry,
            default_timeout_secs=settings.default_timeout_secs,
            default_page_size=settings.default_page_size,
        )

    @staticmethod
    def _load(connections_path: Optional[Union[str, pathlib.Path]]) -> List[ConnectionConfig]:
        if connections_path is not None:
            return load_connections(pathlib.Path(connections_path))
        try:
            return load_connections(pathlib.Path(settings.connections_config_path))
        except FileNotFoundError:
            logger.warning(
                f"No connection config at {settings.connections_config_path}; starting with no connections"
            )
            return []

    def list_connections(self) -> List[ConnectionConfig]:
        lister = getattr(self.store, "list_connections", None)
        if lister is not None:
            return lister()
        return self.store.get_active_connections()

    def run(self, sql: str, connection_id: Optional[str] = None, **options) -> QueryResult:
        """Synchronously executes a query; options are QueryRequest fields."""
        request = QueryRequest(sql=sql, connection_id=connection_id, **options)
        return asyncio.run(self.executor.execute(request))

    def explain(self, sql: str, connection_id: Optional[str] = None) -> ExecutionPlanResponse:
        """Synchronously retrieves the execution plan of a query."""
        request = ExplainRequest(sql=sql, connection_id=connection_id)
        return asyncio.run(self.executor.explain(request))

    def close(self) -> None:
        self.registry.close_all()
