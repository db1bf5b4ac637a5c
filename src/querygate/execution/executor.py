from __future__ import annotations

import asyncio
import uuid
from typing import Any, Callable, List, Optional, Tuple, Type

import pybreaker

from querygate.common.cancellation import CancellationRegistry, CancellationToken
from querygate.common.errors import (
    ConnectionFailed,
    ExplainFailed,
    NotImplementedYet,
    QueryCancelled,
    QueryExecutionFailed,
    QueryGateError,
    QueryTimeout,
    TooManyRowsRequested,
)
from querygate.common.logger import bind_connection, get_logger, query_context
from querygate.common.resilience import get_backend_breaker
from querygate.connections import (
    ConnectionConfig,
    ConnectionStore,
    DatasourceRegistry,
    resolve_connection,
)
from querygate.execution.contracts import BatchQueryRequest, ExplainRequest, QueryRequest
from querygate.execution.dispatcher import prepare_for_execution, prepare_for_explain
from querygate.safety import injection
from querygate.safety.limits import MAX_LIMIT
from querygate_adapter_sdk import (
    AdapterConnectionError,
    AdapterQueryError,
    ExecutionPlanResponse,
    IndexInfo,
    PageRequest,
    QueryResult,
)

logger = get_logger("query_executor")


class QueryExecutor:
    """
    Runs guarded queries against configured backends.

    Every backend call runs in a worker thread and is raced against the
    query's cancellation token and its timeout. The executor owns the
    cancellation registry, so cancel() only reaches queries it started.
    """

    def __init__(
        self,
        store: ConnectionStore,
        registry: DatasourceRegistry,
        cancellations: Optional[CancellationRegistry] = None,
        default_timeout_secs: Optional[float] = 30,
        default_page_size: int = 100,
    ):
        self.store = store
        self.registry = registry
        self.cancellations = cancellations or CancellationRegistry()
        self.default_timeout_secs = default_timeout_secs
        self.default_page_size = default_page_size

    # --- public operations ---

    async def execute(self, request: QueryRequest) -> QueryResult:
        query_id = request.query_id or uuid.uuid4().hex
        with query_context(query_id):
            conn = resolve_connection(self.store, request.connection_id)
            bind_connection(conn.id)
            adapter = self.registry.get_adapter(conn)
            injection.check(request.sql)
            page = self._page(request)
            if request.parameters:
                logger.warning("Query parameters were supplied but are not bound")

            prepared = prepare_for_execution(conn.db_type, request.sql, adapter)
            logger.info(
                f"Executing query on '{conn.display_name}' ({conn.db_type.value}), {len(request.sql)} chars"
            )
            logger.debug(f"Prepared query: {prepared}")

            result: QueryResult = await self._run(
                conn,
                query_id,
                self._timeout(request.timeout_secs),
                QueryExecutionFailed,
                "Query execution failed",
                adapter.execute,
                prepared,
                page,
            )
            result.query_id = query_id

            logger.info(f"Query returned {result.row_count} rows in {result.execution_time_ms:.1f}ms")
            if result.performance and result.performance.is_slow_query:
                logger.warning("; ".join(result.performance.warnings))
            return result

    async def explain(self, request: ExplainRequest) -> ExecutionPlanResponse:
        query_id = uuid.uuid4().hex
        with query_context(query_id):
            conn = resolve_connection(self.store, request.connection_id)
            bind_connection(conn.id)
            adapter = self.registry.get_adapter(conn)
            injection.check(request.sql)

            prepared = prepare_for_explain(conn.db_type, request.sql)
            logger.info(f"Explaining query on '{conn.display_name}' ({conn.db_type.value})")
            plan: ExecutionPlanResponse = await self._run(
                conn,
                query_id,
                self._timeout(request.timeout_secs),
                ExplainFailed,
                "Failed to get execution plan",
                adapter.explain,
                prepared,
            )
            logger.info(f"Execution plan has {len(plan.plan)} nodes")
            return plan

    async def execute_batch(self, request: BatchQueryRequest) -> List[QueryResult]:
        raise NotImplementedYet(
            "Batch execution is not implemented",
            {"statements": len(request.statements)},
        )

    def cancel(self, query_id: str) -> bool:
        return self.cancellations.cancel(query_id)

    async def list_tables(self, connection_id: Optional[str] = None) -> Tuple[ConnectionConfig, List[str]]:
        conn = resolve_connection(self.store, connection_id)
        adapter = self.registry.get_adapter(conn)
        tables = await self._run(
            conn,
            uuid.uuid4().hex,
            self.default_timeout_secs,
            QueryExecutionFailed,
            "Failed to list tables",
            adapter.fetch_schema,
        )
        return conn, tables

    async def get_indexes(self, table: str, connection_id: Optional[str] = None) -> List[IndexInfo]:
        conn = resolve_connection(self.store, connection_id)
        adapter = self.registry.get_adapter(conn)
        return await self._run(
            conn,
            uuid.uuid4().hex,
            self.default_timeout_secs,
            QueryExecutionFailed,
            f"Failed to get indexes of '{table}'",
            adapter.get_indexes,
            table,
        )

    # --- internals ---

    def _timeout(self, requested: Optional[float]) -> Optional[float]:
        return requested if requested is not None else self.default_timeout_secs

    def _page(self, request: QueryRequest) -> Optional[PageRequest]:
        if request.page is None and request.page_size is None:
            return None
        page_size = request.page_size or self.default_page_size
        if page_size > MAX_LIMIT:
            raise TooManyRowsRequested(
                f"page_size {page_size} exceeds the maximum of {MAX_LIMIT} rows",
                {"page_size": page_size, "max": MAX_LIMIT},
            )
        return PageRequest(page=request.page or 1, page_size=page_size)

    async def _run(
        self,
        conn: ConnectionConfig,
        query_id: str,
        timeout: Optional[float],
        failure: Type[QueryGateError],
        label: str,
        func: Callable[..., Any],
        *args: Any,
    ) -> Any:
        breaker = get_backend_breaker(conn.db_type.value)
        token = self.cancellations.register(query_id)
        try:
            return await race(token, timeout, breaker.call, func, *args)
        except pybreaker.CircuitBreakerError as exc:
            raise ConnectionFailed(
                f"Backend '{conn.db_type.value}' is unavailable: {exc}",
                {"connection_id": conn.id},
            ) from exc
        except AdapterConnectionError as exc:
            raise ConnectionFailed(
                f"Failed to connect to '{conn.display_name}': {exc.message}",
                {"connection_id": conn.id},
            ) from exc
        except AdapterQueryError as exc:
            raise failure(f"{label}: {exc.message}", {"connection_id": conn.id}) from exc
        finally:
            self.cancellations.release(token)


async def race(token: CancellationToken, timeout: Optional[float], func: Callable[..., Any], *args: Any) -> Any:
    """Runs a blocking call in a thread, racing it against cancellation and a timeout.

    The worker thread cannot be interrupted; when it loses the race its
    result is discarded. The token is checked again after the call
    completes, so a cancellation that arrives during the final I/O wins.

    Raises:
        QueryCancelled: If the token fired first or while the call finished.
        QueryTimeout: If the timeout elapsed first.
    """
    work = asyncio.ensure_future(asyncio.to_thread(func, *args))
    cancelled = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait(
            {work, cancelled}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        cancelled.cancel()

    if work in done:
        error = work.exception()
        if token.is_cancelled():
            raise QueryCancelled(f"Query {token.query_id} was cancelled", {"query_id": token.query_id})
        if error is not None:
            raise error
        return work.result()

    work.cancel()
    if token.is_cancelled():
        logger.warning(f"Query {token.query_id} cancelled while running")
        raise QueryCancelled(f"Query {token.query_id} was cancelled", {"query_id": token.query_id})
    logger.warning(f"Query {token.query_id} timed out after {timeout}s")
    raise QueryTimeout(
        f"Query exceeded the {timeout}s timeout",
        {"query_id": token.query_id, "timeout_secs": timeout},
    )
