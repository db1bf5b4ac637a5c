import asyncio
import time
from unittest.mock import MagicMock

import pybreaker
import pytest

from querygate.common.cancellation import CancellationRegistry, CancellationToken
from querygate.common.errors import (
    ConnectionFailed,
    ExplainFailed,
    InjectionDetected,
    NotImplementedYet,
    QueryCancelled,
    QueryExecutionFailed,
    QueryTimeout,
    TooManyRowsRequested,
)
from querygate.common.resilience import get_backend_breaker
from querygate.connections import ConnectionConfig, DatasourceRegistry, InMemoryConnectionStore
from querygate.execution import BatchQueryRequest, ExplainRequest, QueryExecutor, QueryRequest
from querygate.execution.executor import race
from querygate_adapter_sdk import (
    AdapterConnectionError,
    AdapterQueryError,
    DocumentQuery,
    ExecutionPlanResponse,
    QueryResult,
    SqlQuery,
    link_plan_nodes,
)


def _slow(seconds, value="done"):
    time.sleep(seconds)
    return value


class TestRace:
    def test_returns_result(self):
        token = CancellationToken("q1")
        assert asyncio.run(race(token, 1.0, _slow, 0.01)) == "done"

    def test_propagates_work_error(self):
        token = CancellationToken("q1")

        def boom():
            raise AdapterQueryError("bad", "ds")

        with pytest.raises(AdapterQueryError):
            asyncio.run(race(token, 1.0, boom))

    def test_timeout(self):
        token = CancellationToken("q1")
        with pytest.raises(QueryTimeout) as exc_info:
            asyncio.run(race(token, 0.05, _slow, 0.3))
        assert exc_info.value.details["timeout_secs"] == 0.05

    def test_cancellation_wins_over_running_work(self):
        async def scenario():
            token = CancellationToken("q1")
            asyncio.get_running_loop().call_later(0.05, token.cancel)
            return await race(token, 2.0, _slow, 0.3)

        with pytest.raises(QueryCancelled):
            asyncio.run(scenario())

    def test_cancellation_before_completion_check(self):
        token = CancellationToken("q1")
        token.cancel()
        with pytest.raises(QueryCancelled):
            asyncio.run(race(token, 1.0, _slow, 0.01))


class TestQueryExecutor:
    def setup_method(self):
        self.conn = ConnectionConfig(id="local", db_type="sqlite", file_path="app.db")
        self.mongo = ConnectionConfig(id="docs", db_type="mongodb", host="m", port=27017, database_name="d")
        self.adapter = MagicMock()
        self.adapter.get_dialect.return_value = "sqlite"
        self.adapter.execute.return_value = QueryResult(columns=["a"], rows=[[1]], row_count=1)
        self.registry = MagicMock(spec=DatasourceRegistry)
        self.registry.get_adapter.return_value = self.adapter
        self.executor = QueryExecutor(
            InMemoryConnectionStore([self.conn, self.mongo]), self.registry, default_timeout_secs=5
        )

    def teardown_method(self):
        for kind in ("sqlite", "mongodb"):
            get_backend_breaker(kind).close()

    def test_execute_clamps_and_tags_result(self):
        # Act
        result = asyncio.run(self.executor.execute(QueryRequest(sql="SELECT a FROM t", query_id="q-1")))

        # Assert
        prepared, page = self.adapter.execute.call_args.args
        assert prepared == SqlQuery(text="SELECT a FROM t LIMIT 200", is_query=True)
        assert page is None
        assert result.query_id == "q-1"
        assert len(self.executor.cancellations) == 0

    def test_execute_generates_query_id(self):
        result = asyncio.run(self.executor.execute(QueryRequest(sql="SELECT 1")))
        assert result.query_id

    def test_paging_uses_default_page_size(self):
        asyncio.run(self.executor.execute(QueryRequest(sql="SELECT a FROM t", page=2)))

        _, page = self.adapter.execute.call_args.args
        assert (page.page, page.page_size) == (2, 100)

    def test_page_size_above_max_is_rejected(self):
        with pytest.raises(TooManyRowsRequested):
            asyncio.run(self.executor.execute(QueryRequest(sql="SELECT a FROM t", page_size=1501)))
        self.adapter.execute.assert_not_called()

    def test_injection_is_rejected_before_execution(self):
        with pytest.raises(InjectionDetected) as exc_info:
            asyncio.run(self.executor.execute(QueryRequest(sql="SELECT 1; DROP TABLE users")))

        assert exc_info.value.reason
        self.adapter.execute.assert_not_called()

    def test_document_commands_are_extracted(self):
        asyncio.run(self.executor.execute(
            QueryRequest(sql='db.users.find({"$where": "1", "age": 3})', connection_id="docs")
        ))

        prepared, _ = self.adapter.execute.call_args.args
        assert isinstance(prepared, DocumentQuery)
        assert prepared.filter == {"age": 3}

    def test_query_error_maps_to_execution_failed(self):
        self.adapter.execute.side_effect = AdapterQueryError("no such table: t", "local")

        with pytest.raises(QueryExecutionFailed, match="no such table"):
            asyncio.run(self.executor.execute(QueryRequest(sql="SELECT a FROM t")))

    def test_connection_error_maps_to_connection_failed(self):
        self.adapter.execute.side_effect = AdapterConnectionError("refused", "local")

        with pytest.raises(ConnectionFailed):
            asyncio.run(self.executor.execute(QueryRequest(sql="SELECT a FROM t")))

    def test_open_breaker_fails_fast(self):
        get_backend_breaker("sqlite").open()

        with pytest.raises(ConnectionFailed, match="unavailable"):
            asyncio.run(self.executor.execute(QueryRequest(sql="SELECT a FROM t")))
        self.adapter.execute.assert_not_called()

    def test_statement_errors_do_not_trip_breaker(self):
        self.adapter.execute.side_effect = AdapterQueryError("syntax error", "local")
        breaker = get_backend_breaker("sqlite")

        for _ in range(breaker.fail_max + 1):
            with pytest.raises(QueryExecutionFailed):
                asyncio.run(self.executor.execute(QueryRequest(sql="SELECT a FROM t")))

        assert breaker.current_state == pybreaker.STATE_CLOSED

    def test_cancel_running_query(self):
        def slow_execute(prepared, page):
            time.sleep(0.3)
            return QueryResult(columns=[], rows=[], row_count=0)

        self.adapter.execute.side_effect = slow_execute

        async def scenario():
            asyncio.get_running_loop().call_later(0.05, self.executor.cancel, "q-9")
            return await self.executor.execute(QueryRequest(sql="SELECT a FROM t", query_id="q-9"))

        with pytest.raises(QueryCancelled):
            asyncio.run(scenario())
        assert "q-9" not in self.executor.cancellations

    def test_cancel_unknown_query(self):
        assert self.executor.cancel("nope") is False

    def test_explain_is_not_clamped(self):
        self.adapter.explain.return_value = ExecutionPlanResponse(plan=link_plan_nodes([{"detail": "SCAN t"}]))

        plan = asyncio.run(self.executor.explain(ExplainRequest(sql="SELECT a FROM t;")))

        assert self.adapter.explain.call_args.args[0].text == "SELECT a FROM t"
        assert plan.plan[0].detail == "SCAN t"

    def test_explain_failure(self):
        self.adapter.explain.side_effect = AdapterQueryError("bad", "local")
        with pytest.raises(ExplainFailed):
            asyncio.run(self.executor.explain(ExplainRequest(sql="SELECT a FROM t")))

    def test_batch_is_not_implemented(self):
        with pytest.raises(NotImplementedYet):
            asyncio.run(self.executor.execute_batch(BatchQueryRequest(statements=["SELECT 1"])))

    def test_list_tables(self):
        self.adapter.fetch_schema.return_value = ["users"]

        conn, tables = asyncio.run(self.executor.list_tables())

        assert conn.id == "local"
        assert tables == ["users"]


class TestCancellationRegistry:
    def test_register_and_cancel(self):
        registry = CancellationRegistry()
        token = registry.register("q1")

        assert "q1" in registry
        assert registry.cancel("q1") is True
        assert token.is_cancelled()
        assert "q1" not in registry
        assert registry.cancel("q1") is False

    def test_release_only_removes_own_token(self):
        registry = CancellationRegistry()
        old = registry.register("q1")
        new = registry.register("q1")

        registry.release(old)
        assert registry.get("q1") is new

        registry.release(new)
        assert len(registry) == 0
