"""
Standard compliance suite for relational adapters.

Subclasses override the ``adapter`` fixture and return an adapter whose
database holds a ``users`` table with ``id`` and ``name`` columns and at
least one row.
"""
import pytest

from querygate_adapter_sdk import (
    AdapterQueryError,
    DatasourceAdapter,
    ExecutionPlanResponse,
    IndexInfo,
    QueryResult,
    SqlQuery,
)


class AdapterComplianceSuite:
    @pytest.fixture
    def adapter(self) -> DatasourceAdapter:
        """Override this fixture in subclass to return the adapter under test."""
        raise NotImplementedError

    def test_schema_contract(self, adapter):
        tables = adapter.fetch_schema()
        assert "users" in tables

    def test_execute_contract(self, adapter):
        result = adapter.execute(SqlQuery(text="SELECT id, name FROM users"))

        assert isinstance(result, QueryResult)
        assert result.columns == ["id", "name"]
        assert result.row_count == len(result.rows) >= 1
        assert all(len(row) == len(result.columns) for row in result.rows)
        assert result.execution_time_ms >= 0

    def test_execution_failure_raises(self, adapter):
        with pytest.raises(AdapterQueryError):
            adapter.execute(SqlQuery(text="SELECT * FROM NON_EXISTENT_TABLE_XYZ_123"))

    def test_explain_contract(self, adapter):
        plan = adapter.explain(SqlQuery(text="SELECT * FROM users WHERE id = 1"))

        assert isinstance(plan, ExecutionPlanResponse)
        assert len(plan.plan) >= 1
        assert plan.plan[0].parent is None
        for previous, node in zip(plan.plan, plan.plan[1:]):
            assert node.parent == previous.id

    def test_indexes_contract(self, adapter):
        indexes = adapter.get_indexes("users")
        assert all(isinstance(index, IndexInfo) for index in indexes)
