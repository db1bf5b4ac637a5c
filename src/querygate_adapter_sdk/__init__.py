from .interfaces import DatasourceAdapter, PreparedQuery
from .contracts import DocumentQuery, PageRequest, SqlQuery
from .errors import AdapterConnectionError, AdapterError, AdapterQueryError, ValueDecodeError
from .models import (
    ExecutionPlanNode,
    ExecutionPlanResponse,
    GenericValue,
    IndexInfo,
    QueryPerformance,
    QueryResult,
    link_plan_nodes,
)

__all__ = [
    "DatasourceAdapter",
    "PreparedQuery",
    "DocumentQuery",
    "PageRequest",
    "SqlQuery",
    "AdapterError",
    "AdapterConnectionError",
    "AdapterQueryError",
    "ValueDecodeError",
    "ExecutionPlanNode",
    "ExecutionPlanResponse",
    "GenericValue",
    "IndexInfo",
    "QueryPerformance",
    "QueryResult",
    "link_plan_nodes",
]
