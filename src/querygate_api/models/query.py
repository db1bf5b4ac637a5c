from querygate.execution.contracts import BatchQueryRequest, ExplainRequest, QueryRequest
from querygate_adapter_sdk import ExecutionPlanNode, ExecutionPlanResponse, QueryPerformance, QueryResult

# The wire schema is the core contract; re-exported so routes import from one place.
QueryResponse = QueryResult
ExplainResponse = ExecutionPlanResponse

__all__ = [
    "BatchQueryRequest",
    "ExplainRequest",
    "QueryRequest",
    "ExecutionPlanNode",
    "ExplainResponse",
    "QueryPerformance",
    "QueryResponse",
]
