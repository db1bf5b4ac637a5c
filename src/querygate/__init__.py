# querygate package

from .public_api import QueryGate

from .common.errors import ErrorCode, ErrorSeverity, QueryGateError
from .connections import BackendKind, ConnectionConfig
from .execution import BatchQueryRequest, ExplainRequest, QueryRequest
from querygate_adapter_sdk import ExecutionPlanResponse, QueryResult

__all__ = [
    "QueryGate",
    "ErrorCode",
    "ErrorSeverity",
    "QueryGateError",
    "BackendKind",
    "ConnectionConfig",
    "BatchQueryRequest",
    "ExplainRequest",
    "QueryRequest",
    "ExecutionPlanResponse",
    "QueryResult",
]
