from .contracts import BatchQueryRequest, ExplainRequest, QueryRequest
from .executor import QueryExecutor, race

__all__ = ["BatchQueryRequest", "ExplainRequest", "QueryRequest", "QueryExecutor", "race"]
