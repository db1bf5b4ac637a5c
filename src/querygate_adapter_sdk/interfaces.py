from abc import ABC, abstractmethod
from typing import List, Optional, Union

from .contracts import DocumentQuery, PageRequest, SqlQuery
from .models import ExecutionPlanResponse, IndexInfo, QueryResult

PreparedQuery = Union[SqlQuery, DocumentQuery]


class DatasourceAdapter(ABC):
    """Capability set every backend adapter implements."""

    @property
    @abstractmethod
    def datasource_id(self) -> str:
        """Identifier of the connection this adapter serves."""
        pass

    @abstractmethod
    def get_dialect(self) -> str:
        """Return the dialect name used to parse and render statements."""
        pass

    @abstractmethod
    def connect(self) -> None:
        """Initialize the client or engine from the connection string."""
        pass

    @abstractmethod
    def execute(self, query: PreparedQuery, page: Optional[PageRequest] = None) -> QueryResult:
        """Run an already sanitized query and return normalized rows."""
        pass

    @abstractmethod
    def explain(self, query: PreparedQuery) -> ExecutionPlanResponse:
        """Return the engine's plan flattened into a node chain."""
        pass

    @abstractmethod
    def fetch_schema(self) -> List[str]:
        """Return table or collection names."""
        pass

    @abstractmethod
    def get_indexes(self, table: str) -> List[IndexInfo]:
        """Return the indexes defined on a table or collection."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release pooled sessions."""
        pass
