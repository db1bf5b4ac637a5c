import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import Decimal128, ObjectId, json_util
from pymongo import MongoClient
from pymongo.errors import ConfigurationError, ConnectionFailure, PyMongoError

from querygate_adapter_sdk import (
    AdapterConnectionError,
    AdapterQueryError,
    DatasourceAdapter,
    DocumentQuery,
    ExecutionPlanResponse,
    GenericValue,
    IndexInfo,
    PageRequest,
    QueryPerformance,
    QueryResult,
    link_plan_nodes,
)
from querygate_adapter_sdk.normalize import normalize_documents, to_generic

logger = logging.getLogger(__name__)


def bson_cell(value: Any) -> GenericValue:
    """Converts one BSON field value to a generic cell."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal128):
        return float(value.to_decimal())
    if isinstance(value, (dict, list)):
        return json_util.dumps(value)
    return to_generic(value)


class MongoAdapter(DatasourceAdapter):
    """Document-store adapter over pymongo."""

    def __init__(
        self,
        connection_string: str = None,
        datasource_id: str = None,
        datasource_engine_type: str = "mongodb",
        database_name: Optional[str] = None,
        slow_query_ms: float = 1000.0,
        server_selection_timeout_ms: int = 5000,
    ):
        self.connection_string = connection_string
        self._datasource_id = datasource_id
        self.datasource_engine_type = datasource_engine_type
        self.database_name = database_name
        self.slow_query_ms = slow_query_ms
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.client: Optional[MongoClient] = None
        self.db = None
        if connection_string:
            self.connect()

    def __str__(self):
        return f"{self.datasource_id} ({self.datasource_engine_type})"

    @property
    def datasource_id(self) -> str:
        return self._datasource_id

    def get_dialect(self) -> str:
        return "mongodb"

    def connect(self) -> None:
        if not self.connection_string:
            raise ValueError(f"Connection string is required for {self}")
        try:
            # MongoClient connects lazily; failures surface on the first command.
            self.client = MongoClient(
                self.connection_string,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            )
            self.db = self.client.get_default_database(default=self.database_name)
        except (ConfigurationError, ValueError) as e:
            logger.error(f"Failed to configure MongoDB client for {self}: {e}")
            raise AdapterConnectionError(str(e), self.datasource_id) from e

    def close(self) -> None:
        if self.client is not None:
            self.client.close()

    def _fail(self, action: str, exc: PyMongoError):
        logger.error(f"MongoDB {action} failed on {self}: {exc}")
        if isinstance(exc, ConnectionFailure):
            return AdapterConnectionError(str(exc), self.datasource_id)
        return AdapterQueryError(str(exc), self.datasource_id)

    def _find(self, query: DocumentQuery, page: Optional[PageRequest]) -> List[Dict[str, Any]]:
        collection = self.db[query.collection]
        limit = query.limit
        skip = 0
        if page is not None:
            skip = page.offset
            limit = min(page.page_size, query.limit - skip)
            if limit <= 0:
                return []
        cursor = collection.find(query.filter or {}, query.projection or None)
        if skip:
            cursor = cursor.skip(skip)
        return list(cursor.limit(limit))

    def _aggregate(self, query: DocumentQuery, page: Optional[PageRequest]) -> List[Dict[str, Any]]:
        pipeline = list(query.pipeline)
        if page is not None:
            pipeline += [{"$skip": page.offset}, {"$limit": page.page_size}]
        return list(self.db[query.collection].aggregate(pipeline))

    def _count(self, query: DocumentQuery) -> int:
        collection = self.db[query.collection]
        if query.method == "aggregate":
            counted = list(collection.aggregate(list(query.pipeline) + [{"$count": "count"}]))
            return counted[0]["count"] if counted else 0
        return collection.count_documents(query.filter or {}, limit=query.limit)

    def execute(self, query: DocumentQuery, page: Optional[PageRequest] = None) -> QueryResult:
        if self.db is None:
            raise RuntimeError(f"Not connected to {self}")

        start = time.perf_counter()
        try:
            if query.method == "aggregate":
                documents = self._aggregate(query, page)
            else:
                documents = self._find(query, page)
            fetched = time.perf_counter()
            total_rows = self._count(query) if page is not None else None
        except PyMongoError as e:
            raise self._fail("query", e) from e

        columns, rows = normalize_documents(documents, cell=bson_cell)
        elapsed_ms = (fetched - start) * 1000
        performance = QueryPerformance.measure(
            query_time_ms=elapsed_ms,
            fetch_time_ms=0.0,
            rows_read=total_rows if total_rows is not None else len(rows),
            rows_returned=len(rows),
            slow_query_ms=self.slow_query_ms,
        )
        return QueryResult(
            columns=columns,
            rows=rows,
            row_count=len(rows),
            execution_time_ms=elapsed_ms,
            total_rows=total_rows,
            page=page.page if page else None,
            page_size=page.page_size if page else None,
            has_more=bool(page and page.offset + len(rows) < (total_rows or 0)),
            performance=performance,
        )

    def explain(self, query: DocumentQuery) -> ExecutionPlanResponse:
        if self.db is None:
            raise RuntimeError(f"Not connected to {self}")

        if query.method == "aggregate":
            command = {"aggregate": query.collection, "pipeline": list(query.pipeline), "cursor": {}}
        else:
            command = {"find": query.collection, "filter": query.filter or {}}
            if query.projection:
                command["projection"] = query.projection
        try:
            result = self.db.command({"explain": command, "verbosity": "executionStats"})
        except PyMongoError as e:
            raise self._fail("explain", e) from e

        detail = json_util.dumps(result, indent=2)
        returned = (result.get("executionStats") or {}).get("nReturned")
        step = {
            "detail": detail,
            "operation": "EXPLAIN",
            "table": query.collection,
            "rows": int(returned) if returned is not None else None,
        }
        return ExecutionPlanResponse(plan=link_plan_nodes([step]), query_plan=detail)

    def fetch_schema(self) -> List[str]:
        try:
            return sorted(self.db.list_collection_names())
        except PyMongoError as e:
            raise self._fail("list collections", e) from e

    def get_indexes(self, table: str) -> List[IndexInfo]:
        try:
            info = self.db[table].index_information()
        except PyMongoError as e:
            raise self._fail("index lookup", e) from e
        return [
            IndexInfo(
                name=name,
                columns=[field for field, _direction in spec.get("key", [])],
                is_unique=bool(spec.get("unique", False)) or name == "_id_",
            )
            for name, spec in info.items()
        ]
