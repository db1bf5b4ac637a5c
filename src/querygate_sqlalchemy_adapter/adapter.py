import time
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import Connection, Engine, create_engine, inspect
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError

from querygate_adapter_sdk import (
    AdapterConnectionError,
    AdapterQueryError,
    DatasourceAdapter,
    GenericValue,
    IndexInfo,
    PageRequest,
    QueryPerformance,
    QueryResult,
    SqlQuery,
)
from querygate_adapter_sdk.normalize import decode_typed, decode_with_fallback
import logging
logger = logging.getLogger(__name__)


def _driver_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class BaseSQLAlchemyAdapter(DatasourceAdapter):
    """
    Base class for all SQLAlchemy-based adapters.
    Implements connection handling, execution, pagination and schema lookups;
    subclasses choose how values are decoded and how EXPLAIN output is read.
    """
    dialect: Optional[str] = None

    def __init__(
        self,
        connection_string: str = None,
        datasource_id: str = None,
        datasource_engine_type: str = None,
        slow_query_ms: float = 1000.0,
    ):
        self.connection_string = connection_string
        self._datasource_id = datasource_id
        self.datasource_engine_type = datasource_engine_type
        self.slow_query_ms = slow_query_ms
        self.engine: Engine = None
        if connection_string:
            self.connect()

    def __str__(self):
        return f"{self.datasource_id} ({self.datasource_engine_type})"

    @property
    def datasource_id(self) -> str:
        return self._datasource_id

    def get_dialect(self) -> str:
        return self.dialect

    def engine_options(self) -> dict:
        return {"pool_pre_ping": True}

    def connect(self) -> None:
        conn_str = self.connection_string
        if not conn_str:
            raise ValueError(f"Connection string is required for {self}")
        try:
            self.engine = create_engine(conn_str, **self.engine_options())
        except (SQLAlchemyError, ImportError) as e:
            logger.error(f"Failed to create engine for {self}: {e}")
            raise AdapterConnectionError(str(e), self.datasource_id) from e

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Connection]:
        """Borrows a pooled connection inside a transaction."""
        if not self.engine:
            raise RuntimeError(f"Not connected to {self}")
        try:
            conn = self.engine.connect()
        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to {self}: {e}")
            raise AdapterConnectionError(_driver_message(e), self.datasource_id) from e
        try:
            with conn.begin():
                yield conn
        finally:
            conn.close()

    @staticmethod
    def run_statement(conn: Connection, statement: str) -> CursorResult:
        # Raw driver execution: no bind-parameter parsing of ':name' tokens.
        return conn.execution_options(no_parameters=True).exec_driver_sql(statement)

    # --- value decoding ---

    def column_type_names(self, result: CursorResult) -> List[Optional[str]]:
        """Type name per column, or None where the driver does not say."""
        return [None] * len(result.keys())

    def decode_cell(self, value: Any, type_name: Optional[str]) -> GenericValue:
        if type_name is None:
            return decode_with_fallback(value)
        return decode_typed(value, type_name)

    def decode_row(self, row: Sequence[Any], type_names: List[Optional[str]]) -> List[GenericValue]:
        return [self.decode_cell(value, type_name) for value, type_name in zip(row, type_names)]

    # --- execution ---

    @staticmethod
    def _strip_terminator(sql: str) -> str:
        return sql.strip().rstrip(";").rstrip()

    def paginate(self, sql: str, page: PageRequest) -> str:
        inner = self._strip_terminator(sql)
        return (
            f"SELECT * FROM ({inner}) AS page_query "
            f"LIMIT {page.page_size} OFFSET {page.offset}"
        )

    def count_statement(self, sql: str) -> str:
        inner = self._strip_terminator(sql)
        return f"SELECT COUNT(*) AS count FROM ({inner}) AS query_count"

    def execute(self, query: SqlQuery, page: Optional[PageRequest] = None) -> QueryResult:
        paginate = page is not None and query.is_query
        statement = self.paginate(query.text, page) if paginate else query.text

        start = time.perf_counter()
        with self.session() as conn:
            try:
                result = self.run_statement(conn, statement)
                issued = time.perf_counter()
                if result.returns_rows:
                    cols = list(result.keys())
                    type_names = self.column_type_names(result)
                    rows = [self.decode_row(row, type_names) for row in result.fetchall()]
                    row_count = len(rows)
                else:
                    cols = []
                    rows = []
                    row_count = max(result.rowcount, 0)
                fetched = time.perf_counter()

                total_rows = None
                if paginate:
                    total_rows = self.run_statement(conn, self.count_statement(query.text)).scalar()
            except SQLAlchemyError as e:
                logger.error(f"Query failed on {self}: {e}")
                raise AdapterQueryError(_driver_message(e), self.datasource_id) from e

        query_ms = (issued - start) * 1000
        fetch_ms = (fetched - issued) * 1000
        performance = QueryPerformance.measure(
            query_time_ms=query_ms,
            fetch_time_ms=fetch_ms,
            rows_read=total_rows if total_rows is not None else row_count,
            rows_returned=len(rows),
            slow_query_ms=self.slow_query_ms,
        )
        return QueryResult(
            columns=cols,
            rows=rows,
            row_count=row_count,
            execution_time_ms=query_ms + fetch_ms,
            total_rows=total_rows,
            page=page.page if paginate else None,
            page_size=page.page_size if paginate else None,
            has_more=bool(paginate and page.offset + len(rows) < (total_rows or 0)),
            performance=performance,
        )

    def explain_rows(self, statement: str) -> Tuple[List[str], List[Sequence[Any]]]:
        """Runs an EXPLAIN-style statement and returns its raw keys and rows."""
        with self.session() as conn:
            try:
                result = self.run_statement(conn, statement)
                return list(result.keys()), [tuple(row) for row in result.fetchall()]
            except SQLAlchemyError as e:
                logger.error(f"Explain failed on {self}: {e}")
                raise AdapterQueryError(_driver_message(e), self.datasource_id) from e

    # --- schema ---

    def fetch_schema(self) -> List[str]:
        if not self.engine:
            raise RuntimeError(f"Not connected to {self}. Please verify the connection details.")
        try:
            inspector = inspect(self.engine)
            return list(inspector.get_table_names())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch table names for {self}: {e}")
            raise AdapterQueryError(_driver_message(e), self.datasource_id) from e

    def get_indexes(self, table: str) -> List[IndexInfo]:
        if not self.engine:
            raise RuntimeError(f"Not connected to {self}. Please verify the connection details.")
        try:
            inspector = inspect(self.engine)
            indexes = []
            pk = inspector.get_pk_constraint(table) or {}
            if pk.get("constrained_columns"):
                indexes.append(IndexInfo(
                    name=pk.get("name") or "PRIMARY",
                    columns=list(pk["constrained_columns"]),
                    is_unique=True,
                ))
            for info in inspector.get_indexes(table):
                indexes.append(IndexInfo(
                    name=info.get("name") or "",
                    columns=[c for c in info.get("column_names", []) if c],
                    is_unique=bool(info.get("unique")),
                ))
            return indexes
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch indexes of {table} for {self}: {e}")
            raise AdapterQueryError(_driver_message(e), self.datasource_id) from e
