from typing import List, Optional, Union

from pydantic import BaseModel, Field, model_validator

# Universal cell type after normalization.
GenericValue = Optional[Union[bool, int, float, str]]


class QueryPerformance(BaseModel):
    query_time_ms: float
    fetch_time_ms: float
    total_time_ms: float
    rows_read: int
    rows_returned: int
    memory_used_kb: Optional[int] = None
    is_slow_query: bool = False
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def measure(
        cls,
        query_time_ms: float,
        fetch_time_ms: float,
        rows_read: int,
        rows_returned: int,
        slow_query_ms: float = 1000.0,
    ) -> "QueryPerformance":
        """Builds the performance summary and its advisory warnings."""
        total = query_time_ms + fetch_time_ms
        is_slow = total > slow_query_ms

        warnings = []
        if is_slow:
            warnings.append(f"Slow query: {total:.0f}ms exceeds {slow_query_ms:.0f}ms")
        if rows_read > 10000:
            warnings.append(f"Large scan: {rows_read} rows read")
        if rows_returned > 0 and rows_read > rows_returned * 10:
            warnings.append(
                f"Low selectivity: read {rows_read} rows to return {rows_returned}"
            )

        return cls(
            query_time_ms=query_time_ms,
            fetch_time_ms=fetch_time_ms,
            total_time_ms=total,
            rows_read=rows_read,
            rows_returned=rows_returned,
            is_slow_query=is_slow,
            warnings=warnings,
        )


class QueryResult(BaseModel):
    columns: List[str]
    rows: List[List[GenericValue]]
    row_count: int
    execution_time_ms: float = 0.0
    total_rows: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    has_more: bool = False
    performance: Optional[QueryPerformance] = None
    query_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_row_width(self) -> "QueryResult":
        width = len(self.columns)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {index} has {len(row)} values but there are {width} columns"
                )
        return self


class ExecutionPlanNode(BaseModel):
    id: int
    parent: Optional[int] = None
    detail: str
    operation: Optional[str] = None
    table: Optional[str] = None
    index: Optional[str] = None
    cost: Optional[float] = None
    rows: Optional[int] = None
    width: Optional[int] = None
    filter: Optional[str] = None
    join_type: Optional[str] = None


class ExecutionPlanResponse(BaseModel):
    plan: List[ExecutionPlanNode]
    query_plan: Optional[str] = None
    planning_time: Optional[float] = None
    execution_time: Optional[float] = None
    ai_optimization_advice: Optional[str] = None
    ai_optimized_sql: Optional[str] = None


class IndexInfo(BaseModel):
    name: str
    columns: List[str]
    is_unique: bool = False


def link_plan_nodes(steps: List[dict]) -> List[ExecutionPlanNode]:
    """Turns backend plan rows into a linear chain.

    Each node's id is its position and its parent is the previous node,
    whatever nesting the engine itself reported.
    """
    nodes = []
    for position, step in enumerate(steps):
        nodes.append(
            ExecutionPlanNode(
                id=position,
                parent=position - 1 if position > 0 else None,
                **step,
            )
        )
    return nodes
