from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _id_to_str(value):
    return str(value) if value is not None else None


# Stores may key connections by integer; requests always carry strings.
ConnectionId = Annotated[Optional[str], BeforeValidator(_id_to_str)]


class QueryRequest(BaseModel):
    """An ad hoc query submitted by a caller."""
    model_config = ConfigDict(extra="ignore")

    sql: str = Field(..., min_length=1, description="SQL text or a shell-style document command.")
    connection_id: ConnectionId = Field(default=None, description="Falls back to the first active connection.")
    parameters: Optional[List[Any]] = Field(default=None, description="Accepted for compatibility; not bound.")
    timeout_secs: Optional[float] = Field(default=None, gt=0)
    page: Optional[int] = Field(default=None, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)
    query_id: Optional[str] = Field(default=None, description="Handle for cancellation; generated when absent.")


class ExplainRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sql: str = Field(..., min_length=1)
    connection_id: ConnectionId = None
    timeout_secs: Optional[float] = Field(default=None, gt=0)


class BatchQueryRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    statements: List[str] = Field(default_factory=list)
    connection_id: ConnectionId = None
