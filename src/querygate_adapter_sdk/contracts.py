from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SqlQuery(BaseModel):
    """A SQL statement that already went through the limit clamp."""

    text: str
    is_query: bool = Field(
        default=True, description="True when the statement returns rows and may be paginated."
    )

    model_config = ConfigDict(extra="ignore")


class DocumentQuery(BaseModel):
    """A document-store command reduced to structured arguments."""

    collection: str
    method: Literal["find", "aggregate"] = "find"
    filter: Optional[Dict[str, Any]] = None
    projection: Optional[Dict[str, Any]] = None
    pipeline: List[Dict[str, Any]] = Field(default_factory=list)
    limit: int = Field(default=200, description="Row cap already clamped by the safety layer.")

    model_config = ConfigDict(extra="ignore")


class PageRequest(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=100, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size
