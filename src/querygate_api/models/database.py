from pydantic import BaseModel
from typing import List

from querygate_adapter_sdk import IndexInfo


class DatabaseInfoResponse(BaseModel):
    connection_id: str
    database_type: str
    tables: List[str]


class IndexListResponse(BaseModel):
    table: str
    indexes: List[IndexInfo]
