from typing import Optional

from querygate import QueryGate
from querygate_api.models.database import DatabaseInfoResponse, IndexListResponse


class DatabaseService:
    def __init__(self, gate: QueryGate):
        self.gate = gate

    async def get_info(self, connection_id: Optional[str] = None) -> DatabaseInfoResponse:
        conn, tables = await self.gate.executor.list_tables(connection_id)
        return DatabaseInfoResponse(
            connection_id=conn.id,
            database_type=conn.db_type.value,
            tables=tables,
        )

    async def get_indexes(self, table: str, connection_id: Optional[str] = None) -> IndexListResponse:
        indexes = await self.gate.executor.get_indexes(table, connection_id)
        return IndexListResponse(table=table, indexes=indexes)
