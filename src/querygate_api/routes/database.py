from typing import Optional

from fastapi import APIRouter

from querygate_api.dependencies import DatabaseSvc
from querygate_api.models.database import DatabaseInfoResponse, IndexListResponse

router = APIRouter()


@router.get("/database/info", response_model=DatabaseInfoResponse)
async def get_database_info(
    service: DatabaseSvc,
    connection_id: Optional[str] = None,
):
    return await service.get_info(connection_id)


@router.get("/database/tables/{table}/indexes", response_model=IndexListResponse)
async def get_table_indexes(
    table: str,
    service: DatabaseSvc,
    connection_id: Optional[str] = None,
):
    return await service.get_indexes(table, connection_id)
