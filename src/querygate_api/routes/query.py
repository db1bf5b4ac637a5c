from fastapi import APIRouter

from querygate_api.dependencies import QuerySvc
from querygate_api.models.query import (
    BatchQueryRequest,
    ExplainRequest,
    ExplainResponse,
    QueryRequest,
    QueryResponse,
)
from querygate_api.models.response import ErrorResponse, SuccessResponse

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


@router.post("/query", response_model=QueryResponse, responses=_ERRORS)
async def execute_query(
    payload: QueryRequest,
    service: QuerySvc,
):
    return await service.execute_query(payload)


@router.post("/query/explain", response_model=ExplainResponse, responses=_ERRORS)
async def explain_query(
    payload: ExplainRequest,
    service: QuerySvc,
):
    return await service.explain_query(payload)


@router.post("/query/batch", responses={501: {"model": ErrorResponse}})
async def execute_batch(
    payload: BatchQueryRequest,
    service: QuerySvc,
):
    return await service.execute_batch(payload)


@router.post("/query/{query_id}/cancel", response_model=SuccessResponse, responses={404: {"model": ErrorResponse}})
async def cancel_query(
    query_id: str,
    service: QuerySvc,
):
    return service.cancel_query(query_id)
