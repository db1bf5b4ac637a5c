from querygate import QueryGate
from querygate.common.errors import QueryNotFound
from querygate_api.models.query import (
    BatchQueryRequest,
    ExplainRequest,
    ExplainResponse,
    QueryRequest,
    QueryResponse,
)
from querygate_api.models.response import SuccessResponse


class QueryService:
    def __init__(self, gate: QueryGate):
        self.gate = gate

    async def execute_query(self, request: QueryRequest) -> QueryResponse:
        return await self.gate.executor.execute(request)

    async def explain_query(self, request: ExplainRequest) -> ExplainResponse:
        # AI optimization fields are left for the advisory service to fill in.
        return await self.gate.executor.explain(request)

    async def execute_batch(self, request: BatchQueryRequest) -> list:
        return await self.gate.executor.execute_batch(request)

    def cancel_query(self, query_id: str) -> SuccessResponse:
        if not self.gate.executor.cancel(query_id):
            raise QueryNotFound(f"Query {query_id} not found", {"query_id": query_id})
        return SuccessResponse(success=True, message=f"Query {query_id} cancelled")
