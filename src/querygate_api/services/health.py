from querygate import QueryGate
from querygate_api.models.response import SuccessResponse


class HealthService:
    def __init__(self, gate: QueryGate):
        self.gate = gate

    def liveness(self) -> SuccessResponse:
        return SuccessResponse(success=True, data={"status": "ok"})

    def readiness(self) -> SuccessResponse:
        active = self.gate.store.get_active_connections()
        by_type = {}
        for conn in active:
            by_type[conn.db_type.value] = by_type.get(conn.db_type.value, 0) + 1
        return SuccessResponse(
            success=bool(active),
            data={"active_connections": len(active), "by_db_type": by_type},
            message=None if active else "No active connection configured",
        )
