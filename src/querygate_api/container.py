from typing import Optional

from querygate import QueryGate

from querygate_api.services import DatabaseService, HealthService, QueryService


class Container:
    def __init__(self, gate: Optional[QueryGate] = None):
        gate = gate or QueryGate()

        self.gate = gate
        self.query = QueryService(gate)
        self.database = DatabaseService(gate)
        self.health = HealthService(gate)

    def close(self) -> None:
        self.gate.close()
