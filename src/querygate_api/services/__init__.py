from .database import DatabaseService
from .health import HealthService
from .query import QueryService


__all__ = [
    "DatabaseService",
    "HealthService",
    "QueryService",
]
