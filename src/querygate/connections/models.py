from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class BackendKind(str, Enum):
    """Closed set of supported backends."""
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MONGODB = "mongodb"

    @property
    def is_relational(self) -> bool:
        return self is not BackendKind.MONGODB


_KIND_ALIASES = {
    "postgres": BackendKind.POSTGRESQL,
    "postgresql": BackendKind.POSTGRESQL,
    "pg": BackendKind.POSTGRESQL,
    "mysql": BackendKind.MYSQL,
    "mariadb": BackendKind.MYSQL,
    "sqlite": BackendKind.SQLITE,
    "sqlite3": BackendKind.SQLITE,
    "mongo": BackendKind.MONGODB,
    "mongodb": BackendKind.MONGODB,
}


def normalize_kind(value: str) -> BackendKind:
    """Maps user-facing backend names to a BackendKind."""
    key = str(value).strip().lower()
    if key not in _KIND_ALIASES:
        raise ValueError(
            f"Unsupported database type: '{value}'. Available: {sorted(k.value for k in BackendKind)}"
        )
    return _KIND_ALIASES[key]


class ConnectionConfig(BaseModel):
    """
    A configured database connection.

    Exactly one connection-string rule applies: a raw ``connection_string``
    wins, then ``file_path``, then host/port/database fields.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    db_type: BackendKind
    host: Optional[str] = None
    port: Optional[int] = None
    database_name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    file_path: Optional[str] = None
    connection_string: Optional[str] = None
    is_active: bool = True
    environment: str = Field(default="development", description="development, testing, staging or production.")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if value is not None else value

    @field_validator("db_type", mode="before")
    @classmethod
    def _normalize_db_type(cls, value):
        if isinstance(value, BackendKind):
            return value
        return normalize_kind(value)

    @property
    def display_name(self) -> str:
        return self.name or self.id
