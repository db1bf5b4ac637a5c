from typing import Optional

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from querygate.common.errors import InvalidConnectionConfig
from querygate.connections.models import BackendKind, ConnectionConfig

_DRIVERS = {
    BackendKind.POSTGRESQL: ("postgresql+psycopg2", "postgres"),
    BackendKind.MYSQL: ("mysql+pymysql", "root"),
}


def _secret(conn: ConnectionConfig) -> Optional[str]:
    return conn.password.get_secret_value() if conn.password is not None else None


def _raw_url(conn: ConnectionConfig) -> str:
    """Pins a raw relational URL to the installed driver, keeping everything else."""
    if conn.db_type not in _DRIVERS:
        return conn.connection_string
    try:
        url = make_url(conn.connection_string)
    except ArgumentError as exc:
        raise InvalidConnectionConfig(
            f"Unparseable connection_string for connection '{conn.id}': {exc}",
            {"connection_id": conn.id},
        ) from exc
    return url.set(drivername=_DRIVERS[conn.db_type][0]).render_as_string(hide_password=False)


def _mongodb_url(conn: ConnectionConfig) -> str:
    user = conn.username or "root"
    password = _secret(conn)
    if password:
        return URL.create(
            "mongodb",
            username=user,
            password=password,
            host=conn.host,
            port=conn.port,
            database=conn.database_name,
            query={"authSource": "admin"},
        ).render_as_string(hide_password=False)
    return f"mongodb://{conn.host}:{conn.port}/{conn.database_name}"


def build_connection_string(conn: ConnectionConfig) -> str:
    """Builds the driver URL for a connection.

    Rules, first match wins: a raw connection string (relational schemes are
    pinned to the installed driver); a file path
    as an embedded-file database; host, port and database for network
    backends.

    Raises:
        InvalidConnectionConfig: If none of the rules has its fields set.
    """
    if conn.connection_string:
        return _raw_url(conn)

    if conn.file_path and conn.file_path.strip():
        return f"sqlite:///{conn.file_path.strip()}"

    if conn.host and conn.port and conn.database_name:
        if conn.db_type is BackendKind.MONGODB:
            return _mongodb_url(conn)
        if conn.db_type in _DRIVERS:
            drivername, default_user = _DRIVERS[conn.db_type]
            return URL.create(
                drivername,
                username=conn.username or default_user,
                password=_secret(conn),
                host=conn.host,
                port=conn.port,
                database=conn.database_name,
            ).render_as_string(hide_password=False)

    raise InvalidConnectionConfig(
        f"Incomplete configuration for connection '{conn.id}' ({conn.db_type.value}): "
        "provide connection_string, file_path, or host, port and database_name.",
        {"connection_id": conn.id},
    )


def mask_url(url: str) -> str:
    """Renders a URL with its password hidden, for logs."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<unparseable url>"
