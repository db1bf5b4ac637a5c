import contextvars
import json
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

_query_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("query_id", default=None)
_connection_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("connection_id", default=None)

TEXT_FORMAT = "%(asctime)s - %(levelname)s - [%(query_id)s|%(connection_id)s] - %(name)s - %(message)s"

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "query_id", "connection_id"}


class QueryContextFilter(logging.Filter):
    """Stamps each record with the query and connection it was logged under."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.query_id = _query_id_ctx.get()
        record.connection_id = _connection_id_ctx.get()
        return True


@contextmanager
def query_context(query_id: str) -> Iterator[None]:
    """Scopes log records to one query.

    The connection id starts empty and is filled in by ``bind_connection``
    once the connection is resolved; both are restored on exit.
    """
    query_token = _query_id_ctx.set(query_id)
    connection_token = _connection_id_ctx.set(None)
    try:
        yield
    finally:
        _connection_id_ctx.reset(connection_token)
        _query_id_ctx.reset(query_token)


def bind_connection(connection_id: str) -> None:
    _connection_id_ctx.set(connection_id)


def current_query_id() -> Optional[str]:
    return _query_id_ctx.get()


class JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying the query context and any extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("query_id", "connection_id"):
            value = getattr(record, key, None)
            if value:
                payload[key] = value

        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Installs a single stream handler on the root logger.

    Args:
        level (str): Root log level.
        json_format (bool): Emit JSON lines instead of the text format.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.addFilter(QueryContextFilter())
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(handler)

    # Driver chatter would otherwise echo every statement.
    for noisy in ("sqlalchemy.engine", "pymongo", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
