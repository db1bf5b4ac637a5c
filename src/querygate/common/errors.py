from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ErrorSeverity(str, Enum):
    """Severity levels for query errors."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCode(str, Enum):
    """Standardized error codes returned to callers."""
    INVALID_CONNECTION_CONFIG = "INVALID_CONNECTION_CONFIG"
    CONNECTION_NOT_FOUND = "CONNECTION_NOT_FOUND"
    NO_ACTIVE_CONNECTION = "NO_ACTIVE_CONNECTION"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    STATEMENT_PARSE_FAILED = "STATEMENT_PARSE_FAILED"
    INJECTION_DETECTED = "INJECTION_DETECTED"
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"
    EXPLAIN_FAILED = "EXPLAIN_FAILED"
    TOO_MANY_ROWS_REQUESTED = "TOO_MANY_ROWS_REQUESTED"
    QUERY_TIMEOUT = "QUERY_TIMEOUT"
    QUERY_CANCELLED = "QUERY_CANCELLED"
    QUERY_NOT_FOUND = "QUERY_NOT_FOUND"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"


SAFE_ERROR_MESSAGES = {
    ErrorCode.CONNECTION_FAILED: "Could not establish a session with the database.",
}


class ErrorResponse(BaseModel):
    """Error body returned by every outer surface."""
    model_config = ConfigDict(extra="ignore")

    error_code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None


class QueryGateError(Exception):
    """Base class for caller-visible failures.

    Attributes:
        error_code (ErrorCode): The standardized error code.
        http_status (int): Status code the HTTP layer answers with.
        severity (ErrorSeverity): Severity used when logging.
        details (Optional[dict]): Additional context for the caller.
    """
    error_code = ErrorCode.QUERY_EXECUTION_FAILED
    http_status = 400
    severity = ErrorSeverity.ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def get_safe_message(self) -> str:
        """Returns the message exposed to callers for this error code."""
        return SAFE_ERROR_MESSAGES.get(self.error_code, self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error_code=self.error_code,
            message=self.get_safe_message(),
            details=self.details,
        )


class InvalidConnectionConfig(QueryGateError):
    error_code = ErrorCode.INVALID_CONNECTION_CONFIG


class ConnectionNotFound(QueryGateError):
    error_code = ErrorCode.CONNECTION_NOT_FOUND
    http_status = 404


class NoActiveConnection(QueryGateError):
    error_code = ErrorCode.NO_ACTIVE_CONNECTION


class ConnectionFailed(QueryGateError):
    error_code = ErrorCode.CONNECTION_FAILED
    http_status = 500
    severity = ErrorSeverity.CRITICAL


class StatementParseFailed(QueryGateError):
    """Raised by the statement parser; recovered by the string fallback."""
    error_code = ErrorCode.STATEMENT_PARSE_FAILED
    severity = ErrorSeverity.INFO


class InjectionDetected(QueryGateError):
    error_code = ErrorCode.INJECTION_DETECTED
    severity = ErrorSeverity.WARNING

    def __init__(self, reason: str):
        super().__init__(f"Potential SQL injection detected: {reason}", {"reason": reason})
        self.reason = reason


class QueryExecutionFailed(QueryGateError):
    error_code = ErrorCode.QUERY_EXECUTION_FAILED


class ExplainFailed(QueryGateError):
    error_code = ErrorCode.EXPLAIN_FAILED


class TooManyRowsRequested(QueryGateError):
    error_code = ErrorCode.TOO_MANY_ROWS_REQUESTED


class QueryTimeout(QueryGateError):
    error_code = ErrorCode.QUERY_TIMEOUT
    http_status = 504


class QueryCancelled(QueryGateError):
    error_code = ErrorCode.QUERY_CANCELLED
    http_status = 409
    severity = ErrorSeverity.INFO


class QueryNotFound(QueryGateError):
    error_code = ErrorCode.QUERY_NOT_FOUND
    http_status = 404
    severity = ErrorSeverity.INFO


class NotImplementedYet(QueryGateError):
    error_code = ErrorCode.NOT_IMPLEMENTED
    http_status = 501
    severity = ErrorSeverity.INFO
