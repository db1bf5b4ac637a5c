import pytest

from querygate.common.errors import (
    ConnectionFailed,
    ConnectionNotFound,
    ErrorCode,
    ErrorSeverity,
    InjectionDetected,
    NotImplementedYet,
    QueryCancelled,
    QueryGateError,
    QueryTimeout,
    TooManyRowsRequested,
)


@pytest.mark.parametrize(
    "error_cls, code, status",
    [
        (ConnectionNotFound, ErrorCode.CONNECTION_NOT_FOUND, 404),
        (ConnectionFailed, ErrorCode.CONNECTION_FAILED, 500),
        (TooManyRowsRequested, ErrorCode.TOO_MANY_ROWS_REQUESTED, 400),
        (QueryTimeout, ErrorCode.QUERY_TIMEOUT, 504),
        (QueryCancelled, ErrorCode.QUERY_CANCELLED, 409),
        (NotImplementedYet, ErrorCode.NOT_IMPLEMENTED, 501),
    ],
)
def test_error_codes_and_statuses(error_cls, code, status):
    error = error_cls("boom")
    assert isinstance(error, QueryGateError)
    assert error.error_code == code
    assert error.http_status == status


def test_injection_detected_carries_reason():
    error = InjectionDetected("DROP TABLE statement")

    assert error.reason == "DROP TABLE statement"
    assert error.message == "Potential SQL injection detected: DROP TABLE statement"
    assert error.severity == ErrorSeverity.WARNING


def test_connection_failures_use_safe_message():
    error = ConnectionFailed("password authentication failed for user app", {"connection_id": "1"})

    response = error.to_response()

    assert "password" not in response.message
    assert response.error_code == ErrorCode.CONNECTION_FAILED
    assert response.details == {"connection_id": "1"}


def test_response_keeps_message_for_other_errors():
    response = QueryTimeout("Query exceeded the 5s timeout").to_response()
    assert response.message == "Query exceeded the 5s timeout"
    assert response.model_dump(mode="json")["error_code"] == "QUERY_TIMEOUT"
