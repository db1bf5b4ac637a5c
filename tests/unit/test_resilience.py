from unittest.mock import MagicMock

import pybreaker
import pytest

from querygate.common.resilience import create_breaker, get_backend_breaker
from querygate_adapter_sdk import AdapterConnectionError, AdapterQueryError


class TestBackendBreaker:

    def setup_method(self):
        self.breaker = get_backend_breaker("postgresql")
        self.breaker.close()

    def test_breaker_is_shared_per_kind(self):
        assert get_backend_breaker("postgresql") is self.breaker
        assert get_backend_breaker("mysql") is not self.breaker
        assert self.breaker.name == "POSTGRESQL_BREAKER"

    def test_connection_failures_trip_breaker(self):
        func = MagicMock(side_effect=AdapterConnectionError("refused", "pg"))

        tripped = False
        for _ in range(self.breaker.fail_max + 1):
            try:
                self.breaker.call(func)
            except pybreaker.CircuitBreakerError:
                tripped = True
                break
            except AdapterConnectionError:
                continue

        assert tripped
        assert self.breaker.current_state == pybreaker.STATE_OPEN

        func.reset_mock()
        with pytest.raises(pybreaker.CircuitBreakerError):
            self.breaker.call(func)
        func.assert_not_called()

    def test_query_errors_are_excluded(self):
        func = MagicMock(side_effect=AdapterQueryError("syntax error", "pg"))

        for _ in range(self.breaker.fail_max + 2):
            with pytest.raises(AdapterQueryError):
                self.breaker.call(func)

        assert self.breaker.current_state == pybreaker.STATE_CLOSED
        assert self.breaker.fail_counter == 0


def test_create_breaker_registers_listener():
    breaker = create_breaker("TEST_BREAKER", fail_max=2, reset_timeout=1)
    assert breaker.fail_max == 2
    assert len(breaker.listeners) == 1
