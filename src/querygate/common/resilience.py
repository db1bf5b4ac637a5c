"""
Circuit breakers guarding backend sessions.

One breaker exists per backend kind. Only failures to establish a session
count against it; a statement the database rejects is the caller's problem
and is excluded, so a burst of bad SQL never trips the breaker.
"""
from typing import Dict, Iterable, Type

import pybreaker

from querygate.common.logger import get_logger
from querygate.common.settings import settings
from querygate_adapter_sdk import AdapterQueryError

logger = get_logger("resilience")

_BREAKERS: Dict[str, pybreaker.CircuitBreaker] = {}


class SessionBreakerListener(pybreaker.CircuitBreakerListener):
    """Logs how a backend's breaker moves between closed, open and half-open."""

    def state_change(self, cb, old_state, new_state):
        if new_state.name == pybreaker.STATE_OPEN:
            logger.error(
                f"{cb.name} opened after {cb.fail_counter} session failures; "
                f"rejecting calls for {cb.reset_timeout}s"
            )
        elif new_state.name == pybreaker.STATE_HALF_OPEN:
            logger.warning(f"{cb.name} half-open, letting one trial session through")
        elif old_state is not None and old_state.name != pybreaker.STATE_CLOSED:
            logger.info(f"{cb.name} closed, sessions restored")

    def failure(self, cb, exc):
        logger.warning(f"{cb.name} session failure {cb.fail_counter}/{cb.fail_max}: {exc}")


def create_breaker(
    name: str,
    fail_max: int,
    reset_timeout: int,
    exclude: Iterable[Type[Exception]] = (),
) -> pybreaker.CircuitBreaker:
    return pybreaker.CircuitBreaker(
        name=name,
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        exclude=list(exclude),
        listeners=[SessionBreakerListener()],
    )


def get_backend_breaker(kind: str) -> pybreaker.CircuitBreaker:
    """Returns the shared breaker for a backend kind, creating it on first use."""
    breaker = _BREAKERS.get(kind)
    if breaker is None:
        breaker = _BREAKERS[kind] = create_breaker(
            f"{kind.upper()}_BREAKER",
            fail_max=settings.breaker_fail_max,
            reset_timeout=settings.breaker_reset_timeout,
            exclude=(AdapterQueryError,),
        )
    return breaker
