"""
Circuit breakers for collaborator calls.

Circuit Breaker States:
- CLOSED: Requests pass through normally
- OPEN: Requests fail immediately (after fail_max failures)
- HALF_OPEN: One request allowed to test if the service has recovered

An open breaker surfaces as CircuitBreakerError; callers translate it into
ProviderUnavailableError rather than substituting an empty fallback value.
"""
import asyncio
import logging

from pybreaker import CircuitBreaker, CircuitBreakerError

logger = logging.getLogger(__name__)

# Default circuit breaker configuration
DEFAULT_FAIL_MAX = 5  # Number of failures before opening circuit
DEFAULT_RESET_TIMEOUT = 60  # Seconds before attempting to close circuit

__all__ = [
    "CircuitBreakerError",
    "get_all_breaker_states",
    "make_breaker",
    "reset_breaker",
    "schedule_api_breaker",
]


def make_breaker(name: str, fail_max: int = DEFAULT_FAIL_MAX, reset_timeout: int = DEFAULT_RESET_TIMEOUT) -> CircuitBreaker:
    """Create a named breaker with the default thresholds. Cancellation is not a failure."""
    return CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        exclude=[asyncio.CancelledError],
        name=name,
    )


schedule_api_breaker = make_breaker("schedule_api")


def get_all_breaker_states() -> dict[str, str]:
    """
    Get the current state of all circuit breakers.

    Returns:
        Dictionary mapping breaker names to 'closed', 'open' or 'half-open'
    """
    return {schedule_api_breaker.name: schedule_api_breaker.current_state}


def reset_breaker(breaker: CircuitBreaker) -> None:
    """
    Manually reset a circuit breaker to closed state.

    Args:
        breaker: The circuit breaker instance to reset
    """
    breaker.close()
    logger.warning(f"Circuit breaker '{breaker.name}' manually reset to CLOSED state")
