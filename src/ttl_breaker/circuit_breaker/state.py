"""Circuit breaker state primitives."""

from dataclasses import dataclass
from enum import StrEnum


class CircuitState(StrEnum):
    """Circuit breaker state values.

    Never persisted. A state is derived from which markers are live in the
    key store at query time.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    @classmethod
    def from_markers(cls, *, is_open: bool, is_half_open: bool) -> "CircuitState":
        """Resolve a state from marker presence. ``OPEN`` wins over ``HALF_OPEN``."""
        if is_open:
            return cls.OPEN
        if is_half_open:
            return cls.HALF_OPEN
        return cls.CLOSED


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of one service's breaker, useful for metrics/logging.

    Attributes:
        service: Protected service identifier.
        state: Derived breaker state.
        failure_count: Live failure markers inside the failure window.
    """

    service: str
    state: CircuitState
    failure_count: int
