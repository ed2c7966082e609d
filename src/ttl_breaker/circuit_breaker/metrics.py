"""Observability hooks for circuit breakers."""

from typing import Protocol

from ttl_breaker.circuit_breaker.state import CircuitState


class BreakerListener(Protocol):
    """Listener protocol for circuit breaker events.

    Notes:
        Hooks fire after the store accepted the write. ``HALF_OPEN`` and
        ``OPEN`` markers expire on their own, so no event is emitted when a
        TTL lapses.
    """

    def on_state_change(self, service: str, state: CircuitState) -> None:
        """Handle an explicit open, half-open or close of a circuit."""

    def on_failure_recorded(self, service: str) -> None:
        """Handle a failure marker being written."""

    def on_adapter_error(self, service: str, operation: str, detail: str) -> None:
        """Handle a key store failure surfaced as ``AdapterError``."""
