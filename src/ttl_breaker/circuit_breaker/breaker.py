"""Core circuit breaker implementation."""

from collections.abc import Sequence
from typing import TypeVar

from ttl_breaker.circuit_breaker.exceptions import AdapterError
from ttl_breaker.circuit_breaker.keys import KeyNamer
from ttl_breaker.circuit_breaker.metrics import BreakerListener
from ttl_breaker.circuit_breaker.state import BreakerSnapshot, CircuitState
from ttl_breaker.circuit_breaker.storage import AbstractKeyStore, StoreResult
from ttl_breaker.logging import (
    StructuredLogger,
    get_logger,
    log_debug,
    log_error,
    log_info,
)

T = TypeVar("T")

MARKER_VALUE = "1"


def _validate_seconds(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int")
    if value < 1:
        raise ValueError(f"{name} must be >= 1")


class CircuitBreaker:
    """Marker-driven circuit state machine over a shared key store.

    State lives entirely in the store as TTL'd marker keys, so any number of
    processes pointing at the same store see the same circuit. Transitions are
    not guarded: callers decide when to open, half-open or close.
    """

    def __init__(
        self,
        store: AbstractKeyStore,
        *,
        key_namer: KeyNamer | None = None,
        listeners: Sequence[BreakerListener] | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        """Build a circuit breaker over an explicit store handle.

        Args:
            store: TTL-capable key store holding the markers.
            key_namer: Key derivation. Defaults to ``KeyNamer()``.
            listeners: Optional listener hooks for breaker events.
            logger: Structured logger. Defaults to this module's structlog logger.
        """
        self._store = store
        self.key_namer = KeyNamer() if key_namer is None else key_namer
        self._listeners = tuple(listeners) if listeners is not None else ()
        self._logger = get_logger(__name__) if logger is None else logger

    def _emit_state_change(self, service: str, state: CircuitState) -> None:
        for listener in self._listeners:
            try:
                listener.on_state_change(service, state)
            except Exception:
                continue

    def _emit_failure_recorded(self, service: str) -> None:
        for listener in self._listeners:
            try:
                listener.on_failure_recorded(service)
            except Exception:
                continue

    def _emit_adapter_error(self, service: str, operation: str, detail: str) -> None:
        for listener in self._listeners:
            try:
                listener.on_adapter_error(service, operation, detail)
            except Exception:
                continue

    def _unwrap(self, result: StoreResult[T], *, operation: str, service: str) -> T:
        """Return the result payload or raise ``AdapterError`` with its message."""
        if result.ok:
            return result.value  # type: ignore[return-value]
        detail = result.error or ""
        log_error(
            self._logger,
            "circuit.adapter_error",
            service=service,
            operation=operation,
            detail=detail,
        )
        self._emit_adapter_error(service, operation, detail)
        raise AdapterError(detail, operation=operation, service=service)

    def add_failure(self, service: str, time_window_seconds: int) -> None:
        """Record one failure that counts for ``time_window_seconds``.

        Raises:
            AdapterError: The store rejected the write.
        """
        _validate_seconds("time_window_seconds", time_window_seconds)
        key = self.key_namer.failure_store_key(service)
        self._unwrap(
            self._store.set_with_expiry(key, MARKER_VALUE, time_window_seconds),
            operation="add_failure",
            service=service,
        )
        log_debug(
            self._logger,
            "circuit.failure_recorded",
            service=service,
            window_seconds=time_window_seconds,
        )
        self._emit_failure_recorded(service)

    def open_circuit(self, service: str, time_open_seconds: int) -> None:
        """Mark ``service`` OPEN for ``time_open_seconds``.

        Raises:
            AdapterError: The store rejected the write.
        """
        _validate_seconds("time_open_seconds", time_open_seconds)
        self._unwrap(
            self._store.set_with_expiry(
                self.key_namer.open_key(service), MARKER_VALUE, time_open_seconds
            ),
            operation="open_circuit",
            service=service,
        )
        log_info(
            self._logger,
            "circuit.opened",
            service=service,
            open_seconds=time_open_seconds,
        )
        self._emit_state_change(service, CircuitState.OPEN)

    def set_circuit_half_open(self, service: str, time_open_seconds: int) -> None:
        """Mark ``service`` HALF_OPEN for ``time_open_seconds``.

        An existing OPEN marker still takes precedence until it expires or the
        circuit is closed.

        Raises:
            AdapterError: The store rejected the write.
        """
        _validate_seconds("time_open_seconds", time_open_seconds)
        self._unwrap(
            self._store.set_with_expiry(
                self.key_namer.half_open_key(service), MARKER_VALUE, time_open_seconds
            ),
            operation="set_circuit_half_open",
            service=service,
        )
        log_info(
            self._logger,
            "circuit.half_opened",
            service=service,
            half_open_seconds=time_open_seconds,
        )
        self._emit_state_change(service, CircuitState.HALF_OPEN)

    def close_circuit(self, service: str) -> None:
        """Remove the OPEN/HALF_OPEN markers and every live failure marker.

        Enumeration and deletion are separate store calls. A failure recorded
        in between may survive the close; it still expires with its window.

        Raises:
            AdapterError: Enumeration or deletion failed. Callers treating the
                close as best-effort cleanup may catch it.
        """
        open_key = self.key_namer.open_key(service)
        half_open_key = self.key_namer.half_open_key(service)
        failure_keys = self._unwrap(
            self._store.keys_matching(self.key_namer.failure_search_pattern(service)),
            operation="close_circuit",
            service=service,
        )
        keys = [open_key, half_open_key, *sorted(failure_keys)]
        self._unwrap(
            self._store.delete_all(keys),
            operation="close_circuit",
            service=service,
        )
        log_info(
            self._logger,
            "circuit.closed",
            service=service,
            cleared_failures=len(failure_keys),
        )
        self._emit_state_change(service, CircuitState.CLOSED)

    def get_total_failures(self, service: str) -> int:
        """Return how many failure markers are still inside their window.

        The count is as fresh as the store's expiry granularity allows.
        """
        failure_keys = self._unwrap(
            self._store.keys_matching(self.key_namer.failure_search_pattern(service)),
            operation="get_total_failures",
            service=service,
        )
        return len(failure_keys)

    def get_state(self, service: str) -> CircuitState:
        """Derive the current state from both markers; ``OPEN`` wins."""
        half_open = self._unwrap(
            self._store.get(self.key_namer.half_open_key(service)),
            operation="get_state",
            service=service,
        )
        is_open = self._unwrap(
            self._store.get(self.key_namer.open_key(service)),
            operation="get_state",
            service=service,
        )
        return CircuitState.from_markers(
            is_open=is_open is not None,
            is_half_open=half_open is not None,
        )

    def snapshot(self, service: str) -> BreakerSnapshot:
        """Return state and failure count for ``service`` in one object."""
        return BreakerSnapshot(
            service=service,
            state=self.get_state(service),
            failure_count=self.get_total_failures(service),
        )
