"""Circuit breaker exceptions.

Callers can distinguish between:
  - The backing key store rejecting or failing an operation.
"""


class CircuitBreakerError(Exception):
    """Base exception for the circuit breaker package."""


class AdapterError(CircuitBreakerError):
    """Raised when the key store reports a failed operation.

    The breaker state may no longer match the caller's intent (for example an
    ``open_circuit`` that did not take effect). Choosing a fallback is up to
    the caller.

    Attributes:
        detail: The store's diagnostic message, verbatim.
        operation: Breaker operation that failed.
        service: Service identifier the operation targeted.
    """

    def __init__(
        self,
        detail: str,
        *,
        operation: str | None = None,
        service: str | None = None,
    ) -> None:
        """Initialize an adapter failure payload.

        Args:
            detail: Message reported by the key store.
            operation: Breaker operation name, e.g. ``"open_circuit"``.
            service: Service the operation targeted.
        """
        self.detail = detail
        self.operation = operation
        self.service = service
        super().__init__(detail)
