"""Distributed circuit breaker backed by a TTL key-value store.

This package implements the circuit breaker pattern from *Release It!* with
all state kept as marker keys in a shared store.

Key behavior notes:
  - ``CircuitState`` is never stored. ``OPEN`` and ``HALF_OPEN`` are the
    presence of their marker keys; ``CLOSED`` is the absence of both. When both
    markers are live, ``OPEN`` wins.
  - Each failure is its own marker key expiring after the failure window, so
    the failure count rolls over without any timer or cleanup job.
  - The store's TTL is the only clock. The breaker runs no threads, timers or
    retries, and every operation is a blocking call to the store.
  - Transitions are not guarded. Deciding when to open, half-open and close from
    failure counts is the caller's job.
  - Any store failure surfaces as ``AdapterError`` carrying the store's message.
"""

from ttl_breaker.circuit_breaker.breaker import CircuitBreaker
from ttl_breaker.circuit_breaker.exceptions import AdapterError, CircuitBreakerError
from ttl_breaker.circuit_breaker.keys import KeyNamer
from ttl_breaker.circuit_breaker.metrics import BreakerListener
from ttl_breaker.circuit_breaker.redis_store import RedisKeyStore
from ttl_breaker.circuit_breaker.state import BreakerSnapshot, CircuitState
from ttl_breaker.circuit_breaker.storage import (
    AbstractKeyStore,
    InMemoryKeyStore,
    StoreResult,
)

__all__ = [
    "AbstractKeyStore",
    "AdapterError",
    "BreakerListener",
    "BreakerSnapshot",
    "CircuitBreaker",
    "CircuitBreakerError",
    "CircuitState",
    "InMemoryKeyStore",
    "KeyNamer",
    "RedisKeyStore",
    "StoreResult",
]
