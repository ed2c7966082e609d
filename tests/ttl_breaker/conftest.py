from __future__ import annotations

import pytest

from tests.ttl_breaker.support.fakes import FakeClock, FakeLogger
from ttl_breaker.circuit_breaker import CircuitBreaker, InMemoryKeyStore


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced clock per test."""
    return FakeClock()


@pytest.fixture
def memory_store(fake_clock: FakeClock) -> InMemoryKeyStore:
    """Provide an in-memory key store driven by the fake clock."""
    return InMemoryKeyStore(clock=fake_clock)


@pytest.fixture
def breaker(memory_store: InMemoryKeyStore, fake_logger: FakeLogger) -> CircuitBreaker:
    """Provide a breaker over the in-memory store."""
    return CircuitBreaker(memory_store, logger=fake_logger)
