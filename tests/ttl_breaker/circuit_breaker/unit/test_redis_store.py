from __future__ import annotations

from typing import cast

import pytest
import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from tests.ttl_breaker.support.fakes import FakeClock, FakeRedis
from ttl_breaker.circuit_breaker import RedisKeyStore, StoreResult


@pytest.fixture
def fake_redis(fake_clock: FakeClock) -> FakeRedis:
    return FakeRedis(fake_clock)


@pytest.fixture
def redis_store(fake_redis: FakeRedis) -> RedisKeyStore:
    return RedisKeyStore(cast(redis.Redis, fake_redis), scan_count=50)


def test_set_with_expiry_writes_key_with_ttl(
    redis_store: RedisKeyStore, fake_redis: FakeRedis, fake_clock: FakeClock
) -> None:
    assert redis_store.set_with_expiry("cb:svc:open", "1", 40).ok

    assert redis_store.get("cb:svc:open") == StoreResult.success("1")
    fake_clock.advance(40)
    assert redis_store.get("cb:svc:open") == StoreResult.success(None)


def test_get_decodes_str_replies() -> None:
    clock = FakeClock()
    client = FakeRedis(clock, decode_responses=True)
    store = RedisKeyStore(cast(redis.Redis, client))
    store.set_with_expiry("k", "value", 10)

    assert store.get("k").value == "value"


def test_set_with_expiry_translates_redis_error(
    redis_store: RedisKeyStore, fake_redis: FakeRedis
) -> None:
    fake_redis.errors["set"] = RedisConnectionError("Connection refused")

    result = redis_store.set_with_expiry("k", "1", 40)

    assert result == StoreResult.failure("Connection refused")
    assert redis_store.last_error_detail() == "Connection refused"


def test_set_with_expiry_fails_when_set_not_applied(
    redis_store: RedisKeyStore, fake_redis: FakeRedis
) -> None:
    fake_redis.set_reply = None

    result = redis_store.set_with_expiry("k", "1", 40)

    assert result.error == "SET k was not applied"


def test_get_translates_redis_error(
    redis_store: RedisKeyStore, fake_redis: FakeRedis
) -> None:
    fake_redis.errors["get"] = RedisConnectionError("Timeout reading from socket")

    assert redis_store.get("k").error == "Timeout reading from socket"


def test_delete_all_issues_single_del_without_duplicates(
    redis_store: RedisKeyStore, fake_redis: FakeRedis
) -> None:
    redis_store.set_with_expiry("a", "1", 10)
    redis_store.set_with_expiry("b", "1", 10)

    result = redis_store.delete_all(["a", "b", "a", "missing"])

    assert result == StoreResult.success(2)
    assert fake_redis.delete_calls == [("a", "b", "missing")]


def test_delete_all_with_no_keys_skips_redis(
    redis_store: RedisKeyStore, fake_redis: FakeRedis
) -> None:
    assert redis_store.delete_all([]) == StoreResult.success(0)
    assert fake_redis.delete_calls == []


def test_delete_all_translates_redis_error(
    redis_store: RedisKeyStore, fake_redis: FakeRedis
) -> None:
    fake_redis.errors["delete"] = ResponseError("READONLY You can't write")

    result = redis_store.delete_all(["a"])

    assert result.error == "READONLY You can't write"
    assert redis_store.last_error_detail() == "READONLY You can't write"


def test_keys_matching_scans_and_decodes_live_keys(
    redis_store: RedisKeyStore, fake_redis: FakeRedis, fake_clock: FakeClock
) -> None:
    redis_store.set_with_expiry("cb:svc:total_failures:1", "1", 5)
    redis_store.set_with_expiry("cb:svc:total_failures:2", "1", 30)
    redis_store.set_with_expiry("cb:other:total_failures:3", "1", 30)
    fake_clock.advance(5)

    result = redis_store.keys_matching("cb:svc:total_failures:*")

    assert result == StoreResult.success(frozenset({"cb:svc:total_failures:2"}))
    assert fake_redis.scan_calls == [("cb:svc:total_failures:*", 50)]


def test_keys_matching_translates_redis_error(
    redis_store: RedisKeyStore, fake_redis: FakeRedis
) -> None:
    fake_redis.errors["scan"] = RedisConnectionError("Connection reset by peer")

    assert redis_store.keys_matching("*").error == "Connection reset by peer"


def test_from_url_builds_client_without_connecting() -> None:
    store = RedisKeyStore.from_url("redis://localhost:6379/3", socket_timeout=1.0)

    assert isinstance(store._client, redis.Redis)
    assert store._client.connection_pool.connection_kwargs["db"] == 3
