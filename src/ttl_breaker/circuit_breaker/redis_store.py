"""Redis-backed key store for breakers shared across processes."""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

import redis
from redis.exceptions import RedisError

from ttl_breaker.circuit_breaker.storage import AbstractKeyStore, StoreResult


def _decode(value: bytes | str) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisKeyStore(AbstractKeyStore):
    """Key store over a synchronous ``redis.Redis`` client.

    Every ``RedisError`` is turned into a failed ``StoreResult`` carrying the
    client's message. Key enumeration uses ``SCAN`` so a large keyspace does
    not block the server the way ``KEYS`` would.
    """

    def __init__(self, client: redis.Redis, *, scan_count: int = 1000) -> None:
        """Wrap an existing client.

        Args:
            client: Connected (or lazily connecting) Redis client.
            scan_count: ``COUNT`` hint for each ``SCAN`` round trip.
        """
        super().__init__()
        self._client = client
        self._scan_count = scan_count

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisKeyStore:
        """Build a store from a ``redis://`` URL; kwargs go to the client."""
        return cls(redis.Redis.from_url(url, **kwargs))

    def set_with_expiry(
        self, key: str, value: str, ttl_seconds: int
    ) -> StoreResult[None]:
        try:
            written = self._client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            return self._record(StoreResult.failure(str(exc)))
        if not written:
            return self._record(StoreResult.failure(f"SET {key} was not applied"))
        return StoreResult.success()

    def get(self, key: str) -> StoreResult[str | None]:
        try:
            value = self._client.get(key)
        except RedisError as exc:
            return self._record(StoreResult.failure(str(exc)))
        return StoreResult.success(None if value is None else _decode(value))

    def delete_all(self, keys: Collection[str]) -> StoreResult[int]:
        """Issue one ``DEL`` for all ``keys``; an empty collection is a no-op."""
        unique_keys = list(dict.fromkeys(keys))
        if not unique_keys:
            return StoreResult.success(0)
        try:
            deleted = self._client.delete(*unique_keys)
        except RedisError as exc:
            return self._record(StoreResult.failure(str(exc)))
        return StoreResult.success(int(deleted))

    def keys_matching(self, pattern: str) -> StoreResult[frozenset[str]]:
        try:
            matched = frozenset(
                _decode(key)
                for key in self._client.scan_iter(match=pattern, count=self._scan_count)
            )
        except RedisError as exc:
            return self._record(StoreResult.failure(str(exc)))
        return StoreResult.success(matched)
