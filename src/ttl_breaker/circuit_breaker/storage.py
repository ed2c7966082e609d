"""Key store contract for circuit breakers.

The breaker keeps no state of its own. Every fact about a circuit is a marker
key with a TTL in a key store, and the store's expiry is the breaker's only
clock. Custom backends (for example Redis) implement ``AbstractKeyStore`` so
any number of processes can share one circuit.

Every operation returns a ``StoreResult`` carrying either a value or the
store's diagnostic message. Backends must not raise for store-side failures.
"""

import re
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Collection
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StoreResult(Generic[T]):
    """Outcome of one key store operation.

    Attributes:
        value: Operation payload when successful.
        error: Store diagnostic message when the operation failed.
    """

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "StoreResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, detail: str) -> "StoreResult[T]":
        return cls(error=detail)


class AbstractKeyStore(ABC):
    """Abstract TTL-capable key-value store interface."""

    def __init__(self) -> None:
        self._last_error: str | None = None

    def _record(self, result: StoreResult[T]) -> StoreResult[T]:
        if not result.ok:
            self._last_error = result.error
        return result

    def last_error_detail(self) -> str | None:
        """Return the message of the most recent failed operation, if any."""
        return self._last_error

    @abstractmethod
    def set_with_expiry(
        self, key: str, value: str, ttl_seconds: int
    ) -> StoreResult[None]:
        """Write ``key`` with an expiry, overwriting any existing value."""

    @abstractmethod
    def get(self, key: str) -> StoreResult[str | None]:
        """Read ``key``. Never-set and expired keys both yield ``None``."""

    @abstractmethod
    def delete_all(self, keys: Collection[str]) -> StoreResult[int]:
        """Delete ``keys`` and return how many existed. Missing keys are fine."""

    @abstractmethod
    def keys_matching(self, pattern: str) -> StoreResult[frozenset[str]]:
        """Return live keys matching the glob ``pattern``."""


class InMemoryKeyStore(AbstractKeyStore):
    """Process-local TTL store, safe to share between threads.

    Expired entries are dropped lazily when touched. Patterns follow Redis
    glob rules (see ``glob_to_regex``).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty store.

        Args:
            clock: Monotonic seconds source. Tests inject a fake clock.
        """
        super().__init__()
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def _purge_expired(self, now: float) -> None:
        expired = [
            key for key, (_, deadline) in self._entries.items() if deadline <= now
        ]
        for key in expired:
            del self._entries[key]

    def set_with_expiry(
        self, key: str, value: str, ttl_seconds: int
    ) -> StoreResult[None]:
        """Store ``value`` until ``ttl_seconds`` elapse on the injected clock."""
        if ttl_seconds <= 0:
            return self._record(
                StoreResult.failure(f"invalid expire time for key {key!r}")
            )
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)
        return StoreResult.success()

    def get(self, key: str) -> StoreResult[str | None]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return StoreResult.success(None)
            value, deadline = entry
            if deadline <= self._clock():
                del self._entries[key]
                return StoreResult.success(None)
            return StoreResult.success(value)

    def delete_all(self, keys: Collection[str]) -> StoreResult[int]:
        with self._lock:
            self._purge_expired(self._clock())
            deleted = 0
            for key in set(keys):
                if self._entries.pop(key, None) is not None:
                    deleted += 1
        return StoreResult.success(deleted)

    def keys_matching(self, pattern: str) -> StoreResult[frozenset[str]]:
        matcher = glob_to_regex(pattern)
        with self._lock:
            self._purge_expired(self._clock())
            matched = frozenset(key for key in self._entries if matcher.fullmatch(key))
        return StoreResult.success(matched)


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a Redis-style glob.

    Supports ``*``, ``?``, ``[...]`` / ``[^...]`` classes with ``a-z`` ranges,
    and backslash escapes both outside and inside classes, which ``fnmatch``
    does not. An unterminated ``[`` matches itself literally.
    """
    parts: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == "\\" and index + 1 < length:
            parts.append(re.escape(pattern[index + 1]))
            index += 2
            continue
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "[":
            translated = _translate_class(pattern, index + 1)
            if translated is None:
                parts.append(re.escape(char))
            else:
                regex, end = translated
                parts.append(regex)
                index = end + 1
                continue
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile("".join(parts), re.DOTALL)


def _translate_class(pattern: str, start: int) -> tuple[str, int] | None:
    """Translate the ``[...]`` body starting at ``start``.

    Returns the regex and the index of the closing ``]``, or ``None`` when the
    class is never closed.
    """
    length = len(pattern)
    index = start
    negate = index < length and pattern[index] == "^"
    if negate:
        index += 1
    members: list[str] = []
    while index < length:
        char = pattern[index]
        if char == "\\" and index + 1 < length:
            members.append(re.escape(pattern[index + 1]))
            index += 2
            continue
        if char == "]":
            if not members:
                # "[]" matches nothing, "[^]" any single character
                return ("." if negate else "(?!)"), index
            return f"[{'^' if negate else ''}{''.join(members)}]", index
        is_range = (
            char == "-" and bool(members) and index + 1 < length
            and pattern[index + 1] != "]"
        )
        members.append("-" if is_range else re.escape(char))
        index += 1
    return None
