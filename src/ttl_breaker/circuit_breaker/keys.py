"""Store key derivation for breaker markers."""

from __future__ import annotations

import re
import uuid

DEFAULT_NAMESPACE = "circuit_breaker"
KEY_SEPARATOR = ":"

_FAILURES_SEGMENT = "total_failures"
_OPEN_SEGMENT = "open"
_HALF_OPEN_SEGMENT = "half_open"
_GLOB_METACHARACTERS = re.compile(r"([*?\[\]\\])")


def _escape_glob(value: str) -> str:
    return _GLOB_METACHARACTERS.sub(r"\\\1", value)


def _validate_service(service: str) -> None:
    if not service:
        raise ValueError("service must be non-empty")
    if KEY_SEPARATOR in service:
        raise ValueError(f"service must not contain {KEY_SEPARATOR!r}")


class KeyNamer:
    """Map a service identifier to its marker keys.

    Key layout::

        <namespace>:<service>:total_failures:<token>
        <namespace>:<service>:open
        <namespace>:<service>:half_open
    """

    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        if not namespace:
            raise ValueError("namespace must be non-empty")
        if _GLOB_METACHARACTERS.search(namespace):
            raise ValueError("namespace must not contain glob metacharacters")
        self.namespace = namespace

    def _service_prefix(self, service: str) -> str:
        _validate_service(service)
        return f"{self.namespace}{KEY_SEPARATOR}{service}{KEY_SEPARATOR}"

    def failure_store_key(self, service: str) -> str:
        """Return a fresh failure marker key; never repeats for a service."""
        prefix = self._service_prefix(service)
        return f"{prefix}{_FAILURES_SEGMENT}{KEY_SEPARATOR}{uuid.uuid4().hex}"

    def failure_search_pattern(self, service: str) -> str:
        """Return a glob matching every failure marker of ``service`` only."""
        _validate_service(service)
        return (
            f"{self.namespace}{KEY_SEPARATOR}{_escape_glob(service)}"
            f"{KEY_SEPARATOR}{_FAILURES_SEGMENT}{KEY_SEPARATOR}*"
        )

    def open_key(self, service: str) -> str:
        return f"{self._service_prefix(service)}{_OPEN_SEGMENT}"

    def half_open_key(self, service: str) -> str:
        return f"{self._service_prefix(service)}{_HALF_OPEN_SEGMENT}"
