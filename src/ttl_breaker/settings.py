from __future__ import annotations

from typing import Literal

from pydantic import ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

from ttl_breaker.circuit_breaker import (
    AbstractKeyStore,
    CircuitBreaker,
    InMemoryKeyStore,
    KeyNamer,
    RedisKeyStore,
)
from ttl_breaker.logging import configure_structlog, get_log_level_value

KeyStoreBackend = Literal["redis", "memory"]

ENV_PREFIX = "TTL_BREAKER_"


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class BreakerSettings(BaseSettings):
    """Settings for the key store, key namespace and logging of breakers.

    Failure thresholds and durations are deliberately absent: they belong to
    whatever wraps guarded calls and are passed to each breaker operation.
    """

    model_config = prefixed_settings_config(ENV_PREFIX)

    backend: KeyStoreBackend = "redis"
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout_seconds: float | None = 5.0
    key_namespace: str = "circuit_breaker"
    log_level: str = "INFO"

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("redis_url", "key_namespace", mode="before")
    @classmethod
    def _validate_required_string(
        cls, value: object, info: ValidationInfo
    ) -> object:
        if not isinstance(value, str):
            return value
        normalized = value.strip()
        if not normalized:
            raise ValueError(f"{info.field_name} must be non-empty")
        return normalized

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        get_log_level_value(value)
        return value.strip().upper()

    @model_validator(mode="after")
    def _validate_breaker_settings(self) -> BreakerSettings:
        if (
            self.redis_socket_timeout_seconds is not None
            and self.redis_socket_timeout_seconds <= 0
        ):
            raise ValueError("redis_socket_timeout_seconds must be > 0")
        KeyNamer(self.key_namespace)
        return self


def build_key_store(settings: BreakerSettings) -> AbstractKeyStore:
    """Build the key store selected by ``settings.backend``."""
    if settings.backend == "memory":
        return InMemoryKeyStore()
    return RedisKeyStore.from_url(
        settings.redis_url,
        socket_timeout=settings.redis_socket_timeout_seconds,
        socket_connect_timeout=settings.redis_socket_timeout_seconds,
    )


def build_circuit_breaker(
    settings: BreakerSettings,
    *,
    store: AbstractKeyStore | None = None,
) -> CircuitBreaker:
    """Build a breaker wired to ``store`` or the store ``settings`` describe."""
    return CircuitBreaker(
        build_key_store(settings) if store is None else store,
        key_namer=KeyNamer(settings.key_namespace),
    )


def configure_logging(settings: BreakerSettings) -> structlog.stdlib.BoundLogger:
    """Configure structlog at ``settings.log_level`` for the embedding process."""
    return configure_structlog(log_level=settings.log_level)
