"""Redis-backed cache with a simple distributed lock."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Any

import redis

from topup.config import RedisConfig

_LOCK_TTL = timedelta(minutes=5)
_RELEASE_MESSAGE = "released"
_DEFAULT_PORT = 6379


class CacheMissError(LookupError):
    """The key is not in the cache."""


class LockTimeoutError(TimeoutError):
    """The lock could not be taken before the deadline."""


def _seconds(value: timedelta | float | int) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


def _millis(value: timedelta | float | int) -> int:
    return max(1, int(_seconds(value) * 1000))


def _lock_key(key: str) -> str:
    return "lock:" + key


def _release_channel(encoded_key: str) -> str:
    return encoded_key + ":release"


def _encode(value: Any) -> Any:
    if hasattr(value, "to_json"):
        return value.to_json()
    return value


class RedisCache:
    """Thin wrapper over a Redis client."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def get(self, key: str) -> str:
        value = self.client.get(key)
        if value is None:
            raise CacheMissError(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: Any, expiration: timedelta | float | int | None = None) -> None:
        """Store a value; an expiration of zero or None keeps it forever."""
        payload = _encode(value)
        if expiration is not None and _seconds(expiration) > 0:
            self.client.set(key, payload, px=_millis(expiration))
        else:
            self.client.set(key, payload)

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def release_lock(self, key: str) -> None:
        """Drop the lock and tell waiters it is free."""
        encoded = _lock_key(key)
        self.client.delete(encoded)
        self.client.publish(_release_channel(encoded), _RELEASE_MESSAGE)

    def try_acquire_lock(self, key: str, timeout: timedelta | float | int) -> None:
        """Take the lock, waiting for release notices until the timeout passes."""
        deadline = time.monotonic() + _seconds(timeout)
        encoded = _lock_key(key)
        pubsub = self.client.pubsub()
        pubsub.subscribe(_release_channel(encoded))
        try:
            while True:
                if self.client.set(encoded, 1, nx=True, px=_millis(_LOCK_TTL)):
                    return
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise LockTimeoutError("context deadline exceeded")
                pubsub.get_message(ignore_subscribe_messages=True, timeout=remaining)
        finally:
            pubsub.close()


def new_redis(config: RedisConfig) -> RedisCache:
    """A cache connected lazily to the configured server."""
    host, _, port = config.addr.rpartition(":")
    if not host:
        host, port = config.addr or "localhost", ""
    client = redis.Redis(
        host=host,
        port=int(port) if port else _DEFAULT_PORT,
        db=config.db,
        password=config.password or None,
    )
    return RedisCache(client)