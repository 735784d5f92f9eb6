"""Distributed locks backed by Redis."""

from __future__ import annotations

import secrets
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Protocol

__all__ = [
    "RELEASE_SCRIPT",
    "REFRESH_SCRIPT",
    "LockNotHeldError",
    "DistributedLock",
    "RedisLock",
    "to_milliseconds",
]

RELEASE_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
end
return 0
"""

REFRESH_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("PEXPIRE", KEYS[1], ARGV[2])
end
return 0
"""


class LockNotHeldError(Exception):
    """The lock is not (or no longer) held by this locker."""


class DistributedLock(Protocol):
    """A lock shared between processes; Redis is one possible backend."""

    def acquire(self, key: str, expiration: float | timedelta) -> bool: ...

    def release(self, key: str) -> None: ...

    def refresh(self, key: str, expiration: float | timedelta) -> bool: ...


def to_milliseconds(duration: float | timedelta) -> int:
    """Convert seconds or a timedelta to whole milliseconds."""
    if isinstance(duration, timedelta):
        return int(duration.total_seconds() * 1000)
    return int(duration * 1000)


class RedisLock:
    """Lock keys in Redis with a random token; failed attempts are retried at a fixed interval."""

    def __init__(
        self,
        client: Any,
        *,
        retry_interval: float = 1.0,
        max_retries: int = 3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._retry_interval = retry_interval
        self._max_retries = max_retries
        self._sleep = sleep
        self._tokens: dict[str, str] = {}
        self._guard = threading.Lock()

    def acquire(self, key: str, expiration: float | timedelta) -> bool:
        """Try to take the lock; ``False`` means another holder has it.

        Redis failures propagate as exceptions.
        """
        ttl_ms = to_milliseconds(expiration)
        if ttl_ms <= 0:
            raise ValueError("expiration must be positive")
        deadline = time.monotonic() + ttl_ms / 1000
        token = secrets.token_urlsafe(16)
        retries = 0
        while True:
            if self._client.set(key, token, nx=True, px=ttl_ms):
                with self._guard:
                    self._tokens[key] = token
                return True
            if retries >= self._max_retries:
                return False
            retries += 1
            if time.monotonic() + self._retry_interval > deadline:
                return False
            self._sleep(self._retry_interval)

    def _token(self, key: str) -> str:
        with self._guard:
            token = self._tokens.get(key)
        if token is None:
            raise LockNotHeldError(f"lock {key!r} is not held")
        return token

    def release(self, key: str) -> None:
        token = self._token(key)
        if int(self._client.eval(RELEASE_SCRIPT, 1, key, token)) != 1:
            raise LockNotHeldError(f"lock {key!r} is not held")
        with self._guard:
            self._tokens.pop(key, None)

    def refresh(self, key: str, expiration: float | timedelta) -> bool:
        token = self._token(key)
        ttl_ms = to_milliseconds(expiration)
        if int(self._client.eval(REFRESH_SCRIPT, 1, key, token, ttl_ms)) != 1:
            raise LockNotHeldError(f"lock {key!r} is not held")
        return True