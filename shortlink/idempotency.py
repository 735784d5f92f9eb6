"""Idempotency flags for message-queue consumers, kept in Redis."""

from __future__ import annotations

import logging
from typing import Any

import redis

__all__ = ["KEY_PREFIX", "IdempotencyHandler"]

logger = logging.getLogger(__name__)

KEY_PREFIX = "{}:idem:"

_CONSUMING = "0"
_CONSUMED = "1"
_CONSUMING_TTL_SECONDS = 2


def _text(value: Any) -> str | None:
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return value


class IdempotencyHandler:
    """Tracks whether a message id is being consumed or has been consumed."""

    def __init__(self, app_name: str, client: Any) -> None:
        self._client = client
        self.key_prefix = KEY_PREFIX.format(app_name)

    def _key(self, mid: str) -> str:
        return self.key_prefix + mid

    def is_message_being_consumed(self, mid: str) -> bool:
        """Claim the message; True if someone else holds it or Redis fails."""
        try:
            claimed = self._client.set(
                self._key(mid), _CONSUMING, nx=True, ex=_CONSUMING_TTL_SECONDS
            )
        except redis.RedisError:
            return True
        return not claimed

    def has_message_been_consumed(self, mid: str) -> bool:
        try:
            value = self._client.get(self._key(mid))
        except redis.RedisError:
            return False
        return _text(value) == _CONSUMED

    def mark_message_as_consumed(self, mid: str) -> None:
        try:
            self._client.set(self._key(mid), _CONSUMED)
        except redis.RedisError as exc:
            logger.error("mark message as consumed failed", extra={"error": str(exc)})

    def delete_flag(self, mid: str) -> None:
        """Remove the flag so the message can be consumed again after a failure."""
        try:
            self._client.delete(self._key(mid))
        except redis.RedisError as exc:
            logger.error("delete flag failed", extra={"error": str(exc)})