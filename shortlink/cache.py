"""Redis-backed cache guarded against penetration, breakdown and avalanche."""

from __future__ import annotations

import dataclasses
import json
import logging
import threading
from collections.abc import Mapping
from datetime import date, datetime, timedelta
from typing import Any, Callable

import redis

from shortlink.errors import LOCK_ACQUIRE_FAILED, REDIS_KEY_NOT_EXIST, SlugError
from shortlink.lock import DistributedLock, to_milliseconds

__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_EXPIRATION",
    "NEVER_EXPIRE",
    "SHORT_URI_CREATE_BLOOM_FILTER",
    "ERROR_RATE",
    "CAPACITY",
    "PUT_IF_ABSENT_SCRIPT",
    "CHECK_BLOOM_SCRIPT",
    "SAFE_PUT_SCRIPT",
    "EXISTS_IN_BLOOM_SCRIPT",
    "CacheError",
    "CacheSetupError",
    "is_nil_or_empty",
    "setup_bloom_filter",
    "connect_to_redis",
    "RedisDistributedCache",
]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = timedelta(seconds=3)
DEFAULT_EXPIRATION = timedelta(minutes=30)
NEVER_EXPIRE = 0

SHORT_URI_CREATE_BLOOM_FILTER = "shortUriCreateBloomFilter"
ERROR_RATE = 0.0001
CAPACITY = 1_000_000

PUT_IF_ABSENT_SCRIPT = """
if redis.call("EXISTS", KEYS[1]) == 0 then
    redis.call("SET", KEYS[1], ARGV[1])
    return 1
else
    return 0
end
"""

CHECK_BLOOM_SCRIPT = """
if redis.call("EXISTS", KEYS[1]) == 0 then
    return -1
end
if ARGV[1] ~= "" and redis.call("GET", ARGV[1]) then
    return 0
end
if redis.call("BF.EXISTS", KEYS[1], ARGV[2]) == 1 then
    return 1
end
return 0
"""

SAFE_PUT_SCRIPT = """
redis.call("SET", KEYS[1], ARGV[1], "EX", ARGV[2])
return redis.call("BF.ADD", KEYS[2], ARGV[3])
"""

EXISTS_IN_BLOOM_SCRIPT = """
if ARGV[1] ~= "" and redis.call("GET", ARGV[1]) then
    return 0
end
if redis.call("BF.EXISTS", KEYS[1], ARGV[2]) == 1 then
    return 1
end
return 0
"""

Loader = Callable[[], Any]
OnAbsent = Callable[[str], None]


class CacheError(Exception):
    """A cache operation did not complete as expected."""


class CacheSetupError(RuntimeError):
    """Connecting to Redis or preparing the bloom filter failed."""


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return all(_is_zero(getattr(value, f.name)) for f in dataclasses.fields(value))
    try:
        return not value
    except Exception:
        return False


def is_nil_or_empty(value: Any) -> bool:
    """True for ``None``, empty strings and containers, and dataclasses whose fields are all empty.

    Raises ``TypeError`` for other kinds of value.
    """
    if value is None:
        return True
    if isinstance(value, (str, bytes, bytearray, Mapping, list, tuple, set, frozenset)):
        return len(value) == 0
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return all(_is_zero(getattr(value, f.name)) for f in dataclasses.fields(value))
    raise TypeError("unsupported type")


def _json_default(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    raise TypeError(f"cannot encode {type(obj).__name__}")


def _encode(value: Any) -> str:
    return json.dumps(value, default=_json_default, ensure_ascii=False)


def _decode(text: str, value_type: type | None) -> Any:
    data = json.loads(text)
    if value_type is None or value_type is object:
        return data
    if dataclasses.is_dataclass(value_type):
        return value_type(**data)
    if isinstance(data, value_type):
        return data
    return value_type(data)


def _text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return str(value)


def setup_bloom_filter(client: Any) -> None:
    """Reserve the short-URI bloom filter unless it already exists."""
    try:
        if client.exists(SHORT_URI_CREATE_BLOOM_FILTER) == 1:
            return
    except redis.RedisError as exc:
        raise CacheSetupError(f"failed to check bloom filter existence: {exc}") from exc
    try:
        client.execute_command("BF.RESERVE", SHORT_URI_CREATE_BLOOM_FILTER, ERROR_RATE, CAPACITY)
    except redis.RedisError as exc:
        raise CacheSetupError(f"failed to setup bloom filter: {exc}") from exc


def connect_to_redis(
    addr: str,
    username: str | None = None,
    password: str | None = None,
    db: int = 0,
) -> redis.Redis:
    """Connect to Redis at ``host:port``, check the connection and prepare the bloom filter."""
    host, sep, port = addr.rpartition(":")
    if not sep:
        host, port = addr, "6379"
    client = redis.Redis(
        host=host or "localhost",
        port=int(port),
        username=username or None,
        password=password or None,
        db=db,
        decode_responses=True,
    )
    try:
        client.ping()
    except redis.RedisError as exc:
        raise CacheSetupError(f"failed to connect to redis: {exc}") from exc
    setup_bloom_filter(client)
    return client


class RedisDistributedCache:
    """JSON values in Redis, with bloom-filter and lock protected loading."""

    def __init__(self, client: Any, locker: DistributedLock, app_name: str = "") -> None:
        if client is None:
            raise ValueError("nil rdb")
        if locker is None:
            raise ValueError("nil locker")
        self._client = client
        self._locker = locker
        self._app_name = app_name or "default"

    @property
    def client(self) -> Any:
        return self._client

    def get(self, key: str, value_type: type | None = str) -> Any:
        """Read a value; ``str`` returns the stored text as is, other types decode JSON.

        A missing key raises ``REDIS_KEY_NOT_EXIST``.
        """
        raw = self._client.get(key)
        if raw is None:
            raise REDIS_KEY_NOT_EXIST
        text = _text(raw)
        if value_type is str:
            return text
        return _decode(text, value_type)

    def hget(self, key: str, field: str) -> str:
        raw = self._client.hget(key, field)
        if raw is None:
            raise REDIS_KEY_NOT_EXIST
        return _text(raw)

    def hgetall(self, key: str) -> dict[str, str]:
        return {_text(k): _text(v) for k, v in self._client.hgetall(key).items()}

    def put(self, key: str, value: Any, expiration: float | timedelta = NEVER_EXPIRE) -> None:
        """Store a value as JSON; a zero expiration keeps it forever."""
        ttl_ms = to_milliseconds(expiration)
        if ttl_ms > 0:
            self._client.set(key, _encode(value), px=ttl_ms)
        else:
            self._client.set(key, _encode(value))

    def put_if_absent(self, key: str, value: Any) -> bool:
        return int(self._client.eval(PUT_IF_ABSENT_SCRIPT, 1, key, _encode(value))) == 1

    def delete(self, key: str) -> bool:
        return int(self._client.delete(key)) > 0

    def delete_multiple(self, keys: list[str]) -> int:
        keys = list(keys)
        if not keys:
            return 0
        return int(self._client.delete(*keys))

    def has_key(self, key: str) -> bool:
        return int(self._client.exists(key)) > 0

    def hincrby(self, key: str, field: str, incr: int) -> int:
        return int(self._client.hincrby(key, field, incr))

    def _lock_key(self, key: str) -> str:
        return f"lock:{self._app_name}:{key}"

    def _get_or_none(self, key: str, value_type: type | None) -> Any:
        try:
            return self.get(key, value_type)
        except SlugError as exc:
            if exc == REDIS_KEY_NOT_EXIST:
                return None
            raise

    def safe_get(
        self,
        key: str,
        value_type: type | None,
        loader: Loader,
        expiration: float | timedelta,
        bloom_filter: str = "",
        bloom_key: str = "",
        except_bloom_key: str = "",
        on_absent: OnAbsent | None = None,
    ) -> Any:
        """Read a value, loading and caching it under a lock on a miss.

        Raises ``REDIS_KEY_NOT_EXIST`` when the bloom filter rules the key out
        and ``LOCK_ACQUIRE_FAILED`` when the load lock is busy. Returns
        ``None`` when the loader finds nothing; ``on_absent`` is then called.
        """
        result = self._get_or_none(key, value_type)
        if not is_nil_or_empty(result):
            return result

        if self.check_bloom_filter(bloom_filter, bloom_key, except_bloom_key) == 0:
            raise REDIS_KEY_NOT_EXIST

        lock_key = self._lock_key(key)
        if not self._locker.acquire(lock_key, DEFAULT_TIMEOUT):
            raise LOCK_ACQUIRE_FAILED
        try:
            # Second look, in case another worker filled the cache meanwhile.
            result = self._get_or_none(key, value_type)
            if is_nil_or_empty(result):
                result = self._load_and_set(key, loader, expiration)
                if is_nil_or_empty(result) and on_absent is not None:
                    on_absent(key)
            return result
        finally:
            try:
                self._locker.release(lock_key)
            except Exception as exc:
                logger.warning("lock release failed", extra={"key": lock_key, "error": str(exc)})

    def _load_and_set(self, key: str, loader: Loader, expiration: float | timedelta) -> Any:
        result = loader()
        if is_nil_or_empty(result):
            return None
        self.put(key, result, expiration)
        return result

    def check_bloom_filter(self, bloom_filter: str, key: str, except_key: str) -> int:
        """1 if the key may exist, 0 if it does not, -1 if the bloom filter is missing."""
        return int(self._client.eval(CHECK_BLOOM_SCRIPT, 1, bloom_filter, except_key, key))

    def safe_put(
        self,
        key: str,
        value: Any,
        expiration: float | timedelta,
        bloom_filter: str,
        bloom_key: str,
    ) -> None:
        """Cache the value and add ``bloom_key`` to the bloom filter in one step."""
        seconds = to_milliseconds(expiration) // 1000
        result = self._client.eval(
            SAFE_PUT_SCRIPT, 2, key, bloom_filter, _encode(value), seconds, bloom_key
        )
        if int(result) != 1:
            raise CacheError("failed to add key to Bloom filter")

    def safe_delete(self, key: str, except_bloom_key: str = "") -> None:
        """Delete the key and, if it existed, mark it invalid for the bloom filter."""
        if not self.delete(key):
            return
        if except_bloom_key:
            self.put(except_bloom_key, "-", NEVER_EXPIRE)

    def exists_in_bloom_filter(self, bloom_filter: str, key: str, except_key: str = "") -> bool:
        return int(self._client.eval(EXISTS_IN_BLOOM_SCRIPT, 1, bloom_filter, except_key, key)) == 1

    def count_existing_keys(self, *args: str) -> int:
        if not args:
            return 0
        return int(self._client.exists(*args))

    def double_delete(self, key: str, delay: float | timedelta) -> threading.Timer:
        """Delete the key now and once more after ``delay``; returns the pending timer."""
        self.delete(key)
        seconds = delay.total_seconds() if isinstance(delay, timedelta) else float(delay)
        timer = threading.Timer(max(seconds, 0.0), self._delete_quietly, args=(key,))
        timer.daemon = True
        timer.start()
        return timer

    def _delete_quietly(self, key: str) -> None:
        try:
            self.delete(key)
        except Exception as exc:
            logger.warning("delayed delete failed", extra={"key": key, "error": str(exc)})