from datetime import timedelta

import pytest
import redis

from shortlink.lock import (
    REFRESH_SCRIPT,
    RELEASE_SCRIPT,
    LockNotHeldError,
    RedisLock,
    to_milliseconds,
)


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.ttl_ms = {}

    def set(self, name, value, nx=False, px=None):
        if nx and name in self.store:
            return None
        self.store[name] = value
        if px is not None:
            self.ttl_ms[name] = px
        return True

    def get(self, name):
        return self.store.get(name)

    def eval(self, script, numkeys, *args):
        keys, argv = args[:numkeys], args[numkeys:]
        key = keys[0]
        if self.store.get(key) != argv[0]:
            return 0
        if script == RELEASE_SCRIPT:
            del self.store[key]
            self.ttl_ms.pop(key, None)
            return 1
        if script == REFRESH_SCRIPT:
            self.ttl_ms[key] = int(argv[1])
            return 1
        raise AssertionError("unknown script")


class BrokenRedis:
    def set(self, *args, **kwargs):
        raise redis.ConnectionError("down")


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def client():
    return FakeRedis()


@pytest.fixture
def locker(client, sleeps):
    return RedisLock(client, sleep=sleeps.append)


def test_acquire(locker, client, sleeps):
    assert locker.acquire("test-key", 5) is True
    assert "test-key" in client.store
    assert client.ttl_ms["test-key"] == 5000

    # Trying the same lock again fails after the retries
    assert locker.acquire("test-key", timedelta(seconds=5)) is False
    assert sleeps == [1.0, 1.0, 1.0]


def test_release(locker, client):
    assert locker.acquire("test-key", 5)
    locker.release("test-key")
    assert "test-key" not in client.store

    with pytest.raises(LockNotHeldError):
        locker.release("test-key")


def test_refresh(locker, client):
    assert locker.acquire("test-key", 5)
    assert locker.refresh("test-key", timedelta(seconds=7)) is True
    assert client.ttl_ms["test-key"] == 7000


def test_release_after_lock_was_taken_over(locker, client):
    assert locker.acquire("test-key", 5)
    client.store["test-key"] = "someone-else"
    with pytest.raises(LockNotHeldError):
        locker.release("test-key")
    assert client.store["test-key"] == "someone-else"


def test_refresh_unheld_lock_raises(locker):
    with pytest.raises(LockNotHeldError):
        locker.refresh("missing", 5)


def test_other_locker_cannot_take_held_lock(client, sleeps):
    first = RedisLock(client, sleep=sleeps.append)
    second = RedisLock(client, sleep=sleeps.append, max_retries=0)
    assert first.acquire("k", 5)
    assert second.acquire("k", 5) is False
    assert sleeps == []


def test_retry_stops_at_deadline(client, sleeps):
    locker = RedisLock(client, sleep=sleeps.append)
    client.store["k"] = "held"
    assert locker.acquire("k", 0.5) is False
    assert sleeps == []


def test_non_positive_expiration_rejected(locker):
    with pytest.raises(ValueError):
        locker.acquire("k", 0)


def test_redis_error_propagates():
    locker = RedisLock(BrokenRedis(), sleep=lambda _: None)
    with pytest.raises(redis.ConnectionError):
        locker.acquire("k", 5)


def test_to_milliseconds():
    assert to_milliseconds(timedelta(seconds=2)) == 2000
    assert to_milliseconds(1.5) == 1500