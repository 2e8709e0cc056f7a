import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pharmaportal.auth.jwt import create_session_token
from pharmaportal.auth.session_manager import SessionManager
from pharmaportal.auth.session_store import MemorySessionStore, RedisSessionStore, SessionRecord, build_session_store
from pharmaportal.config import SESSION_TTL_SECONDS
from pharmaportal.errors import SessionError, Unauthenticated


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(clock):
    return SessionManager(MemorySessionStore(), "secret", clock=clock)


def test_create_then_resolve(manager):
    token = manager.create(42)

    assert manager.resolve(token) == 42


def test_ttl_is_one_hour(manager):
    assert manager.ttl_seconds == SESSION_TTL_SECONDS == 3600


def test_session_rejected_after_ttl(manager, clock):
    token = manager.create(7)

    clock.now += SESSION_TTL_SECONDS - 1
    assert manager.resolve(token) == 7

    clock.now += 1.001
    with pytest.raises(Unauthenticated):
        manager.resolve(token)


def test_expiry_is_not_sliding(manager, clock):
    token = manager.create(7)
    for _ in range(5):
        clock.now += SESSION_TTL_SECONDS / 5 - 1
        manager.resolve(token)

    clock.now += 10
    with pytest.raises(Unauthenticated):
        manager.resolve(token)


@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_resolve_rejects_missing_or_malformed(manager, token):
    with pytest.raises(Unauthenticated):
        manager.resolve(token)


def test_resolve_rejects_token_signed_with_other_secret(manager):
    manager.create(1)
    forged = create_session_token("some-sid", "other-secret")

    with pytest.raises(Unauthenticated):
        manager.resolve(forged)


def test_resolve_rejects_unknown_sid(manager):
    token = create_session_token("never-issued", "secret")

    with pytest.raises(Unauthenticated):
        manager.resolve(token)


def test_destroy_is_idempotent(manager):
    token = manager.create(3)

    manager.destroy(token)
    manager.destroy(token)
    manager.destroy(None)
    manager.destroy("garbage")

    with pytest.raises(Unauthenticated):
        manager.resolve(token)


def test_destroy_store_failure_raises_session_error(clock):
    class BrokenStore(MemorySessionStore):
        def delete(self, sid):
            raise RuntimeError("store down")

    manager = SessionManager(BrokenStore(), "secret", clock=clock)
    token = manager.create(3)

    with pytest.raises(SessionError):
        manager.destroy(token)


def test_tokens_are_unique(manager):
    assert manager.create(1) != manager.create(1)


def test_memory_store_purges_expired(clock):
    store = MemorySessionStore()
    store.put("old", SessionRecord(user_id=1, expires_at=clock.now - 1), 1)
    store.put("new", SessionRecord(user_id=2, expires_at=clock.now + 10), 10)

    assert store.purge_expired(clock.now) == 1
    assert store.get("old") is None
    assert store.get("new").user_id == 2


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("down")

    def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    def get(self, key):
        self._check()
        return self.data.get(key)

    def delete(self, key):
        self._check()
        self.data.pop(key, None)

    def close(self):
        pass


def test_redis_store_round_trip_with_ttl():
    fake = FakeRedis()
    manager = SessionManager(RedisSessionStore(fake), "secret")

    token = manager.create(9)

    assert manager.resolve(token) == 9
    (key,) = fake.data
    assert key.startswith("session:")
    assert json.loads(fake.data[key])["user_id"] == 9
    assert 0 < fake.ttls[key] <= SESSION_TTL_SECONDS

    manager.destroy(token)
    assert fake.data == {}


def test_redis_store_errors_become_session_error():
    fake = FakeRedis()
    store = RedisSessionStore(fake)
    fake.fail = True

    with pytest.raises(SessionError):
        store.get("x")
    with pytest.raises(SessionError):
        store.delete("x")


def test_build_session_store():
    assert isinstance(build_session_store("memory://"), MemorySessionStore)
    assert isinstance(build_session_store("redis://localhost:6379/0"), RedisSessionStore)
    with pytest.raises(ValueError):
        build_session_store("mongodb://localhost")


def test_redis_ttl_follows_manager_clock(clock):
    fake = FakeRedis()
    manager = SessionManager(RedisSessionStore(fake), "secret", clock=clock)

    manager.create(9)

    (ttl,) = fake.ttls.values()
    assert ttl == SESSION_TTL_SECONDS
