from __future__ import annotations

import json
import math
import threading
from dataclasses import dataclass
from typing import Protocol

import redis
from redis.exceptions import RedisError

from pharmaportal.errors import SessionError


@dataclass(frozen=True)
class SessionRecord:
    user_id: int
    expires_at: float  # epoch em segundos


class SessionStore(Protocol):
    """Backend plugável do SessionManager (memória, Redis, ...)."""

    def put(self, sid: str, record: SessionRecord, ttl_seconds: int) -> None: ...

    def get(self, sid: str) -> SessionRecord | None: ...

    def delete(self, sid: str) -> None: ...

    def purge_expired(self, now: float) -> int: ...

    def close(self) -> None: ...


class MemorySessionStore:
    """Session store em memória do processo (desenvolvimento e testes)."""

    def __init__(self):
        self._records: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def put(self, sid: str, record: SessionRecord, ttl_seconds: int) -> None:
        with self._lock:
            self._records[sid] = record

    def get(self, sid: str) -> SessionRecord | None:
        with self._lock:
            return self._records.get(sid)

    def delete(self, sid: str) -> None:
        with self._lock:
            self._records.pop(sid, None)

    def purge_expired(self, now: float) -> int:
        with self._lock:
            expired = [sid for sid, rec in self._records.items() if rec.expires_at <= now]
            for sid in expired:
                del self._records[sid]
        return len(expired)

    def close(self) -> None:
        with self._lock:
            self._records.clear()


class RedisSessionStore:
    """
    Session store em Redis.

    Chave `session:{sid}` com SETEX: o próprio Redis descarta sessões expiradas,
    mas o SessionManager continua validando expires_at.
    """

    key_prefix = "session:"

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisSessionStore:
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def _key(self, sid: str) -> str:
        return f"{self.key_prefix}{sid}"

    def put(self, sid: str, record: SessionRecord, ttl_seconds: int) -> None:
        ttl = max(1, math.ceil(ttl_seconds))
        value = json.dumps({"user_id": record.user_id, "expires_at": record.expires_at})
        try:
            self._client.setex(self._key(sid), ttl, value)
        except RedisError as e:
            raise SessionError() from e

    def get(self, sid: str) -> SessionRecord | None:
        try:
            raw = self._client.get(self._key(sid))
        except RedisError as e:
            raise SessionError() from e
        if raw is None:
            return None
        data = json.loads(raw)
        return SessionRecord(user_id=int(data["user_id"]), expires_at=float(data["expires_at"]))

    def delete(self, sid: str) -> None:
        try:
            self._client.delete(self._key(sid))
        except RedisError as e:
            raise SessionError() from e

    def purge_expired(self, now: float) -> int:
        # Expiração feita pelo próprio Redis (SETEX)
        return 0

    def close(self) -> None:
        self._client.close()


def build_session_store(url: str) -> SessionStore:
    """Cria o session store a partir de SESSION_STORE_URL (memory:// ou redis://)."""
    if url.startswith("memory://"):
        return MemorySessionStore()
    if url.startswith(("redis://", "rediss://", "unix://")):
        return RedisSessionStore.from_url(url)
    raise ValueError(f"SESSION_STORE_URL não suportada: {url}")
