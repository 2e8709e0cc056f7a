from __future__ import annotations

import logging
import secrets
import time
from typing import Callable, Optional

from pharmaportal.auth.jwt import create_session_token, verify_session_token
from pharmaportal.auth.session_store import SessionRecord, SessionStore, build_session_store
from pharmaportal.config import SESSION_TTL_SECONDS, Settings
from pharmaportal.errors import SessionError, Unauthenticated

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Mapeia token de sessão (cookie) -> account_id.

    A expiração é fixa (created_at + TTL), não deslizante.
    """

    def __init__(
        self,
        store: SessionStore,
        secret: str,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.secret = secret
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def create(self, user_id: int) -> str:
        now = self._clock()
        self.store.purge_expired(now)
        sid = secrets.token_urlsafe(32)
        self.store.put(
            sid,
            SessionRecord(user_id=int(user_id), expires_at=now + self.ttl_seconds),
            self.ttl_seconds,
        )
        return create_session_token(sid, self.secret)

    def resolve(self, token: Optional[str]) -> int:
        """
        Retorna o account_id da sessão.

        Raises:
            Unauthenticated: token ausente, assinatura inválida, sessão desconhecida ou expirada
        """
        if not token:
            raise Unauthenticated()
        sid = verify_session_token(token, self.secret)
        record = self.store.get(sid)
        if record is None:
            raise Unauthenticated()
        if record.expires_at <= self._clock():
            self.store.delete(sid)
            raise Unauthenticated()
        return record.user_id

    def destroy(self, token: Optional[str]) -> None:
        """Remove a sessão (idempotente). Falha do store vira SessionError."""
        if not token:
            return
        try:
            sid = verify_session_token(token, self.secret)
        except Unauthenticated:
            return
        try:
            self.store.delete(sid)
        except SessionError:
            raise
        except Exception as e:
            raise SessionError() from e

    def close(self) -> None:
        self.store.close()


_session_manager: SessionManager | None = None


def init_session_manager(settings: Settings) -> SessionManager:
    """Inicializa o SessionManager do processo (chamado no startup da API)."""
    global _session_manager
    if settings.uses_default_secret:
        logger.warning(
            "SESSION_SECRET não configurado: usando segredo padrão inseguro. "
            "Defina SESSION_SECRET antes de rodar em produção."
        )
    store = build_session_store(settings.session_store_url)
    _session_manager = SessionManager(store, settings.session_secret, settings.session_ttl_seconds)
    return _session_manager


def close_session_manager() -> None:
    global _session_manager
    if _session_manager is not None:
        _session_manager.close()
        _session_manager = None


def get_session_manager() -> SessionManager:
    """Dependency do FastAPI para obter o SessionManager do processo."""
    if _session_manager is None:
        raise SessionError("session store not ready")
    return _session_manager
