from datetime import datetime, timezone
from typing import Any, Dict

from jose import jwt, JWTError

from pharmaportal.errors import Unauthenticated

SESSION_TOKEN_ISSUER = "pharmaportal"
SESSION_TOKEN_ALGORITHM = "HS256"


def create_session_token(sid: str, secret: str) -> str:
    """
    Assina o id da sessão para uso no cookie.

    O token não carrega o account_id: a sessão só é válida enquanto existir no
    session store, que também controla a expiração.
    """
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sid": sid,
        "iat": int(now.timestamp()),
        "iss": SESSION_TOKEN_ISSUER,
    }
    return jwt.encode(payload, secret, algorithm=SESSION_TOKEN_ALGORITHM)


def verify_session_token(token: str, secret: str) -> str:
    """
    Verifica a assinatura do token e retorna o sid.

    Raises:
        Unauthenticated: Se o token for inválido
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[SESSION_TOKEN_ALGORITHM],
            issuer=SESSION_TOKEN_ISSUER,
        )
    except JWTError as e:
        # Evita vazar detalhes internos no payload de erro.
        raise Unauthenticated() from e
    sid = payload.get("sid")
    if not isinstance(sid, str) or not sid:
        raise Unauthenticated()
    return sid
