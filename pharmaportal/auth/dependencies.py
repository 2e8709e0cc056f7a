from typing import Optional

from fastapi import Depends, Request

from pharmaportal.auth.session_manager import SessionManager, get_session_manager
from pharmaportal.config import get_settings


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(get_settings().session_cookie_name)


def get_current_account_id(
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
) -> int:
    """
    Dependency que retorna o account_id da sessão do cookie.

    Não consulta o banco: rotas protegidas devem declarar esta dependency antes
    de get_session/get_storage para responder 401 sem tocar nos stores.
    """
    return sessions.resolve(token)
