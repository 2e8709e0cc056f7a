import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlmodel import Session

from pharmaportal.auth.dependencies import get_current_account_id, get_session_token
from pharmaportal.auth.session_manager import SessionManager, get_session_manager
from pharmaportal.config import get_settings
from pharmaportal.db.session import get_session
from pharmaportal.errors import AppError, SessionError, unexpected_error
from pharmaportal.services.account_service import authenticate, register_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class CredentialsRequest(BaseModel):
    # Opcionais para responder "email and password required" em vez de erro de validação
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterResponse(BaseModel):
    ok: bool = True
    id: int


class OkResponse(BaseModel):
    ok: bool = True


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


@router.post("/register", response_model=RegisterResponse)
def register(
    payload: CredentialsRequest,
    response: Response,
    session: Session = Depends(get_session),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Cria a conta e o profile, e já abre a sessão (cookie)."""
    try:
        account = register_account(session, payload.email, payload.password)
        token = sessions.create(account.id)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Erro ao registrar conta: {e}", exc_info=True)
        raise unexpected_error(e, "registration failed") from e

    _set_session_cookie(response, token)
    return RegisterResponse(id=account.id)


@router.post("/login", response_model=OkResponse)
def login(
    payload: CredentialsRequest,
    response: Response,
    session: Session = Depends(get_session),
    sessions: SessionManager = Depends(get_session_manager),
):
    try:
        account = authenticate(session, payload.email, payload.password)
        token = sessions.create(account.id)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Erro no login: {e}", exc_info=True)
        raise unexpected_error(e, "login failed") from e

    _set_session_cookie(response, token)
    return OkResponse()


@router.post("/logout", response_model=OkResponse)
def logout(
    response: Response,
    account_id: int = Depends(get_current_account_id),
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    try:
        sessions.destroy(token)
    except SessionError as e:
        logger.error(f"Erro ao encerrar sessão (account_id={account_id}): {e}", exc_info=True)
        raise SessionError("logout failed") from e

    response.delete_cookie(get_settings().session_cookie_name)
    return OkResponse()
