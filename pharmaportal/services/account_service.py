from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from pharmaportal.auth.password import hash_password, password_too_long, verify_password
from pharmaportal.errors import AuthFailure, DuplicateEmail, InvalidInput
from pharmaportal.model.account import Account
from pharmaportal.services.profile_service import get_or_create_profile

CREDENTIALS_REQUIRED = "email and password required"


def _clean_credentials(email: Optional[str], password: Optional[str]) -> tuple[str, str]:
    email = (email or "").strip()
    if not email or not password:
        raise InvalidInput(CREDENTIALS_REQUIRED)
    return email, password


def get_account_by_email(session: Session, email: str) -> Account | None:
    return session.exec(select(Account).where(Account.email == email)).first()


def register_account(session: Session, email: Optional[str], password: Optional[str]) -> Account:
    """
    Cria a conta (senha com hash bcrypt) e o profile associado.

    Raises:
        InvalidInput: email/senha ausentes ou senha acima do limite do bcrypt
        DuplicateEmail: email já cadastrado
    """
    email, password = _clean_credentials(email, password)
    if password_too_long(password):
        raise InvalidInput("password too long")

    if get_account_by_email(session, email):
        raise DuplicateEmail()

    account = Account(email=email, password_hash=hash_password(password))
    session.add(account)
    try:
        session.commit()
    except IntegrityError as e:
        # Cadastro simultâneo com o mesmo email
        session.rollback()
        raise DuplicateEmail() from e
    session.refresh(account)

    get_or_create_profile(session, account.id)
    return account


def authenticate(session: Session, email: Optional[str], password: Optional[str]) -> Account:
    """
    Valida email e senha.

    Raises:
        AuthFailure: email desconhecido ou senha errada (mesma mensagem nos dois casos)
    """
    email, password = _clean_credentials(email, password)
    account = get_account_by_email(session, email)
    if not account or not verify_password(password, account.password_hash):
        raise AuthFailure()
    return account
