from sqlmodel import Field
from sqlalchemy import UniqueConstraint

from pharmaportal.model.base import ImmutableBase


class Account(ImmutableBase, table=True):
    """Modelo Account - credenciais de acesso (email + hash bcrypt)."""

    __tablename__ = "account"

    email: str = Field(index=True)
    # Nunca serializado nas respostas da API
    password_hash: str

    __table_args__ = (
        UniqueConstraint("email", name="uq_account_email"),
    )
