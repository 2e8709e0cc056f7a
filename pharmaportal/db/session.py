from contextlib import contextmanager
from typing import Generator

from sqlmodel import create_engine, SQLModel, Session

from pharmaportal.config import get_settings

DATABASE_URL = get_settings().database_url

# SQLite é aceito para desenvolvimento e testes (threadpool do FastAPI)
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Engine singleton
engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args)


def get_session() -> Generator[Session, None, None]:
    """Dependency do FastAPI para obter sessão do banco."""
    with Session(engine) as session:
        yield session


@contextmanager
def get_session_context() -> Generator[Session, None, None]:
    """Context manager para obter sessão do banco (uso fora de FastAPI Depends)."""
    with Session(engine) as session:
        yield session


def create_tables():
    """Cria todas as tabelas (desenvolvimento e testes)."""
    # Importa os modelos para registrá-los no metadata
    import pharmaportal.model  # noqa: F401

    SQLModel.metadata.create_all(engine)


def drop_tables():
    """Remove todas as tabelas (testes)."""
    import pharmaportal.model  # noqa: F401

    SQLModel.metadata.drop_all(engine)
