"""
Erros de domínio da API.

Os serviços levantam estas exceções sem depender do FastAPI; o app converte
cada uma em `{"error": <mensagem>}` com o status HTTP correspondente.
"""
from botocore.exceptions import BotoCoreError
from sqlalchemy.exc import OperationalError


class AppError(Exception):
    status_code: int = 500
    default_message: str = "server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AppError):
    status_code = 400
    default_message = "invalid input"


class InvalidDocKey(InvalidInput):
    default_message = "invalid doc param"


class DuplicateEmail(AppError):
    status_code = 400
    default_message = "email already registered"


class AuthFailure(AppError):
    # Mesma mensagem para email inexistente e senha errada
    status_code = 401
    default_message = "invalid credentials"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "unauthenticated"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class StorageUnavailable(AppError):
    status_code = 503
    default_message = "storage not ready"


class SessionError(AppError):
    default_message = "session error"


class Unexpected(AppError):
    pass


def unexpected_error(exc: Exception, message: str) -> AppError:
    """
    Converte uma exceção inesperada no erro de domínio mais próximo.

    Falhas de conexão com o banco ou com o S3/MinIO viram 503; o resto vira 500
    com mensagem genérica.
    """
    if isinstance(exc, (OperationalError, BotoCoreError)):
        return StorageUnavailable()
    return Unexpected(message)
