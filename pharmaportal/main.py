import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from pharmaportal.api.route import router
from pharmaportal.auth.session_manager import close_session_manager, init_session_manager
from pharmaportal.config import get_settings
from pharmaportal.db.session import create_tables
from pharmaportal.errors import AppError
from pharmaportal.storage.service import close_storage, init_storage

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Banco, storage e sessões ficam prontos antes de aceitar tráfego
    if settings.db_auto_create:
        try:
            create_tables()
        except Exception as e:
            # Requests que usam o banco vão responder 503 até o banco subir
            logger.error(f"Erro ao criar tabelas: {e}", exc_info=True)
    init_storage()
    init_session_manager(settings)
    yield
    close_session_manager()
    close_storage()


app = FastAPI(
    title="PharmaPortal API",
    description="API de cadastro de farmácias: contas, perfil e documentos",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


def _error_payload(message: str) -> dict:
    return {"error": message}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Normaliza erros HTTP do FastAPI/Starlette para um payload consistente.
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(status_code=exc.status_code, content=_error_payload(message), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Erros de validação viram 400 (não 422)
    logger.debug(f"Request inválido em {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content=_error_payload("invalid input"))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # Loga o erro completo; o cliente nunca recebe detalhes internos
    logger.error(f"Erro não tratado em {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=_error_payload("internal server error"))


# Serve arquivos estáticos das páginas
if settings.static_dir.exists():
    app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")
