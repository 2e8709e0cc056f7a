import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlmodel import Session

from pharmaportal.auth.dependencies import get_current_account_id
from pharmaportal.db.session import get_session
from pharmaportal.errors import AppError, InvalidInput, unexpected_error
from pharmaportal.storage.service import StorageService, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["File"])


@router.get("/{file_id}")
def download_file(
    file_id: str,
    account_id: int = Depends(get_current_account_id),
    storage: StorageService = Depends(get_storage),
    session: Session = Depends(get_session),
):
    """
    Faz download direto do arquivo como stream, com o content type original.
    Arquivos de outra conta respondem 404.
    """
    try:
        blob_id = int(file_id)
    except ValueError:
        raise InvalidInput("invalid id")

    try:
        blob, chunks = storage.open_download(session, blob_id, account_id)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Erro ao fazer download do arquivo {file_id}: {e}", exc_info=True)
        raise unexpected_error(e, "server error") from e

    # Retornar como stream com inline para permitir visualização no navegador
    return StreamingResponse(
        chunks,
        media_type=blob.content_type,
        headers={
            "Content-Disposition": f"inline; filename*=UTF-8''{quote(blob.original_filename)}",
        },
    )
