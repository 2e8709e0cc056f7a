import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File as FastAPIFile, Query, UploadFile
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from pharmaportal.auth.dependencies import get_current_account_id
from pharmaportal.db.session import get_session
from pharmaportal.errors import AppError, InvalidDocKey, InvalidInput, unexpected_error
from pharmaportal.model.profile import DOC_KEYS
from pharmaportal.services.profile_service import (
    file_url,
    get_or_create_profile,
    serialize_profile,
    set_doc_ref,
    update_profile,
)
from pharmaportal.storage.service import StorageService, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["Profile"])


class ProfileUpdate(BaseModel):
    """Campos editáveis do profile; ausentes não são alterados."""

    model_config = ConfigDict(alias_generator=to_camel)

    pharmacy_name: Optional[str] = None
    license_number: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    lang: Optional[str] = None


class DocRef(BaseModel):
    id: str
    url: str


class ProfileResponse(BaseModel):
    pharmacyName: Optional[str] = None
    licenseNumber: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    lang: Optional[str] = None
    docs: dict[str, Optional[DocRef]]


class OkResponse(BaseModel):
    ok: bool = True


class UploadResponse(BaseModel):
    ok: bool = True
    fileId: str
    filename: str
    url: str


@router.get("", response_model=ProfileResponse)
def read_profile(
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
):
    """Retorna o profile da conta (criado na primeira leitura, se ainda não existir)."""
    try:
        profile = get_or_create_profile(session, account_id)
        return serialize_profile(profile)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Erro ao ler profile (account_id={account_id}): {e}", exc_info=True)
        raise unexpected_error(e, "server error") from e


@router.post("", response_model=OkResponse)
def save_profile(
    payload: ProfileUpdate,
    account_id: int = Depends(get_current_account_id),
    session: Session = Depends(get_session),
):
    try:
        update_profile(session, account_id, payload.model_dump(exclude_unset=True))
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Erro ao salvar profile (account_id={account_id}): {e}", exc_info=True)
        raise unexpected_error(e, "save failed") from e
    return OkResponse()


@router.post("/upload", response_model=UploadResponse)
def upload_document(
    background_tasks: BackgroundTasks,
    account_id: int = Depends(get_current_account_id),
    storage: StorageService = Depends(get_storage),
    session: Session = Depends(get_session),
    doc: Optional[str] = Query(None, description=f"Documento: {', '.join(DOC_KEYS)}"),
    file: Optional[UploadFile] = FastAPIFile(None),
):
    """
    Envia um documento do profile e substitui a referência anterior.

    O blob antigo é excluído em background (best-effort) depois da troca.
    """
    if doc not in DOC_KEYS:
        raise InvalidDocKey()
    if file is None:
        raise InvalidInput("file required")

    try:
        blob = storage.upload(
            session,
            owner_id=account_id,
            file_obj=file.file,
            filename=file.filename,
            content_type=file.content_type,
            field=doc,
        )
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Erro ao gravar arquivo (account_id={account_id}, doc={doc}): {e}", exc_info=True)
        raise unexpected_error(e, "upload failed") from e

    try:
        old_blob_id = set_doc_ref(session, account_id, doc, blob.id)
    except Exception as e:
        logger.error(f"Erro ao atualizar profile após upload (blob_id={blob.id}): {e}", exc_info=True)
        # Blob novo ficaria órfão (background tasks não rodam em resposta de erro)
        storage.delete(blob.id)
        if isinstance(e, AppError):
            raise
        raise unexpected_error(e, "save failed") from e

    if old_blob_id and old_blob_id != blob.id:
        background_tasks.add_task(storage.delete, old_blob_id)

    return UploadResponse(
        fileId=str(blob.id),
        filename=blob.filename,
        url=file_url(blob.id),
    )
