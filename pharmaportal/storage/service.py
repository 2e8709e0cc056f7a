import logging
import time
import uuid
from pathlib import PurePosixPath, PureWindowsPath
from typing import BinaryIO, Iterator, Optional, Union

from sqlmodel import Session

from pharmaportal.db.session import get_session_context
from pharmaportal.errors import NotFound, StorageUnavailable
from pharmaportal.model.base import MAX_ID
from pharmaportal.model.blob import Blob
from pharmaportal.storage.client import S3Client
from pharmaportal.storage.config import StorageConfig
from pharmaportal.storage.local import LocalClient

logger = logging.getLogger(__name__)

StorageClient = Union[S3Client, LocalClient]


def _build_client(config: StorageConfig) -> StorageClient:
    if config.backend == "s3":
        return S3Client(config)
    return LocalClient(config)


def sanitize_filename(filename: str) -> str:
    """Remove diretórios e caracteres problemáticos do nome enviado pelo cliente."""
    name = PureWindowsPath(PurePosixPath(filename).name).name
    name = name.replace(" ", "_").strip(".")
    return name or "unknown"


class StorageService:
    """Serviço de storage que combina o cliente (S3/MinIO ou disco) com o modelo Blob."""

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()
        self.client: Optional[StorageClient] = None
        self.ready = False

    def open(self) -> None:
        """Conecta ao backend e garante bucket/diretório. Só então aceita requests."""
        client = _build_client(self.config)
        client.ensure_bucket_exists()
        self.client = client
        self.ready = True

    def close(self) -> None:
        self.ready = False
        if self.client is not None:
            self.client.close()
            self.client = None

    def _require_client(self) -> StorageClient:
        if not self.ready or self.client is None:
            raise StorageUnavailable()
        return self.client

    def _generate_key(self, owner_id: int, field: str, filename: str) -> str:
        """
        Gera chave seguindo padrão: {owner_id}/{field}/{uuid8}_{filename}

        Returns:
            Chave (ex: "1/drugLicense/ab12cd34_1718000000000_licenca.pdf")
        """
        # UUID evita colisão de uploads no mesmo milissegundo
        return f"{owner_id}/{field}/{uuid.uuid4().hex[:8]}_{filename}"

    def upload(
        self,
        session: Session,
        *,
        owner_id: int,
        file_obj: BinaryIO,
        filename: Optional[str],
        content_type: Optional[str],
        field: str,
    ) -> Blob:
        """
        Grava o arquivo no backend em streaming e cria o registro Blob.

        O nome armazenado recebe prefixo com o timestamp de criação (ms).
        O registro só é criado depois que a escrita do objeto terminou.
        """
        client = self._require_client()
        original_filename = sanitize_filename(filename or "unknown")
        stored_filename = f"{int(time.time() * 1000)}_{original_filename}"
        content_type = content_type or "application/octet-stream"
        key = self._generate_key(owner_id, field, stored_filename)

        file_size = client.put(file_obj, key, content_type=content_type)

        blob = Blob(
            owner_id=owner_id,
            field=field,
            filename=stored_filename,
            original_filename=original_filename,
            content_type=content_type,
            storage_key=key,
            file_size=file_size,
        )
        try:
            session.add(blob)
            session.commit()
            session.refresh(blob)
        except Exception:
            session.rollback()
            self._delete_object(key)
            raise

        logger.info(f"[UPLOAD] blob_id={blob.id} owner_id={owner_id} field={field} size={file_size}")
        return blob

    def open_download(self, session: Session, blob_id: int, owner_id: int) -> tuple[Blob, Iterator[bytes]]:
        """
        Retorna o Blob e um iterador de chunks do conteúdo.

        Raises:
            NotFound: id desconhecido, excluído ou de outra conta
        """
        client = self._require_client()
        if not 1 <= blob_id <= MAX_ID:
            raise NotFound()
        blob = session.get(Blob, blob_id)
        if blob is None or blob.owner_id != owner_id:
            raise NotFound()
        return blob, client.open_stream(blob.storage_key)

    def delete(self, blob_id: int) -> None:
        """
        Exclui o blob (objeto + registro) em modo best-effort.

        Falhas são apenas logadas: a exclusão nunca bloqueia o fluxo de escrita.
        Usa sessão própria porque roda em background, depois da resposta.
        """
        try:
            client = self._require_client()
            with get_session_context() as session:
                blob = session.get(Blob, blob_id)
                if blob is None:
                    return
                key = blob.storage_key
                session.delete(blob)
                session.commit()
            client.delete(key)
            logger.info(f"[DELETE] blob_id={blob_id} excluído (key={key})")
        except Exception as e:
            logger.warning(f"Erro ao excluir blob_id={blob_id} (ignorado): {e}")

    def _delete_object(self, key: str) -> None:
        try:
            self._require_client().delete(key)
        except Exception as e:
            logger.warning(f"Erro ao excluir objeto órfão {key} (ignorado): {e}")


_storage: StorageService | None = None


def init_storage(config: Optional[StorageConfig] = None) -> StorageService:
    """
    Cria o handle de storage do processo (chamado no startup, antes de aceitar tráfego).

    Se o backend não estiver acessível, o handle fica "not ready" e as rotas
    respondem 503 até um novo startup.
    """
    global _storage
    service = StorageService(config)
    try:
        service.open()
        logger.info(f"Storage pronto ({service.config.backend}: {service.config.storage_url})")
    except Exception as e:
        logger.error(f"Storage indisponível ({service.config.storage_url}): {e}", exc_info=True)
    _storage = service
    return service


def close_storage() -> None:
    global _storage
    if _storage is not None:
        _storage.close()
        _storage = None


def get_storage() -> StorageService:
    """Dependency do FastAPI: retorna o storage ou 503 se ainda não estiver pronto."""
    if _storage is None or not _storage.ready:
        raise StorageUnavailable()
    return _storage
