from sqlmodel import Field

from pharmaportal.model.base import ImmutableBase


class Blob(ImmutableBase, table=True):
    """Modelo Blob - metadados de arquivos armazenados no MinIO/S3 ou em disco."""

    __tablename__ = "blob"

    owner_id: int = Field(foreign_key="account.id", index=True)
    field: str  # doc key atendida pelo arquivo (ex: drugLicense)
    filename: str  # nome com prefixo de timestamp (ex: 1718000000000_licenca.pdf)
    original_filename: str
    content_type: str
    storage_key: str = Field(unique=True, index=True)
    file_size: int  # Tamanho em bytes
