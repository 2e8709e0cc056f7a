import logging
from typing import BinaryIO, Iterator, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from pharmaportal.errors import NotFound, StorageUnavailable
from pharmaportal.storage.config import StorageConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def _error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


class S3Client:
    """Cliente S3/MinIO usando boto3."""

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()
        self._client = None
        self._ensure_client()

    def _ensure_client(self):
        """Cria cliente boto3 se ainda não existe."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.config.endpoint_url,
                aws_access_key_id=self.config.access_key_id,
                aws_secret_access_key=self.config.secret_access_key,
                region_name=self.config.region,
                use_ssl=self.config.use_ssl,
                config=Config(signature_version="s3v4"),
            )

    def ensure_bucket_exists(self) -> None:
        """Cria bucket se não existir."""
        try:
            self._client.head_bucket(Bucket=self.config.bucket_name)
            return
        except ClientError as e:
            if _error_code(e) not in ("404", "NoSuchBucket"):
                raise StorageUnavailable() from e
        except BotoCoreError as e:
            # Endpoint inacessível (MinIO fora do ar, DNS, etc.)
            raise StorageUnavailable() from e

        try:
            # Para MinIO, não precisa especificar LocationConstraint
            if "minio" in self.config.endpoint_url.lower() or not self.config.use_ssl or self.config.region == "us-east-1":
                self._client.create_bucket(Bucket=self.config.bucket_name)
            else:
                self._client.create_bucket(
                    Bucket=self.config.bucket_name,
                    CreateBucketConfiguration={"LocationConstraint": self.config.region},
                )
            logger.info(f"Bucket '{self.config.bucket_name}' criado em {self.config.endpoint_url}")
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailable() from e

    def put(self, file_obj: BinaryIO, key: str, content_type: Optional[str] = None) -> int:
        """
        Faz upload em streaming de objeto de arquivo para S3/MinIO.

        Args:
            file_obj: Objeto de arquivo posicionado no início (UploadFile.file, BytesIO, ...)
            key: Chave S3 (ex: "1/drugLicense/ab12cd34_1718000000000_licenca.pdf")
            content_type: MIME type (opcional)

        Returns:
            Tamanho do objeto em bytes

        Raises:
            StorageUnavailable: S3/MinIO inacessível ou recusou a escrita
        """
        file_obj.seek(0, 2)
        size = file_obj.tell()
        file_obj.seek(0)

        extra_args = {}
        if content_type:
            extra_args["ContentType"] = content_type

        try:
            self._client.upload_fileobj(file_obj, self.config.bucket_name, key, ExtraArgs=extra_args)
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailable() from e
        return size

    def open_stream(self, key: str) -> Iterator[bytes]:
        """
        Obtém stream do objeto em chunks.

        Raises:
            NotFound: Se a chave não existir no bucket
            StorageUnavailable: S3/MinIO inacessível
        """
        try:
            response = self._client.get_object(Bucket=self.config.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchKey"):
                raise NotFound() from e
            raise StorageUnavailable() from e
        except BotoCoreError as e:
            raise StorageUnavailable() from e
        return response["Body"].iter_chunks(chunk_size=CHUNK_SIZE)

    def delete(self, key: str) -> None:
        """Exclui objeto do S3/MinIO."""
        try:
            self._client.delete_object(Bucket=self.config.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageUnavailable() from e

    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self.config.bucket_name, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchKey"):
                return False
            raise StorageUnavailable() from e
        except BotoCoreError as e:
            raise StorageUnavailable() from e

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
