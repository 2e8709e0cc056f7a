import os
from pathlib import Path
from urllib.parse import urlparse


class StorageConfig:
    """
    Configuração do blob store lida de variáveis de ambiente.

    STORAGE_URL escolhe o backend:
      - file://<diretório>  -> arquivos em disco (padrão: file://./data/uploads)
      - s3://<bucket>       -> S3/MinIO (credenciais em S3_*)
    """

    def __init__(self, storage_url: str | None = None):
        self.storage_url: str = storage_url or os.getenv("STORAGE_URL", "file://./data/uploads")
        parsed = urlparse(self.storage_url)
        self.backend: str = parsed.scheme or "file"

        if self.backend not in ("file", "s3"):
            raise ValueError(
                f"STORAGE_URL com esquema não suportado: {self.storage_url}\n"
                f"Use file://<diretório> ou s3://<bucket>."
            )

        # file://./data/uploads -> netloc "." + path "/data/uploads"
        local_path = (parsed.netloc + parsed.path) if self.backend == "file" else ""
        self.local_root: Path = Path(local_path or "./data/uploads")

        self.endpoint_url: str = os.getenv("S3_ENDPOINT_URL", "http://localhost:9000")
        self.access_key_id: str = os.getenv("S3_ACCESS_KEY_ID", "minio")
        self.secret_access_key: str = os.getenv("S3_SECRET_ACCESS_KEY", "minio12345")
        bucket_from_url = parsed.netloc if self.backend == "s3" else ""
        self.bucket_name: str = bucket_from_url or os.getenv("S3_BUCKET_NAME", "uploads")
        self.region: str = os.getenv("S3_REGION", "us-east-1")
        self.use_ssl: bool = os.getenv("S3_USE_SSL", "false").lower() == "true"
