import shutil
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from pharmaportal.errors import NotFound, StorageUnavailable
from pharmaportal.storage.config import StorageConfig

CHUNK_SIZE = 64 * 1024


class LocalClient:
    """Blob store em diretório local, com a mesma interface do S3Client."""

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()
        self.root = self.config.local_root.resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        # Chaves nunca podem sair do diretório raiz
        if self.root not in path.parents:
            raise NotFound()
        return path

    def ensure_bucket_exists(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable() from e

    def put(self, file_obj: BinaryIO, key: str, content_type: Optional[str] = None) -> int:
        path = self._path(key)
        file_obj.seek(0)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as out:
                shutil.copyfileobj(file_obj, out, CHUNK_SIZE)
                return out.tell()
        except OSError as e:
            # Disco cheio ou sem permissão
            raise StorageUnavailable() from e

    def open_stream(self, key: str) -> Iterator[bytes]:
        try:
            handle = self._path(key).open("rb")
        except FileNotFoundError as e:
            raise NotFound() from e
        return _iter_chunks(handle)

    def delete(self, key: str) -> None:
        self._path(key).unlink()

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def close(self) -> None:
        pass


def _iter_chunks(handle: BinaryIO) -> Iterator[bytes]:
    with handle:
        while True:
            chunk = handle.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
