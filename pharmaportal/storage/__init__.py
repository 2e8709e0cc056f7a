from pharmaportal.storage.config import StorageConfig
from pharmaportal.storage.client import S3Client
from pharmaportal.storage.local import LocalClient
from pharmaportal.storage.service import StorageService, init_storage, close_storage, get_storage

__all__ = ["StorageConfig", "S3Client", "LocalClient", "StorageService", "init_storage", "close_storage", "get_storage"]
