"""Attachment storage adapters (local filesystem, S3)"""

from .factory import build_file_storage
from .local_storage_adapter import LocalFileStorageAdapter
from .s3_storage_adapter import S3StorageAdapter
from .storage_config import StorageConfig, load_storage_config

__all__ = [
    "build_file_storage",
    "LocalFileStorageAdapter",
    "S3StorageAdapter",
    "StorageConfig",
    "load_storage_config",
]
