"""Select the attachment storage backend from settings."""

import logging

from ...config import Settings
from ...domain.attachments.ports import FileStoragePort
from .local_storage_adapter import LocalFileStorageAdapter
from .s3_storage_adapter import S3StorageAdapter
from .storage_config import load_storage_config

logger = logging.getLogger(__name__)


def build_file_storage(settings: Settings) -> FileStoragePort:
    """S3 when S3_BUCKET_NAME is set, otherwise the local upload directory."""
    config = load_storage_config(settings)
    if config is not None:
        return S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
            key_prefix=config.key_prefix,
        )

    if settings.is_production:
        logger.warning(
            "S3_BUCKET_NAME is not set; attachments are stored on the local "
            "filesystem and will not be shared between instances"
        )
    return LocalFileStorageAdapter(settings.UPLOAD_DIR, settings.UPLOAD_PUBLIC_PATH)
