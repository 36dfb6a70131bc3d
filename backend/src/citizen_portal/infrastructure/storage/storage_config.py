"""Storage configuration for S3-compatible object storage.

Derived from application settings. Supports both MinIO (development) and
AWS S3 (production) with the same interface.
"""

from dataclasses import dataclass
from typing import Optional

from ...config import Settings


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL (e.g., 'http://localhost:9000' for MinIO,
                      None for AWS S3 which uses default regional endpoints)
        access_key: S3 access key ID (None to use the default credential chain)
        secret_key: S3 secret access key
        bucket_name: S3 bucket name for storing attachments
        region: AWS region
        key_prefix: Object key prefix for attachments
    """
    endpoint_url: Optional[str]
    access_key: Optional[str]
    secret_key: Optional[str]
    bucket_name: str
    region: str = "ap-southeast-1"
    key_prefix: str = "submissions"


def load_storage_config(settings: Settings) -> Optional[StorageConfig]:
    """Build the object storage configuration, if object storage is enabled.

    Args:
        settings: Application settings

    Returns:
        StorageConfig, or None when S3_BUCKET_NAME is not set

    Raises:
        ValueError: If only one of the S3 credentials is set
    """
    if not settings.S3_BUCKET_NAME:
        return None

    access_key = settings.S3_ACCESS_KEY_ID
    secret_key = settings.S3_SECRET_ACCESS_KEY
    if bool(access_key) != bool(secret_key):
        raise ValueError(
            "S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY must be set together"
        )

    return StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=access_key or None,
        secret_key=secret_key or None,
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.S3_REGION,
        key_prefix=settings.S3_KEY_PREFIX.strip("/"),
    )
