"""S3 Storage Adapter - FileStoragePort implementation using boto3.

Provides S3-compatible attachment storage for AWS S3, MinIO, and other
S3-compatible services. Objects are written privately under
``<key_prefix>/<storage key>``.
"""

import logging
from io import BytesIO
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from starlette.concurrency import run_in_threadpool

from ...domain.attachments.ports import FileStoragePort, StorageError, StoredFileInfo
from ...domain.attachments.validation import ValidatedFile, generate_storage_key

logger = logging.getLogger(__name__)


class S3StorageAdapter(FileStoragePort):
    """S3-compatible storage adapter using boto3.

    Storage key format: ``{key_prefix}/{epoch-millis}-{uuid4}{ext}``

    Example:
        config = load_storage_config(get_settings())
        storage = S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )
        stored = await storage.store(validated)
    """

    name = "s3"

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: Optional[str],
        secret_key: Optional[str],
        bucket_name: str,
        region: str = "ap-southeast-1",
        key_prefix: str = "submissions",
    ):
        """Initialize S3 storage adapter.

        Args:
            endpoint_url: S3 endpoint URL (None for AWS S3, URL for MinIO)
            access_key: S3 access key ID (None for the default credential chain)
            secret_key: S3 secret access key
            bucket_name: S3 bucket name
            region: AWS region
            key_prefix: Prefix for attachment object keys

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}") from e
        except (BotoCoreError, ValueError) as e:
            raise StorageError(f"Failed to initialize S3 client: {e}") from e

        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        self.bucket_name = bucket_name
        self.region = region
        self.key_prefix = key_prefix.strip("/")

        logger.info(
            f"Initialized S3 storage adapter: bucket={bucket_name}, "
            f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
        )

    async def store(self, validated: ValidatedFile) -> StoredFileInfo:
        """Upload a validated attachment as a private object.

        Raises:
            StorageError: If the upload fails
        """
        object_key = self.object_key(generate_storage_key(validated.extension))

        try:
            await run_in_threadpool(
                self.s3_client.put_object,
                Bucket=self.bucket_name,
                Key=object_key,
                Body=BytesIO(validated.content),
                ContentType=validated.mime_type,
                ContentLength=validated.size,
                ACL="private",
                Metadata={"original_size": str(validated.size)},
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(
                f"S3 upload failed: object_key={object_key}, "
                f"error={error_code}, message={e}"
            )
            raise StorageError(f"Failed to upload file: {error_code}") from e
        except BotoCoreError as e:
            logger.error(f"S3 upload failed: object_key={object_key}, error={e}")
            raise StorageError(f"Failed to upload file: {e}") from e

        logger.info(
            f"Uploaded attachment: object_key={object_key}, "
            f"size={validated.size}, mime_type={validated.mime_type}"
        )

        return StoredFileInfo(
            url=self.public_url(object_key),
            key=object_key,
            original_name=validated.original_name,
            size=validated.size,
            mime_type=validated.mime_type,
        )

    def object_key(self, storage_key: str) -> str:
        return f"{self.key_prefix}/{storage_key}" if self.key_prefix else storage_key

    def public_url(self, object_key: str) -> str:
        """URL of an object; the object itself stays private.

        Example:
            >>> adapter.public_url("submissions/1718000000000-abc.pdf")
            'https://bucket.s3.ap-southeast-1.amazonaws.com/submissions/1718000000000-abc.pdf'
        """
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket_name}/{object_key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{object_key}"
