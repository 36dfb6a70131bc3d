"""File Storage Port - durable storage for validated attachments.

Adapters write the full byte sequence under a generated storage key and
return a StoredFileInfo, or raise StorageError leaving nothing addressable
under that key.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..validation import ValidatedFile


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


@dataclass(frozen=True)
class StoredFileInfo:
    """Metadata for an attachment that has been written to storage.

    Attributes:
        url: Public-facing URL or path for the stored file
        key: Opaque storage key (the generated filename or object key)
        original_name: Client-supplied filename, kept as metadata only
        size: Stored size in bytes
        mime_type: Resolved MIME type
    """
    url: str
    key: str
    original_name: str
    size: int
    mime_type: str


class FileStoragePort(ABC):
    """Port interface for attachment storage backends (local disk, S3)."""

    name = "storage"

    @abstractmethod
    async def store(self, validated: "ValidatedFile") -> StoredFileInfo:
        """Persist a validated attachment.

        Args:
            validated: Output of FileValidator.validate()

        Returns:
            StoredFileInfo: Where and how the file was stored

        Raises:
            StorageError: If the write fails
        """
        pass

