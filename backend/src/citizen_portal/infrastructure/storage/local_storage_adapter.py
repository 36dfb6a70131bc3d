"""Local filesystem storage adapter for attachments.

Files are written under a single upload directory using generated keys only;
the client-supplied filename never becomes part of a path. Writes go to a
temporary file in the same directory and are moved into place with
os.replace, so a reader never sees a partially written attachment.
"""

import contextlib
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from starlette.concurrency import run_in_threadpool

from ...domain.attachments.ports import FileStoragePort, StorageError, StoredFileInfo
from ...domain.attachments.validation import ValidatedFile, generate_storage_key

logger = logging.getLogger(__name__)

# <epoch-millis>-<uuid4><.ext>
_STORAGE_KEY_PATTERN = re.compile(r"^\d+-[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\.[a-z0-9]+$")


class LocalFileStorageAdapter(FileStoragePort):
    """FileStoragePort implementation writing to a local directory.

    Example:
        storage = LocalFileStorageAdapter("./uploads/submissions", "/uploads/submissions")
        stored = await storage.store(validated)
        stored.url  # '/uploads/submissions/1718000000000-<uuid>.pdf'
    """

    name = "local"

    def __init__(self, upload_dir: str, public_path: str = "/uploads/submissions"):
        self.upload_dir = Path(upload_dir).resolve()
        self.public_path = "/" + public_path.strip("/")
        logger.info(f"Initialized local attachment storage: dir={self.upload_dir}")

    async def store(self, validated: ValidatedFile) -> StoredFileInfo:
        key = generate_storage_key(validated.extension)
        await run_in_threadpool(self._write, key, validated.content)

        logger.info(
            f"Stored attachment locally: key={key}, size={validated.size}, "
            f"mime_type={validated.mime_type}"
        )
        return StoredFileInfo(
            url=f"{self.public_path}/{key}",
            key=key,
            original_name=validated.original_name,
            size=validated.size,
            mime_type=validated.mime_type,
        )

    def _write(self, key: str, content: bytes) -> None:
        tmp_path: Optional[str] = None
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.upload_dir, prefix=".upload-", suffix=".tmp")
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.upload_dir / key)
            tmp_path = None
        except OSError as e:
            logger.error(f"Local attachment write failed: key={key}, error={e}")
            raise StorageError(f"Failed to store file: {e}") from e
        finally:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)

    def resolve_path(self, key: str) -> Path:
        """Map a storage key back to its file path.

        Args:
            key: Storage key as returned by ``store``

        Returns:
            Path: Absolute path inside the upload directory

        Raises:
            PermissionError: If the key is malformed or escapes the upload directory
        """
        if not _STORAGE_KEY_PATTERN.match(key):
            raise PermissionError(f"Invalid storage key: {key!r}")

        path = (self.upload_dir / key).resolve()
        if path.parent != self.upload_dir:
            raise PermissionError(f"Invalid storage key: {key!r}")
        return path
