"""Attachment download endpoint for the local storage backend

GET /uploads/submissions/{key} serves a file written by
LocalFileStorageAdapter. Only generated storage keys resolve; anything that
could escape the upload directory is refused.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from ..dependencies import get_file_storage
from ..domain.attachments import content_type_for_extension
from ..domain.attachments.ports import FileStoragePort
from ..infrastructure.storage import LocalFileStorageAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.get("/submissions/{key}")
async def download_attachment(
    key: str,
    storage: Annotated[FileStoragePort, Depends(get_file_storage)],
):
    """Stream a stored attachment.

    Raises:
        HTTPException 404: Not stored locally, or no such file
        HTTPException 403: Key is malformed or points outside the upload directory
    """
    if not isinstance(storage, LocalFileStorageAdapter):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    try:
        path = storage.resolve_path(key)
    except PermissionError:
        logger.warning(f"Refused attachment key: {key!r}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    return FileResponse(
        path,
        media_type=content_type_for_extension(path.suffix),
        headers={"X-Content-Type-Options": "nosniff"},
    )
