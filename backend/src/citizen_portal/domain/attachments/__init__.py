"""Attachments domain module - validation, allow-list and storage ports"""

from .file_types import ALLOWED_FILE_TYPES, DANGEROUS_EXTENSIONS, FileTypeRule, content_type_for_extension
from .validation import (
    FileValidationError,
    FileValidator,
    IncomingAttachment,
    ValidatedFile,
    format_file_size,
    generate_storage_key,
    get_extension,
)
from .ports import ContentSniffer, MimeGuess, FileStoragePort, StoredFileInfo, StorageError

__all__ = [
    "ALLOWED_FILE_TYPES",
    "DANGEROUS_EXTENSIONS",
    "FileTypeRule",
    "content_type_for_extension",
    "FileValidationError",
    "FileValidator",
    "IncomingAttachment",
    "ValidatedFile",
    "format_file_size",
    "generate_storage_key",
    "get_extension",
    "ContentSniffer",
    "MimeGuess",
    "FileStoragePort",
    "StoredFileInfo",
    "StorageError",
]
