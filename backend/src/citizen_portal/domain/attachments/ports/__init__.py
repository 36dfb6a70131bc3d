"""Ports for attachment sniffing and storage"""

from .content_sniffer_port import ContentSniffer, MimeGuess
from .file_storage_port import FileStoragePort, StoredFileInfo, StorageError

__all__ = ["ContentSniffer", "MimeGuess", "FileStoragePort", "StoredFileInfo", "StorageError"]
