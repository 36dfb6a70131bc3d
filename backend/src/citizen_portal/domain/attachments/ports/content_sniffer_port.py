"""Content Sniffer Port - determine a file's type from its bytes.

Sniffers never raise for content they cannot identify: they return None,
meaning "no opinion", and callers treat that as its own branch rather than
as a rejection.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MimeGuess:
    """Type detected from magic bytes.

    Attributes:
        mime_type: Detected MIME type (e.g. 'application/pdf')
        extension: Canonical extension for the detected type, without dot
    """
    mime_type: str
    extension: Optional[str] = None


class ContentSniffer(ABC):
    """Port interface for magic-byte content type detection."""

    @abstractmethod
    def detect(self, content: bytes) -> Optional[MimeGuess]:
        """Detect the content type of ``content``.

        Args:
            content: Leading bytes (or all bytes) of the file

        Returns:
            MimeGuess, or None when the type cannot be determined
        """
        pass
