"""Magic-byte content sniffer backed by the ``filetype`` library.

Implements ContentSniffer. Detection looks only at leading signature bytes,
so formats without a signature (plain text, legacy Office, MP3 without an
ID3 tag) yield no opinion.
"""

import logging
from typing import Optional

import filetype

from ...domain.attachments.ports import ContentSniffer, MimeGuess

logger = logging.getLogger(__name__)


class FiletypeSniffer(ContentSniffer):
    """ContentSniffer implementation using ``filetype.guess``."""

    def detect(self, content: bytes) -> Optional[MimeGuess]:
        if not content:
            return None
        try:
            kind = filetype.guess(content)
        except (TypeError, ValueError, OSError) as e:
            logger.warning(f"Content sniffing failed, treating as undetermined: {e}")
            return None

        if kind is None:
            return None
        return MimeGuess(mime_type=kind.mime, extension=kind.extension)
