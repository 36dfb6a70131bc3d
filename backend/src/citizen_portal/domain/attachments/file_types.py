"""Attachment allow-list and deny-list.

Maps each permitted extension to the MIME types accepted for it. The first
MIME type of a rule is its canonical type.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Tuple

# Executable, script and installer extensions; rejected before anything else
DANGEROUS_EXTENSIONS: FrozenSet[str] = frozenset({
    '.exe', '.bat', '.cmd', '.scr', '.com', '.pif', '.vbs', '.js', '.jar',
    '.msi', '.msp', '.dll', '.sh', '.ps1', '.psm1', '.vbe', '.jse', '.wsf',
    '.wsh', '.hta', '.cpl', '.apk', '.app', '.deb', '.rpm', '.dmg', '.reg',
    '.lnk',
})

# Declared types that carry no information about the content
UNDETERMINED_MIME_TYPES: FrozenSet[str] = frozenset({
    '',
    'application/octet-stream',
    'binary/octet-stream',
})

TEXT_PLAIN = 'text/plain'


@dataclass(frozen=True)
class FileTypeRule:
    """Validation rule for one extension.

    Attributes:
        mime_types: Accepted MIME types, canonical first
        has_signature: Format has reliable magic bytes; undetectable content is rejected
        text_fallback: Accept when neither detected nor declared type is known
        container_types: Detected types that only identify the container
            (e.g. zip for OOXML) and are treated as no opinion
    """
    mime_types: Tuple[str, ...]
    has_signature: bool = True
    text_fallback: bool = False
    container_types: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def canonical(self) -> str:
        return self.mime_types[0]

    def allows(self, mime_type: str) -> bool:
        return mime_type in self.mime_types


_OOXML_CONTAINER = frozenset({'application/zip'})

ALLOWED_FILE_TYPES: Dict[str, FileTypeRule] = {
    # Images
    '.jpg': FileTypeRule(('image/jpeg', 'image/jpg', 'image/pjpeg')),
    '.jpeg': FileTypeRule(('image/jpeg', 'image/jpg', 'image/pjpeg')),
    '.png': FileTypeRule(('image/png',)),
    '.gif': FileTypeRule(('image/gif',)),
    '.webp': FileTypeRule(('image/webp',)),
    '.bmp': FileTypeRule(('image/bmp', 'image/x-ms-bmp')),

    # Documents
    '.pdf': FileTypeRule(('application/pdf',)),
    '.txt': FileTypeRule((TEXT_PLAIN,), has_signature=False, text_fallback=True),
    '.csv': FileTypeRule(
        ('text/csv', TEXT_PLAIN, 'application/csv', 'application/vnd.ms-excel'),
        has_signature=False,
        text_fallback=True,
    ),

    # Microsoft Office
    '.doc': FileTypeRule(('application/msword',), has_signature=False),
    '.docx': FileTypeRule(
        ('application/vnd.openxmlformats-officedocument.wordprocessingml.document',),
        has_signature=False,
        container_types=_OOXML_CONTAINER,
    ),
    '.xls': FileTypeRule(('application/vnd.ms-excel',), has_signature=False),
    '.xlsx': FileTypeRule(
        ('application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',),
        has_signature=False,
        container_types=_OOXML_CONTAINER,
    ),
    '.ppt': FileTypeRule(('application/vnd.ms-powerpoint',), has_signature=False),
    '.pptx': FileTypeRule(
        ('application/vnd.openxmlformats-officedocument.presentationml.presentation',),
        has_signature=False,
        container_types=_OOXML_CONTAINER,
    ),

    # Archives
    '.zip': FileTypeRule(('application/zip', 'application/x-zip-compressed')),
    '.rar': FileTypeRule(('application/x-rar-compressed', 'application/vnd.rar', 'application/x-rar')),

    # Audio
    '.mp3': FileTypeRule(('audio/mpeg', 'audio/mp3'), has_signature=False),
    '.wav': FileTypeRule(('audio/wav', 'audio/x-wav', 'audio/wave', 'audio/vnd.wave')),

    # Video
    '.mp4': FileTypeRule(('video/mp4', 'video/x-m4v')),
    '.avi': FileTypeRule(('video/avi', 'video/x-msvideo', 'video/msvideo')),
    '.mov': FileTypeRule(('video/quicktime',)),
}


def content_type_for_extension(extension: str) -> str:
    """Canonical MIME type for a stored file's extension, for serving."""
    rule = ALLOWED_FILE_TYPES.get(extension.lower())
    return rule.canonical if rule else 'application/octet-stream'
