"""Attachment validation for citizen submissions.

Validation runs in a fixed order and stops at the first failure:

1. size (non-empty, within the configured maximum)
2. extension present
3. extension not on the executable deny-list
4. extension on the allow-list
5. magic-byte sniffing of the full content
6. detected / declared type checked against the extension's allowed types
7. canonical MIME type resolved
"""

import os
import time
from dataclasses import dataclass
from typing import BinaryIO, Dict, Optional
from uuid import uuid4

from .file_types import (
    ALLOWED_FILE_TYPES,
    DANGEROUS_EXTENSIONS,
    TEXT_PLAIN,
    UNDETERMINED_MIME_TYPES,
    FileTypeRule,
)
from .ports.content_sniffer_port import ContentSniffer, MimeGuess


class FileValidationError(Exception):
    """Raised when an attachment fails validation.

    The message is safe to return to the submitter.
    """

    def __init__(self, message: str, reason: str = "invalid_file"):
        self.message = message
        self.reason = reason
        super().__init__(message)


@dataclass
class IncomingAttachment:
    """An attachment as received from the client, before validation.

    Attributes:
        filename: Client-supplied filename (untrusted)
        declared_type: Client-declared Content-Type of the part (untrusted)
        stream: Readable binary stream with the file content
        size: Size reported by the transport, if known
    """
    filename: str
    declared_type: Optional[str]
    stream: BinaryIO
    size: Optional[int] = None

    def read_all(self) -> bytes:
        self.stream.seek(0)
        return self.stream.read()


@dataclass
class ValidatedFile:
    """An attachment that passed validation and is ready to store."""
    original_name: str
    extension: str
    mime_type: str
    content: bytes
    detected_type: Optional[str] = None
    declared_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for display.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {units[exponent]}"


def original_basename(filename: str) -> str:
    """Strip any client-side directory components from a filename."""
    return os.path.basename(filename.replace("\\", "/")).strip()


def get_extension(filename: str) -> Optional[str]:
    """Lower-cased extension including the dot, or None if there is none.

    Example:
        >>> get_extension("Report.PDF")
        '.pdf'
        >>> get_extension("README") is None
        True
    """
    _, ext = os.path.splitext(original_basename(filename))
    return ext.lower() if ext and ext != "." else None


def normalize_mime_type(mime_type: Optional[str]) -> Optional[str]:
    """Lower-case a Content-Type and drop parameters; None if undetermined."""
    if not mime_type:
        return None
    value = mime_type.split(";", 1)[0].strip().lower()
    return None if value in UNDETERMINED_MIME_TYPES else value


def generate_storage_key(extension: str) -> str:
    """Collision-resistant storage filename, independent of the original name.

    Format: ``<epoch-millis>-<uuid4><extension>``
    """
    return f"{int(time.time() * 1000)}-{uuid4()}{extension}"


class FileValidator:
    """Validates untrusted attachments against the allow-list.

    Example:
        validator = FileValidator(max_bytes=25 * 1024 * 1024, sniffer=FiletypeSniffer())
        validated = validator.validate(attachment)
    """

    def __init__(
        self,
        max_bytes: int,
        sniffer: ContentSniffer,
        allowed_types: Optional[Dict[str, FileTypeRule]] = None,
    ):
        self.max_bytes = max_bytes
        self.sniffer = sniffer
        self.allowed_types = allowed_types if allowed_types is not None else ALLOWED_FILE_TYPES

    def _check_size(self, size: int) -> None:
        if size == 0:
            raise FileValidationError("File is empty (0 bytes)", reason="empty")
        if size > self.max_bytes:
            raise FileValidationError(
                f"File size exceeds {format_file_size(self.max_bytes)} limit. "
                f"Current size: {format_file_size(size)}",
                reason="too_large",
            )

    def validate(self, attachment: IncomingAttachment) -> ValidatedFile:
        """Run every validation step against ``attachment``.

        Args:
            attachment: File as received from the client

        Returns:
            ValidatedFile: content plus resolved MIME type

        Raises:
            FileValidationError: On the first failing step
        """
        if attachment.size is not None:
            self._check_size(attachment.size)

        name = original_basename(attachment.filename or "")
        extension = get_extension(name)
        if extension is None:
            raise FileValidationError("File must have an extension", reason="no_extension")

        if extension in DANGEROUS_EXTENSIONS:
            raise FileValidationError(
                "Executable files are not allowed for security reasons",
                reason="dangerous_extension",
            )

        rule = self.allowed_types.get(extension)
        if rule is None:
            raise FileValidationError(
                f"File extension '{extension}' is not allowed",
                reason="extension_not_allowed",
            )

        content = attachment.read_all()
        # Transport-reported size may be missing or wrong; the bytes decide
        self._check_size(len(content))

        guess = self.sniffer.detect(content)
        declared = normalize_mime_type(attachment.declared_type)
        detected = self._effective_detection(guess, rule)

        self._check_type(extension, rule, detected, declared)

        return ValidatedFile(
            original_name=name,
            extension=extension,
            mime_type=self._resolve_mime_type(rule, detected, declared),
            content=content,
            detected_type=guess.mime_type if guess else None,
            declared_type=declared,
        )

    @staticmethod
    def _effective_detection(guess: Optional[MimeGuess], rule: FileTypeRule) -> Optional[str]:
        if guess is None:
            return None
        detected = guess.mime_type.lower()
        if detected in rule.container_types:
            return None
        return detected

    @staticmethod
    def _check_type(
        extension: str,
        rule: FileTypeRule,
        detected: Optional[str],
        declared: Optional[str],
    ) -> None:
        if detected is not None:
            if rule.allows(detected):
                return
            raise FileValidationError(
                f"File content ({detected}) does not match the '{extension}' extension",
                reason="content_mismatch",
            )

        # Sniffer has no opinion
        if declared is None:
            if rule.text_fallback and rule.allows(TEXT_PLAIN):
                return
            raise FileValidationError(
                f"Could not determine the type of the '{extension}' file",
                reason="type_undetermined",
            )

        if rule.has_signature:
            raise FileValidationError(
                f"File content does not match its declared type '{declared}'",
                reason="content_mismatch",
            )

        if not rule.allows(declared):
            raise FileValidationError(
                f"File type '{declared}' is not allowed for '{extension}' files",
                reason="type_not_allowed",
            )

    @staticmethod
    def _resolve_mime_type(
        rule: FileTypeRule,
        detected: Optional[str],
        declared: Optional[str],
    ) -> str:
        if detected is not None and rule.allows(detected):
            return detected
        if declared is not None and rule.allows(declared):
            return declared
        return rule.canonical
