"""Unit tests for attachment validation"""

import io
import re
from typing import Optional

import pytest

from citizen_portal.domain.attachments import (
    ALLOWED_FILE_TYPES,
    DANGEROUS_EXTENSIONS,
    ContentSniffer,
    FileValidationError,
    FileValidator,
    IncomingAttachment,
    MimeGuess,
    format_file_size,
    generate_storage_key,
    get_extension,
)
from citizen_portal.infrastructure.sniffing import FiletypeSniffer

MAX_BYTES = 1024 * 1024

PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 32
EXE_BYTES = b"MZ\x90\x00\x03\x00\x00\x00\x04\x00\x00\x00\xff\xff\x00\x00" + b"\x00" * 48


class StubSniffer(ContentSniffer):
    def __init__(self, guess: Optional[MimeGuess]):
        self.guess = guess

    def detect(self, content: bytes) -> Optional[MimeGuess]:
        return self.guess


def attachment(filename: str, content: bytes, declared: Optional[str] = None, size: Optional[int] = None):
    return IncomingAttachment(filename=filename, declared_type=declared, stream=io.BytesIO(content), size=size)


@pytest.fixture
def validator() -> FileValidator:
    return FileValidator(max_bytes=MAX_BYTES, sniffer=FiletypeSniffer())


class TestDenyList:
    """Executable extensions fail regardless of declared type or content"""

    @pytest.mark.parametrize("extension", sorted(DANGEROUS_EXTENSIONS))
    def test_dangerous_extension_rejected(self, validator, extension):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment(f"report{extension}", PDF_BYTES, "application/pdf"))
        assert exc_info.value.reason == "dangerous_extension"

    def test_uppercase_dangerous_extension_rejected(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("SETUP.EXE", EXE_BYTES, "application/octet-stream"))
        assert exc_info.value.reason == "dangerous_extension"

    def test_deny_list_and_allow_list_are_disjoint(self):
        assert not DANGEROUS_EXTENSIONS & set(ALLOWED_FILE_TYPES)


class TestSizeValidation:

    def test_empty_file_rejected(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("photo.png", b"", "image/png"))
        assert exc_info.value.reason == "empty"

    def test_oversized_file_rejected(self):
        small = FileValidator(max_bytes=16, sniffer=FiletypeSniffer())
        with pytest.raises(FileValidationError) as exc_info:
            small.validate(attachment("doc.pdf", PDF_BYTES, "application/pdf"))
        assert exc_info.value.reason == "too_large"

    def test_reported_size_checked_before_reading(self, validator):
        stream = io.BytesIO(PDF_BYTES)
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(IncomingAttachment("doc.pdf", "application/pdf", stream, size=MAX_BYTES + 1))
        assert exc_info.value.reason == "too_large"
        assert stream.tell() == 0

    def test_file_at_limit_accepted(self):
        content = PDF_BYTES + b"\x00" * (256 - len(PDF_BYTES))
        exact = FileValidator(max_bytes=256, sniffer=FiletypeSniffer())
        assert exact.validate(attachment("doc.pdf", content, "application/pdf")).size == 256


class TestExtensionValidation:

    def test_missing_extension_rejected(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("README", b"plain text here", "text/plain"))
        assert exc_info.value.reason == "no_extension"

    def test_unlisted_extension_rejected(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("data.svg", b"<svg></svg>", "image/svg+xml"))
        assert exc_info.value.reason == "extension_not_allowed"

    def test_client_directory_components_dropped(self, validator):
        validated = validator.validate(attachment("C:\\Users\\me\\doc.pdf", PDF_BYTES, "application/pdf"))
        assert validated.original_name == "doc.pdf"


class TestContentValidation:
    """Magic bytes decide when the sniffer has an opinion"""

    def test_valid_pdf(self, validator):
        validated = validator.validate(attachment("complaint.pdf", PDF_BYTES, "application/pdf"))
        assert validated.mime_type == "application/pdf"
        assert validated.extension == ".pdf"
        assert validated.content == PDF_BYTES
        assert validated.size == len(PDF_BYTES)

    def test_valid_png_with_generic_declared_type(self, validator):
        validated = validator.validate(attachment("photo.png", PNG_BYTES, "application/octet-stream"))
        assert validated.mime_type == "image/png"

    def test_renamed_executable_rejected(self, validator):
        """An .exe renamed to .pdf is caught by its MZ header"""
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("invoice.pdf", EXE_BYTES, "application/pdf"))
        assert exc_info.value.reason == "content_mismatch"

    def test_content_of_other_allowed_type_rejected(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("photo.jpg", PNG_BYTES, "image/jpeg"))
        assert exc_info.value.reason == "content_mismatch"

    def test_undetectable_content_for_signature_format_rejected(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("photo.jpg", b"just some text, no image", "image/jpeg"))
        assert exc_info.value.reason == "content_mismatch"

    def test_plain_text_accepted(self, validator):
        validated = validator.validate(attachment("notes.txt", b"Meeting notes from the ward office", "text/plain"))
        assert validated.mime_type == "text/plain"

    def test_text_fallback_when_type_unknown(self, validator):
        validated = validator.validate(attachment("notes.txt", b"Meeting notes", "application/octet-stream"))
        assert validated.mime_type == "text/plain"

    def test_csv_with_declared_type(self, validator):
        validated = validator.validate(attachment("data.csv", b"ward,votes\n1,200\n", "text/csv"))
        assert validated.mime_type == "text/csv"

    def test_declared_type_must_be_allowed_for_extension(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("notes.txt", b"Meeting notes", "application/pdf"))
        assert exc_info.value.reason == "type_not_allowed"

    def test_signatureless_format_needs_declared_type(self, validator):
        with pytest.raises(FileValidationError) as exc_info:
            validator.validate(attachment("letter.doc", b"\x01\x02\x03 legacy", None))
        assert exc_info.value.reason == "type_undetermined"

    def test_zip_container_is_no_opinion_for_docx(self):
        """OOXML documents sniff as zip; the declared type decides"""
        validator = FileValidator(MAX_BYTES, StubSniffer(MimeGuess("application/zip", "zip")))
        docx_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

        validated = validator.validate(attachment("letter.docx", b"PK\x03\x04rest", docx_type))

        assert validated.mime_type == docx_type
        assert validated.detected_type == "application/zip"

    def test_zip_container_with_wrong_declared_type_rejected(self):
        validator = FileValidator(MAX_BYTES, StubSniffer(MimeGuess("application/zip", "zip")))
        with pytest.raises(FileValidationError):
            validator.validate(attachment("letter.docx", b"PK\x03\x04rest", "application/pdf"))


class TestHelpers:

    def test_get_extension(self):
        assert get_extension("Report.PDF") == ".pdf"
        assert get_extension("archive.tar.gz") == ".gz"
        assert get_extension("README") is None
        assert get_extension("trailing.") is None

    def test_format_file_size(self):
        assert format_file_size(0) == "0 Bytes"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(25 * 1024 * 1024) == "25 MB"

    def test_storage_key_format(self):
        key = generate_storage_key(".pdf")
        assert re.fullmatch(r"\d{13}-[0-9a-f-]{36}\.pdf", key)
        assert generate_storage_key(".pdf") != key
