"""Request validation, run before any network call."""

from typing import Any, Optional

from notes_ocr.models.study import SUPPORTED_LANGUAGES, StudyMode

MAX_FILE_SIZE = 10 * 1024 * 1024

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/webp",
        "image/bmp",
        "image/tiff",
        "application/pdf",
    }
)

VALID_MODES = frozenset(mode.value for mode in StudyMode)

MAX_STUDY_CHARS = 6000


class RequestValidationError(Exception):
    """A request was rejected; the message is safe to show to the user."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


def validate_upload(
    data: Optional[bytes],
    mime_type: Optional[str],
    language: Optional[str],
    max_size: int = MAX_FILE_SIZE,
) -> None:
    """
    Check an OCR upload.

    Raises:
        RequestValidationError: For a missing or oversized file, an
            unsupported MIME type, or an unsupported language.
    """
    if not data:
        raise RequestValidationError("No file provided. Please upload an image.", field="file")

    if len(data) > max_size:
        raise RequestValidationError(
            f"File too large. Maximum size is {max_size // (1024 * 1024)} MB.", field="file"
        )

    if mime_type not in ALLOWED_MIME_TYPES:
        raise RequestValidationError(
            f"Unsupported file type: {mime_type}. "
            "Please use PNG, JPG, PDF, TIFF, BMP, or WebP.",
            field="file",
        )

    if language not in SUPPORTED_LANGUAGES:
        raise RequestValidationError(f"Unsupported language: {language}.", field="language")


def validate_study_request(text: Any, mode: Any, language: Any) -> None:
    """
    Check a study assistant request.

    Values come straight from the JSON body, so they may be of any type.
    An unknown target language is not an error: the prompt falls back to
    English.

    Raises:
        RequestValidationError: For missing or blank text, an unknown mode,
            or an unsupported language code.
    """
    if not isinstance(text, str) or not text.strip():
        raise RequestValidationError("No text provided.", field="text")

    if not isinstance(mode, str) or mode not in VALID_MODES:
        raise RequestValidationError(
            "Invalid mode. Use: summarize, explain, quiz, translate", field="mode"
        )

    if not isinstance(language, str) or language not in SUPPORTED_LANGUAGES:
        raise RequestValidationError("Invalid language code.", field="language")


def truncate_study_text(text: str, limit: int = MAX_STUDY_CHARS) -> str:
    """Cut text to ``limit`` characters. No error is raised."""
    return text[:limit]
