"""Base OCR engine interface and error types."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel

PLACEHOLDER_API_KEY = "your_key_here"


class OCRResponse(BaseModel):
    """OCR engine response model."""

    text: str
    """Extracted text, pages separated by a blank line."""

    page_count: int = 1
    """Number of pages reported by the engine."""

    pages_failed: int = 0
    """Pages the engine could not process (partially completed jobs)."""

    job_state: Optional[str] = None
    """Terminal job state, when the engine runs remote jobs."""

    metadata: dict[str, str] = {}
    """Additional metadata from the OCR process."""


class BaseOCREngine(ABC):
    """Abstract base class for OCR engines."""

    def __init__(self, config: dict[str, Any]) -> None:
        """
        Initialize the OCR engine.

        Args:
            config: Configuration dictionary for the engine.
        """
        self.config = config

    @abstractmethod
    async def extract(
        self, data: bytes, file_name: str, mime_type: str, language: str
    ) -> OCRResponse:
        """
        Extract text from an image or PDF.

        Args:
            data: Raw file bytes.
            file_name: Original file name.
            mime_type: MIME type of the file.
            language: Document language code.

        Returns:
            OCRResponse with extracted text and page counts.

        Raises:
            OCRError: If processing fails.
        """
        pass

    async def process_image(
        self, data: bytes, file_name: str, mime_type: str, language: str
    ) -> str:
        """Extract text and return only the text."""
        response = await self.extract(data, file_name, mime_type, language)
        return response.text

    async def cleanup(self) -> None:
        """
        Clean up resources used by the engine.

        Override this method if your engine needs cleanup (e.g., closing connections).
        """
        pass

    async def __aenter__(self) -> "BaseOCREngine":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.cleanup()


class OCRError(Exception):
    """Base exception for OCR-related errors."""

    def __init__(
        self, message: str, original_error: Optional[Exception] = None
    ) -> None:
        """
        Initialize OCR error.

        Args:
            message: Error message.
            original_error: Original exception that caused this error.
        """
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(OCRError):
    """Required configuration (the API key) is missing."""


class UpstreamError(OCRError):
    """A remote call returned a non-success status or could not be made."""

    def __init__(
        self,
        message: str,
        step: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, original_error=original_error)
        self.step = step
        self.status_code = status_code
        self.body = body


class UpstreamProtocolError(UpstreamError):
    """Job-management or chat API rejected a request."""


class UpstreamTransferError(UpstreamError):
    """Presigned upload or bundle download failed."""


class JobFailedError(OCRError):
    """The remote job reached the Failed state."""


class JobTimeoutError(OCRError):
    """The polling deadline passed while the job was still running."""


class JobCancelledError(OCRError):
    """Polling was cancelled by the caller."""


class InvalidBundleError(OCRError):
    """The downloaded result bundle is not a readable archive."""


class NoTextDetectedError(OCRError):
    """The result bundle was readable but contained no text."""


class GenerationError(OCRError):
    """The chat model returned no content."""


def require_api_key(api_key: Optional[str]) -> str:
    """
    Return the API key, or fail if it is unset or still the placeholder.

    Called on first authenticated request rather than at startup.

    Raises:
        ConfigurationError: If the key is missing.
    """
    if not api_key or api_key.strip() == PLACEHOLDER_API_KEY:
        raise ConfigurationError(
            "SARVAM_API_KEY is not configured. Please set it in the environment or .env"
        )
    return api_key
