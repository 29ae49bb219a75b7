"""Service layer that validates requests and runs OCR and study calls."""

import time
from typing import Any, Optional

import structlog

from notes_ocr.adapters.base import BaseOCREngine, OCRResponse
from notes_ocr.config import Settings
from notes_ocr.services.study_service import StudyAssistant
from notes_ocr.services.validation import (
    truncate_study_text,
    validate_study_request,
    validate_upload,
)

logger = structlog.get_logger(__name__)


class OCRService:
    """Entry point for the HTTP layer: one OCR upload or study call at a time."""

    def __init__(
        self,
        ocr_engine: BaseOCREngine,
        assistant: StudyAssistant,
        settings: Settings,
    ) -> None:
        """
        Initialize the OCR service.

        Args:
            ocr_engine: OCR engine for processing.
            assistant: Study assistant for follow-up transformations.
            settings: Application settings (limits and defaults).
        """
        self.ocr_engine = ocr_engine
        self.assistant = assistant
        self.settings = settings

        logger.info("ocr_service_initialized", engine=type(ocr_engine).__name__)

    async def process_upload(
        self,
        data: Optional[bytes],
        file_name: Optional[str],
        mime_type: Optional[str],
        language: Optional[str] = None,
    ) -> OCRResponse:
        """
        Validate an upload and extract its text.

        Args:
            data: Uploaded bytes.
            file_name: Uploaded file name; defaults to ``upload.<subtype>``.
            mime_type: MIME type reported by the client.
            language: Document language; defaults to the configured language.

        Returns:
            OCR response with the extracted text.

        Raises:
            RequestValidationError: If the upload is rejected.
            OCRError: If any pipeline step fails.
        """
        if language is None:
            language = self.settings.default_language
        validate_upload(data, mime_type, language, max_size=self.settings.max_upload_size)

        if not file_name:
            subtype = mime_type.split("/")[1] if "/" in mime_type else ""
            file_name = f"upload.{subtype or 'png'}"

        start_time = time.time()
        logger.info(
            "processing_upload",
            file_name=file_name,
            mime_type=mime_type,
            language=language,
            size_bytes=len(data),
        )

        response = await self.ocr_engine.extract(data, file_name, mime_type, language)

        logger.info(
            "upload_processed",
            file_name=file_name,
            processing_time_ms=int((time.time() - start_time) * 1000),
            page_count=response.page_count,
            pages_failed=response.pages_failed,
            text_length=len(response.text),
        )
        return response

    async def study(
        self,
        text: Any,
        mode: Any,
        language: Any,
        target_language: Any = None,
    ) -> str:
        """
        Validate a study request, cut the text to the configured limit, and run it.

        Raises:
            RequestValidationError: If the request is rejected.
            OCRError: If the chat call fails.
        """
        validate_study_request(text, mode, language)
        trimmed = truncate_study_text(text, self.settings.max_study_chars)
        if len(trimmed) < len(text):
            logger.info("study_text_truncated", original_length=len(text), limit=len(trimmed))

        return await self.assistant.assist(trimmed, mode, language, target_language)

    async def cleanup(self) -> None:
        """Clean up service resources."""
        logger.debug("cleaning_up_ocr_service")
        await self.ocr_engine.cleanup()
        await self.assistant.cleanup()

    async def __aenter__(self) -> "OCRService":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.cleanup()
