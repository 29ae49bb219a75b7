"""Request-level services: validation, study assistant, OCR orchestration."""

from notes_ocr.services.ocr_service import OCRService
from notes_ocr.services.study_service import StudyAssistant
from notes_ocr.services.validation import RequestValidationError

__all__ = ["OCRService", "RequestValidationError", "StudyAssistant"]
