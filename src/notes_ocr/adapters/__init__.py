"""Adapters for the remote OCR and chat services."""

from notes_ocr.adapters.base import (
    BaseOCREngine,
    ConfigurationError,
    GenerationError,
    InvalidBundleError,
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    NoTextDetectedError,
    OCRError,
    OCRResponse,
    UpstreamError,
    UpstreamProtocolError,
    UpstreamTransferError,
)
from notes_ocr.adapters.chat_client import SarvamChatClient
from notes_ocr.adapters.factory import OCREngineFactory
from notes_ocr.adapters.job_pipeline import OCRJobPipeline, PipelineStage
from notes_ocr.adapters.mock_engine import MockOCREngine
from notes_ocr.adapters.sarvam_client import SarvamJobClient
from notes_ocr.adapters.sarvam_engine import SarvamOCREngine

__all__ = [
    "BaseOCREngine",
    "ConfigurationError",
    "GenerationError",
    "InvalidBundleError",
    "JobCancelledError",
    "JobFailedError",
    "JobTimeoutError",
    "MockOCREngine",
    "NoTextDetectedError",
    "OCREngineFactory",
    "OCRError",
    "OCRJobPipeline",
    "OCRResponse",
    "PipelineStage",
    "SarvamChatClient",
    "SarvamJobClient",
    "SarvamOCREngine",
    "UpstreamError",
    "UpstreamProtocolError",
    "UpstreamTransferError",
]
