"""FastAPI routes for OCR and the study assistant."""

from typing import Optional, Union

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError as BodyValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from notes_ocr.adapters.base import (
    ConfigurationError,
    InvalidBundleError,
    JobFailedError,
    JobTimeoutError,
    NoTextDetectedError,
    UpstreamError,
)
from notes_ocr.adapters.chat_client import SarvamChatClient
from notes_ocr.adapters.factory import OCREngineFactory
from notes_ocr.config import Settings, get_settings
from notes_ocr.models.study import (
    ErrorResponse,
    OCRTextResponse,
    StudyRequest,
    StudyResponse,
)
from notes_ocr.services.ocr_service import OCRService
from notes_ocr.services.study_service import StudyAssistant
from notes_ocr.services.validation import RequestValidationError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["ocr"])

COULD_NOT_PROCESS = "The OCR service could not process this image. Please try a different image."
OCR_FALLBACK = "Something went wrong. Please try again."
STUDY_FALLBACK = "Failed to process your request. Please try again."
INVALID_BODY = "Invalid request body."


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    ocr_engine: str


def error_to_http(error: Exception, route: str = "ocr") -> tuple[int, str]:
    """
    Map an exception to an HTTP status and a user-facing message.

    Args:
        error: Exception raised while handling a request.
        route: ``ocr`` or ``study``; study failures other than validation
            and configuration all map to one generic message.

    Returns:
        Status code and message.
    """
    if isinstance(error, RequestValidationError):
        return status.HTTP_400_BAD_REQUEST, error.message
    if isinstance(error, ConfigurationError):
        return (
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server configuration error: API key not set. Please contact the administrator.",
        )
    if route == "study":
        return status.HTTP_500_INTERNAL_SERVER_ERROR, STUDY_FALLBACK

    if isinstance(error, NoTextDetectedError):
        return (
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "No handwritten text could be detected. "
            "Please try a clearer image with better lighting and contrast.",
        )
    if isinstance(error, JobTimeoutError):
        return (
            status.HTTP_504_GATEWAY_TIMEOUT,
            "Processing took too long. Please try again with a smaller or clearer image.",
        )
    if isinstance(error, JobFailedError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, COULD_NOT_PROCESS
    if isinstance(error, (UpstreamError, InvalidBundleError)):
        return status.HTTP_502_BAD_GATEWAY, COULD_NOT_PROCESS
    return status.HTTP_500_INTERNAL_SERVER_ERROR, OCR_FALLBACK


def _error_response(error: Exception, route: str) -> JSONResponse:
    status_code, message = error_to_http(error, route)

    if status_code == status.HTTP_400_BAD_REQUEST:
        logger.info("request_rejected", route=route, reason=message)
    else:
        logger.error(
            "request_failed",
            route=route,
            status=status_code,
            error=str(error),
            error_type=type(error).__name__,
        )

    return JSONResponse(status_code=status_code, content={"error": message})


async def invalid_body_handler(request: Request, exc: BodyValidationError) -> JSONResponse:
    """Return unparseable request bodies in the same error shape as other failures."""
    logger.info("request_body_invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": INVALID_BODY},
    )


def get_ocr_service(settings: Settings = Depends(get_settings)) -> OCRService:
    """
    Dependency for creating OCR service instance.

    Args:
        settings: Application settings.

    Returns:
        Configured OCR service instance.
    """
    ocr_engine = OCREngineFactory.create_from_settings(settings)
    chat_client = SarvamChatClient(
        api_key=settings.sarvam_api_key,
        chat_url=settings.sarvam_chat_url,
        model_name=settings.chat_model,
        timeout=settings.http_timeout,
    )
    assistant = StudyAssistant(
        chat_client,
        temperature=settings.chat_temperature,
        max_tokens=settings.chat_max_tokens,
    )

    return OCRService(ocr_engine=ocr_engine, assistant=assistant, settings=settings)


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        ocr_engine=settings.ocr_engine,
    )


@router.post(
    "/ocr",
    response_model=OCRTextResponse,
    responses={code: {"model": ErrorResponse} for code in (400, 422, 500, 502, 504)},
)
async def extract_text(
    request: Request,
    file: Optional[UploadFile] = File(None),
    ocr_service: OCRService = Depends(get_ocr_service),
) -> Union[OCRTextResponse, JSONResponse]:
    """
    Extract text from an uploaded image or PDF.

    Waits for the remote OCR job to finish, so the request can take up to
    the configured polling budget.

    The optional ``language`` form field is read from the raw form, so an
    empty value is rejected instead of falling back to the default.
    """
    try:
        language = (await request.form()).get("language")
        data = await file.read() if file is not None else None
        response = await ocr_service.process_upload(
            data,
            file.filename if file is not None else None,
            file.content_type if file is not None else None,
            language,
        )
    except Exception as e:
        return _error_response(e, "ocr")
    finally:
        await ocr_service.cleanup()

    return OCRTextResponse(
        text=response.text,
        page_count=response.page_count,
        pages_failed=response.pages_failed,
        job_state=response.job_state,
    )


@router.post(
    "/study",
    response_model=StudyResponse,
    responses={code: {"model": ErrorResponse} for code in (400, 500)},
)
async def study_assist(
    request: StudyRequest,
    ocr_service: OCRService = Depends(get_ocr_service),
) -> Union[StudyResponse, JSONResponse]:
    """Summarize, explain, quiz on, or translate extracted text."""
    try:
        result = await ocr_service.study(
            request.text,
            request.mode,
            request.language,
            request.target_language,
        )
    except Exception as e:
        return _error_response(e, "study")
    finally:
        await ocr_service.cleanup()

    return StudyResponse(result=result)
