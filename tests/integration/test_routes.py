"""HTTP-level tests for the OCR and study routes."""

import logging
from typing import AsyncIterator, Optional
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
import structlog

from notes_ocr.adapters import (
    BaseOCREngine,
    ConfigurationError,
    GenerationError,
    InvalidBundleError,
    JobFailedError,
    JobTimeoutError,
    MockOCREngine,
    NoTextDetectedError,
    OCRResponse,
    SarvamChatClient,
    UpstreamProtocolError,
    UpstreamTransferError,
)
from notes_ocr.config import Settings
from notes_ocr.main import configure_logging, create_app
from notes_ocr.routes.ocr import error_to_http, get_ocr_service
from notes_ocr.services.ocr_service import OCRService
from notes_ocr.services.study_service import StudyAssistant
from notes_ocr.services.validation import RequestValidationError


class RaisingEngine(BaseOCREngine):
    """Engine that fails every extraction with a configured error."""

    async def extract(self, data, file_name, mime_type, language) -> OCRResponse:
        raise self.config["error"]


class ServiceHolder:
    """Lets a test choose the engine and assistant behind the routes."""

    def __init__(self) -> None:
        self.engine: BaseOCREngine = MockOCREngine({"delay_ms": 0, "text": "extracted notes"})
        self.assist_result: Optional[str] = "study result"
        self.assist_error: Optional[Exception] = None
        self.assistant: Optional[StudyAssistant] = None

    def __call__(self) -> OCRService:
        self.assistant = StudyAssistant(SarvamChatClient(api_key="test-key"))
        self.assistant.assist = AsyncMock(
            return_value=self.assist_result, side_effect=self.assist_error
        )
        return OCRService(ocr_engine=self.engine, assistant=self.assistant, settings=Settings())


@pytest.fixture
def holder() -> ServiceHolder:
    return ServiceHolder()


@pytest_asyncio.fixture
async def client(holder: ServiceHolder) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app()
    app.dependency_overrides[get_ocr_service] = holder
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def upload(data: bytes = b"png-bytes", mime_type: str = "image/png") -> dict:
    return {"file": ("notes.png", data, mime_type)}


class TestHealth:
    """Tests for health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client: httpx.AsyncClient) -> None:
        """Test the versioned health check."""
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["ocr_engine"] == "mock"

    @pytest.mark.asyncio
    async def test_root(self, client: httpx.AsyncClient) -> None:
        """Test the root endpoint."""
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"
        assert response.json()["endpoints"] == {
            "ocr": "/api/v1/ocr",
            "study": "/api/v1/study",
            "health": "/api/v1/health",
        }

    @pytest.mark.asyncio
    async def test_unversioned_health_not_served(self, client: httpx.AsyncClient) -> None:
        """Test only the versioned health path exists."""
        response = await client.get("/health")

        assert response.status_code == 404


class TestOCRRoute:
    """Tests for POST /api/v1/ocr."""

    @pytest.mark.asyncio
    async def test_success(self, client: httpx.AsyncClient) -> None:
        """Test a successful upload returns the text."""
        response = await client.post(
            "/api/v1/ocr", files=upload(), data={"language": "mr-IN"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["text"] == "extracted notes"
        assert body["page_count"] == 1
        assert body["pages_failed"] == 0
        assert body["job_state"] == "Completed"

    @pytest.mark.asyncio
    async def test_missing_file(self, client: httpx.AsyncClient) -> None:
        """Test a request without a file."""
        response = await client.post("/api/v1/ocr", data={"language": "hi-IN"})

        assert response.status_code == 400
        assert response.json() == {"error": "No file provided. Please upload an image."}

    @pytest.mark.asyncio
    async def test_unsupported_type(self, client: httpx.AsyncClient) -> None:
        """Test a GIF upload."""
        response = await client.post("/api/v1/ocr", files=upload(mime_type="image/gif"))

        assert response.status_code == 400
        assert response.json()["error"].startswith("Unsupported file type: image/gif.")

    @pytest.mark.asyncio
    async def test_unsupported_language(self, client: httpx.AsyncClient) -> None:
        """Test an unknown language code."""
        response = await client.post(
            "/api/v1/ocr", files=upload(), data={"language": "xx-XX"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported language: xx-XX."

    @pytest.mark.asyncio
    async def test_empty_language_rejected(self, client: httpx.AsyncClient) -> None:
        """Test an empty language field is not replaced by the default."""
        response = await client.post("/api/v1/ocr", files=upload(), data={"language": ""})

        assert response.status_code == 400
        assert response.json() == {"error": "Unsupported language: ."}

    @pytest.mark.asyncio
    async def test_omitted_language_uses_default(
        self, client: httpx.AsyncClient, holder: ServiceHolder
    ) -> None:
        """Test a missing language field falls back to Hindi."""
        holder.engine = MockOCREngine({"delay_ms": 0})

        response = await client.post("/api/v1/ocr", files=upload())

        assert response.status_code == 200
        assert "hi-IN" in response.json()["text"]

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (NoTextDetectedError("NO_TEXT_DETECTED"), 422),
            (JobTimeoutError("timed out"), 504),
            (JobFailedError("bad scan"), 500),
            (UpstreamProtocolError("create failed", step="create_job", status_code=403), 502),
            (UpstreamTransferError("upload failed", step="upload_file"), 502),
            (InvalidBundleError("corrupt"), 502),
            (ConfigurationError("no key"), 500),
            (RuntimeError("boom"), 500),
        ],
    )
    @pytest.mark.asyncio
    async def test_engine_errors(
        self,
        client: httpx.AsyncClient,
        holder: ServiceHolder,
        error: Exception,
        status_code: int,
    ) -> None:
        """Test each pipeline failure maps to its status."""
        holder.engine = RaisingEngine({"error": error})

        response = await client.post("/api/v1/ocr", files=upload())

        assert response.status_code == status_code
        assert response.json()["error"] == error_to_http(error)[1]


class TestStudyRoute:
    """Tests for POST /api/v1/study."""

    @pytest.mark.asyncio
    async def test_success(self, client: httpx.AsyncClient, holder: ServiceHolder) -> None:
        """Test a translate request with the camelCase target field."""
        response = await client.post(
            "/api/v1/study",
            json={
                "text": "मेरे नोट्स",
                "mode": "translate",
                "language": "hi-IN",
                "targetLanguage": "ta-IN",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"result": "study result"}
        assert holder.assistant.assist.await_args.args == (
            "मेरे नोट्स",
            "translate",
            "hi-IN",
            "ta-IN",
        )

    @pytest.mark.asyncio
    async def test_invalid_mode(self, client: httpx.AsyncClient) -> None:
        """Test an unknown mode."""
        response = await client.post(
            "/api/v1/study", json={"text": "notes", "mode": "poem", "language": "hi-IN"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid mode. Use: summarize, explain, quiz, translate"

    @pytest.mark.asyncio
    async def test_missing_text(self, client: httpx.AsyncClient) -> None:
        """Test a request without text."""
        response = await client.post(
            "/api/v1/study", json={"mode": "summarize", "language": "hi-IN"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "No text provided."

    @pytest.mark.parametrize("text", [123, ["notes"], {"body": "notes"}, False])
    @pytest.mark.asyncio
    async def test_non_string_text(
        self, client: httpx.AsyncClient, holder: ServiceHolder, text: object
    ) -> None:
        """Test text of another JSON type gets the missing-text error."""
        response = await client.post(
            "/api/v1/study", json={"text": text, "mode": "summarize", "language": "hi-IN"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No text provided."}
        holder.assistant.assist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_string_mode(self, client: httpx.AsyncClient) -> None:
        """Test a list mode gets the invalid mode error."""
        response = await client.post(
            "/api/v1/study", json={"text": "notes", "mode": ["quiz"], "language": "hi-IN"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid mode. Use: summarize, explain, quiz, translate"

    @pytest.mark.parametrize(
        ("content", "content_type"),
        [
            (b"{bad", "application/json"),
            (b'["text", "mode"]', "application/json"),
        ],
    )
    @pytest.mark.asyncio
    async def test_unparseable_body(
        self, client: httpx.AsyncClient, content: bytes, content_type: str
    ) -> None:
        """Test a body that is not a JSON object gets the error shape."""
        response = await client.post(
            "/api/v1/study", content=content, headers={"content-type": content_type}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request body."}

    @pytest.mark.asyncio
    async def test_unknown_target_language_accepted(
        self, client: httpx.AsyncClient, holder: ServiceHolder
    ) -> None:
        """Test an unsupported target is passed on for the English fallback."""
        response = await client.post(
            "/api/v1/study",
            json={
                "text": "notes",
                "mode": "translate",
                "language": "hi-IN",
                "targetLanguage": "de-DE",
            },
        )

        assert response.status_code == 200
        assert holder.assistant.assist.await_args.args[3] == "de-DE"

    @pytest.mark.parametrize(
        "error",
        [
            GenerationError("No response from Sarvam chat model"),
            UpstreamProtocolError("chat failed", step="chat_completion", status_code=500),
        ],
    )
    @pytest.mark.asyncio
    async def test_chat_failure(
        self, client: httpx.AsyncClient, holder: ServiceHolder, error: Exception
    ) -> None:
        """Test chat failures return the generic study message."""
        holder.assist_error = error

        response = await client.post(
            "/api/v1/study", json={"text": "notes", "mode": "quiz", "language": "hi-IN"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process your request. Please try again."}

    @pytest.mark.asyncio
    async def test_missing_key(self, client: httpx.AsyncClient, holder: ServiceHolder) -> None:
        """Test a missing API key is reported as a configuration error."""
        holder.assist_error = ConfigurationError("SARVAM_API_KEY is not configured.")

        response = await client.post(
            "/api/v1/study", json={"text": "notes", "mode": "explain", "language": "hi-IN"}
        )

        assert response.status_code == 500
        assert "API key not set" in response.json()["error"]


class TestErrorToHttp:
    """Tests for the error mapping table."""

    @pytest.mark.parametrize(
        ("error", "route", "expected"),
        [
            (RequestValidationError("No text provided."), "study", 400),
            (NoTextDetectedError("NO_TEXT_DETECTED"), "ocr", 422),
            (NoTextDetectedError("NO_TEXT_DETECTED"), "study", 500),
            (JobTimeoutError("late"), "ocr", 504),
            (UpstreamProtocolError("x", step="poll_status"), "ocr", 502),
            (ConfigurationError("no key"), "ocr", 500),
            (ValueError("other"), "ocr", 500),
        ],
    )
    def test_status_codes(self, error: Exception, route: str, expected: int) -> None:
        """Test the status for each error and route."""
        status_code, message = error_to_http(error, route)

        assert status_code == expected
        assert message

    def test_validation_message_passed_through(self) -> None:
        """Test validation messages reach the user unchanged."""
        error = RequestValidationError("File too large. Maximum size is 10 MB.")

        assert error_to_http(error) == (400, "File too large. Maximum size is 10 MB.")

    def test_timeout_message(self) -> None:
        """Test the timeout message suggests a smaller image."""
        _, message = error_to_http(JobTimeoutError("late"))

        assert "took too long" in message


class TestAppSetup:
    """Tests for application wiring in main."""

    @pytest.mark.asyncio
    async def test_cors_preflight(self, client: httpx.AsyncClient) -> None:
        """Test a browser preflight for the OCR route is allowed."""
        response = await client.options(
            "/api/v1/ocr",
            headers={
                "origin": "http://localhost:3000",
                "access-control-request-method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.parametrize("log_level", ["debug", "INFO", "nonsense"])
    def test_configure_logging_keeps_http_client_quiet(self, log_level: str) -> None:
        """Test the HTTP client loggers never log request URLs at INFO."""
        try:
            configure_logging(log_level)

            assert logging.getLogger("httpx").getEffectiveLevel() == logging.WARNING
            assert logging.getLogger("httpcore").getEffectiveLevel() == logging.WARNING
        finally:
            structlog.reset_defaults()
