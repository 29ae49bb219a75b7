"""Pytest configuration and shared fixtures."""

import io
import json
import zipfile
from typing import Any, Generator, Optional

import httpx
import pytest
from PIL import Image

from notes_ocr.config import get_settings

API_BASE = "https://api.test/doc-digitization/job/v1"
BLOB_HOST = "blob.test"
JOB_ID = "job-123"


def make_zip(files: dict[str, bytes]) -> bytes:
    """Build a zip archive from a name -> bytes mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def blocks_json(*blocks: tuple[str, float]) -> bytes:
    """Encode a structured page from (text, reading_order) pairs."""
    return json.dumps(
        {
            "blocks": [
                {"text": text, "layout_tag": "paragraph", "reading_order": order}
                for text, order in blocks
            ]
        }
    ).encode("utf-8")


class FakeSarvamAPI:
    """In-memory stand-in for the job API and its blob storage."""

    def __init__(
        self,
        states: Optional[list[str]] = None,
        bundle: Optional[bytes] = None,
        error_message: Optional[str] = None,
        job_details: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        self.states = list(states or ["Running", "Completed"])
        self.bundle = bundle if bundle is not None else make_zip({"page-001.md": b"hello notes"})
        self.error_message = error_message
        self.job_details = job_details or []
        self.failures: dict[str, int] = {}
        self.requests: list[httpx.Request] = []
        self.uploads: list[httpx.Request] = []
        self.upload_names: list[str] = []
        self.download_urls: Optional[dict[str, Any]] = None

    def fail(self, step: str, status_code: int = 500) -> None:
        """Make the next call to ``step`` return ``status_code``."""
        self.failures[step] = status_code

    def steps(self) -> list[str]:
        return [self._step(request) for request in self.requests]

    def _step(self, request: httpx.Request) -> str:
        path = request.url.path
        if request.url.host == BLOB_HOST:
            return "upload" if request.method == "PUT" else "download"
        if path.endswith("/upload-files"):
            return "upload_files"
        if path.endswith("/start"):
            return "start"
        if path.endswith("/status"):
            return "status"
        if path.endswith("/download-files"):
            return "download_files"
        return "create"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self._step(request)

        if step in self.failures:
            return httpx.Response(self.failures.pop(step), text=f"{step} rejected")

        if step == "create":
            return httpx.Response(202, json={"job_id": JOB_ID, "job_state": "Accepted"})

        if step == "upload_files":
            name = json.loads(request.content)["files"][0]
            self.upload_names.append(name)
            return httpx.Response(
                200,
                json={
                    "job_id": JOB_ID,
                    "upload_urls": {
                        name: {
                            "file_url": f"https://{BLOB_HOST}/upload/{name}?sig=abc",
                            "file_metadata": {"blob": True},
                        }
                    },
                },
            )

        if step == "upload":
            self.uploads.append(request)
            return httpx.Response(201)

        if step == "start":
            return httpx.Response(200, json={"job_id": JOB_ID, "job_state": "Pending"})

        if step == "status":
            state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
            return httpx.Response(
                200,
                json={
                    "job_id": JOB_ID,
                    "job_state": state,
                    "error_message": self.error_message if state == "Failed" else None,
                    "job_details": self.job_details,
                },
            )

        if step == "download_files":
            urls = self.download_urls
            if urls is None:
                urls = {"output.zip": {"file_url": f"https://{BLOB_HOST}/download/output.zip"}}
            return httpx.Response(200, json={"job_id": JOB_ID, "download_urls": urls})

        return httpx.Response(200, content=self.bundle)


@pytest.fixture
def fake_api() -> FakeSarvamAPI:
    """Fake job API with a one-page markdown bundle."""
    return FakeSarvamAPI()


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Create sample PNG bytes for testing."""
    img = Image.new("RGB", (200, 100), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def mock_pdf_bytes() -> bytes:
    """Create mock PDF bytes for testing."""
    # Not a real PDF, just mock data
    return b"%PDF-1.4\n" + b"x" * 10000


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("OCR_ENGINE", "mock")
    monkeypatch.setenv("SARVAM_API_KEY", "test-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
