"""Client for the Sarvam document digitization job API."""

import asyncio
from typing import Any, NoReturn, Optional

import httpx
import structlog
from pydantic import ValidationError

from notes_ocr.adapters.archive import build_upload_payload, read_bundle
from notes_ocr.adapters.base import (
    UpstreamError,
    UpstreamProtocolError,
    UpstreamTransferError,
    require_api_key,
)
from notes_ocr.adapters.job_pipeline import OCRJobPipeline
from notes_ocr.adapters.polling import poll_until_terminal
from notes_ocr.adapters.text_assembly import assemble_text
from notes_ocr.models.job import (
    DownloadDescriptor,
    JobState,
    JobStatusSnapshot,
    OCRJob,
    UploadDescriptor,
)

logger = structlog.get_logger(__name__)

DEFAULT_JOB_API_URL = "https://api.sarvam.ai/doc-digitization/job/v1"


class SarvamJobClient:
    """Drives one OCR job through create, upload, start, poll and download."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_JOB_API_URL,
        timeout: float = 30.0,
        output_format: str = "md",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the job API client.

        Args:
            api_key: Subscription key. Checked lazily on the first API call.
            base_url: Job API base URL.
            timeout: Timeout in seconds for each HTTP call.
            output_format: Output format requested for new jobs.
            transport: Optional httpx transport, used by tests.
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.output_format = output_format
        self._transport = transport

        self._api_client: Optional[httpx.AsyncClient] = None
        self._transfer_client: Optional[httpx.AsyncClient] = None

        logger.info(
            "sarvam_job_client_initialized",
            base_url=self.base_url,
            timeout=timeout,
        )

    async def _get_api_client(self) -> httpx.AsyncClient:
        """Get or create the authenticated job API client."""
        if self._api_client is None:
            headers = {
                "api-subscription-key": require_api_key(self.api_key),
                "Content-Type": "application/json",
            }
            self._api_client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._api_client

    async def _get_transfer_client(self) -> httpx.AsyncClient:
        """
        Get or create the client for presigned URLs.

        It carries no default headers: the storage backend rejects presigned
        requests that include the subscription key.
        """
        if self._transfer_client is None:
            self._transfer_client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._transfer_client

    async def _api_request(
        self, step: str, method: str, url: str, json: Optional[dict[str, Any]] = None
    ) -> httpx.Response:
        client = await self._get_api_client()
        try:
            response = await client.request(method, url, json=json)
        except httpx.HTTPError as e:
            logger.error("sarvam_request_error", step=step, error=str(e))
            raise UpstreamProtocolError(
                f"{step} failed: {str(e)}", step=step, original_error=e
            )

        if not response.is_success:
            self._raise_status(UpstreamProtocolError, step, response)
        return response

    async def _api_json(
        self, step: str, method: str, url: str, json: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        response = await self._api_request(step, method, url, json=json)
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamProtocolError(
                f"{step} returned invalid JSON",
                step=step,
                status_code=response.status_code,
                body=response.text,
                original_error=e,
            )
        if not isinstance(data, dict):
            raise UpstreamProtocolError(
                f"{step} returned an unexpected response",
                step=step,
                status_code=response.status_code,
                body=response.text,
            )
        return data

    def _raise_status(
        self, error_class: type[UpstreamError], step: str, response: httpx.Response
    ) -> NoReturn:
        body = response.text
        logger.error(
            "sarvam_request_failed",
            step=step,
            status=response.status_code,
            body=body[:500],
        )
        raise error_class(
            f"{step} failed ({response.status_code}): {body}",
            step=step,
            status_code=response.status_code,
            body=body,
        )

    async def create_job(self, language: str) -> OCRJob:
        """
        Create a new OCR job.

        Args:
            language: Document language code.

        Returns:
            Handle for the created job.

        Raises:
            UpstreamProtocolError: If the service rejects the request.
        """
        payload = {
            "job_parameters": {
                "language": language,
                "output_format": self.output_format,
            }
        }
        data = await self._api_json("create_job", "POST", self.base_url, json=payload)
        if not data.get("job_id"):
            raise UpstreamProtocolError("No job id returned from Sarvam", step="create_job")

        job = OCRJob(
            job_id=data["job_id"],
            language=language,
            output_format=self.output_format,
            state=data.get("job_state") or JobState.ACCEPTED.value,
        )
        logger.info("sarvam_job_created", job_id=job.job_id, language=language)
        return job

    async def get_upload_url(self, job_id: str, file_name: str) -> UploadDescriptor:
        """
        Request a presigned upload URL for one file.

        Raises:
            UpstreamProtocolError: On non-success status or a missing URL.
        """
        data = await self._api_json(
            "get_upload_url",
            "POST",
            f"{self.base_url}/upload-files",
            json={"job_id": job_id, "files": [file_name]},
        )

        entry = (data.get("upload_urls") or {}).get(file_name) or {}
        if not entry.get("file_url"):
            logger.error("sarvam_upload_url_missing", job_id=job_id, file_name=file_name)
            raise UpstreamProtocolError(
                "No upload URL returned from Sarvam", step="get_upload_url"
            )

        return UploadDescriptor(
            file_name=file_name,
            file_url=entry["file_url"],
            file_metadata=entry.get("file_metadata"),
        )

    async def upload_file(self, url: str, data: bytes, mime_type: str) -> None:
        """
        Upload bytes to a presigned URL.

        Raises:
            UpstreamTransferError: If the storage endpoint rejects the upload.
        """
        client = await self._get_transfer_client()

        logger.info("uploading_file", url=url[:100], size_bytes=len(data), mime_type=mime_type)

        try:
            response = await client.put(
                url,
                content=data,
                headers={
                    "Content-Type": mime_type,
                    "x-ms-blob-type": "BlockBlob",
                },
            )
        except httpx.HTTPError as e:
            logger.error("file_upload_error", error=str(e), url=url[:100])
            raise UpstreamTransferError(
                f"uploadFile failed: {str(e)}", step="upload_file", original_error=e
            )

        if not response.is_success:
            self._raise_status(UpstreamTransferError, "upload_file", response)

        logger.info("file_uploaded", size_bytes=len(data))

    async def start_job(self, job_id: str) -> None:
        """Start processing an uploaded job."""
        await self._api_request("start_job", "POST", f"{self.base_url}/{job_id}/start")
        logger.info("sarvam_job_started", job_id=job_id)

    async def get_job_status(self, job_id: str) -> JobStatusSnapshot:
        """Fetch the current status of a job."""
        data = await self._api_json(
            "poll_status", "GET", f"{self.base_url}/{job_id}/status"
        )
        data.setdefault("job_id", job_id)
        try:
            return JobStatusSnapshot.model_validate(data)
        except ValidationError as e:
            logger.error("sarvam_status_unparseable", job_id=job_id, error=str(e))
            raise UpstreamProtocolError(
                f"Unexpected status response: {str(e)}",
                step="poll_status",
                body=str(data),
                original_error=e,
            )

    async def poll_status(
        self,
        job_id: str,
        interval: float = 2.0,
        max_wait: float = 90.0,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> JobStatusSnapshot:
        """
        Poll a job until it completes, fails, or the deadline passes.

        Args:
            job_id: Job identifier.
            interval: Seconds between status checks.
            max_wait: Absolute polling budget in seconds.
            cancel_event: Optional event that stops polling when set.

        Returns:
            Snapshot of the completed (or partially completed) job.

        Raises:
            JobFailedError: If the job fails.
            JobTimeoutError: If the deadline passes.
        """

        async def check() -> JobStatusSnapshot:
            return await self.get_job_status(job_id)

        snapshot = await poll_until_terminal(
            check, interval, max_wait, cancel_event=cancel_event
        )
        logger.info(
            "sarvam_job_finished",
            job_id=job_id,
            state=snapshot.job_state.value,
            total_pages=snapshot.total_pages,
            pages_failed=snapshot.pages_failed,
        )
        return snapshot

    async def get_download_url(self, job_id: str) -> DownloadDescriptor:
        """
        Request the presigned URL of the job's result bundle.

        Raises:
            UpstreamProtocolError: On non-success status or a missing URL.
        """
        data = await self._api_json(
            "download_files", "POST", f"{self.base_url}/{job_id}/download-files"
        )

        download_urls = data.get("download_urls") or {}
        if not download_urls:
            raise UpstreamProtocolError(
                "No download URL returned from Sarvam", step="download_files"
            )

        name, entry = next(iter(download_urls.items()))
        if not (entry or {}).get("file_url"):
            raise UpstreamProtocolError(
                "No download URL returned from Sarvam", step="download_files"
            )

        return DownloadDescriptor(
            name=name,
            file_url=entry["file_url"],
            file_metadata=entry.get("file_metadata"),
        )

    async def download_bundle(self, url: str) -> bytes:
        """
        Download the result bundle without authentication.

        Raises:
            UpstreamTransferError: If the download fails.
        """
        client = await self._get_transfer_client()

        logger.info("downloading_result_bundle", url=url[:100])

        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error("result_bundle_download_error", error=str(e), url=url[:100])
            raise UpstreamTransferError(
                f"ZIP download failed: {str(e)}", step="download_bundle", original_error=e
            )

        if not response.is_success:
            self._raise_status(UpstreamTransferError, "download_bundle", response)

        logger.info("result_bundle_downloaded", size_bytes=len(response.content))
        return response.content

    async def download_and_extract_text(self, job_id: str) -> str:
        """
        Download a finished job's result bundle and assemble its text.

        Raises:
            UpstreamProtocolError: If no download URL is returned.
            UpstreamTransferError: If the bundle cannot be fetched.
            InvalidBundleError: If the bundle is not a readable archive.
            NoTextDetectedError: If the bundle holds no text.
        """
        descriptor = await self.get_download_url(job_id)
        bundle = await self.download_bundle(descriptor.file_url)
        text = assemble_text(read_bundle(bundle))

        logger.info("text_extracted", job_id=job_id, text_length=len(text))
        return text

    def pipeline(
        self,
        data: bytes,
        file_name: str,
        mime_type: str,
        language: str,
        poll_interval: float = 2.0,
        poll_timeout: float = 90.0,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OCRJobPipeline:
        """Build the job sequence for one file without running it."""
        return OCRJobPipeline(
            client=self,
            payload=build_upload_payload(data, file_name, mime_type),
            language=language,
            poll_interval=poll_interval,
            poll_timeout=poll_timeout,
            cancel_event=cancel_event,
        )

    async def process_image(
        self, data: bytes, file_name: str, mime_type: str, language: str
    ) -> str:
        """
        Run the whole pipeline for one file and return its text.

        Any step's error aborts the pipeline and propagates unchanged.
        """
        result = await self.pipeline(data, file_name, mime_type, language).run()
        return result.text

    async def close(self) -> None:
        """Close the HTTP clients."""
        for client in (self._api_client, self._transfer_client):
            if client is not None:
                await client.aclose()
        if self._api_client or self._transfer_client:
            logger.info("sarvam_job_client_closed")
        self._api_client = None
        self._transfer_client = None

    async def __aenter__(self) -> "SarvamJobClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
