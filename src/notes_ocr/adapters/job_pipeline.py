"""Explicit step sequence for one remote OCR job."""

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

import structlog

from notes_ocr.adapters.base import OCRError, OCRResponse
from notes_ocr.models.job import (
    JobState,
    JobStatusSnapshot,
    OCRJob,
    UploadDescriptor,
    UploadPayload,
)

if TYPE_CHECKING:
    from notes_ocr.adapters.sarvam_client import SarvamJobClient

logger = structlog.get_logger(__name__)


class PipelineStage(str, Enum):
    """Last step the pipeline completed."""

    NEW = "new"
    CREATED = "created"
    UPLOAD_URL_ISSUED = "upload_url_issued"
    UPLOADED = "uploaded"
    STARTED = "started"
    COMPLETED = "completed"
    EXTRACTED = "extracted"


class OCRJobPipeline:
    """
    One OCR job as a sequence of stages.

    Each call to :meth:`advance` runs the single step that follows the
    current stage. A failed step leaves the stage where it was and records
    the error, so :meth:`run` can be called again to resume from that step
    (for example a job that was uploaded but never started).
    """

    def __init__(
        self,
        client: "SarvamJobClient",
        payload: UploadPayload,
        language: str,
        poll_interval: float = 2.0,
        poll_timeout: float = 90.0,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        self.client = client
        self.payload = payload
        self.language = language
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.cancel_event = cancel_event

        self.stage = PipelineStage.NEW
        self.job: Optional[OCRJob] = None
        self.upload: Optional[UploadDescriptor] = None
        self.status: Optional[JobStatusSnapshot] = None
        self.text: Optional[str] = None
        self.error: Optional[Exception] = None
        self.failed_step: Optional[str] = None

        self._steps: dict[PipelineStage, tuple[str, Callable[[], Awaitable[PipelineStage]]]] = {
            PipelineStage.NEW: ("create_job", self._create_job),
            PipelineStage.CREATED: ("get_upload_url", self._get_upload_url),
            PipelineStage.UPLOAD_URL_ISSUED: ("upload_file", self._upload_file),
            PipelineStage.UPLOADED: ("start_job", self._start_job),
            PipelineStage.STARTED: ("poll_status", self._poll_status),
            PipelineStage.COMPLETED: ("download_and_extract", self._download_and_extract),
        }

    @property
    def job_id(self) -> Optional[str]:
        return self.job.job_id if self.job else None

    @property
    def done(self) -> bool:
        return self.stage is PipelineStage.EXTRACTED

    async def _create_job(self) -> PipelineStage:
        self.job = await self.client.create_job(self.language)
        return PipelineStage.CREATED

    async def _get_upload_url(self) -> PipelineStage:
        self.upload = await self.client.get_upload_url(self.job.job_id, self.payload.file_name)
        return PipelineStage.UPLOAD_URL_ISSUED

    async def _upload_file(self) -> PipelineStage:
        await self.client.upload_file(
            self.upload.file_url, self.payload.data, self.payload.mime_type
        )
        return PipelineStage.UPLOADED

    async def _start_job(self) -> PipelineStage:
        await self.client.start_job(self.job.job_id)
        self.job.state = JobState.PENDING.value
        return PipelineStage.STARTED

    async def _poll_status(self) -> PipelineStage:
        self.status = await self.client.poll_status(
            self.job.job_id,
            interval=self.poll_interval,
            max_wait=self.poll_timeout,
            cancel_event=self.cancel_event,
        )
        self.job.state = self.status.job_state.value
        if self.status.job_state is JobState.PARTIALLY_COMPLETED:
            logger.warning(
                "job_partially_completed",
                job_id=self.job.job_id,
                pages_failed=self.status.pages_failed,
                total_pages=self.status.total_pages,
            )
        return PipelineStage.COMPLETED

    async def _download_and_extract(self) -> PipelineStage:
        self.text = await self.client.download_and_extract_text(self.job.job_id)
        return PipelineStage.EXTRACTED

    async def advance(self) -> PipelineStage:
        """
        Run the next step.

        Returns:
            The new stage.

        Raises:
            OCRError: The step's error, unchanged.
        """
        if self.done:
            return self.stage

        step_name, step = self._steps[self.stage]
        logger.debug("pipeline_step_started", step=step_name, job_id=self.job_id)

        try:
            self.stage = await step()
        except OCRError as e:
            self.error = e
            self.failed_step = step_name
            logger.error(
                "pipeline_step_failed",
                step=step_name,
                job_id=self.job_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        self.error = None
        self.failed_step = None
        return self.stage

    async def run(self) -> OCRResponse:
        """
        Advance until the text is extracted.

        Returns:
            OCR response with the text and page counts.
        """
        logger.info(
            "pipeline_running",
            stage=self.stage.value,
            file_name=self.payload.file_name,
            language=self.language,
        )

        while not self.done:
            await self.advance()

        return self.result()

    def result(self) -> OCRResponse:
        """Build the response of a finished pipeline."""
        if not self.done:
            raise RuntimeError(f"Pipeline has not finished (stage={self.stage.value})")

        status = self.status
        return OCRResponse(
            text=self.text,
            page_count=status.total_pages if status and status.job_details else 1,
            pages_failed=status.pages_failed if status else 0,
            job_state=self.job.state,
            metadata={
                "engine": "sarvam",
                "job_id": self.job.job_id,
                "language": self.language,
                "upload_name": self.payload.file_name,
            },
        )
