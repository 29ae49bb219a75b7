"""OCR engine backed by the Sarvam document digitization job API."""

from typing import Any

import structlog

from notes_ocr.adapters.base import BaseOCREngine, OCRResponse
from notes_ocr.adapters.sarvam_client import DEFAULT_JOB_API_URL, SarvamJobClient

logger = structlog.get_logger(__name__)


class SarvamOCREngine(BaseOCREngine):
    """OCR engine that runs one remote Sarvam job per document."""

    def __init__(self, config: dict[str, Any]) -> None:
        """
        Initialize the Sarvam engine.

        Args:
            config: Configuration with:
                - api_key: Subscription key (checked on first request)
                - base_url: Job API base URL
                - timeout: Per-request timeout in seconds (default: 30)
                - output_format: Job output format (default: md)
                - poll_interval: Seconds between status checks (default: 2)
                - poll_timeout: Polling budget in seconds (default: 90)
                - transport: Optional httpx transport
        """
        super().__init__(config)

        self.poll_interval = config.get("poll_interval", 2.0)
        self.poll_timeout = config.get("poll_timeout", 90.0)
        self.client = SarvamJobClient(
            api_key=config.get("api_key"),
            base_url=config.get("base_url", DEFAULT_JOB_API_URL),
            timeout=config.get("timeout", 30.0),
            output_format=config.get("output_format", "md"),
            transport=config.get("transport"),
        )

    async def extract(
        self, data: bytes, file_name: str, mime_type: str, language: str
    ) -> OCRResponse:
        """Run the full job pipeline for one file."""
        logger.info(
            "processing_with_sarvam",
            file_name=file_name,
            mime_type=mime_type,
            language=language,
            size_bytes=len(data),
        )

        pipeline = self.client.pipeline(
            data,
            file_name,
            mime_type,
            language,
            poll_interval=self.poll_interval,
            poll_timeout=self.poll_timeout,
        )
        return await pipeline.run()

    async def cleanup(self) -> None:
        """Close the job client."""
        await self.client.close()
