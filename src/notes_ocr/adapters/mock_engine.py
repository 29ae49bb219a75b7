"""Mock OCR engine for testing and development."""

import asyncio
import random
from typing import Any

from notes_ocr.adapters.base import BaseOCREngine, NoTextDetectedError, OCRError, OCRResponse


class MockOCREngine(BaseOCREngine):
    """Mock OCR engine that returns canned text without calling any service."""

    def __init__(self, config: dict[str, Any]) -> None:
        """
        Initialize the mock OCR engine.

        Args:
            config: Configuration dictionary. Supports:
                - delay_ms: Simulated processing delay in milliseconds (default: 100)
                - fail_rate: Probability of simulated failure 0.0-1.0 (default: 0.0)
                - text: Text to return; empty text simulates a blank page
        """
        super().__init__(config)
        self.delay_ms = config.get("delay_ms", 100)
        self.fail_rate = config.get("fail_rate", 0.0)
        self.text = config.get("text")
        self.process_count = 0

    async def extract(
        self, data: bytes, file_name: str, mime_type: str, language: str
    ) -> OCRResponse:
        """
        Return mock text for a file.

        Raises:
            OCRError: If simulated failure occurs.
            NoTextDetectedError: If configured with empty text.
        """
        await self._simulate_processing()
        self.process_count += 1

        text = self.text if self.text is not None else self._generate_mock_text(
            file_name, mime_type, language, len(data)
        )
        if not text.strip():
            raise NoTextDetectedError("NO_TEXT_DETECTED")

        return OCRResponse(
            text=text,
            page_count=1,
            job_state="Completed",
            metadata={
                "engine": "mock",
                "mime_type": mime_type,
                "language": language,
                "size_bytes": str(len(data)),
            },
        )

    async def _simulate_processing(self) -> None:
        """Simulate processing delay and potential failures."""
        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000.0)

        if self.fail_rate > 0 and random.random() < self.fail_rate:
            raise OCRError(f"Mock OCR simulated failure (fail_rate={self.fail_rate})")

    def _generate_mock_text(
        self, file_name: str, mime_type: str, language: str, size_bytes: int
    ) -> str:
        lines = [
            "# Mock OCR Result",
            "",
            f"- **File**: {file_name}",
            f"- **MIME Type**: {mime_type}",
            f"- **Language**: {language}",
            f"- **Size**: {size_bytes} bytes",
            "",
            "Lorem ipsum dolor sit amet, consectetur adipiscing elit.",
        ]
        return "\n".join(lines)
