"""OCR job data models."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobState(str, Enum):
    """Remote OCR job state enumeration."""

    ACCEPTED = "Accepted"
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    PARTIALLY_COMPLETED = "PartiallyCompleted"
    FAILED = "Failed"

    @property
    def is_success(self) -> bool:
        return self in (JobState.COMPLETED, JobState.PARTIALLY_COMPLETED)

    @property
    def is_terminal(self) -> bool:
        return self.is_success or self is JobState.FAILED


class OCRJob(BaseModel):
    """Short-lived handle for one remote OCR job."""

    job_id: str = Field(..., description="Job identifier assigned by the remote service")
    language: str = Field(..., description="Document language code")
    output_format: str = Field(default="md", description="Requested output format")
    state: str = Field(default=JobState.ACCEPTED.value, description="Last observed state")


class UploadDescriptor(BaseModel):
    """Presigned upload location for one file of a job."""

    file_name: str
    file_url: str
    file_metadata: Any = None


class DownloadDescriptor(BaseModel):
    """Presigned location of a job's result bundle."""

    name: str
    file_url: str
    file_metadata: Any = None


class PageDetail(BaseModel):
    """Per-unit processing counts reported in a status response."""

    model_config = ConfigDict(extra="ignore")

    total_pages: int = 0
    pages_processed: int = 0
    pages_succeeded: int = 0
    pages_failed: int = 0
    state: Optional[str] = None
    page_errors: list[Any] = Field(default_factory=list)


class JobStatusSnapshot(BaseModel):
    """State of a job at one point in time."""

    model_config = ConfigDict(extra="ignore")

    job_id: str
    job_state: JobState
    error_message: Optional[str] = None
    job_details: list[PageDetail] = Field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return sum(detail.total_pages for detail in self.job_details)

    @property
    def pages_succeeded(self) -> int:
        return sum(detail.pages_succeeded for detail in self.job_details)

    @property
    def pages_failed(self) -> int:
        return sum(detail.pages_failed for detail in self.job_details)


class UploadPayload(BaseModel):
    """Bytes actually sent to the presigned upload URL."""

    file_name: str
    data: bytes
    mime_type: str


class BundleEntry(BaseModel):
    """One named entry of a result bundle."""

    name: str
    data: bytes = b""
    is_dir: bool = False


class OCRBlock(BaseModel):
    """Text block of a structured (JSON) page result."""

    model_config = ConfigDict(extra="ignore")

    text: str
    reading_order: float
    layout_tag: Optional[str] = None


class OCRPageResult(BaseModel):
    """Structured page result: an unordered list of blocks."""

    model_config = ConfigDict(extra="ignore")

    blocks: Optional[list[OCRBlock]] = None
