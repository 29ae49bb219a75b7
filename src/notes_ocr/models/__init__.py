"""Data models for notes-ocr service."""

from notes_ocr.models.job import (
    BundleEntry,
    DownloadDescriptor,
    JobState,
    JobStatusSnapshot,
    OCRJob,
    UploadDescriptor,
    UploadPayload,
)
from notes_ocr.models.study import Language, StudyMode

__all__ = [
    "BundleEntry",
    "DownloadDescriptor",
    "JobState",
    "JobStatusSnapshot",
    "Language",
    "OCRJob",
    "StudyMode",
    "UploadDescriptor",
    "UploadPayload",
]
