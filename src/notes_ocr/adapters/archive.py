"""Zip container handling for uploads and result bundles."""

import io
import zipfile
import zlib

import structlog

from notes_ocr.adapters.base import InvalidBundleError
from notes_ocr.models.job import BundleEntry, UploadPayload

logger = structlog.get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"
ZIP_MIME_TYPE = "application/zip"
ZIP_UPLOAD_NAME = "upload.zip"


def wrap_in_zip(data: bytes, entry_name: str) -> bytes:
    """
    Wrap a single file into a new zip archive.

    Args:
        data: File contents.
        entry_name: Name of the one entry in the archive.

    Returns:
        Bytes of the zip archive.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(entry_name, data)
    return buffer.getvalue()


def read_bundle(data: bytes) -> list[BundleEntry]:
    """
    Read every entry of a result bundle.

    An entry whose data cannot be read (bad CRC or compressed stream) is
    logged and skipped; the remaining entries are still returned.

    Args:
        data: Bytes of the downloaded zip archive.

    Returns:
        Entries in archive order, directories flagged with ``is_dir``.

    Raises:
        InvalidBundleError: If the bytes are not a readable zip archive.
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
        logger.error("result_bundle_unreadable", error=str(e), size_bytes=len(data))
        raise InvalidBundleError(
            f"Result bundle is not a valid archive: {str(e)}", original_error=e
        )

    entries = []
    with zf:
        for info in zf.infolist():
            if info.is_dir():
                entries.append(BundleEntry(name=info.filename, is_dir=True))
                continue

            try:
                content = zf.read(info)
            except (zipfile.BadZipFile, zlib.error, EOFError, OSError) as e:
                logger.warning("skipping_bundle_entry", entry=info.filename, error=str(e))
                continue

            entries.append(BundleEntry(name=info.filename, data=content))

    logger.debug("result_bundle_read", entry_count=len(entries))
    return entries


def build_upload_payload(data: bytes, file_name: str, mime_type: str) -> UploadPayload:
    """
    Route a file to the upload format the OCR service accepts.

    PDFs are sent unchanged. Everything else is wrapped into a single-entry
    zip archive, keeping the original file name as the entry name.

    Args:
        data: Original file bytes.
        file_name: Original file name.
        mime_type: MIME type of the original file.

    Returns:
        Payload to upload.
    """
    if mime_type == PDF_MIME_TYPE:
        upload_name = file_name if file_name.lower().endswith(".pdf") else f"{file_name}.pdf"
        return UploadPayload(file_name=upload_name, data=data, mime_type=PDF_MIME_TYPE)

    logger.debug("wrapping_upload_in_zip", file_name=file_name, mime_type=mime_type)
    return UploadPayload(
        file_name=ZIP_UPLOAD_NAME,
        data=wrap_in_zip(data, file_name),
        mime_type=ZIP_MIME_TYPE,
    )
