"""Reassemble ordered text from the entries of a result bundle.

Page order is the lexicographic (codepoint) order of entry names. This only
matches reading order when the service zero-pads page numbers: a bundle with
``page-2.md`` and ``page-10.md`` will put page 10 first.
"""

from typing import Iterable, Optional

import structlog
from pydantic import ValidationError

from notes_ocr.adapters.base import NoTextDetectedError
from notes_ocr.models.job import BundleEntry, OCRPageResult

logger = structlog.get_logger(__name__)

PAGE_SEPARATOR = "\n\n"

STRUCTURED_EXTENSIONS = (".json",)
TEXTUAL_EXTENSIONS = (".md", ".markdown", ".txt", ".html", ".htm")


def _blocks_to_text(content: str) -> Optional[str]:
    """Order a JSON page's blocks by reading order and join their text."""
    page = OCRPageResult.model_validate_json(content)
    if not page.blocks:
        return None

    ordered = sorted(page.blocks, key=lambda block: block.reading_order)
    texts = [block.text.strip() for block in ordered]
    return PAGE_SEPARATOR.join(text for text in texts if text) or None


def _entry_to_text(entry: BundleEntry) -> Optional[str]:
    name = entry.name.lower()
    if not name.endswith(STRUCTURED_EXTENSIONS + TEXTUAL_EXTENSIONS):
        return None

    content = entry.data.decode("utf-8").strip()
    if not content:
        return None

    if name.endswith(STRUCTURED_EXTENSIONS):
        return _blocks_to_text(content)
    return content


def extract_page_texts(entries: Iterable[BundleEntry]) -> list[str]:
    """
    Convert bundle entries into ordered, non-empty page texts.

    Entries that fail to decode or validate are logged and skipped so that
    one bad page does not lose the rest of the document.

    Args:
        entries: Bundle entries in any order.

    Returns:
        Page texts in page order.
    """
    files = sorted(
        (entry for entry in entries if not entry.is_dir),
        key=lambda entry: (entry.name, entry.data),
    )

    page_texts: list[str] = []
    for entry in files:
        try:
            text = _entry_to_text(entry)
        except (UnicodeDecodeError, ValidationError) as e:
            logger.warning("skipping_bundle_entry", entry=entry.name, error=str(e))
            continue

        if text:
            page_texts.append(text)

    return page_texts


def assemble_text(entries: Iterable[BundleEntry]) -> str:
    """
    Build the final extracted text from bundle entries.

    Raises:
        NoTextDetectedError: If no entry yields any text.
    """
    page_texts = extract_page_texts(entries)
    if not page_texts:
        raise NoTextDetectedError("NO_TEXT_DETECTED")

    logger.debug("text_assembled", page_count=len(page_texts))
    return PAGE_SEPARATOR.join(page_texts)
