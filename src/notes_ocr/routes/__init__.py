"""HTTP routes."""

from notes_ocr.routes.ocr import router as ocr_router

__all__ = ["ocr_router"]
