"""Handwritten notes OCR and study assistant service."""

__version__ = "0.1.0"
