"""Factory for creating OCR engine instances."""

from typing import Any, Dict

import structlog

from notes_ocr.adapters.base import BaseOCREngine
from notes_ocr.adapters.mock_engine import MockOCREngine
from notes_ocr.adapters.sarvam_engine import SarvamOCREngine
from notes_ocr.config import Settings

logger = structlog.get_logger(__name__)


class OCREngineFactory:
    """Factory for creating OCR engine instances based on configuration."""

    # Registry of available engines
    _engines: Dict[str, type[BaseOCREngine]] = {
        "mock": MockOCREngine,
        "sarvam": SarvamOCREngine,
    }

    @classmethod
    def create(cls, engine_type: str, config: dict[str, Any]) -> BaseOCREngine:
        """
        Create an OCR engine instance.

        Args:
            engine_type: Type of engine to create (sarvam, mock).
            config: Configuration dictionary for the engine.

        Returns:
            Initialized OCR engine instance.

        Raises:
            ValueError: If engine type is not supported.
        """
        engine_type = engine_type.lower()

        if engine_type not in cls._engines:
            available = ", ".join(cls._engines.keys())
            raise ValueError(
                f"Unknown OCR engine type: {engine_type}. "
                f"Available engines: {available}"
            )

        engine_class = cls._engines[engine_type]
        logger.info(
            "creating_ocr_engine",
            engine_type=engine_type,
            engine_class=engine_class.__name__,
        )

        return engine_class(config)

    @classmethod
    def create_from_settings(cls, settings: Settings) -> BaseOCREngine:
        """
        Create an OCR engine from application settings.

        Args:
            settings: Application settings object.

        Returns:
            Initialized OCR engine instance.
        """
        engine_type = settings.ocr_engine

        config: dict[str, Any] = {
            "api_key": settings.sarvam_api_key,
            "base_url": settings.sarvam_job_api_url,
            "timeout": settings.http_timeout,
            "output_format": settings.ocr_output_format,
            "poll_interval": settings.poll_interval,
            "poll_timeout": settings.poll_timeout,
        }

        if engine_type == "mock":
            config.update({"delay_ms": 100, "fail_rate": 0.0})

        return cls.create(engine_type, config)

    @classmethod
    def register_engine(cls, name: str, engine_class: type[BaseOCREngine]) -> None:
        """
        Register a custom OCR engine.

        Raises:
            TypeError: If engine_class doesn't inherit from BaseOCREngine.
        """
        if not issubclass(engine_class, BaseOCREngine):
            raise TypeError(
                f"{engine_class.__name__} must inherit from BaseOCREngine"
            )

        logger.info(
            "registering_custom_ocr_engine",
            name=name,
            engine_class=engine_class.__name__,
        )

        cls._engines[name.lower()] = engine_class

    @classmethod
    def list_engines(cls) -> list[str]:
        """List all registered engine types."""
        return list(cls._engines.keys())
