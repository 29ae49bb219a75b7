"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError as BodyValidationError
from fastapi.middleware.cors import CORSMiddleware

from notes_ocr import __version__
from notes_ocr.config import Settings, get_settings
from notes_ocr.routes import ocr_router
from notes_ocr.routes.ocr import invalid_body_handler

# httpx logs every request URL at INFO; presigned blob URLs carry signatures.
QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(log_level: str) -> None:
    """
    Configure structured JSON logging for the service.

    Unknown level names fall back to INFO. The HTTP client libraries are
    held at WARNING whatever the service level is.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR).
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format="%(message)s")
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level)

    # The API key is checked on first use, not here.
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=__version__,
        environment=settings.environment,
        ocr_engine=settings.ocr_engine,
        default_language=settings.default_language,
        poll_timeout=settings.poll_timeout,
        api_key_configured=bool(settings.sarvam_api_key),
    )

    yield

    logger.info("shutting_down_application")


def service_info(settings: Settings) -> dict[str, object]:
    """Describe the service and its endpoints for the root path."""
    return {
        "service": settings.app_name,
        "version": __version__,
        "status": "running",
        "endpoints": {
            "ocr": f"{ocr_router.prefix}/ocr",
            "study": f"{ocr_router.prefix}/study",
            "health": f"{ocr_router.prefix}/health",
        },
        "docs": "/docs",
    }


def create_app() -> FastAPI:
    """Create the FastAPI application with the OCR and study routes."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Handwritten notes OCR with a study assistant",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Credentials cannot be combined with a wildcard origin.
    wildcard = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(ocr_router)
    app.add_exception_handler(BodyValidationError, invalid_body_handler)

    @app.get("/")
    async def root() -> dict[str, object]:
        return service_info(settings)

    logger.debug("application_created", routes=[route.path for route in app.routes])

    return app


app = create_app()


def run() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("notes_ocr.main:app", host=settings.host, port=settings.port)
