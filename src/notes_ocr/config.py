"""Configuration management for notes-ocr service."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = Field(default="notes-ocr", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    log_level: str = Field(default="INFO", description="Logging level")
    environment: str = Field(default="development", description="Environment name")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    cors_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed to call the API from a browser (JSON list in env)",
    )

    # OCR Engine Configuration
    ocr_engine: str = Field(default="sarvam", description="OCR engine to use")

    # Sarvam API Configuration
    sarvam_api_key: Optional[str] = Field(
        default=None,
        description="Sarvam API subscription key (checked on first use)",
    )
    sarvam_job_api_url: str = Field(
        default="https://api.sarvam.ai/doc-digitization/job/v1",
        description="Document digitization job API base URL",
    )
    sarvam_chat_url: str = Field(
        default="https://api.sarvam.ai/v1/chat/completions",
        description="Chat completions endpoint",
    )
    ocr_output_format: str = Field(
        default="md",
        description="Output format requested from the OCR job",
    )
    http_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for each non-polling HTTP call",
    )

    # Polling Configuration
    poll_interval: float = Field(
        default=2.0,
        description="Seconds between job status checks",
    )
    poll_timeout: float = Field(
        default=90.0,
        description="Absolute polling budget in seconds",
    )

    # Upload Limits
    max_upload_size: int = Field(
        default=10485760,
        description="Maximum upload size in bytes (10MB)",
    )
    default_language: str = Field(
        default="hi-IN",
        description="OCR language used when the request omits one",
    )

    # Study Assistant
    chat_model: str = Field(default="sarvam-m", description="Chat model name")
    chat_temperature: float = Field(default=0.3, description="Sampling temperature")
    chat_max_tokens: int = Field(default=4096, description="Generation budget")
    max_study_chars: int = Field(
        default=6000,
        description="Study input is truncated to this many characters",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
