"""Study assistant and language models."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Supported document languages."""

    HINDI = "hi-IN"
    MARATHI = "mr-IN"
    KANNADA = "kn-IN"
    TAMIL = "ta-IN"
    TELUGU = "te-IN"
    BENGALI = "bn-IN"
    GUJARATI = "gu-IN"
    MALAYALAM = "ml-IN"
    PUNJABI = "pa-IN"
    ODIA = "or-IN"
    URDU = "ur-IN"
    ENGLISH = "en-IN"

    @property
    def display_name(self) -> str:
        return LANGUAGE_NAMES[self]


LANGUAGE_NAMES: dict[Language, str] = {
    Language.HINDI: "Hindi",
    Language.MARATHI: "Marathi",
    Language.KANNADA: "Kannada",
    Language.TAMIL: "Tamil",
    Language.TELUGU: "Telugu",
    Language.BENGALI: "Bengali",
    Language.GUJARATI: "Gujarati",
    Language.MALAYALAM: "Malayalam",
    Language.PUNJABI: "Punjabi",
    Language.ODIA: "Odia",
    Language.URDU: "Urdu",
    Language.ENGLISH: "English",
}

SUPPORTED_LANGUAGES: frozenset[str] = frozenset(lang.value for lang in Language)


class StudyMode(str, Enum):
    """Transformations the study assistant can apply to extracted text."""

    SUMMARIZE = "summarize"
    EXPLAIN = "explain"
    QUIZ = "quiz"
    TRANSLATE = "translate"


class StudyRequest(BaseModel):
    """
    Request body for the study assistant route.

    Fields are left untyped so that wrong types reach request validation
    and get its user-facing messages.
    """

    model_config = ConfigDict(populate_by_name=True)

    text: Any = Field(None, description="Extracted text to work on")
    mode: Any = Field(None, description="summarize, explain, quiz or translate")
    language: Any = Field(None, description="Language code of the text")
    target_language: Any = Field(
        None,
        alias="targetLanguage",
        description="Target language code for translate mode",
    )


class StudyResponse(BaseModel):
    """Study assistant result."""

    result: str


class OCRTextResponse(BaseModel):
    """Extracted text returned by the OCR route."""

    text: str
    page_count: int = 0
    pages_failed: int = 0
    job_state: Optional[str] = None


class ErrorResponse(BaseModel):
    """User-facing error body."""

    error: str
