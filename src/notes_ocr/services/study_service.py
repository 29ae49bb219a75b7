"""Study assistant: mode-specific instructions sent to a chat model."""

from typing import Optional, Union

import structlog
from pydantic import BaseModel

from notes_ocr.adapters.chat_client import SarvamChatClient
from notes_ocr.models.study import LANGUAGE_NAMES, Language, StudyMode

logger = structlog.get_logger(__name__)

DEFAULT_SOURCE_LANGUAGE = "Hindi"
DEFAULT_TARGET_LANGUAGE = "English"


class PromptTemplate(BaseModel):
    """Instruction template for one study mode."""

    mode: StudyMode
    template: str

    def render(self, language: str, target_language: str = DEFAULT_TARGET_LANGUAGE) -> str:
        """Fill in the human-readable language names."""
        return self.template.format(language=language, target_language=target_language)


SUMMARIZE_TEMPLATE = PromptTemplate(
    mode=StudyMode.SUMMARIZE,
    template=(
        "You are an expert academic tutor. Summarize the following notes into clear, "
        "concise bullet points highlighting key concepts. Keep the summary in the same "
        "language as the notes ({language}). Use simple language a student can quickly "
        "revise from. Do not add information that is not present in the notes."
    ),
)

EXPLAIN_TEMPLATE = PromptTemplate(
    mode=StudyMode.EXPLAIN,
    template=(
        "You are a patient, expert teacher. Explain the concepts in these notes in a clear, "
        "easy-to-understand way as if teaching a student. Use simple analogies and examples. "
        "Respond in the same language as the notes ({language}). Break down complex ideas "
        "into digestible parts. Add helpful context where needed but stay focused on what "
        "the notes cover."
    ),
)

QUIZ_TEMPLATE = PromptTemplate(
    mode=StudyMode.QUIZ,
    template="""You are an exam preparation expert. Based on the following notes, generate 5-8 practice questions that test understanding of the key concepts. Include a mix of:
- Short answer questions
- True/False questions
- Fill in the blank questions
Provide the correct answers at the end. Write everything in the same language as the notes ({language}).""",
)

TRANSLATE_TEMPLATE = PromptTemplate(
    mode=StudyMode.TRANSLATE,
    template=(
        "You are a professional translator specializing in Indian languages. Translate the "
        "following text into {target_language}. Maintain the original meaning, structure, "
        "and any technical terminology. Output only the translated text, nothing else. "
        "Do not add any commentary or notes."
    ),
)

PROMPT_TEMPLATES: dict[StudyMode, PromptTemplate] = {
    template.mode: template
    for template in (SUMMARIZE_TEMPLATE, EXPLAIN_TEMPLATE, QUIZ_TEMPLATE, TRANSLATE_TEMPLATE)
}


def language_name(code: Optional[str], default: str) -> str:
    """Display name for a language code, or ``default`` if unknown."""
    try:
        return LANGUAGE_NAMES[Language(code)]
    except ValueError:
        return default


def build_system_prompt(
    mode: Union[StudyMode, str],
    language: str,
    target_language: Optional[str] = None,
) -> str:
    """Render the instruction for a mode. Translate defaults to English."""
    template = PROMPT_TEMPLATES[StudyMode(mode)]
    return template.render(
        language=language_name(language, DEFAULT_SOURCE_LANGUAGE),
        target_language=language_name(target_language, DEFAULT_TARGET_LANGUAGE),
    )


def build_messages(
    text: str,
    mode: Union[StudyMode, str],
    language: str,
    target_language: Optional[str] = None,
) -> list[dict[str, str]]:
    """Build the two-message exchange: instruction, then the notes."""
    return [
        {"role": "system", "content": build_system_prompt(mode, language, target_language)},
        {"role": "user", "content": text},
    ]


class StudyAssistant:
    """
    Runs one study transformation per call.

    The assistant does not limit input length. Callers are expected to cut
    the text first (see ``truncate_study_text``).
    """

    def __init__(
        self,
        chat_client: SarvamChatClient,
        temperature: float = 0.3,
        max_tokens: int = 4096,
    ) -> None:
        self.chat_client = chat_client
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def assist(
        self,
        text: str,
        mode: Union[StudyMode, str],
        language: str,
        target_language: Optional[str] = None,
    ) -> str:
        """
        Apply a study mode to text.

        Raises:
            UpstreamProtocolError: If the chat API rejects the request.
            GenerationError: If the model returns no content.
        """
        mode = StudyMode(mode)
        logger.info(
            "study_assist_requested",
            mode=mode.value,
            language=language,
            target_language=target_language,
            text_length=len(text),
        )

        messages = build_messages(text, mode, language, target_language)
        return await self.chat_client.chat_completion(
            messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    async def cleanup(self) -> None:
        """Close the chat client."""
        await self.chat_client.close()
