"""Run OCR (and optionally a study mode) on a local file."""

import asyncio
from pathlib import Path
from typing import Optional

from notes_ocr.adapters import OCREngineFactory, OCRError, SarvamChatClient
from notes_ocr.config import get_settings
from notes_ocr.services import OCRService, RequestValidationError, StudyAssistant


async def process_local_file(
    file_path: str,
    engine_type: str = "sarvam",
    language: str = "hi-IN",
    study_mode: Optional[str] = None,
    target_language: Optional[str] = None,
    output_dir: str = "./output",
) -> None:
    """
    Process a local file with OCR.

    Args:
        file_path: Path to local file to process.
        engine_type: OCR engine to use (sarvam or mock).
        language: Document language code.
        study_mode: Optional study mode to run on the extracted text.
        target_language: Target language for translate mode.
        output_dir: Directory to save output files.
    """
    print("=" * 60)
    print("Notes OCR - Local File")
    print("=" * 60)

    path = Path(file_path)
    if not path.exists():
        print(f"Error: File not found: {file_path}")
        return

    mime_type = _guess_mime_type(path)
    print(f"Path: {path.absolute()}")
    print(f"Size: {path.stat().st_size:,} bytes")
    print(f"MIME Type: {mime_type}")
    print(f"Engine: {engine_type}")
    print(f"Language: {language}")
    print()

    settings = get_settings().model_copy(update={"ocr_engine": engine_type})

    ocr_service = OCRService(
        ocr_engine=OCREngineFactory.create_from_settings(settings),
        assistant=StudyAssistant(
            SarvamChatClient(
                api_key=settings.sarvam_api_key,
                chat_url=settings.sarvam_chat_url,
                model_name=settings.chat_model,
            )
        ),
        settings=settings,
    )

    async with ocr_service:
        try:
            result = await ocr_service.process_upload(
                path.read_bytes(), path.name, mime_type, language
            )
        except (OCRError, RequestValidationError) as e:
            print(f"Processing failed ({type(e).__name__}): {e}")
            return

        print(f"Job state: {result.job_state}")
        print(f"Pages: {result.page_count} (failed: {result.pages_failed})")
        print("-" * 60)
        print(result.text[:500])
        if len(result.text) > 500:
            print(f"\n... ({len(result.text) - 500} more characters)")
        print("-" * 60)

        out_dir = Path(output_dir)
        out_dir.mkdir(exist_ok=True)
        output_path = out_dir / f"{path.stem}_ocr.md"
        output_path.write_text(result.text, encoding="utf-8")
        print(f"Saved text to: {output_path}")

        if study_mode:
            try:
                answer = await ocr_service.study(
                    result.text, study_mode, language, target_language
                )
            except (OCRError, RequestValidationError) as e:
                print(f"Study assistant failed ({type(e).__name__}): {e}")
                return

            study_path = out_dir / f"{path.stem}_{study_mode}.md"
            study_path.write_text(answer, encoding="utf-8")
            print(f"Saved {study_mode} result to: {study_path}")


def _guess_mime_type(path: Path) -> str:
    """Guess MIME type from file extension."""
    mime_types = {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
        ".tiff": "image/tiff",
        ".tif": "image/tiff",
        ".bmp": "image/bmp",
        ".webp": "image/webp",
        ".pdf": "application/pdf",
    }
    return mime_types.get(path.suffix.lower(), "application/octet-stream")


async def main() -> None:
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Extract text from a handwritten page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Extract Hindi notes (needs SARVAM_API_KEY)
  python examples/process_local_file.py notes.jpg

  # Try the pipeline without calling the API
  python examples/process_local_file.py notes.png --engine mock

  # Extract Tamil notes and summarize them
  python examples/process_local_file.py notes.pdf -l ta-IN --study summarize
        """,
    )
    parser.add_argument("file", help="Path to image or PDF")
    parser.add_argument(
        "--engine", "-e", choices=["sarvam", "mock"], default="sarvam",
        help="OCR engine to use (default: sarvam)",
    )
    parser.add_argument("--language", "-l", default="hi-IN", help="Document language code")
    parser.add_argument(
        "--study", choices=["summarize", "explain", "quiz", "translate"],
        help="Run a study mode on the extracted text",
    )
    parser.add_argument("--target", help="Target language code for translate")
    parser.add_argument("--output", "-o", default="./output", help="Output directory")

    args = parser.parse_args()

    await process_local_file(
        file_path=args.file,
        engine_type=args.engine,
        language=args.language,
        study_mode=args.study,
        target_language=args.target,
        output_dir=args.output,
    )


if __name__ == "__main__":
    asyncio.run(main())
