"""
Chunked subtitle translation: parse, chunk, translate chunk by chunk, merge.
"""

import asyncio
import logging
from collections.abc import Callable

from .backends import BackendError, resolve_provider, translate_text
from .chunking import check_chunk_limits, chunk_subtitles
from .config import Settings
from .models import JobStatus, Provider, SubtitleBlock, TranslationJob
from .srt_utils import parse_subtitles, read_subtitle_file, serialize_subtitles

logger = logging.getLogger("subtitler")

ProgressCallback = Callable[[int, int], None]

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "ru": "Russian",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ar": "Arabic",
    "fa": "Persian",
    "hi": "Hindi",
    "bn": "Bengali",
    "tr": "Turkish",
    "pl": "Polish",
    "vi": "Vietnamese",
    "th": "Thai",
    "id": "Indonesian",
    "ms": "Malay",
}


def get_language_name(language_code: str) -> str:
    """Get human-readable language name from language code (unknown codes pass through)."""
    return LANGUAGE_NAMES.get(language_code.lower(), language_code)


def restore_timing(original: list[SubtitleBlock], translated: list[SubtitleBlock]) -> list[SubtitleBlock]:
    """
    Copy index and timing from the original chunk onto the translated blocks,
    position by position. Positions the backend dropped are filled with the
    untranslated originals. Extra blocks, or a block that came back without
    text where the original had some, cannot be aligned and raise ValueError.
    """
    if len(translated) > len(original):
        raise ValueError(
            f"Backend returned {len(translated)} blocks for a chunk of {len(original)}"
        )
    for pos, (orig, tr) in enumerate(zip(original, translated), 1):
        # a reply without index lines parses its text as timing, leaving content empty
        if orig.content and not tr.content:
            raise ValueError(f"Backend returned block {pos} of the chunk without text")

    restored = [
        SubtitleBlock(index=orig.index, timing=orig.timing, content=list(tr.content))
        for orig, tr in zip(original, translated)
    ]
    if len(translated) < len(original):
        logger.warning(
            f"Backend returned {len(translated)} of {len(original)} blocks; "
            "keeping the remaining blocks untranslated"
        )
        restored.extend(original[len(translated):])
    return restored


async def _translate_chunk(
    job: TranslationJob, chunk: list[SubtitleBlock], api_key: str, settings: Settings
) -> list[SubtitleBlock]:
    translated_text = await translate_text(
        job.provider, serialize_subtitles(chunk), job.target_language_name, api_key, settings
    )
    return restore_timing(chunk, parse_subtitles(translated_text))


async def run_translation_job(
    job: TranslationJob,
    api_key: str,
    *,
    settings: Settings,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> TranslationJob:
    """Drive an idle job to a terminal status. Chunks are translated one at a time."""
    job.status = JobStatus.RUNNING
    blocks = parse_subtitles(job.source_text)
    logger.info(f"Number of subtitle blocks: {len(blocks)}")

    chunks = chunk_subtitles(
        blocks, settings.max_blocks_per_chunk, max_chars=settings.max_chunk_chars
    )
    job.total_chunks = len(chunks)
    if on_progress:
        on_progress(0, job.total_chunks)

    for i, chunk in enumerate(chunks, 1):
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(f"Translation cancelled before chunk {i} of {job.total_chunks}")
            job.status = JobStatus.FAILED
            job.error = "cancelled"
            return job

        logger.info(f"Translating chunk {i} of {job.total_chunks} ({len(chunk)} blocks)")
        try:
            translated = await _translate_chunk(job, chunk, api_key, settings)
        except (BackendError, ValueError) as e:
            logger.error(f"Failed to translate chunk {i}: {e}")
            job.failed_chunks.append(i)
            translated = list(chunk)

        job.blocks.extend(translated)
        job.completed_chunks = i
        if on_progress:
            on_progress(i, job.total_chunks)

        # pacing between calls to stay under backend rate limits
        if i < job.total_chunks and settings.chunk_delay > 0:
            await asyncio.sleep(settings.chunk_delay)

    job.result = serialize_subtitles(job.blocks)
    if job.failed_chunks:
        job.warning = "Translation completed with errors in chunks: " + ", ".join(
            str(n) for n in job.failed_chunks
        )
        job.status = JobStatus.SUCCEEDED_WITH_WARNINGS
        logger.warning(job.warning)
    else:
        job.status = JobStatus.SUCCEEDED
        logger.info("Translation process completed")
    return job


async def translate_subtitles(
    text: str,
    provider: Provider | str,
    api_key: str,
    target_language: str = "en",
    *,
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> TranslationJob:
    """
    Translate subtitle text chunk by chunk.

    Args:
        text: Raw subtitle text
        provider: Backend identity (openai, gemini, anthropic, deepseek)
        api_key: Credential for the backend
        target_language: Language code, e.g. "es"
        settings: Chunk limits, pacing and model names
        on_progress: Called with (completed_chunks, total_chunks)
        cancel_event: Checked between chunks

    Returns:
        The finished TranslationJob. Failed chunks keep their original text and
        are listed in job.failed_chunks; they never abort the job.

    Raises:
        ValueError: missing credential, unknown provider or invalid chunk limits
    """
    provider = resolve_provider(provider)
    if not api_key or not api_key.strip():
        raise ValueError("Please enter an API key")
    settings = settings or Settings()
    check_chunk_limits(settings.max_blocks_per_chunk, settings.max_chunk_chars)

    job = TranslationJob(
        source_text=text,
        provider=provider,
        target_language=target_language,
        target_language_name=get_language_name(target_language),
    )
    return await run_translation_job(
        job,
        api_key,
        settings=settings,
        on_progress=on_progress,
        cancel_event=cancel_event,
    )


async def translate_subtitle_file(
    path: str,
    provider: Provider | str,
    api_key: str,
    target_language: str = "en",
    **kwargs,
) -> TranslationJob:
    """Read a .srt/.vtt/.txt file and translate its contents."""
    text = read_subtitle_file(path)
    return await translate_subtitles(text, provider, api_key, target_language, **kwargs)
