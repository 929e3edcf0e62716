"""
Video -> subtitles pipeline: extract audio, transcribe with Gemini, translate.
"""

import asyncio
import logging
import os
import tempfile
from collections.abc import Callable

from pydub.exceptions import CouldntDecodeError

from .backends import BackendError, translate_text
from .config import Settings
from .io_ffmpeg import ExtractionError, audio_duration_seconds, extract_audio, validate_video_path
from .models import JobStatus, MediaJob, MediaStage, Provider
from .stt import generate_subtitles_from_audio
from .translation import get_language_name

logger = logging.getLogger("subtitler")

StageCallback = Callable[[int, int, str], None]

STAGE_PROGRESS = {
    MediaStage.PREPARING: 0,
    MediaStage.EXTRACTING_AUDIO: 10,
    MediaStage.GENERATING_SUBTITLES: 40,
    MediaStage.TRANSLATING_SUBTITLES: 80,
    MediaStage.COMPLETE: 100,
    MediaStage.ERROR: 100,
}


class MediaPipelineError(RuntimeError):
    """A fatal stage failed; the failed job is attached."""

    def __init__(self, job: MediaJob):
        self.job = job
        super().__init__(job.error)


def _advance(job: MediaJob, stage: MediaStage, on_progress: StageCallback | None) -> None:
    job.stage = stage
    job.progress = STAGE_PROGRESS[stage]
    logger.info(f"[{stage.value}] {job.progress}%")
    if on_progress:
        on_progress(job.progress, 100, stage.value)


def _fail(job: MediaJob, message: str, on_progress: StageCallback | None) -> MediaJob:
    logger.error(message)
    job.status = JobStatus.FAILED
    job.error = message
    job.result = None
    _advance(job, MediaStage.ERROR, on_progress)
    return job


def _extract(video_path: str, audio_path: str) -> float:
    """Blocking part of the extraction stage; runs in a worker thread."""
    extract_audio(video_path, audio_path)
    try:
        seconds = audio_duration_seconds(audio_path)
    except (CouldntDecodeError, OSError) as e:
        raise ExtractionError(f"Could not read extracted audio: {e}") from e
    if seconds <= 0:
        raise ExtractionError("Extracted audio track is empty")
    return seconds


async def _translate_transcript(job: MediaJob, api_key: str, settings: Settings) -> str:
    """Translate the generated subtitles; on failure keep them untranslated."""
    try:
        return await translate_text(
            Provider.GEMINI,
            job.transcript,
            get_language_name(job.target_language),
            api_key,
            settings,
        )
    except BackendError as e:
        warning = f"Translation failed, returning untranslated subtitles: {e}"
        logger.warning(warning)
        job.warnings.append(warning)
        return job.transcript


async def run_media_job(
    job: MediaJob,
    api_key: str,
    *,
    settings: Settings,
    on_progress: StageCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> MediaJob:
    """Advance an idle job through the stages until complete or error."""

    def cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    job.status = JobStatus.RUNNING
    _advance(job, MediaStage.PREPARING, on_progress)

    with tempfile.TemporaryDirectory(prefix="subtitler-") as tmp:
        audio_path = os.path.join(tmp, "audio.mp3")

        if cancelled():
            return _fail(job, "cancelled", on_progress)
        _advance(job, MediaStage.EXTRACTING_AUDIO, on_progress)
        try:
            job.audio_seconds = await asyncio.to_thread(_extract, job.video_path, audio_path)
        except Exception as e:
            return _fail(job, f"Failed to extract audio from video: {e}", on_progress)
        logger.info(f"Extracted {job.audio_seconds:.1f}s of audio")

        if cancelled():
            return _fail(job, "cancelled", on_progress)
        _advance(job, MediaStage.GENERATING_SUBTITLES, on_progress)
        try:
            job.transcript = await generate_subtitles_from_audio(audio_path, api_key, settings)
        except BackendError as e:
            return _fail(job, f"Failed to generate subtitles: {e}", on_progress)

    result = job.transcript
    if settings.always_translate:
        if cancelled():
            return _fail(job, "cancelled", on_progress)
        _advance(job, MediaStage.TRANSLATING_SUBTITLES, on_progress)
        result = await _translate_transcript(job, api_key, settings)
    else:
        logger.info("Skipping translation of generated subtitles")

    job.result = result
    job.status = JobStatus.SUCCEEDED_WITH_WARNINGS if job.warnings else JobStatus.SUCCEEDED
    _advance(job, MediaStage.COMPLETE, on_progress)
    return job


async def generate_subtitles(
    video_path: str,
    api_key: str,
    target_language: str = "en",
    *,
    settings: Settings | None = None,
    on_progress: StageCallback | None = None,
    cancel_event: asyncio.Event | None = None,
    raise_on_error: bool = False,
) -> MediaJob:
    """
    Generate subtitles for a video.

    Args:
        video_path: Local video file
        api_key: Gemini API key used for transcription and translation
        target_language: Language code of the wanted subtitles
        settings: Model names and the always_translate policy
        on_progress: Called with (progress, 100, stage_label) on every stage change
        cancel_event: Checked between stages
        raise_on_error: Raise MediaPipelineError instead of returning a failed job

    Returns:
        The finished MediaJob; job.result holds the SRT text unless it failed.

    Raises:
        ValueError: missing credential or invalid video file
    """
    if not api_key or not api_key.strip():
        raise ValueError("Please enter an API key")
    validate_video_path(video_path)

    job = MediaJob(video_path=str(video_path), target_language=target_language)
    await run_media_job(
        job,
        api_key,
        settings=settings or Settings(),
        on_progress=on_progress,
        cancel_event=cancel_event,
    )
    if job.status == JobStatus.FAILED and raise_on_error:
        raise MediaPipelineError(job)
    return job
