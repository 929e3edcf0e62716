"""
Tests for the video -> subtitles pipeline (ffmpeg and Gemini are faked).
"""

import asyncio

import pytest

from subtitler import media
from subtitler.backends import BackendError
from subtitler.config import Settings
from subtitler.io_ffmpeg import ExtractionError
from subtitler.media import MediaPipelineError, generate_subtitles
from subtitler.models import JobStatus, MediaStage, Provider

TRANSCRIPT = "1\n00:00:01,000 --> 00:00:02,500\nHello there"
TRANSLATED = "1\n00:00:01,000 --> 00:00:02,500\nHola"


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "talk.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return str(path)


@pytest.fixture
def fake_media(monkeypatch):
    """Fake ffmpeg, Gemini transcription and translation; returns a call log."""
    log = {"extract": [], "transcribe": [], "translate": []}

    def fake_extract(input_video, out_mp3, *args, **kwargs):
        log["extract"].append((input_video, out_mp3))

    async def fake_transcribe(audio_path, api_key, settings=None):
        log["transcribe"].append(audio_path)
        return TRANSCRIPT

    async def fake_translate(provider, text, target_language_name, api_key, settings=None):
        log["translate"].append((provider, text, target_language_name))
        return TRANSLATED

    monkeypatch.setattr(media, "extract_audio", fake_extract)
    monkeypatch.setattr(media, "audio_duration_seconds", lambda path: 12.5)
    monkeypatch.setattr(media, "generate_subtitles_from_audio", fake_transcribe)
    monkeypatch.setattr(media, "translate_text", fake_translate)
    return log


@pytest.mark.asyncio
async def test_full_pipeline(video, fake_media):
    events = []

    job = await generate_subtitles(
        video, "gkey", "es", on_progress=lambda done, total, stage: events.append((done, total, stage))
    )

    assert job.status == JobStatus.SUCCEEDED
    assert job.stage == MediaStage.COMPLETE
    assert job.result == TRANSLATED
    assert job.transcript == TRANSCRIPT
    assert job.audio_seconds == 12.5
    assert job.warnings == []
    assert events == [
        (0, 100, "preparing"),
        (10, 100, "extracting-audio"),
        (40, 100, "generating-subtitles"),
        (80, 100, "translating-subtitles"),
        (100, 100, "complete"),
    ]
    assert fake_media["extract"][0][0] == video
    assert fake_media["extract"][0][1].endswith("audio.mp3")
    assert fake_media["translate"] == [(Provider.GEMINI, TRANSCRIPT, "Spanish")]


@pytest.mark.asyncio
async def test_translation_failure_falls_back_to_transcript(video, fake_media, monkeypatch):
    async def failing_translate(provider, text, target_language_name, api_key, settings=None):
        raise BackendError(provider, "quota exceeded")

    monkeypatch.setattr(media, "translate_text", failing_translate)

    job = await generate_subtitles(video, "gkey", "fr")

    assert job.status == JobStatus.SUCCEEDED_WITH_WARNINGS
    assert job.stage == MediaStage.COMPLETE
    assert job.result == TRANSCRIPT
    assert len(job.warnings) == 1
    assert "quota exceeded" in job.warnings[0]
    assert job.error is None


@pytest.mark.asyncio
async def test_always_translate_even_for_same_language(video, fake_media):
    job = await generate_subtitles(video, "gkey", "en")

    assert job.result == TRANSLATED
    assert fake_media["translate"][0][2] == "English"


@pytest.mark.asyncio
async def test_translation_can_be_disabled(video, fake_media):
    events = []

    job = await generate_subtitles(
        video,
        "gkey",
        "en",
        settings=Settings(always_translate=False),
        on_progress=lambda done, total, stage: events.append(stage),
    )

    assert job.status == JobStatus.SUCCEEDED
    assert job.result == TRANSCRIPT
    assert fake_media["translate"] == []
    assert "translating-subtitles" not in events


@pytest.mark.asyncio
async def test_extraction_failure_is_fatal(video, fake_media, monkeypatch):
    def broken_extract(input_video, out_mp3, *args, **kwargs):
        raise ExtractionError("Command failed with code 1: Invalid data found")

    monkeypatch.setattr(media, "extract_audio", broken_extract)
    events = []

    job = await generate_subtitles(
        video, "gkey", "es", on_progress=lambda done, total, stage: events.append(stage)
    )

    assert job.status == JobStatus.FAILED
    assert job.stage == MediaStage.ERROR
    assert job.result is None
    assert "Invalid data found" in job.error
    assert events[-1] == "error"
    assert fake_media["transcribe"] == []


@pytest.mark.asyncio
async def test_empty_audio_is_extraction_failure(video, fake_media, monkeypatch):
    monkeypatch.setattr(media, "audio_duration_seconds", lambda path: 0.0)

    job = await generate_subtitles(video, "gkey", "es")

    assert job.status == JobStatus.FAILED
    assert "empty" in job.error


@pytest.mark.asyncio
async def test_transcription_failure_is_fatal(video, fake_media, monkeypatch):
    async def failing_transcribe(audio_path, api_key, settings=None):
        raise BackendError(Provider.GEMINI, "API key not valid")

    monkeypatch.setattr(media, "generate_subtitles_from_audio", failing_transcribe)

    job = await generate_subtitles(video, "gkey", "es")

    assert job.status == JobStatus.FAILED
    assert job.result is None
    assert job.error.startswith("Failed to generate subtitles")
    assert "API key not valid" in job.error
    assert fake_media["translate"] == []


@pytest.mark.asyncio
async def test_raise_on_error(video, fake_media, monkeypatch):
    async def failing_transcribe(audio_path, api_key, settings=None):
        raise BackendError(Provider.GEMINI, "boom")

    monkeypatch.setattr(media, "generate_subtitles_from_audio", failing_transcribe)

    with pytest.raises(MediaPipelineError) as exc_info:
        await generate_subtitles(video, "gkey", "es", raise_on_error=True)

    assert exc_info.value.job.status == JobStatus.FAILED
    assert "boom" in str(exc_info.value)


@pytest.mark.asyncio
async def test_cancelled_before_start(video, fake_media):
    cancel = asyncio.Event()
    cancel.set()

    job = await generate_subtitles(video, "gkey", "es", cancel_event=cancel)

    assert job.status == JobStatus.FAILED
    assert job.error == "cancelled"
    assert fake_media["extract"] == []


@pytest.mark.asyncio
async def test_missing_api_key(video, fake_media):
    with pytest.raises(ValueError, match="API key"):
        await generate_subtitles(video, "", "es")
    assert fake_media["extract"] == []


@pytest.mark.asyncio
async def test_invalid_video_file(tmp_path, fake_media):
    subs = tmp_path / "movie.srt"
    subs.write_text(TRANSCRIPT, encoding="utf-8")

    with pytest.raises(ValueError, match="valid video file"):
        await generate_subtitles(str(subs), "gkey", "es")
    with pytest.raises(ValueError, match="not found"):
        await generate_subtitles(str(tmp_path / "missing.mp4"), "gkey", "es")


@pytest.mark.asyncio
async def test_unexpected_extraction_error_is_reported(video, fake_media, monkeypatch):
    def broken_probe(path):
        raise IndexError("list index out of range")

    monkeypatch.setattr(media, "audio_duration_seconds", broken_probe)
    events = []

    job = await generate_subtitles(
        video, "gkey", "es", on_progress=lambda done, total, stage: events.append(stage)
    )

    assert job.status == JobStatus.FAILED
    assert job.stage == MediaStage.ERROR
    assert job.error == "Failed to extract audio from video: list index out of range"
    assert events[-1] == "error"
    assert fake_media["transcribe"] == []
