"""
Tests for Gemini subtitle generation from audio.
"""

from types import SimpleNamespace

import pytest

from subtitler import stt
from subtitler.backends import BackendError
from subtitler.stt import SRT_PROMPT, generate_subtitles_from_audio

SRT = "1\n00:00:00,500 --> 00:00:02,000\nGood morning"


def fake_genai(monkeypatch, text=None, error=None):
    requests = []

    class FakeClient:
        def __init__(self, api_key):
            async def generate_content(model, contents, config=None):
                requests.append({"api_key": api_key, "model": model, "contents": contents, "config": config})
                if error:
                    raise error
                return SimpleNamespace(text=text)

            async def aclose():
                requests.append("closed")

            self.aio = SimpleNamespace(
                models=SimpleNamespace(generate_content=generate_content), aclose=aclose
            )

    monkeypatch.setattr(stt, "genai", SimpleNamespace(Client=FakeClient))
    return requests


@pytest.fixture
def audio(tmp_path):
    path = tmp_path / "audio.mp3"
    path.write_bytes(b"ID3fake-mp3-bytes")
    return str(path)


@pytest.mark.asyncio
async def test_generates_srt_and_strips_fences(monkeypatch, audio):
    requests = fake_genai(monkeypatch, text=f"```srt\n{SRT}\n```\n")

    out = await generate_subtitles_from_audio(audio, "gkey")

    assert out == SRT
    req = requests[0]
    assert req["api_key"] == "gkey"
    assert req["model"] == "gemini-2.5-pro"
    prompt, part = req["contents"]
    assert prompt == SRT_PROMPT
    assert part.inline_data.data == b"ID3fake-mp3-bytes"
    assert part.inline_data.mime_type == "audio/mp3"
    assert req["config"].temperature == 0.1


def test_prompt_demands_strict_srt():
    assert "HH:MM:SS,mmm --> HH:MM:SS,mmm" in SRT_PROMPT
    assert "7 words per line" in SRT_PROMPT
    assert "Return ONLY the SRT content" in SRT_PROMPT


@pytest.mark.asyncio
async def test_backend_failure(monkeypatch, audio):
    fake_genai(monkeypatch, error=RuntimeError("PERMISSION_DENIED"))

    with pytest.raises(BackendError, match="PERMISSION_DENIED"):
        await generate_subtitles_from_audio(audio, "gkey")


@pytest.mark.asyncio
async def test_empty_transcript(monkeypatch, audio):
    fake_genai(monkeypatch, text=None)

    with pytest.raises(BackendError, match="empty"):
        await generate_subtitles_from_audio(audio, "gkey")


@pytest.mark.asyncio
async def test_missing_audio_file(monkeypatch, tmp_path):
    fake_genai(monkeypatch, text=SRT)

    with pytest.raises(BackendError):
        await generate_subtitles_from_audio(str(tmp_path / "nope.mp3"), "gkey")


@pytest.mark.asyncio
async def test_client_closed_after_success_and_failure(monkeypatch, audio):
    requests = fake_genai(monkeypatch, text=SRT)
    await generate_subtitles_from_audio(audio, "gkey")
    assert requests[-1] == "closed"

    requests = fake_genai(monkeypatch, error=RuntimeError("UNAVAILABLE"))
    with pytest.raises(BackendError):
        await generate_subtitles_from_audio(audio, "gkey")
    assert requests[-1] == "closed"


@pytest.mark.asyncio
async def test_audio_is_read_off_the_event_loop(monkeypatch, audio):
    fake_genai(monkeypatch, text=SRT)
    offloaded = []
    to_thread = stt.asyncio.to_thread

    async def recording_to_thread(func, *args, **kwargs):
        offloaded.append(func)
        return await to_thread(func, *args, **kwargs)

    monkeypatch.setattr(stt.asyncio, "to_thread", recording_to_thread)

    await generate_subtitles_from_audio(audio, "gkey")

    assert len(offloaded) == 1
    assert offloaded[0]() == b"ID3fake-mp3-bytes"
