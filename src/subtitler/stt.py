"""
Speech-to-subtitles with Gemini audio understanding.
"""

import asyncio
import logging
from pathlib import Path

from google import genai
from google.genai import types

from .backends import BackendError, strip_code_fences
from .config import Settings
from .models import Provider

logger = logging.getLogger("subtitler")

SRT_PROMPT = """Create accurate SRT format subtitles for this audio.

Important requirements:
1. Maintain precise timing - each subtitle should match the exact moment when words are spoken
2. Format as standard SRT with sequential numbering, timecodes (HH:MM:SS,mmm --> HH:MM:SS,mmm), and text
3. Keep each subtitle to 1-2 lines and roughly 7 words per line maximum
4. Include all spoken content
5. Maintain proper sentence structure
6. Do not add any explanatory text or notes
7. Return ONLY the SRT content, nothing else

Example format:
1
00:00:01,000 --> 00:00:04,000
This is the first subtitle

2
00:00:04,500 --> 00:00:08,000
This is the second subtitle
Split across two lines"""


async def generate_subtitles_from_audio(
    audio_path: str,
    api_key: str,
    settings: Settings | None = None,
    mime_type: str = "audio/mp3",
) -> str:
    """
    Transcribe an audio file straight into SRT text.

    Args:
        audio_path: Path to the extracted audio
        api_key: Gemini API key
        settings: Model name (gemini_transcribe_model)
        mime_type: MIME type of the audio payload

    Returns:
        SRT text with code fences removed

    Raises:
        BackendError: if the request fails or returns nothing
    """
    settings = settings or Settings()
    try:
        audio = await asyncio.to_thread(Path(audio_path).read_bytes)
        logger.info(
            f"Generating subtitles with {settings.gemini_transcribe_model} "
            f"({len(audio) / 1_000_000:.1f} MB of audio) …"
        )
        client = genai.Client(api_key=api_key)
        try:
            response = await client.aio.models.generate_content(
                model=settings.gemini_transcribe_model,
                contents=[
                    SRT_PROMPT,
                    types.Part.from_bytes(data=audio, mime_type=mime_type),
                ],
                config=types.GenerateContentConfig(
                    max_output_tokens=8192,
                    temperature=0.1,  # Low temperature for stable timecodes
                    top_p=0.8,
                    top_k=40,
                ),
            )
        finally:
            await client.aio.aclose()
        text = response.text or ""
    except Exception as e:
        raise BackendError(Provider.GEMINI, e) from e

    subtitles = strip_code_fences(text)
    if not subtitles:
        raise BackendError(Provider.GEMINI, "transcription returned empty text")
    return subtitles
