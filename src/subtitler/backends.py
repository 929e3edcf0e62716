"""
Translation backends: OpenAI, Gemini, Anthropic and DeepSeek (via OpenRouter).

Every backend takes subtitle text and a target language name and returns the
translated text. Selection is a plain dispatch on Provider.
"""

import logging
import re
from collections.abc import Awaitable, Callable

import httpx
from google import genai
from openai import AsyncOpenAI

from .config import Settings
from .models import Provider

logger = logging.getLogger("subtitler")

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"
HTTP_OK = 200

# ``` fences, optionally tagged with a format name such as ```srt
_CODE_FENCE_RE = re.compile(r"```[A-Za-z][\w+-]*|```")


class BackendError(RuntimeError):
    """A backend call failed; the original exception is kept as __cause__."""

    def __init__(self, provider: Provider | str, cause: BaseException | str):
        self.provider = provider.value if isinstance(provider, Provider) else str(provider)
        self.cause = cause
        super().__init__(f"{self.provider} request failed: {cause}")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers and surrounding whitespace."""
    return _CODE_FENCE_RE.sub("", text or "").strip()


def translation_instruction(target_language_name: str) -> str:
    return (
        f"Translate the following subtitle text to {target_language_name}. "
        "Maintain the original timing and formatting. Only return the translated "
        "subtitles without any additional text or explanations."
    )


def _http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=True)


async def translate_openai(text: str, target_language_name: str, api_key: str, settings: Settings) -> str:
    """Chat completion with the instruction as the system message."""
    async with AsyncOpenAI(api_key=api_key, timeout=settings.request_timeout) as client:
        response = await client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": translation_instruction(target_language_name)},
                {"role": "user", "content": text},
            ],
        )
    if not response.choices:
        raise RuntimeError("OpenAI returned no choices")
    return response.choices[0].message.content or ""


async def translate_gemini(text: str, target_language_name: str, api_key: str, settings: Settings) -> str:
    """Single prompt generate_content call."""
    prompt = f"{translation_instruction(target_language_name).rstrip('.')}:\n\n{text}"
    client = genai.Client(api_key=api_key)
    try:
        response = await client.aio.models.generate_content(
            model=settings.gemini_model,
            contents=prompt,
        )
    finally:
        await client.aio.aclose()
    return response.text or ""


async def translate_anthropic(text: str, target_language_name: str, api_key: str, settings: Settings) -> str:
    """Messages API; only text-typed content segments are kept."""
    headers = {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }
    payload = {
        "model": settings.anthropic_model,
        "max_tokens": settings.anthropic_max_tokens,
        "messages": [
            {
                "role": "user",
                "content": f"{translation_instruction(target_language_name).rstrip('.')}:\n\n{text}",
            }
        ],
    }
    async with _http_client(settings) as client:
        r = await client.post(ANTHROPIC_MESSAGES_URL, json=payload, headers=headers)
    if r.status_code != HTTP_OK:
        raise RuntimeError(f"Anthropic API failed: {r.status_code} {r.text[:300]}")

    segments = r.json().get("content")
    if not isinstance(segments, list):
        raise RuntimeError("Anthropic response has no content list")
    texts = [
        str(seg.get("text", ""))
        for seg in segments
        if isinstance(seg, dict) and seg.get("type") == "text"
    ]
    return "\n".join(texts).strip()


async def translate_deepseek(text: str, target_language_name: str, api_key: str, settings: Settings) -> str:
    """DeepSeek through OpenRouter's OpenAI-compatible chat endpoint."""
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": settings.openrouter_model,
        "messages": [
            {"role": "system", "content": translation_instruction(target_language_name)},
            {"role": "user", "content": text},
        ],
    }
    async with _http_client(settings) as client:
        r = await client.post(OPENROUTER_CHAT_URL, json=payload, headers=headers)
    if r.status_code != HTTP_OK:
        raise RuntimeError(f"OpenRouter API failed: {r.status_code} {r.text[:300]}")

    data = r.json()
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as e:
        raise RuntimeError(f"Malformed OpenRouter response: {str(data)[:300]}") from e


Adapter = Callable[[str, str, str, Settings], Awaitable[str]]

ADAPTERS: dict[Provider, Adapter] = {
    Provider.OPENAI: translate_openai,
    Provider.GEMINI: translate_gemini,
    Provider.ANTHROPIC: translate_anthropic,
    Provider.DEEPSEEK: translate_deepseek,
}


def resolve_provider(provider: Provider | str) -> Provider:
    try:
        return Provider(provider)
    except ValueError:
        names = ", ".join(p.value for p in Provider)
        raise ValueError(f"Invalid provider {provider!r} (expected one of: {names})") from None


async def translate_text(
    provider: Provider | str,
    text: str,
    target_language_name: str,
    api_key: str,
    settings: Settings | None = None,
) -> str:
    """
    Translate text with the chosen backend.

    Args:
        provider: Backend identity
        text: Subtitle text to translate
        target_language_name: Human-readable language name used in the prompt
        api_key: Credential for the backend
        settings: Model names and timeouts (defaults when omitted)

    Returns:
        Translated text with code fences removed

    Raises:
        BackendError: on any transport, auth or response-shape failure
    """
    provider = resolve_provider(provider)
    settings = settings or Settings()
    adapter = ADAPTERS[provider]

    logger.debug(f"Sending {len(text)} characters to {provider.value}")
    try:
        raw = await adapter(text, target_language_name, api_key, settings)
    except Exception as e:
        raise BackendError(provider, e) from e

    cleaned = strip_code_fences(raw)
    if not cleaned:
        raise BackendError(provider, "empty response")
    logger.debug(f"Received {len(cleaned)} characters from {provider.value}")
    return cleaned
