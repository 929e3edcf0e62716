"""
Runtime settings and credential lookup from the environment.
"""

import os
from dataclasses import dataclass, fields

from .models import Provider

# Environment variables holding API keys, first match wins
API_KEY_ENV = {
    Provider.OPENAI: ("OPENAI_API_KEY",),
    Provider.GEMINI: ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    Provider.ANTHROPIC: ("ANTHROPIC_API_KEY",),
    Provider.DEEPSEEK: ("OPENROUTER_API_KEY",),
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class Settings:
    """Model names, chunking limits and pacing for both pipelines."""

    openai_model: str = "gpt-4o"
    gemini_model: str = "gemini-2.0-flash"
    gemini_transcribe_model: str = "gemini-2.5-pro"
    anthropic_model: str = "claude-3-7-sonnet-20250219"
    openrouter_model: str = "deepseek/deepseek-chat"
    anthropic_max_tokens: int = 4096
    max_blocks_per_chunk: int = 100
    max_chunk_chars: int = 4000
    chunk_delay: float = 1.0  # seconds between chunks
    request_timeout: float = 120.0
    # Re-translate generated subtitles even when they may already be in the target language
    always_translate: bool = True

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from SUBTITLER_<FIELD> variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            name = f"SUBTITLER_{f.name.upper()}"
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                continue
            values[f.name] = _coerce(name, raw.strip(), f.default)
        return cls(**values)


def _coerce(name: str, raw: str, default):
    if isinstance(default, bool):
        low = raw.lower()
        if low in _TRUE:
            return True
        if low in _FALSE:
            return False
        raise ValueError(f"{name} must be a boolean, got {raw!r}")
    try:
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    return raw


def api_key_from_env(provider: Provider | str, environ: dict[str, str] | None = None) -> str | None:
    """Return the API key for provider from the environment, or None."""
    env = os.environ if environ is None else environ
    for var in API_KEY_ENV[Provider(provider)]:
        value = env.get(var)
        if value:
            return value
    return None
