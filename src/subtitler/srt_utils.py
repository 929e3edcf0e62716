"""
SRT parsing, writing, and subtitle file utilities.
"""

import logging
import re
from pathlib import Path

from .models import SubtitleBlock

logger = logging.getLogger("subtitler")

SUBTITLE_EXTENSIONS = (".srt", ".vtt", ".vvt", ".txt")

_BLOCK_SEP_RE = re.compile(r"\n\s*\n")


def normalize_newlines(text: str) -> str:
    """Convert \\r\\n and bare \\r line endings to \\n."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _split_blocks(text: str) -> list[str]:
    raw = normalize_newlines(text).strip()
    if not raw:
        return []
    return [b for b in _BLOCK_SEP_RE.split(raw) if b.strip()]


def parse_subtitles(text: str) -> list[SubtitleBlock]:
    """Parse subtitle text into blocks.

    The first line of each block is the index (falls back to the 1-based
    position when it is not an integer), the second line is the timing and
    everything after it is content. Malformed input never raises.
    """
    blocks: list[SubtitleBlock] = []
    for pos, raw in enumerate(_split_blocks(text)):
        lines = raw.split("\n")
        try:
            index = int(lines[0].strip())
        except ValueError:
            index = pos + 1
        timing = lines[1] if len(lines) > 1 else ""
        blocks.append(SubtitleBlock(index=index, timing=timing, content=lines[2:]))
    logger.debug(f"Parsed {len(blocks)} subtitle blocks")
    return blocks


def serialize_subtitles(blocks: list[SubtitleBlock]) -> str:
    """Serialize blocks back to subtitle text (inverse of parse_subtitles)."""
    return "\n\n".join(
        f"{b.index}\n{b.timing}\n" + "\n".join(b.content) for b in blocks
    )


def count_subtitle_blocks(text: str) -> int:
    """Count non-empty blank-line separated blocks."""
    return len(_split_blocks(text))


def validate_subtitle_path(path: str) -> Path:
    p = Path(path)
    if p.suffix.lower() not in SUBTITLE_EXTENSIONS:
        raise ValueError(
            f"Please upload a valid subtitle file ({', '.join(SUBTITLE_EXTENSIONS)}): {path}"
        )
    if not p.is_file():
        raise ValueError(f"Subtitle file not found: {path}")
    return p


def read_subtitle_file(path: str) -> str:
    """Read a subtitle file after checking its extension."""
    p = validate_subtitle_path(path)
    # utf-8-sig drops a leading BOM that would otherwise hide the first index
    return p.read_text(encoding="utf-8-sig")


def write_subtitle_file(text: str, path: str) -> None:
    """Write subtitle text to path, creating parent directories."""
    p = Path(path)
    if p.parent:
        p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        f.write(text)
        if text and not text.endswith("\n"):
            f.write("\n")


def default_output_name(target_language: str) -> str:
    return f"translated_subtitles_{target_language}.srt"
