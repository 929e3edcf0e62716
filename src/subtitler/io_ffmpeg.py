"""
Audio extraction utilities using ffmpeg.
"""

import logging
import subprocess
from pathlib import Path

from pydub import AudioSegment

logger = logging.getLogger("subtitler")

VIDEO_EXTENSIONS = (".mp4", ".mov", ".mkv", ".webm", ".avi", ".m4v", ".mpeg", ".mpg")


class ExtractionError(RuntimeError):
    """ffmpeg could not produce a usable audio track."""


def run(cmd: list[str], *, check: bool = True) -> str:
    """Run a shell command and return stdout."""
    logger.debug("Running: %s", " ".join(map(str, cmd)))
    try:
        proc = subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, check=False
        )
    except FileNotFoundError as e:
        raise ExtractionError(f"{cmd[0]} is not installed or not on PATH") from e
    if proc.returncode != 0 and check:
        logger.error("Command failed with code %d: %s", proc.returncode, proc.stdout)
        tail = proc.stdout.strip().splitlines()[-1:] if proc.stdout else []
        msg = f"Command failed with code {proc.returncode}"
        if tail:
            msg += f": {tail[0]}"
        raise ExtractionError(msg)
    return proc.stdout


def ensure_dir(path: str) -> None:
    """Ensure directory exists."""
    if path:
        Path(path).mkdir(parents=True, exist_ok=True)


def validate_video_path(path: str) -> Path:
    p = Path(path)
    if p.suffix.lower() not in VIDEO_EXTENSIONS:
        raise ValueError(f"Please upload a valid video file ({', '.join(VIDEO_EXTENSIONS)}): {path}")
    if not p.is_file():
        raise ValueError(f"Video file not found: {path}")
    return p


def extract_audio(input_video: str, out_mp3: str, sample_rate: int = 16000, bitrate: str = "64k") -> None:
    """Extract a mono, low-bitrate MP3 track suited to speech recognition."""
    ensure_dir(str(Path(out_mp3).parent))
    cmd = [
        "ffmpeg",
        "-y",
        "-i",
        input_video,
        "-vn",
        "-acodec",
        "libmp3lame",
        "-ar",
        str(sample_rate),
        "-ac",
        "1",
        "-b:a",
        bitrate,
        "-compression_level",
        "0",
        out_mp3,
    ]
    run(cmd)


def audio_duration_seconds(path: str) -> float:
    """Duration of an audio file in seconds."""
    return len(AudioSegment.from_file(path)) / 1000.0
