"""
Data models for the subtitle translation and generation pipelines.
"""

from dataclasses import dataclass, field
from enum import Enum


class Provider(str, Enum):
    """Translation backend identity."""

    OPENAI = "openai"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"
    DEEPSEEK = "deepseek"


class JobStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    SUCCEEDED_WITH_WARNINGS = "succeeded-with-warnings"
    FAILED = "failed"


class MediaStage(str, Enum):
    """Stages of the video -> subtitles pipeline, in order."""

    PREPARING = "preparing"
    EXTRACTING_AUDIO = "extracting-audio"
    GENERATING_SUBTITLES = "generating-subtitles"
    TRANSLATING_SUBTITLES = "translating-subtitles"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class SubtitleBlock:
    """A single caption with its sequence number, raw timecode line and text lines."""

    index: int
    timing: str  # kept verbatim, e.g. "00:00:01,000 --> 00:00:02,000"
    content: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len("\n".join(self.content))


@dataclass
class TranslationJob:
    """State of one translate invocation."""

    source_text: str
    provider: Provider
    target_language: str
    target_language_name: str = ""
    status: JobStatus = JobStatus.IDLE
    completed_chunks: int = 0
    total_chunks: int = 0
    failed_chunks: list[int] = field(default_factory=list)
    blocks: list[SubtitleBlock] = field(default_factory=list)
    result: str | None = None
    warning: str | None = None
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.status in (
            JobStatus.SUCCEEDED,
            JobStatus.SUCCEEDED_WITH_WARNINGS,
            JobStatus.FAILED,
        )


@dataclass
class MediaJob:
    """State of one video -> subtitles invocation."""

    video_path: str
    target_language: str
    stage: MediaStage = MediaStage.PREPARING
    progress: int = 0
    status: JobStatus = JobStatus.IDLE
    audio_seconds: float = 0.0
    transcript: str | None = None
    result: str | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None
