"""
Command-line interface for subtitle translation and generation.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from tqdm import tqdm

from .config import Settings, api_key_from_env
from .media import generate_subtitles
from .models import JobStatus, Provider
from .srt_utils import default_output_name, write_subtitle_file
from .translation import LANGUAGE_NAMES, translate_subtitle_file

logger = logging.getLogger("subtitler")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="AI subtitle translator and generator")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    sub = ap.add_subparsers(dest="command", required=True)

    tr = sub.add_parser("translate", help="Translate a subtitle file chunk by chunk")
    tr.add_argument("input", help="Subtitle file (.srt, .vtt, .txt)")
    tr.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=Provider.OPENAI.value,
        help="Translation backend",
    )
    tr.add_argument("--target-language", "-t", default="en", help="Target language code")
    tr.add_argument("--api-key", default=None, help="Backend API key (defaults to env/.env)")
    tr.add_argument("--output", "-o", default=None, help="Output path (default: translated_subtitles_<lang>.srt)")
    tr.add_argument("--chunk-size", type=int, default=None, help="Max subtitle blocks per request")
    tr.add_argument("--chunk-delay", type=float, default=None, help="Seconds to wait between requests")

    gen = sub.add_parser("generate", help="Generate subtitles from a video with Gemini")
    gen.add_argument("input", help="Video file")
    gen.add_argument("--target-language", "-t", default="en", help="Subtitle language code")
    gen.add_argument("--api-key", default=None, help="Gemini API key (defaults to env/.env)")
    gen.add_argument("--output", "-o", default=None, help="Output path (default: <video>.<lang>.srt)")
    gen.add_argument(
        "--no-translate",
        action="store_true",
        help="Keep the transcript as generated instead of translating it",
    )

    sub.add_parser("languages", help="List supported target languages")

    return ap.parse_args(argv)


async def run_translate(args: argparse.Namespace, settings: Settings) -> int:
    if args.chunk_size is not None:
        settings.max_blocks_per_chunk = args.chunk_size
    if args.chunk_delay is not None:
        settings.chunk_delay = args.chunk_delay
    api_key = args.api_key or api_key_from_env(args.provider) or ""

    with tqdm(total=0, desc="Translating", unit="chunk") as bar:

        def on_progress(done: int, total: int) -> None:
            bar.total = total
            bar.n = done
            bar.refresh()

        job = await translate_subtitle_file(
            args.input,
            args.provider,
            api_key,
            args.target_language,
            settings=settings,
            on_progress=on_progress,
        )

    if job.status == JobStatus.FAILED:
        logger.error(f"Translation failed: {job.error}")
        return 1
    if job.warning:
        logger.warning(job.warning)

    output = args.output or default_output_name(args.target_language)
    write_subtitle_file(job.result or "", output)
    logger.info(f"Saved translated subtitles -> {output}")
    return 0


async def run_generate(args: argparse.Namespace, settings: Settings) -> int:
    if args.no_translate:
        settings.always_translate = False
    api_key = args.api_key or api_key_from_env(Provider.GEMINI) or ""

    with tqdm(total=100, desc="Generating", unit="%") as bar:

        def on_progress(done: int, total: int, stage: str) -> None:
            bar.set_description(stage)
            bar.n = done
            bar.refresh()

        job = await generate_subtitles(
            args.input,
            api_key,
            args.target_language,
            settings=settings,
            on_progress=on_progress,
        )

    if job.status == JobStatus.FAILED:
        logger.error(job.error)
        return 1
    for warning in job.warnings:
        logger.warning(warning)

    output = args.output or str(Path(args.input).with_suffix(f".{args.target_language}.srt"))
    write_subtitle_file(job.result or "", output)
    logger.info(f"Saved generated subtitles -> {output}")
    return 0


async def main_async(argv: list[str] | None = None) -> int:
    """Main async CLI entry point."""
    load_dotenv()

    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "languages":
        for code, name in sorted(LANGUAGE_NAMES.items(), key=lambda kv: kv[1]):
            print(f"{code}\t{name}")
        return 0

    try:
        settings = Settings.from_env()
        if args.command == "translate":
            return await run_translate(args, settings)
        return await run_generate(args, settings)
    except ValueError as e:
        logger.error(str(e))
        return 1


def main() -> None:
    """Main CLI entry point."""
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
