"""
Chunking of subtitle blocks into batches sized for a single backend call.
"""

import logging

from .models import SubtitleBlock

logger = logging.getLogger("subtitler")

MAX_BLOCKS_PER_CHUNK = 100
MAX_CHUNK_CHARS = 4000


def check_chunk_limits(max_blocks_per_chunk: int, max_chars: int) -> None:
    if max_blocks_per_chunk < 1:
        raise ValueError(f"max_blocks_per_chunk must be >= 1, got {max_blocks_per_chunk}")
    if max_chars < 1:
        raise ValueError(f"max_chars must be >= 1, got {max_chars}")


def chunk_subtitles(
    blocks: list[SubtitleBlock],
    max_blocks_per_chunk: int = MAX_BLOCKS_PER_CHUNK,
    *,
    max_chars: int = MAX_CHUNK_CHARS,
) -> list[list[SubtitleBlock]]:
    """
    Pack consecutive blocks into chunks of at most max_blocks_per_chunk blocks
    and max_chars characters of content. Never split a block: one that alone
    exceeds max_chars gets a chunk of its own.
    """
    check_chunk_limits(max_blocks_per_chunk, max_chars)

    chunks: list[list[SubtitleBlock]] = []
    cur: list[SubtitleBlock] = []
    cur_size = 0

    for block in blocks:
        size = block.size
        if cur and (len(cur) >= max_blocks_per_chunk or cur_size + size > max_chars):
            chunks.append(cur)
            cur = []
            cur_size = 0
        cur.append(block)
        cur_size += size

    if cur:
        chunks.append(cur)

    logger.info(f"Created {len(chunks)} chunks from {len(blocks)} blocks")
    return chunks
