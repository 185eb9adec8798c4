import bisect
from typing import List, Optional

from researchmind.models import Chunk, ChunkMetadata, Source

CHUNK_SIZE = 1800
CHUNK_OVERLAP = 200


def _page_for_offset(page_breaks: Optional[List[int]], offset: int) -> Optional[int]:
    if not page_breaks:
        return None
    return max(1, bisect.bisect_right(page_breaks, offset))


def window_starts(length: int, chunk_size: int = CHUNK_SIZE, chunk_overlap: int = CHUNK_OVERLAP) -> List[int]:
    """
    Start offsets of the windows covering a text of ``length`` characters.

    Windows advance by ``chunk_size - chunk_overlap``. A window that would lie
    entirely inside the previous window's overlap is not emitted, so every
    window after the first contributes new text.
    """
    stride = chunk_size - chunk_overlap
    starts = []
    for offset in range(0, length, stride):
        if offset > 0 and offset + chunk_overlap >= length:
            break
        starts.append(offset)
    return starts


def chunk_sources(
    sources: List[Source],
    chunk_size: int = CHUNK_SIZE,
    chunk_overlap: int = CHUNK_OVERLAP,
) -> List[Chunk]:
    """
    Splits every source's text into overlapping fixed-size windows.

    Chunk ids are ``{sourceId}-chunk-{n}`` where ``n`` counts chunks across
    the whole pass, so ids also order chunks across sources. Sources with
    blank content contribute nothing.
    """
    if chunk_size <= 0 or not 0 <= chunk_overlap < chunk_size:
        raise ValueError(f"Invalid chunking window: size={chunk_size}, overlap={chunk_overlap}")

    chunks: List[Chunk] = []
    for source in sources:
        text = source.content
        if not text or not text.strip():
            continue

        for offset in window_starts(len(text), chunk_size, chunk_overlap):
            chunks.append(Chunk(
                id=f"{source.id}-chunk-{len(chunks)}",
                sourceId=source.id,
                content=text[offset:offset + chunk_size],
                metadata=ChunkMetadata(
                    sourceTitle=source.title,
                    page=_page_for_offset(source.pageBreaks, offset),
                ),
            ))

    return chunks
