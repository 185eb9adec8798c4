import logging
import re
from typing import List

from researchmind.models import Chunk
from researchmind.prompts import CHUNK_TAG
from researchmind.services import RankingService

logger = logging.getLogger(__name__)

FALLBACK_CHUNKS = 10

_LEADING_INT = re.compile(r"[+-]?\d+")


def build_ranking_context(chunks: List[Chunk]) -> str:
    """Concatenates chunk contents, each tagged with its position."""
    return "\n\n".join(CHUNK_TAG.format(index=i, content=c.content) for i, c in enumerate(chunks))


def parse_indices(text: str) -> List[int]:
    """
    Parses a comma-separated list of integers.

    Each item is read up to its first non-digit, so "3." or " 12 " parse while
    "abc" or "[1" are skipped.
    """
    indices = []
    for item in (text or "").split(","):
        m = _LEADING_INT.match(item.strip())
        if m:
            indices.append(int(m.group()))
    return indices


def select_chunks(indices: List[int], chunks: List[Chunk]) -> List[Chunk]:
    """Maps in-range indices back to chunks in the given order, first occurrence wins."""
    valid = [i for i in indices if 0 <= i < len(chunks)]
    return [chunks[i] for i in dict.fromkeys(valid)]


async def retrieve(
    topic: str,
    chunks: List[Chunk],
    ranker: RankingService,
    fallback_count: int = FALLBACK_CHUNKS,
) -> List[Chunk]:
    """
    Selects the chunks most relevant to ``topic`` using the ranking service.

    Never raises: an empty or unusable ranking, or a failed call, yields the
    first ``fallback_count`` chunks in their original order.
    """
    if not chunks:
        return []

    fallback = chunks[:fallback_count]
    try:
        response = await ranker.select(topic, build_ranking_context(chunks))
    except Exception as e:
        logger.warning("Ranking call failed, using the first %d chunks: %s", len(fallback), e)
        return fallback

    selected = select_chunks(parse_indices(response), chunks)
    if not selected:
        logger.warning("Ranking response had no usable indices (%r), using the first %d chunks",
                       (response or "")[:80], len(fallback))
        return fallback

    logger.info("Selected %d of %d chunks for topic %r", len(selected), len(chunks), topic)
    return selected
