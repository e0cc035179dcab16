"""Text chunking service for RAG ingestion.

Text is split on the most meaningful boundary available, falling back level by
level (headings, blank lines, line breaks, sentence punctuation) and finally to
fixed-size windows. Adjacent small pieces are merged back up to the chunk size,
then every chunk after the first is extended backwards by the overlap.
Offsets are character offsets into the original text.
"""

import re
from enum import IntEnum
from typing import Callable, Dict, List, NamedTuple, Optional

from rag_engine.config import get_settings
from rag_engine.models.chunk import TextChunk
from rag_engine.utils.errors import ChunkingError
from rag_engine.utils.logging import get_logger

logger = get_logger("chunking_service")
settings = get_settings()

DEFAULT_CHUNK_SIZE = 800
DEFAULT_CHUNK_OVERLAP = 150

_HEADING_PATTERN = re.compile(r"^#{1,3}\s.+$", re.MULTILINE)
_SENTENCE_END_PATTERN = re.compile(r"[。.]")


class Span(NamedTuple):
    """Half-open character range ``[start, end)``."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


class BoundaryLevel(IntEnum):
    """Split boundaries, from most to least meaningful."""

    HEADING = 0
    PARAGRAPH = 1
    LINE = 2
    SENTENCE = 3
    FORCED = 4

    def next(self) -> "BoundaryLevel":
        return BoundaryLevel(min(self + 1, BoundaryLevel.FORCED))


def find_heading_points(text: str, start: int, end: int) -> List[int]:
    """Positions just before each markdown heading (levels 1-3) after the span start."""
    points = []
    for match in _HEADING_PATTERN.finditer(text[start:end]):
        point = start + match.start()
        if point > start:
            points.append(point)
    return points


def _find_separator_points(text: str, start: int, end: int, separator: str) -> List[int]:
    points = []
    cursor = start
    while cursor < end:
        index = text.find(separator, cursor)
        if index == -1 or index >= end:
            break
        point = index + len(separator)
        if start < point < end:
            points.append(point)
        cursor = point
    return points


def find_paragraph_points(text: str, start: int, end: int) -> List[int]:
    """Positions just after each blank-line separator."""
    return _find_separator_points(text, start, end, "\n\n")


def find_line_points(text: str, start: int, end: int) -> List[int]:
    """Positions just after each line break."""
    return _find_separator_points(text, start, end, "\n")


def find_sentence_points(text: str, start: int, end: int) -> List[int]:
    """Positions just after each full stop (ASCII or CJK)."""
    points = []
    for match in _SENTENCE_END_PATTERN.finditer(text[start:end]):
        point = start + match.start() + 1
        if start < point < end:
            points.append(point)
    return points


_POINT_FINDERS: Dict[BoundaryLevel, Callable[[str, int, int], List[int]]] = {
    BoundaryLevel.HEADING: find_heading_points,
    BoundaryLevel.PARAGRAPH: find_paragraph_points,
    BoundaryLevel.LINE: find_line_points,
    BoundaryLevel.SENTENCE: find_sentence_points,
}


def _split_at(span: Span, points: List[int]) -> List[Span]:
    spans = []
    cursor = span.start
    for point in points:
        if point <= cursor or point >= span.end:
            continue
        spans.append(Span(cursor, point))
        cursor = point
    if cursor < span.end:
        spans.append(Span(cursor, span.end))
    return spans


def _force_split(span: Span, chunk_size: int) -> List[Span]:
    return [
        Span(cursor, min(cursor + chunk_size, span.end))
        for cursor in range(span.start, span.end, chunk_size)
    ]


def _merge_small(spans: List[Span], chunk_size: int) -> List[Span]:
    merged: List[Span] = []
    pending: Optional[Span] = None
    for span in spans:
        if pending is None:
            pending = span
        elif span.end - pending.start <= chunk_size:
            pending = Span(pending.start, span.end)
        else:
            merged.append(pending)
            pending = span
    if pending is not None:
        merged.append(pending)
    return merged


def _split_span(text: str, span: Span, level: BoundaryLevel, chunk_size: int) -> List[Span]:
    if span.length <= chunk_size:
        return [span]

    if level == BoundaryLevel.FORCED:
        return _force_split(span, chunk_size)

    points = _POINT_FINDERS[level](text, span.start, span.end)
    if not points:
        return _split_span(text, span, level.next(), chunk_size)

    pieces: List[Span] = []
    for piece in _split_at(span, points):
        if piece.length <= chunk_size:
            pieces.append(piece)
        else:
            pieces.extend(_split_span(text, piece, level.next(), chunk_size))

    return _merge_small(pieces, chunk_size)


def _stitch_overlap(
    text: str, spans: List[Span], chunk_size: int, chunk_overlap: int
) -> List[TextChunk]:
    chunks: List[TextChunk] = []
    for position, span in enumerate(spans):
        start = span.start
        if position > 0:
            start = max(0, span.start - chunk_overlap)
        if span.end - start > chunk_size:
            start = span.end - chunk_size

        content = text[start : span.end]
        if not content.strip():
            continue

        chunks.append(
            TextChunk(
                content=content,
                chunk_index=len(chunks),
                start_offset=start,
                end_offset=span.end,
            )
        )
    return chunks


def split_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[TextChunk]:
    """
    Split text into overlapping, boundary-aware chunks.

    Args:
        text: Source text
        chunk_size: Maximum chunk length in characters
        chunk_overlap: Characters each chunk reaches back into its predecessor

    Returns:
        Chunks in document order; empty for blank text

    Raises:
        ChunkingError: If the parameters are invalid
    """
    if text is None:
        raise ChunkingError("Text is None")
    if chunk_size <= 0:
        raise ChunkingError("chunk_size must be > 0", details={"chunk_size": chunk_size})
    if chunk_overlap < 0:
        raise ChunkingError("chunk_overlap must be >= 0", details={"chunk_overlap": chunk_overlap})

    if not text.strip():
        return []

    spans = _split_span(text, Span(0, len(text)), BoundaryLevel.HEADING, chunk_size)
    return _stitch_overlap(text, spans, chunk_size, chunk_overlap)


class ChunkingService:
    """Chunker using the configured chunk size and overlap."""

    def split(
        self,
        text: str,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> List[TextChunk]:
        """
        Split text with settings defaults.

        Args:
            text: Source text
            chunk_size: Maximum chunk length (defaults to settings.chunking.chunk_size)
            chunk_overlap: Overlap length (defaults to settings.chunking.chunk_overlap)

        Returns:
            List of TextChunk instances
        """
        chunk_size = chunk_size if chunk_size is not None else settings.chunking.chunk_size
        chunk_overlap = (
            chunk_overlap if chunk_overlap is not None else settings.chunking.chunk_overlap
        )

        chunks = split_text(text, chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        logger.debug(
            f"Chunked text: length={len(text)}, chunks={len(chunks)}, "
            f"chunk_size={chunk_size}, overlap={chunk_overlap}"
        )
        return chunks
