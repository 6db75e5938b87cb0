"""Structure-aware chunk builder.

Walks the normalised line stream once, tracking the current book, chapter
and section. Book and chapter headings always close the open chunk, so no
chunk spans two chapters. Section headings close it only once it has grown
past ``min_chunk_size``. Oversized buffers are cut on the last paragraph
break when there is one, otherwise hard-cut. Each emitted chunk is prefixed
with the tail of the previous one (reset at every new book).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from enghien.chunking.normalizer import normalize, page_number
from enghien.chunking.schemas import (
    BookHeading,
    ChapterHeading,
    Chunk,
    ChunkMetadata,
    SectionHeading,
    book_title,
)
from enghien.chunking.segmenter import classify

logger = logging.getLogger(__name__)

MIN_CHUNK_SIZE = 1500
MAX_CHUNK_SIZE = 2500
OVERLAP_SIZE = 300
MIN_EMIT_SIZE = 100

_PARAGRAPH_BREAK = re.compile(r"\n\n+")


@dataclass
class _BuildState:
    book: str
    chapter: str = ""
    section: str | None = None
    buffer: str = ""
    pending_pages: list[int] = field(default_factory=list)
    sequence_index: int = 0
    overlap_tail: str = ""
    chunks: list[Chunk] = field(default_factory=list)


class ChunkBuilder:
    """Turn normalised text into overlapping, metadata-tagged chunks."""

    def __init__(
        self,
        min_chunk_size: int = MIN_CHUNK_SIZE,
        max_chunk_size: int = MAX_CHUNK_SIZE,
        overlap_size: int = OVERLAP_SIZE,
        min_emit_size: int = MIN_EMIT_SIZE,
        initial_book: str = "I",
    ):
        self.min_chunk_size = min_chunk_size
        self.max_chunk_size = max_chunk_size
        self.overlap_size = overlap_size
        self.min_emit_size = min_emit_size
        self.initial_book = initial_book

    def build(self, text: str) -> list[Chunk]:
        """Split already-normalised text into chunks.

        Args:
            text: Output of :func:`enghien.chunking.normalizer.normalize`.

        Returns:
            Chunks in document order, ``sequence_index`` starting at 0.
        """
        state = _BuildState(book=self.initial_book)

        for line in text.split("\n"):
            self._consume(state, line)

        self._flush(state)

        logger.info(
            "ChunkBuilder produced %d chunks from %d chars",
            len(state.chunks), len(text),
        )
        return state.chunks

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _consume(self, state: _BuildState, line: str) -> None:
        page = page_number(line)
        if page is not None:
            state.pending_pages.append(page)
            return

        event = classify(line)
        if isinstance(event, BookHeading):
            self._flush(state)
            state.book = event.id
            state.chapter = ""
            state.section = None
            state.overlap_tail = ""
        elif isinstance(event, ChapterHeading):
            self._flush(state)
            state.chapter = event.id
            state.section = None
        elif isinstance(event, SectionHeading):
            if len(state.buffer) > self.min_chunk_size:
                self._flush(state)
            state.section = event.label

        state.buffer += line + "\n"

        if len(state.buffer) > self.max_chunk_size:
            self._split(state)

    def _split(self, state: _BuildState) -> None:
        paragraphs = [p for p in _PARAGRAPH_BREAK.split(state.buffer) if p.strip()]

        if len(paragraphs) > 1:
            held_back = paragraphs.pop()
            head = "\n\n".join(paragraphs)
            # A head too short to emit would be dropped; hard-cut instead.
            if len(head.strip()) >= self.min_emit_size:
                state.buffer = head
                self._flush(state)
                state.buffer = held_back + "\n"
                return

        self._flush(state)

    def _flush(self, state: _BuildState) -> None:
        body = state.buffer.strip()
        if len(body) < self.min_emit_size:
            # Pending pages are kept for the next chunk.
            state.buffer = ""
            return

        pages = state.pending_pages
        metadata = ChunkMetadata(
            book=state.book,
            book_title=book_title(state.book),
            chapter=state.chapter,
            section=state.section,
            page_start=min(pages) if pages else 0,
            page_end=max(pages) if pages else 0,
            sequence_index=state.sequence_index,
        )
        state.chunks.append(Chunk(content=state.overlap_tail + body, metadata=metadata))

        state.overlap_tail = body[-self.overlap_size:] + "\n\n" if self.overlap_size > 0 else ""
        state.pending_pages = []
        state.buffer = ""
        state.sequence_index += 1


def chunk_text(raw: str, builder: ChunkBuilder | None = None) -> list[Chunk]:
    """Normalise raw OCR text and build chunks in one step."""
    return (builder or ChunkBuilder()).build(normalize(raw))
