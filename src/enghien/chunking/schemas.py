"""Data models for chunks and structural events."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

# Titles of the four books of the 1876 edition.
BOOK_TITLES: dict[str, str] = {
    "I": "Histoire et généalogie",
    "II": "Organisation administrative",
    "III": "Culte et Bienfaisance",
    "IV": "Institutions scientifiques",
}


def book_title(book: str) -> str:
    return BOOK_TITLES.get(book, "")


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata carried by each chunk — stored alongside embeddings.

    ``page_start``/``page_end`` are both 0 when no page marker was seen in
    the chunk's span.
    """

    book: str = ""
    book_title: str = ""
    chapter: str = ""
    section: str | None = None
    page_start: int = 0
    page_end: int = 0
    sequence_index: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChunkMetadata:
        book = str(data.get("book", ""))
        return cls(
            book=book,
            book_title=data.get("book_title") or book_title(book),
            chapter=str(data.get("chapter", "")),
            section=data.get("section"),
            page_start=int(data.get("page_start", 0)),
            page_end=int(data.get("page_end", 0)),
            sequence_index=int(data.get("sequence_index", 0)),
        )


@dataclass(frozen=True)
class Chunk:
    """A bounded, metadata-tagged span of source text ready for embedding."""

    content: str
    metadata: ChunkMetadata

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content, "metadata": self.metadata.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Chunk:
        return cls(
            content=data["content"],
            metadata=ChunkMetadata.from_dict(data.get("metadata", {})),
        )


# ---------------------------------------------------------------------------
# Structural events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BookHeading:
    id: str


@dataclass(frozen=True)
class ChapterHeading:
    id: str


@dataclass(frozen=True)
class SectionHeading:
    id: str
    title: str

    @property
    def label(self) -> str:
        return f"§ {self.id}. — {self.title}"


StructuralEvent = BookHeading | ChapterHeading | SectionHeading
