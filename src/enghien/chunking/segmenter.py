"""Line classification into book / chapter / section headings."""

from __future__ import annotations

import re
from collections.abc import Callable

from enghien.chunking.schemas import (
    BookHeading,
    ChapterHeading,
    SectionHeading,
    StructuralEvent,
)

# ---------------------------------------------------------------------------
# Heading table, evaluated in priority order. First match wins.
# ---------------------------------------------------------------------------

_HEADINGS: list[tuple[re.Pattern[str], Callable[[re.Match[str]], StructuralEvent]]] = [
    (
        re.compile(r"^LIVRE\s+([IVX]+)\b"),
        lambda m: BookHeading(m.group(1)),
    ),
    (
        re.compile(r"^CHAPITRE\s+([IVX]+)\b"),
        lambda m: ChapterHeading(m.group(1)),
    ),
    (
        re.compile(r"^§\s*(\d+(?:er)?)\.\s*[—-]?\s*(.+)$"),
        lambda m: SectionHeading(m.group(1), m.group(2).strip()),
    ),
]


def classify(line: str) -> StructuralEvent | None:
    """Classify a single line. ``None`` means ordinary body text."""
    for pattern, make_event in _HEADINGS:
        m = pattern.match(line)
        if m:
            return make_event(m)
    return None
