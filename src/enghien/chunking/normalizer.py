"""OCR text normalisation.

Cleans the raw full-text export before line-oriented segmentation. Page
boundary lines such as ``— 42 —`` become an inline ``[[PAGE:42]]`` tag so
page numbers survive as ordinary lines.
"""

from __future__ import annotations

import re

_PAGE_MARKER = re.compile(r"^[ \t]*[—–-][ \t]*(\d+)[ \t]*[—–-][ \t]*$", re.MULTILINE)
_PAGE_TAG = re.compile(r"^\[\[PAGE:(\d+)\]\]$")

_HORIZONTAL_WS = re.compile(r"[ \t\f\v]+")
_TRAILING_WS = re.compile(r" +$", re.MULTILINE)
_BLANK_RUNS = re.compile(r"\n{3,}")

# Fixed OCR corrections: (pattern, replacement, note).
#
# These are context-free substitutions. The lone "k" rule is known to be
# lossy: a legitimate isolated "k" in the text is rewritten too.
OCR_CORRECTIONS: list[tuple[re.Pattern[str], str, str]] = [
    (re.compile(r"\bk\b"), "à", "isolated 'k' is a frequent misread of 'à'"),
    (re.compile(r"(\w)[’‘](\w)"), r"\1'\2", "typographic apostrophe inside a word"),
]


def page_tag(page: int | str) -> str:
    return f"[[PAGE:{page}]]"


def page_number(line: str) -> int | None:
    """Return the page number if *line* is a ``[[PAGE:n]]`` tag line."""
    m = _PAGE_TAG.match(line.strip())
    return int(m.group(1)) if m else None


def normalize(raw: str) -> str:
    """Normalise raw OCR text. Pure and deterministic."""
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = _PAGE_MARKER.sub(lambda m: page_tag(m.group(1)), text)
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _TRAILING_WS.sub("", text)

    for pattern, replacement, _note in OCR_CORRECTIONS:
        text = pattern.sub(replacement, text)

    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip()
