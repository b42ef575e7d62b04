"""Token and word counting helpers."""

from __future__ import annotations

import math
import re

AVG_CHARS_PER_TOKEN = 4

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_PLACEHOLDER_RE = re.compile(r"\[[^\[\]\n]{1,40}\]")


def estimate_tokens(text: str) -> int:
    """ceil(len(text) / 4); 0 for empty text."""
    if not text:
        return 0
    return math.ceil(len(text) / AVG_CHARS_PER_TOKEN)


def count_words(text: str) -> int:
    return len(text.split())


def split_paragraphs(text: str) -> list[str]:
    return [p for p in _PARAGRAPH_SPLIT.split(text.strip()) if p.strip()]


def find_placeholders(*texts: str) -> list[str]:
    """Bracketed placeholders such as "[X%]" or "[N projects]", in order of first use."""
    seen: dict[str, None] = {}
    for text in texts:
        for match in _PLACEHOLDER_RE.findall(text or ""):
            seen.setdefault(match, None)
    return list(seen)


def is_placeholder(text: str) -> bool:
    return bool(_PLACEHOLDER_RE.fullmatch((text or "").strip()))
