from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List

WHITESPACE_RE = re.compile(r"\s+", re.UNICODE)


def normalize_text(value: object) -> str:
    """Normalize arbitrary text so expected and produced texts share identical words."""
    if not isinstance(value, str):
        value = str(value)
    # NFC keeps precomposed Vietnamese vowels comparable across input methods.
    normalized = unicodedata.normalize("NFC", value)
    normalized = normalized.lower()
    normalized = WHITESPACE_RE.sub(" ", normalized)
    return normalized.strip()


def strip_word_punctuation(word: str) -> str:
    """Remove punctuation and symbols from both ends of a word, keeping inner characters."""
    start = 0
    end = len(word)
    while start < end and _is_boundary_char(word[start]):
        start += 1
    while end > start and _is_boundary_char(word[end - 1]):
        end -= 1
    return word[start:end]


def iter_words(value: object) -> Iterable[str]:
    """Yield normalized words, dropping tokens that were only punctuation."""
    for raw in normalize_text(value).split(" "):
        word = strip_word_punctuation(raw)
        if word:
            yield word


def split_words(value: object) -> List[str]:
    """Return the normalized word list for a text; empty input yields []."""
    return list(iter_words(value))


def _is_boundary_char(char: str) -> bool:
    category = unicodedata.category(char)
    # P* punctuation, S* symbols (quotes, currency, emoji).
    return category[0] in {"P", "S"}
