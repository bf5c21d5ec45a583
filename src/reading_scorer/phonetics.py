from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from .config import ScorerConfig

__all__ = [
    "DEFAULT_CONFUSABLE_PAIRS",
    "PhoneticMatcher",
    "VietnamesePhoneticMatcher",
    "NullPhoneticMatcher",
    "levenshtein_distance",
    "create_phonetic_matcher",
    "build_phonetic_matcher_from_config",
]

# Consonant clusters children (and speech recognizers) commonly swap in
# Vietnamese. Each pair is applied in both directions.
DEFAULT_CONFUSABLE_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("d", "gi"),
    ("tr", "ch"),
    ("s", "x"),
    ("c", "k"),
    ("th", "t"),
    ("ph", "f"),
    ("qu", "kw"),
    ("n", "l"),
    ("r", "d"),
)


def levenshtein_distance(a: str, b: str) -> int:
    """Character-level edit distance using a rolling row."""
    if len(a) < len(b):
        return levenshtein_distance(b, a)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a):
        current = [i + 1]
        for j, char_b in enumerate(b):
            cost = 0 if char_a == char_b else 1
            current.append(min(current[j] + 1, previous[j + 1] + 1, previous[j] + cost))
        previous = current
    return previous[len(b)]


class PhoneticMatcher(ABC):
    """Decides whether a wrong word is a near-miss pronunciation of the expected one."""

    @abstractmethod
    def is_close(self, expected: str, actual: str) -> bool:
        """Return True when ``actual`` sounds like ``expected``."""
        raise NotImplementedError


class NullPhoneticMatcher(PhoneticMatcher):
    """Treats every differing word as a plain substitution."""

    def is_close(self, expected: str, actual: str) -> bool:
        return False


class VietnamesePhoneticMatcher(PhoneticMatcher):
    """
    Close when swapping one confusable cluster turns one word into the other,
    or when both words are long enough and differ by a single character edit.
    Words are expected to be normalized already.
    """

    def __init__(
        self,
        pairs: Iterable[Sequence[str]] = DEFAULT_CONFUSABLE_PAIRS,
        *,
        max_edit_distance: int = 1,
        min_word_length: int = 3,
    ) -> None:
        normalized: list[Tuple[str, str]] = []
        for pair in pairs:
            if len(pair) != 2 or not pair[0] or not pair[1]:
                raise ValueError(f"Confusable pair must hold two non-empty strings: {pair!r}")
            normalized.append((pair[0].lower(), pair[1].lower()))
        self._pairs: Tuple[Tuple[str, str], ...] = tuple(normalized)
        self._max_edit_distance = max_edit_distance
        self._min_word_length = min_word_length

    @property
    def pairs(self) -> Tuple[Tuple[str, str], ...]:
        return self._pairs

    def is_close(self, expected: str, actual: str) -> bool:
        if not expected or not actual or expected == actual:
            return False
        if self._matches_confusable_pair(expected, actual):
            return True
        if min(len(expected), len(actual)) < self._min_word_length:
            return False
        return levenshtein_distance(expected, actual) <= self._max_edit_distance

    def _matches_confusable_pair(self, expected: str, actual: str) -> bool:
        for first, second in self._pairs:
            for source, target in ((first, second), (second, first)):
                if source in expected and expected.replace(source, target) == actual:
                    return True
                if source in actual and actual.replace(source, target) == expected:
                    return True
        return False


def create_phonetic_matcher(name: str, **kwargs: Any) -> PhoneticMatcher:
    """Factory for building phonetic matchers by name."""
    normalized = name.lower().strip()
    if normalized in {"vietnamese", "vi", "default"}:
        return VietnamesePhoneticMatcher(**kwargs)
    if normalized in {"none", "null", "off"}:
        return NullPhoneticMatcher()
    raise ValueError(f"Unknown phonetic matcher '{name}'.")


def build_phonetic_matcher_from_config(config: "ScorerConfig") -> PhoneticMatcher:
    """Convenience helper to build a matcher from ScorerConfig.comparison."""
    settings = config.comparison
    normalized = settings.phonetic_matcher.lower().strip()
    if normalized in {"none", "null", "off"}:
        return create_phonetic_matcher(normalized)
    pairs = list(DEFAULT_CONFUSABLE_PAIRS)
    pairs.extend(tuple(pair) for pair in settings.extra_confusable_pairs)
    return create_phonetic_matcher(
        settings.phonetic_matcher,
        pairs=pairs,
        max_edit_distance=settings.max_edit_distance,
        min_word_length=settings.min_word_length,
    )
