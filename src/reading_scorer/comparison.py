"""
Word-level comparison of an expected reading text with what the child produced
(speech transcript, typed or handwritten text).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence

from .alignment import AlignmentStep, StepKind, align_words
from .config import ScorerConfig
from .models import (
    ComparisonResult,
    MistakeSeverity,
    MistakeType,
    PerformanceCategory,
    TextMistake,
)
from .phonetics import (
    PhoneticMatcher,
    VietnamesePhoneticMatcher,
    build_phonetic_matcher_from_config,
)
from .textutils import split_words

logger = logging.getLogger(__name__)

# Mistakes that count against the expected words; insertions are extra words.
ACCURACY_MISTAKE_TYPES = frozenset(
    {MistakeType.OMISSION, MistakeType.SUBSTITUTION, MistakeType.MISPRONUNCIATION}
)


def compare_texts(
    original: str,
    spoken: str,
    *,
    matcher: PhoneticMatcher | None = None,
    config: ScorerConfig | None = None,
) -> ComparisonResult:
    """Align both texts and return accuracy, mistakes, matched words and feedback."""
    matcher = _resolve_matcher(matcher, config)
    expected_words = split_words(original)
    actual_words = split_words(spoken)
    steps = align_words(expected_words, actual_words)

    mistakes = _classify_steps(steps, matcher)
    matched = [step.expected for step in steps if step.kind is StepKind.MATCH]
    accuracy = _accuracy_from_mistakes(len(expected_words), mistakes)

    result = ComparisonResult(
        original_text=original,
        spoken_text=spoken,
        accuracy=accuracy,
        mistakes=tuple(mistakes),
        matched_words=tuple(matched),
    )
    logger.debug(
        "Compared %d expected / %d produced words: accuracy=%.3f mistakes=%d",
        len(expected_words),
        len(actual_words),
        accuracy,
        len(mistakes),
    )
    return replace(result, feedback=generate_feedback(result))


def identify_mistakes(
    original: str, spoken: str, *, matcher: PhoneticMatcher | None = None
) -> List[TextMistake]:
    """Return the mistakes between two texts, ordered by expected position."""
    steps = align_words(split_words(original), split_words(spoken))
    return _classify_steps(steps, _resolve_matcher(matcher, None))


def calculate_accuracy(
    original: str, spoken: str, *, matcher: PhoneticMatcher | None = None
) -> float:
    """Ratio of correctly read expected words, using the same alignment as compare_texts."""
    expected_words = split_words(original)
    if not expected_words:
        return 1.0
    mistakes = identify_mistakes(original, spoken, matcher=matcher)
    return _accuracy_from_mistakes(len(expected_words), mistakes)


def find_matched_words(original: str, spoken: str) -> List[str]:
    """Expected words that were produced exactly, in reading order."""
    steps = align_words(split_words(original), split_words(spoken))
    return [step.expected for step in steps if step.kind is StepKind.MATCH]


def generate_feedback(comparison_result: ComparisonResult) -> str:
    """Encouragement message for the accuracy tier of a result."""
    category = PerformanceCategory.from_accuracy(comparison_result.accuracy)
    return f"{category.encouragement_message} {category.emoji}"


def _resolve_matcher(
    matcher: PhoneticMatcher | None, config: ScorerConfig | None
) -> PhoneticMatcher:
    if matcher is not None:
        return matcher
    if config is not None:
        return build_phonetic_matcher_from_config(config)
    return VietnamesePhoneticMatcher()


def _classify_steps(
    steps: Sequence[AlignmentStep], matcher: PhoneticMatcher
) -> List[TextMistake]:
    mistakes: List[TextMistake] = []
    for step in steps:
        if step.kind is StepKind.MATCH:
            continue
        if step.kind is StepKind.DELETION:
            mistake_type, severity = MistakeType.OMISSION, MistakeSeverity.MODERATE
        elif step.kind is StepKind.INSERTION:
            mistake_type, severity = MistakeType.INSERTION, MistakeSeverity.MINOR
        elif matcher.is_close(step.expected, step.actual):
            mistake_type, severity = MistakeType.MISPRONUNCIATION, MistakeSeverity.MINOR
        else:
            mistake_type, severity = MistakeType.SUBSTITUTION, MistakeSeverity.MODERATE
        mistakes.append(
            TextMistake(
                position=step.expected_index,
                expected_word=step.expected,
                actual_word=step.actual,
                mistake_type=mistake_type,
                severity=severity,
            )
        )
    # Alignment already walks expected positions in order; sort stays stable.
    mistakes.sort(key=lambda m: m.position)
    return mistakes


def _accuracy_from_mistakes(total_words: int, mistakes: Sequence[TextMistake]) -> float:
    if total_words == 0:
        return 1.0
    wrong = sum(1 for m in mistakes if m.mistake_type in ACCURACY_MISTAKE_TYPES)
    correct = max(0, total_words - wrong)
    return correct / total_words
