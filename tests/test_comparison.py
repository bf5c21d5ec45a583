import pytest

from reading_scorer.comparison import (
    calculate_accuracy,
    compare_texts,
    find_matched_words,
    generate_feedback,
    identify_mistakes,
)
from reading_scorer.models import (
    ComparisonResult,
    MistakeSeverity,
    MistakeType,
    PerformanceCategory,
    TextMistake,
)
from reading_scorer.phonetics import NullPhoneticMatcher

SENTENCE = "Con mèo ngồi trên thảm"


def test_exact_match_is_perfect():
    result = compare_texts(SENTENCE, SENTENCE)

    assert result.accuracy == 1.0
    assert result.mistakes == ()
    assert result.is_perfect
    assert result.total_words == 5
    assert result.correct_words == 5
    assert result.performance_category is PerformanceCategory.EXCELLENT
    assert result.matched_words == ("con", "mèo", "ngồi", "trên", "thảm")


def test_case_punctuation_and_whitespace_are_ignored():
    """Normalization folds case, strips boundary punctuation and collapses spaces."""
    pairs = [
        ("CON MÈO NGỒI", "con mèo ngồi"),
        ("Con mèo ngồi trên thảm!", "Con mèo ngồi trên thảm?"),
        ("  Con   mèo \n ngồi  ", "Con mèo ngồi"),
        ("“Con mèo,” ngồi.", "con mèo ngồi"),
    ]
    for original, spoken in pairs:
        result = compare_texts(original, spoken)
        assert result.accuracy == 1.0, (original, spoken)
        assert not result.mistakes, (original, spoken)


def test_single_substitution():
    result = compare_texts(SENTENCE, "Con mèo ngồi trên ghế")

    assert result.accuracy == pytest.approx(0.8)
    assert len(result.mistakes) == 1
    mistake = result.mistakes[0]
    assert mistake.position == 4
    assert mistake.expected_word == "thảm"
    assert mistake.actual_word == "ghế"
    assert mistake.mistake_type is MistakeType.SUBSTITUTION
    assert mistake.severity is MistakeSeverity.MODERATE


def test_multiple_substitutions_keep_order():
    result = compare_texts(SENTENCE, "Con chó đứng dưới thảm")

    assert result.accuracy == pytest.approx(0.4)
    assert [(m.expected_word, m.actual_word) for m in result.mistakes] == [
        ("mèo", "chó"),
        ("ngồi", "đứng"),
        ("trên", "dưới"),
    ]
    assert [m.position for m in result.mistakes] == [1, 2, 3]
    assert all(m.mistake_type is MistakeType.SUBSTITUTION for m in result.mistakes)


def test_single_omission():
    result = compare_texts(SENTENCE, "Con mèo trên thảm")

    assert result.accuracy == pytest.approx(0.8)
    assert len(result.mistakes) == 1
    mistake = result.mistakes[0]
    assert mistake.expected_word == "ngồi"
    assert mistake.actual_word == ""
    assert mistake.position == 2
    assert mistake.mistake_type is MistakeType.OMISSION
    assert mistake.severity is MistakeSeverity.MODERATE


def test_multiple_omissions():
    result = compare_texts(SENTENCE, "Con mèo thảm")

    assert result.accuracy == pytest.approx(0.6)
    omitted = {m.expected_word for m in result.mistakes}
    assert omitted == {"ngồi", "trên"}
    assert all(m.mistake_type is MistakeType.OMISSION for m in result.mistakes)


def test_insertion_is_recorded_but_does_not_reduce_accuracy():
    result = compare_texts(SENTENCE, "Con mèo nhỏ ngồi trên thảm")

    assert len(result.mistakes) == 1
    mistake = result.mistakes[0]
    assert mistake.expected_word == ""
    assert mistake.actual_word == "nhỏ"
    assert mistake.mistake_type is MistakeType.INSERTION
    assert mistake.severity is MistakeSeverity.MINOR
    assert mistake.position == 2
    assert result.accuracy == 1.0
    assert result.correct_words == 5
    assert not result.is_perfect


def test_trailing_insertion_points_past_last_word():
    mistakes = identify_mistakes("Con mèo", "Con mèo con")

    assert len(mistakes) == 1
    assert mistakes[0].position == 2
    assert mistakes[0].mistake_type is MistakeType.INSERTION


def test_th_to_t_is_a_mispronunciation():
    result = compare_texts(SENTENCE, "Con mèo ngồi trên tảm")

    mistake = next(m for m in result.mistakes if m.expected_word == "thảm")
    assert mistake.mistake_type is MistakeType.MISPRONUNCIATION
    assert mistake.severity is MistakeSeverity.MINOR
    assert result.accuracy == pytest.approx(0.8)


def test_vietnamese_confusable_pairs_are_mispronunciations():
    for first, second in [("d", "gi"), ("tr", "ch"), ("s", "x"), ("c", "k")]:
        original = f"Con {first}ây là gì"
        spoken = f"Con {second}ây là gì"
        result = compare_texts(original, spoken)

        assert len(result.mistakes) == 1, (first, second)
        assert result.mistakes[0].mistake_type is MistakeType.MISPRONUNCIATION
        assert result.mistakes[0].position == 1


def test_null_matcher_turns_near_misses_into_substitutions():
    result = compare_texts(SENTENCE, "Con mèo ngồi trên tảm", matcher=NullPhoneticMatcher())

    assert result.mistakes[0].mistake_type is MistakeType.SUBSTITUTION
    assert result.mistakes[0].severity is MistakeSeverity.MODERATE


def test_empty_strings_are_a_perfect_match():
    result = compare_texts("", "")

    assert result.accuracy == 1.0
    assert result.mistakes == ()
    assert result.total_words == 0
    assert result.performance_category is PerformanceCategory.EXCELLENT


def test_everything_omitted_when_nothing_was_said():
    result = compare_texts("Con mèo ngồi", "   ")

    assert result.accuracy == 0.0
    assert len(result.mistakes) == 3
    assert [m.position for m in result.mistakes] == [0, 1, 2]
    assert all(m.mistake_type is MistakeType.OMISSION for m in result.mistakes)
    assert result.correct_words == 0
    assert result.performance_category is PerformanceCategory.NEEDS_IMPROVEMENT


def test_calculate_accuracy_table():
    cases = [
        ("Con mèo", "Con mèo", 1.0),
        ("Con mèo", "Con chó", 0.5),
        ("Con mèo ngồi", "Con chó ngồi", 2 / 3),
        ("Con mèo ngồi trên", "Con chó", 0.25),
        ("", "", 1.0),
        ("Con", "", 0.0),
    ]
    for original, spoken, expected in cases:
        assert calculate_accuracy(original, spoken) == pytest.approx(expected, abs=0.01)


def test_calculate_accuracy_agrees_with_compare_texts():
    pairs = [
        (SENTENCE, "Con mèo nhỏ ngồi trên ghế"),
        (SENTENCE, "mèo ngồi trên tảm thảm"),
        ("Một hai ba bốn năm", "hai ba bốn năm sáu bảy"),
        ("Trời hôm nay đẹp quá", ""),
        ("", "xin chào"),
    ]
    for original, spoken in pairs:
        assert calculate_accuracy(original, spoken) == compare_texts(original, spoken).accuracy


def test_matched_words_follow_reading_order():
    assert find_matched_words(SENTENCE, "Con chó ngồi dưới thảm") == ["con", "ngồi", "thảm"]


def test_performance_categories_use_shared_thresholds():
    cases = [
        (1.0, PerformanceCategory.EXCELLENT),
        (0.95, PerformanceCategory.EXCELLENT),
        (0.90, PerformanceCategory.GOOD),
        (0.85, PerformanceCategory.GOOD),
        (0.80, PerformanceCategory.FAIR),
        (0.70, PerformanceCategory.FAIR),
        (0.60, PerformanceCategory.FAIR),
        (0.59, PerformanceCategory.NEEDS_IMPROVEMENT),
        (0.30, PerformanceCategory.NEEDS_IMPROVEMENT),
    ]
    for accuracy, expected in cases:
        result = ComparisonResult(original_text="Test", spoken_text="Test", accuracy=accuracy)
        assert result.performance_category is expected, accuracy


def test_generate_feedback_picks_tier_message():
    cases = [
        (1.0, PerformanceCategory.EXCELLENT),
        (0.90, PerformanceCategory.GOOD),
        (0.75, PerformanceCategory.FAIR),
        (0.50, PerformanceCategory.NEEDS_IMPROVEMENT),
    ]
    for accuracy, category in cases:
        result = ComparisonResult(original_text="Test", spoken_text="Test", accuracy=accuracy)
        feedback = generate_feedback(result)
        assert category.encouragement_message in feedback
        assert feedback.endswith(category.emoji)


def test_compare_texts_fills_feedback():
    result = compare_texts(SENTENCE, SENTENCE)
    assert result.feedback == generate_feedback(result)


def test_mistake_descriptions_and_suggestions():
    mistakes = [
        TextMistake(0, "mèo", "chó", MistakeType.SUBSTITUTION, MistakeSeverity.MODERATE),
        TextMistake(1, "ngồi", "", MistakeType.OMISSION, MistakeSeverity.MODERATE),
        TextMistake(2, "", "nhỏ", MistakeType.INSERTION, MistakeSeverity.MINOR),
        TextMistake(3, "thảm", "tảm", MistakeType.MISPRONUNCIATION, MistakeSeverity.MINOR),
    ]
    descriptions = [m.description for m in mistakes]
    suggestions = [m.suggestion for m in mistakes]

    assert descriptions == [
        "Read 'mèo' as 'chó'",
        "Skipped the word 'ngồi'",
        "Added the word 'nhỏ'",
        "Pronounced 'thảm' as 'tảm'",
    ]
    assert suggestions == [
        "The word is 'mèo', not 'chó'",
        "Don't forget to read 'ngồi'",
        "There is no need to say 'nhỏ'",
        "Say 'thảm' slowly and clearly",
    ]


def test_repeated_calls_are_deterministic():
    first = compare_texts(SENTENCE, "mèo con ngồi trên thảm đỏ")
    second = compare_texts(SENTENCE, "mèo con ngồi trên thảm đỏ")
    assert first == second


def test_total_words_can_be_given_explicitly():
    omission = TextMistake(
        position=0,
        expected_word="a",
        actual_word="",
        mistake_type=MistakeType.OMISSION,
        severity=MistakeSeverity.MODERATE,
    )
    derived = ComparisonResult("a b c", "b c", accuracy=2 / 3, mistakes=(omission,))
    assert derived.total_words == 3
    assert derived.correct_words == 2

    overridden = ComparisonResult(
        "a b c", "b c", accuracy=0.9, mistakes=(omission,), total_words=10
    )
    assert overridden.total_words == 10
    assert overridden.correct_words == 9


def test_is_excellent_follows_top_threshold():
    assert ComparisonResult("x", "x", accuracy=0.95).is_excellent
    assert not ComparisonResult("x", "y", accuracy=0.94).is_excellent


def test_severity_rank_is_ordinal():
    ranks = [severity.rank for severity in MistakeSeverity]
    assert ranks == [1, 2, 3]
    worst = max(compare_texts(SENTENCE, "mèo con").mistakes, key=lambda m: m.severity.rank)
    assert worst.severity is MistakeSeverity.MODERATE
