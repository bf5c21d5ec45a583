"""
Scoring engine: converts an accuracy value plus attempt context into points.

The engine never recomputes alignment; accuracy and mistakes come from a
ComparisonResult (or the caller) and are trusted as given.
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Iterable

from .config import ScoringSettings
from .models import (
    ComparisonResult,
    DifficultyLevel,
    MistakeSeverity,
    PerformanceCategory,
    ScoreBreakdown,
    ScoringError,
    TextMistake,
    TimeBonus,
)

logger = logging.getLogger(__name__)

Seconds = float | int | timedelta

_DEFAULT_SETTINGS = ScoringSettings()


class ScoringValidationError(ValueError):
    """Raised by ensure_valid_scoring_parameters for exception-style callers."""

    def __init__(self, error: ScoringError) -> None:
        super().__init__(error.message)
        self.error = error


def get_base_points(difficulty: DifficultyLevel) -> int:
    """Point ceiling for a difficulty tier."""
    return difficulty.base_points


def get_difficulty_multiplier(difficulty: DifficultyLevel) -> float:
    """Multiplier applied in the detailed breakdown path."""
    return difficulty.multiplier


def calculate_attempt_penalty(
    points: int, attempts: int, settings: ScoringSettings | None = None
) -> int:
    """
    Retry penalty taken from ``points``.

    Two attempts cost ``attempt_penalty_rate`` (15%); every further retry adds
    the same rate again, and the penalty never exceeds ``points``.
    """
    settings = settings or _DEFAULT_SETTINGS
    if attempts <= 1 or points <= 0:
        return 0
    rate = min(1.0, settings.attempt_penalty_rate * (attempts - 1))
    return min(points, _round_points(points * rate))


def calculate_score(
    accuracy: float,
    attempts: int,
    difficulty: DifficultyLevel,
    settings: ScoringSettings | None = None,
) -> int:
    """Accuracy-scaled tier points minus the retry penalty, floored at 0."""
    points = _round_points(_clamp_accuracy(accuracy) * get_base_points(difficulty))
    penalty = calculate_attempt_penalty(points, attempts, settings)
    return max(0, points - penalty)


def calculate_streak_bonus(
    streak: int, settings: ScoringSettings | None = None
) -> int | None:
    """Streak points, or None while the streak has not reached the minimum."""
    settings = settings or _DEFAULT_SETTINGS
    if streak < settings.min_streak_for_bonus:
        return None
    return streak * settings.streak_points_per_session


def calculate_bonus_points(
    streak: int,
    perfect_score: bool,
    time_bonus: TimeBonus | None,
    settings: ScoringSettings | None = None,
) -> int:
    settings = settings or _DEFAULT_SETTINGS
    bonus = 0
    if perfect_score:
        bonus += settings.perfect_score_bonus
    bonus += calculate_streak_bonus(streak, settings) or 0
    if time_bonus is not None:
        bonus += time_bonus.bonus_points
    return bonus


def calculate_time_bonus(
    completion_time: Seconds,
    target_time: Seconds,
    settings: ScoringSettings | None = None,
) -> TimeBonus | None:
    """
    Bonus proportional to the fraction of time saved, capped at
    ``time_bonus_cap``. Only strictly faster-than-target runs qualify.
    """
    settings = settings or _DEFAULT_SETTINGS
    completion = _to_seconds(completion_time)
    target = _to_seconds(target_time)
    if not (math.isfinite(completion) and math.isfinite(target)):
        return None
    if target <= 0 or completion < 0 or completion >= target:
        return None
    fraction = (target - completion) / target
    cap = settings.time_bonus_cap
    points = max(1, _round_points(min(cap, fraction * cap)))
    return TimeBonus(
        bonus_points=points,
        completion_time=completion,
        target_time=target,
        bonus_percentage=fraction,
    )


def calculate_difficulty_bonus(difficulty: DifficultyLevel) -> int:
    """Extra points for attempting a tier above grade 1."""
    base = get_base_points(difficulty)
    return max(0, _round_points(base * (get_difficulty_multiplier(difficulty) - 1.0)))


def severity_penalty(
    severity: MistakeSeverity, settings: ScoringSettings | None = None
) -> int:
    settings = settings or _DEFAULT_SETTINGS
    return settings.severity_penalty(severity)


def calculate_mistake_severity_penalty(
    mistakes: Iterable[TextMistake], settings: ScoringSettings | None = None
) -> int:
    """Sum of per-mistake severity costs."""
    settings = settings or _DEFAULT_SETTINGS
    return sum(settings.severity_penalty(m.severity) for m in mistakes)


def calculate_comprehensive_score(
    accuracy: float,
    attempts: int,
    difficulty: DifficultyLevel,
    completion_time: Seconds,
    streak: int,
    mistakes: Iterable[TextMistake],
    *,
    target_time: Seconds | None = None,
    settings: ScoringSettings | None = None,
) -> ScoreBreakdown:
    """Full breakdown of bonuses and penalties for one attempt."""
    settings = settings or _DEFAULT_SETTINGS
    mistakes = list(mistakes)
    accuracy = _clamp_accuracy(accuracy)

    base_score = get_base_points(difficulty)
    accuracy_score = _round_points(accuracy * base_score)
    difficulty_bonus = calculate_difficulty_bonus(difficulty)
    if target_time is None:
        target_time = difficulty.target_time_seconds
    time_bonus = calculate_time_bonus(completion_time, target_time, settings)
    streak_bonus = calculate_streak_bonus(streak, settings)
    perfect_score_bonus = settings.perfect_score_bonus if accuracy == 1.0 else 0
    attempt_penalty = calculate_attempt_penalty(accuracy_score, attempts, settings)
    mistake_penalty = calculate_mistake_severity_penalty(mistakes, settings)

    total = (
        accuracy_score
        + difficulty_bonus
        + (time_bonus.bonus_points if time_bonus else 0)
        + (streak_bonus or 0)
        + perfect_score_bonus
        - attempt_penalty
        - mistake_penalty
    )
    final_score = max(0, total)

    breakdown = ScoreBreakdown(
        base_score=base_score,
        accuracy_score=accuracy_score,
        difficulty_bonus=difficulty_bonus,
        time_bonus=time_bonus,
        streak_bonus=streak_bonus,
        perfect_score_bonus=perfect_score_bonus,
        attempt_penalty=attempt_penalty,
        mistake_severity_penalty=mistake_penalty,
        final_score=final_score,
        category=PerformanceCategory.from_accuracy(accuracy),
        experience=int(final_score * settings.experience_multiplier),
    )
    logger.debug(
        "Scored %s attempt=%d accuracy=%.3f final=%d",
        difficulty.value,
        attempts,
        accuracy,
        final_score,
    )
    return breakdown


def calculate_score_from_comparison(
    result: ComparisonResult,
    attempts: int,
    difficulty: DifficultyLevel,
    completion_time: Seconds,
    streak: int,
    *,
    target_time: Seconds | None = None,
    settings: ScoringSettings | None = None,
) -> ScoreBreakdown:
    """Score a ComparisonResult using its accuracy and mistakes as given."""
    return calculate_comprehensive_score(
        result.accuracy,
        attempts,
        difficulty,
        completion_time,
        streak,
        result.mistakes,
        target_time=target_time,
        settings=settings,
    )


def calculate_score_with_mistake_severity(
    accuracy: float,
    mistakes: Iterable[TextMistake],
    difficulty: DifficultyLevel,
    attempts: int,
    settings: ScoringSettings | None = None,
) -> int:
    score = calculate_score(accuracy, attempts, difficulty, settings)
    return max(0, score - calculate_mistake_severity_penalty(mistakes, settings))


def calculate_adaptive_score(
    accuracy: float,
    attempts: int,
    difficulty: DifficultyLevel,
    user_average_accuracy: float,
    settings: ScoringSettings | None = None,
) -> int:
    """Add an improvement bonus when accuracy beats the user's own average."""
    settings = settings or _DEFAULT_SETTINGS
    accuracy = _clamp_accuracy(accuracy)
    average = _clamp_accuracy(user_average_accuracy)
    score = calculate_score(accuracy, attempts, difficulty, settings)
    if accuracy <= average:
        return score
    improvement = accuracy - average
    return score + max(1, _round_points(improvement * settings.adaptive_bonus_scale))


def validate_scoring_parameters(
    accuracy: float,
    attempts: int,
    difficulty: DifficultyLevel,
    completion_time: Seconds,
) -> ScoringError | None:
    """Return the first validation error, or None when the inputs are usable."""
    if not 0.0 <= accuracy <= 1.0:
        return ScoringError.INVALID_ACCURACY
    if attempts < 1:
        return ScoringError.INVALID_ATTEMPTS
    seconds = _to_seconds(completion_time)
    if not math.isfinite(seconds) or seconds < 0:
        return ScoringError.INVALID_COMPLETION_TIME
    return None


def ensure_valid_scoring_parameters(
    accuracy: float,
    attempts: int,
    difficulty: DifficultyLevel,
    completion_time: Seconds,
) -> None:
    error = validate_scoring_parameters(accuracy, attempts, difficulty, completion_time)
    if error is not None:
        raise ScoringValidationError(error)


def is_valid_score(score: int, settings: ScoringSettings | None = None) -> bool:
    settings = settings or _DEFAULT_SETTINGS
    return 0 <= score <= settings.max_score


def _round_points(value: float) -> int:
    # Half up, so 0.8 * 150 == 120.00000000000001 still lands on 120.
    return int(math.floor(value + 0.5))


def _clamp_accuracy(accuracy: float) -> float:
    if math.isnan(accuracy):
        return 0.0
    return min(1.0, max(0.0, accuracy))


def _to_seconds(value: Seconds) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)
