from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol, runtime_checkable

from .textutils import split_words

# Inclusive lower bounds shared by comparison feedback and score categories.
EXCELLENT_THRESHOLD = 0.95
GOOD_THRESHOLD = 0.85
FAIR_THRESHOLD = 0.60


class MistakeType(str, Enum):
    """Kind of divergence between the expected and the produced word."""

    SUBSTITUTION = "substitution"
    OMISSION = "omission"
    INSERTION = "insertion"
    MISPRONUNCIATION = "mispronunciation"


class MistakeSeverity(str, Enum):
    """Ordinal cost of a mistake."""

    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]


_SEVERITY_RANKS = {
    MistakeSeverity.MINOR: 1,
    MistakeSeverity.MODERATE: 2,
    MistakeSeverity.MAJOR: 3,
}


class PerformanceCategory(str, Enum):
    """Qualitative tier derived from an accuracy value."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    NEEDS_IMPROVEMENT = "needs_improvement"

    @classmethod
    def from_accuracy(cls, accuracy: float) -> "PerformanceCategory":
        if accuracy >= EXCELLENT_THRESHOLD:
            return cls.EXCELLENT
        if accuracy >= GOOD_THRESHOLD:
            return cls.GOOD
        if accuracy >= FAIR_THRESHOLD:
            return cls.FAIR
        return cls.NEEDS_IMPROVEMENT

    @property
    def emoji(self) -> str:
        return _CATEGORY_EMOJI[self]

    @property
    def encouragement_message(self) -> str:
        return _CATEGORY_MESSAGES[self]


_CATEGORY_EMOJI = {
    PerformanceCategory.EXCELLENT: "🌟",
    PerformanceCategory.GOOD: "👏",
    PerformanceCategory.FAIR: "😊",
    PerformanceCategory.NEEDS_IMPROVEMENT: "💪",
}

_CATEGORY_MESSAGES = {
    PerformanceCategory.EXCELLENT: "Wonderful! You read it perfectly!",
    PerformanceCategory.GOOD: "Very good! Only a few small mistakes!",
    PerformanceCategory.FAIR: "Nice try! Read a little slower and more clearly.",
    PerformanceCategory.NEEDS_IMPROVEMENT: (
        "Let's read it again! Reading slowly and clearly will help you improve."
    ),
}


class DifficultyLevel(str, Enum):
    """Grade tiers controlling point ceilings, multipliers and target times."""

    GRADE1 = "grade1"
    GRADE2 = "grade2"
    GRADE3 = "grade3"
    GRADE4 = "grade4"
    GRADE5 = "grade5"

    @property
    def base_points(self) -> int:
        return _BASE_POINTS[self]

    @property
    def multiplier(self) -> float:
        return _MULTIPLIERS[self]

    @property
    def target_time_seconds(self) -> float:
        return _TARGET_TIMES[self]

    @classmethod
    def parse(cls, value: "str | DifficultyLevel") -> "DifficultyLevel":
        """Accept enum members, 'grade2', 'GRADE2' or a bare '2'."""
        if isinstance(value, DifficultyLevel):
            return value
        normalized = str(value).strip().lower()
        if normalized.isdigit():
            normalized = f"grade{normalized}"
        try:
            return cls(normalized)
        except ValueError as exc:
            choices = ", ".join(level.value for level in cls)
            raise ValueError(
                f"Unknown difficulty '{value}'. Expected one of: {choices}."
            ) from exc


_BASE_POINTS = {
    DifficultyLevel.GRADE1: 100,
    DifficultyLevel.GRADE2: 150,
    DifficultyLevel.GRADE3: 200,
    DifficultyLevel.GRADE4: 250,
    DifficultyLevel.GRADE5: 300,
}

_MULTIPLIERS = {
    DifficultyLevel.GRADE1: 1.0,
    DifficultyLevel.GRADE2: 1.2,
    DifficultyLevel.GRADE3: 1.4,
    DifficultyLevel.GRADE4: 1.6,
    DifficultyLevel.GRADE5: 1.8,
}

_TARGET_TIMES = {
    DifficultyLevel.GRADE1: 60.0,
    DifficultyLevel.GRADE2: 90.0,
    DifficultyLevel.GRADE3: 120.0,
    DifficultyLevel.GRADE4: 150.0,
    DifficultyLevel.GRADE5: 180.0,
}


@dataclass(frozen=True, slots=True)
class TextMistake:
    """One divergence between the expected and the produced word sequences.

    ``position`` indexes the expected words. Insertions carry the index of the
    expected word that follows the extra word.
    """

    position: int
    expected_word: str
    actual_word: str
    mistake_type: MistakeType
    severity: MistakeSeverity

    @property
    def description(self) -> str:
        if self.mistake_type is MistakeType.MISPRONUNCIATION:
            return f"Pronounced '{self.expected_word}' as '{self.actual_word}'"
        if self.mistake_type is MistakeType.OMISSION:
            return f"Skipped the word '{self.expected_word}'"
        if self.mistake_type is MistakeType.INSERTION:
            return f"Added the word '{self.actual_word}'"
        return f"Read '{self.expected_word}' as '{self.actual_word}'"

    @property
    def suggestion(self) -> str:
        if self.mistake_type is MistakeType.MISPRONUNCIATION:
            return f"Say '{self.expected_word}' slowly and clearly"
        if self.mistake_type is MistakeType.OMISSION:
            return f"Don't forget to read '{self.expected_word}'"
        if self.mistake_type is MistakeType.INSERTION:
            return f"There is no need to say '{self.actual_word}'"
        return f"The word is '{self.expected_word}', not '{self.actual_word}'"


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Outcome of comparing an expected text with the produced text.

    ``total_words`` defaults to the word count of the normalized original.
    """

    original_text: str
    spoken_text: str
    accuracy: float
    mistakes: tuple[TextMistake, ...] = ()
    matched_words: tuple[str, ...] = ()
    feedback: str = ""
    total_words: int | None = None

    def __post_init__(self) -> None:
        if self.total_words is None:
            object.__setattr__(self, "total_words", len(split_words(self.original_text)))

    @property
    def correct_words(self) -> int:
        wrong = sum(
            1 for m in self.mistakes if m.mistake_type is not MistakeType.INSERTION
        )
        return max(0, (self.total_words or 0) - wrong)

    @property
    def is_perfect(self) -> bool:
        return self.accuracy == 1.0 and not self.mistakes

    @property
    def is_excellent(self) -> bool:
        return self.accuracy >= EXCELLENT_THRESHOLD

    @property
    def performance_category(self) -> PerformanceCategory:
        return PerformanceCategory.from_accuracy(self.accuracy)


@dataclass(frozen=True, slots=True)
class TimeBonus:
    """Points awarded for finishing faster than the target time."""

    bonus_points: int
    completion_time: float
    target_time: float
    bonus_percentage: float

    @property
    def time_saved(self) -> float:
        return self.target_time - self.completion_time

    @property
    def description(self) -> str:
        return f"Finished {int(self.time_saved)}s early: +{self.bonus_points} points"


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Transparent decomposition of a final score."""

    base_score: int
    accuracy_score: int
    difficulty_bonus: int
    time_bonus: TimeBonus | None
    streak_bonus: int | None
    perfect_score_bonus: int
    attempt_penalty: int
    mistake_severity_penalty: int
    final_score: int
    category: PerformanceCategory
    experience: int = 0

    @property
    def total_bonus(self) -> int:
        time_points = self.time_bonus.bonus_points if self.time_bonus else 0
        return (
            self.difficulty_bonus
            + time_points
            + (self.streak_bonus or 0)
            + self.perfect_score_bonus
        )

    @property
    def total_penalty(self) -> int:
        return self.attempt_penalty + self.mistake_severity_penalty

    def breakdown_lines(self) -> list[str]:
        """Display items; zero components and absent bonuses are left out."""
        items = [
            f"Base score: {self.base_score}",
            f"Accuracy: {self.accuracy_score}",
        ]
        if self.difficulty_bonus > 0:
            items.append(f"Difficulty: +{self.difficulty_bonus}")
        if self.time_bonus is not None:
            items.append(self.time_bonus.description)
        if self.streak_bonus is not None:
            items.append(f"Streak: +{self.streak_bonus}")
        if self.perfect_score_bonus > 0:
            items.append(f"Perfect: +{self.perfect_score_bonus}")
        if self.attempt_penalty > 0:
            items.append(f"Retry: -{self.attempt_penalty}")
        if self.mistake_severity_penalty > 0:
            items.append(f"Mistakes: -{self.mistake_severity_penalty}")
        return items


class ScoringError(str, Enum):
    """Validation failures reported by validate_scoring_parameters."""

    INVALID_ACCURACY = "invalid_accuracy"
    INVALID_ATTEMPTS = "invalid_attempts"
    INVALID_COMPLETION_TIME = "invalid_completion_time"

    @property
    def message(self) -> str:
        return _SCORING_ERROR_MESSAGES[self]


_SCORING_ERROR_MESSAGES = {
    ScoringError.INVALID_ACCURACY: "Accuracy must be between 0.0 and 1.0.",
    ScoringError.INVALID_ATTEMPTS: "Attempts must be at least 1.",
    ScoringError.INVALID_COMPLETION_TIME: (
        "Completion time must be a finite, non-negative number of seconds."
    ),
}


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True, slots=True)
class PerformanceTrend:
    """Direction of accuracy change across a run of sessions."""

    direction: TrendDirection
    change_percentage: float
    early_average: float = 0.0
    late_average: float = 0.0
    session_count: int = 0

    @property
    def description(self) -> str:
        if self.direction is TrendDirection.IMPROVING:
            return f"Improving (+{self.change_percentage:.1f} points)"
        if self.direction is TrendDirection.DECLINING:
            return f"Needs attention ({self.change_percentage:.1f} points)"
        return "Stable"


@runtime_checkable
class SessionLike(Protocol):
    """Anything exposing an accuracy and a completion timestamp."""

    @property
    def accuracy(self) -> float: ...

    @property
    def completed_at(self) -> datetime: ...


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """Minimal concrete session used by the CLI and tests."""

    accuracy: float
    completed_at: datetime
    score: int | None = None
    difficulty: DifficultyLevel | None = None
