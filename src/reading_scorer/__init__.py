"""
reading_scorer compares an expected reading text with what a reader produced
and turns the result into points. The top-level package re-exports the main
entry points for library consumers.
"""

from __future__ import annotations

from .comparison import calculate_accuracy, compare_texts, generate_feedback, identify_mistakes
from .config import ScorerConfig, config_from_dict, config_from_yaml, load_config
from .models import (
    ComparisonResult,
    DifficultyLevel,
    MistakeSeverity,
    MistakeType,
    PerformanceCategory,
    PerformanceTrend,
    ScoreBreakdown,
    ScoringError,
    SessionRecord,
    TextMistake,
    TimeBonus,
    TrendDirection,
)
from .phonetics import build_phonetic_matcher_from_config, create_phonetic_matcher
from .pipeline import AttemptEvaluation, AttemptInput, evaluate_attempt, evaluate_attempts
from .scoring import (
    calculate_adaptive_score,
    calculate_bonus_points,
    calculate_comprehensive_score,
    calculate_score,
    calculate_score_with_mistake_severity,
    calculate_time_bonus,
    get_difficulty_multiplier,
    is_valid_score,
    validate_scoring_parameters,
)
from .trends import calculate_performance_trend

__all__ = [
    "ScorerConfig",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
    "ComparisonResult",
    "DifficultyLevel",
    "MistakeSeverity",
    "MistakeType",
    "PerformanceCategory",
    "PerformanceTrend",
    "ScoreBreakdown",
    "ScoringError",
    "SessionRecord",
    "TextMistake",
    "TimeBonus",
    "TrendDirection",
    "compare_texts",
    "calculate_accuracy",
    "generate_feedback",
    "identify_mistakes",
    "create_phonetic_matcher",
    "build_phonetic_matcher_from_config",
    "calculate_score",
    "get_difficulty_multiplier",
    "calculate_bonus_points",
    "calculate_time_bonus",
    "calculate_comprehensive_score",
    "calculate_score_with_mistake_severity",
    "calculate_adaptive_score",
    "validate_scoring_parameters",
    "is_valid_score",
    "calculate_performance_trend",
    "AttemptInput",
    "AttemptEvaluation",
    "evaluate_attempt",
    "evaluate_attempts",
]

__version__ = "0.1.0"
