from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable

from .comparison import compare_texts
from .config import ScorerConfig
from .models import ComparisonResult, DifficultyLevel, ScoreBreakdown, ScoringError
from .phonetics import PhoneticMatcher, build_phonetic_matcher_from_config
from .scoring import calculate_score_from_comparison, validate_scoring_parameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AttemptInput:
    """One reading attempt as handed over by the session flow."""

    original: str
    spoken: str
    difficulty: DifficultyLevel = DifficultyLevel.GRADE1
    attempts: int = 1
    completion_time: float = 0.0
    streak: int = 0
    attempt_id: str = ""


@dataclass(frozen=True, slots=True)
class AttemptEvaluation:
    """Comparison plus score for an attempt; score is None when validation failed."""

    attempt_id: str
    comparison: ComparisonResult
    score: ScoreBreakdown | None
    validation_error: ScoringError | None = None


EvaluationListener = Callable[[AttemptEvaluation], None]


def evaluate_attempt(
    attempt: AttemptInput,
    config: ScorerConfig,
    *,
    matcher: PhoneticMatcher | None = None,
    listener: EvaluationListener | None = None,
) -> AttemptEvaluation:
    """Compare the texts of one attempt and score the result."""
    matcher = matcher or build_phonetic_matcher_from_config(config)
    comparison = compare_texts(attempt.original, attempt.spoken, matcher=matcher)

    error = validate_scoring_parameters(
        comparison.accuracy,
        attempt.attempts,
        attempt.difficulty,
        attempt.completion_time,
    )
    if error is not None:
        logger.warning(
            "Skipping score for attempt %r: %s", attempt.attempt_id, error.message
        )
        evaluation = AttemptEvaluation(
            attempt_id=attempt.attempt_id,
            comparison=comparison,
            score=None,
            validation_error=error,
        )
    else:
        score = calculate_score_from_comparison(
            comparison,
            attempt.attempts,
            attempt.difficulty,
            attempt.completion_time,
            attempt.streak,
            settings=config.scoring,
        )
        evaluation = AttemptEvaluation(
            attempt_id=attempt.attempt_id, comparison=comparison, score=score
        )

    if listener is not None:
        listener(evaluation)
    return evaluation


def evaluate_attempts(
    attempts: Iterable[AttemptInput],
    config: ScorerConfig,
    *,
    listener: EvaluationListener | None = None,
) -> Dict[str, AttemptEvaluation]:
    """Evaluate every attempt and return results keyed by attempt id."""
    matcher = build_phonetic_matcher_from_config(config)
    results: Dict[str, AttemptEvaluation] = {}
    for index, attempt in enumerate(attempts):
        attempt_id = attempt.attempt_id or f"attempt-{index + 1}"
        if attempt_id in results:
            raise ValueError(f"Duplicate attempt id '{attempt_id}'.")
        if attempt_id != attempt.attempt_id:
            attempt = replace(attempt, attempt_id=attempt_id)
        results[attempt_id] = evaluate_attempt(
            attempt, config, matcher=matcher, listener=listener
        )
    logger.info("Evaluated %d attempts", len(results))
    return results
