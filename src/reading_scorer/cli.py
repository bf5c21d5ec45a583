from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, TypedDict

import typer
import yaml

from .comparison import compare_texts
from .config import ScorerConfig, load_config
from .models import (
    ComparisonResult,
    DifficultyLevel,
    ScoreBreakdown,
    SessionRecord,
    TextMistake,
)
from .phonetics import build_phonetic_matcher_from_config
from .pipeline import AttemptEvaluation, AttemptInput, evaluate_attempts
from .scoring import (
    ScoringValidationError,
    calculate_comprehensive_score,
    ensure_valid_scoring_parameters,
)
from .trends import calculate_performance_trend

logger = logging.getLogger(__name__)

app = typer.Typer(help="Reading practice comparison and scoring CLI.", no_args_is_help=True)

# Exit code used when scoring inputs fail validation.
VALIDATION_EXIT_CODE = 2

SUPPORTED_INPUT_EXTENSIONS = {".json", ".yaml", ".yml"}


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)."
    ),
) -> None:
    """Configure logging before any sub-command runs."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level '{log_level}'.")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def compare(
    original: str = typer.Option(..., "--original", "-o", help="Expected text."),
    spoken: str = typer.Option(..., "--spoken", "-s", help="Text the reader produced."),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Compare two texts and emit accuracy, mistakes and feedback as JSON."""
    cfg = _load_config_or_exit(config)
    result = compare_texts(
        original, spoken, matcher=build_phonetic_matcher_from_config(cfg)
    )
    typer.echo(json.dumps(_comparison_dict(result), indent=2, ensure_ascii=False))


@app.command()
def score(
    accuracy: float = typer.Option(..., "--accuracy", "-a", help="Accuracy in [0, 1]."),
    attempts: int = typer.Option(1, "--attempts", help="Attempt number (1 = first try)."),
    difficulty: str = typer.Option("grade1", "--difficulty", "-d", help="grade1..grade5"),
    completion_time: float = typer.Option(
        0.0, "--completion-time", "-t", help="Seconds taken to finish."
    ),
    streak: int = typer.Option(0, "--streak", help="Consecutive successful sessions."),
    target_time: float | None = typer.Option(
        None, "--target-time", help="Override the difficulty's target time (seconds)."
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Score an attempt and emit the full breakdown as JSON."""
    cfg = _load_config_or_exit(config)
    level = _parse_difficulty(difficulty)
    try:
        ensure_valid_scoring_parameters(accuracy, attempts, level, completion_time)
    except ScoringValidationError as exc:
        typer.echo(f"Invalid scoring parameters: {exc}", err=True)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    breakdown = calculate_comprehensive_score(
        accuracy,
        attempts,
        level,
        completion_time,
        streak,
        [],
        target_time=target_time,
        settings=cfg.scoring,
    )
    typer.echo(json.dumps(_score_dict(breakdown), indent=2, ensure_ascii=False))


@app.command()
def evaluate(
    input_path: Path = typer.Option(
        ..., exists=True, readable=True, dir_okay=False, file_okay=True
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Compare and score every attempt listed in a JSON or YAML file."""
    cfg = _load_config_or_exit(config)
    attempts = [_attempt_from_mapping(item) for item in _load_records(input_path, "attempts")]
    try:
        results = evaluate_attempts(attempts, cfg)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    payload = [_evaluation_dict(evaluation) for evaluation in results.values()]
    typer.echo(json.dumps({"attempts": payload}, indent=2, ensure_ascii=False))


@app.command()
def trend(
    input_path: Path = typer.Option(
        ..., exists=True, readable=True, dir_okay=False, file_okay=True
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Classify the accuracy trend of the sessions listed in a JSON or YAML file."""
    cfg = _load_config_or_exit(config)
    sessions = [_session_from_mapping(item) for item in _load_records(input_path, "sessions")]
    result = calculate_performance_trend(sessions, cfg.trends)
    typer.echo(
        json.dumps(
            {
                "direction": result.direction.value,
                "change_percentage": round(result.change_percentage, 4),
                "early_average": result.early_average,
                "late_average": result.late_average,
                "session_count": result.session_count,
                "description": result.description,
            },
            indent=2,
        )
    )


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = ScorerConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


def main() -> None:
    app()


class MistakePayload(TypedDict):
    position: int
    expected_word: str
    actual_word: str
    mistake_type: str
    severity: str
    description: str
    suggestion: str


class ComparisonPayload(TypedDict):
    original_text: str
    spoken_text: str
    accuracy: float
    total_words: int
    correct_words: int
    is_perfect: bool
    performance_category: str
    feedback: str
    matched_words: List[str]
    mistakes: List[MistakePayload]


class TimeBonusPayload(TypedDict):
    bonus_points: int
    completion_time: float
    target_time: float
    bonus_percentage: float


class ScorePayload(TypedDict):
    base_score: int
    accuracy_score: int
    difficulty_bonus: int
    time_bonus: TimeBonusPayload | None
    streak_bonus: int | None
    perfect_score_bonus: int
    attempt_penalty: int
    mistake_severity_penalty: int
    final_score: int
    category: str
    experience: int
    breakdown: List[str]


def _load_config_or_exit(path: Path | None) -> ScorerConfig:
    try:
        return load_config(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Unable to load config {path}: {exc}") from exc


def _parse_difficulty(value: Any) -> DifficultyLevel:
    try:
        return DifficultyLevel.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_records(path: Path, key: str) -> List[Dict[str, Any]]:
    """Read a list of mappings from a JSON/YAML file (bare list or under ``key``)."""
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_INPUT_EXTENSIONS:
        raise typer.BadParameter(f"Unsupported input type '{suffix}' for {path}.")
    text = path.read_text(encoding="utf-8")
    try:
        parsed = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Unable to parse {path}: {exc}") from exc
    if isinstance(parsed, dict):
        parsed = parsed.get(key)
    if not isinstance(parsed, list) or not all(isinstance(i, dict) for i in parsed):
        raise typer.BadParameter(f"{path} must contain a list of {key} mappings.")
    logger.info("Loaded %d %s from %s", len(parsed), key, path)
    return parsed


def _attempt_from_mapping(data: Dict[str, Any]) -> AttemptInput:
    try:
        return AttemptInput(
            original=str(data.get("original", "")),
            spoken=str(data.get("spoken", "")),
            difficulty=_parse_difficulty(data.get("difficulty", "grade1")),
            attempts=int(data.get("attempts", 1)),
            completion_time=float(data.get("completion_time", 0.0)),
            streak=int(data.get("streak", 0)),
            attempt_id=str(data.get("id", "")),
        )
    except (TypeError, ValueError) as exc:
        raise typer.BadParameter(f"Invalid attempt entry {data!r}: {exc}") from exc


def _session_from_mapping(data: Dict[str, Any]) -> SessionRecord:
    completed_at = data.get("completed_at")
    try:
        if not isinstance(completed_at, datetime):
            completed_at = datetime.fromisoformat(str(completed_at))
        return SessionRecord(
            accuracy=float(data["accuracy"]),
            completed_at=completed_at,
            score=int(data["score"]) if data.get("score") is not None else None,
            difficulty=(
                DifficultyLevel.parse(data["difficulty"])
                if data.get("difficulty") is not None
                else None
            ),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise typer.BadParameter(f"Invalid session entry {data!r}: {exc}") from exc


def _mistake_dict(mistake: TextMistake) -> MistakePayload:
    return {
        "position": mistake.position,
        "expected_word": mistake.expected_word,
        "actual_word": mistake.actual_word,
        "mistake_type": mistake.mistake_type.value,
        "severity": mistake.severity.value,
        "description": mistake.description,
        "suggestion": mistake.suggestion,
    }


def _comparison_dict(result: ComparisonResult) -> ComparisonPayload:
    return {
        "original_text": result.original_text,
        "spoken_text": result.spoken_text,
        "accuracy": result.accuracy,
        "total_words": result.total_words,
        "correct_words": result.correct_words,
        "is_perfect": result.is_perfect,
        "performance_category": result.performance_category.value,
        "feedback": result.feedback,
        "matched_words": list(result.matched_words),
        "mistakes": [_mistake_dict(m) for m in result.mistakes],
    }


def _score_dict(breakdown: ScoreBreakdown) -> ScorePayload:
    time_bonus: TimeBonusPayload | None = None
    if breakdown.time_bonus is not None:
        time_bonus = {
            "bonus_points": breakdown.time_bonus.bonus_points,
            "completion_time": breakdown.time_bonus.completion_time,
            "target_time": breakdown.time_bonus.target_time,
            "bonus_percentage": breakdown.time_bonus.bonus_percentage,
        }
    return {
        "base_score": breakdown.base_score,
        "accuracy_score": breakdown.accuracy_score,
        "difficulty_bonus": breakdown.difficulty_bonus,
        "time_bonus": time_bonus,
        "streak_bonus": breakdown.streak_bonus,
        "perfect_score_bonus": breakdown.perfect_score_bonus,
        "attempt_penalty": breakdown.attempt_penalty,
        "mistake_severity_penalty": breakdown.mistake_severity_penalty,
        "final_score": breakdown.final_score,
        "category": breakdown.category.value,
        "experience": breakdown.experience,
        "breakdown": breakdown.breakdown_lines(),
    }


def _evaluation_dict(evaluation: AttemptEvaluation) -> Dict[str, Any]:
    return {
        "id": evaluation.attempt_id,
        "comparison": _comparison_dict(evaluation.comparison),
        "score": _score_dict(evaluation.score) if evaluation.score is not None else None,
        "validation_error": (
            evaluation.validation_error.value if evaluation.validation_error else None
        ),
    }


if __name__ == "__main__":
    main()
