from datetime import datetime, timedelta

import pytest

from reading_scorer.config import TrendSettings
from reading_scorer.models import SessionLike, SessionRecord, TrendDirection
from reading_scorer.trends import average_accuracy, calculate_performance_trend

NOW = datetime(2024, 5, 20, 9, 0, 0)


def _sessions(accuracies: list[float]) -> list[SessionRecord]:
    """Build sessions two days apart, oldest first."""
    count = len(accuracies)
    return [
        SessionRecord(accuracy=value, completed_at=NOW - timedelta(days=2 * (count - idx)))
        for idx, value in enumerate(accuracies)
    ]


def test_improving_trend():
    trend = calculate_performance_trend(_sessions([0.6, 0.7, 0.8, 0.9, 0.95]))
    assert trend.direction is TrendDirection.IMPROVING
    assert trend.change_percentage == pytest.approx(27.5)
    assert trend.session_count == 5


def test_declining_trend():
    trend = calculate_performance_trend(_sessions([0.9, 0.8, 0.7, 0.6, 0.5]))
    assert trend.direction is TrendDirection.DECLINING
    assert trend.change_percentage < 0


def test_small_variations_are_stable():
    trend = calculate_performance_trend(_sessions([0.8, 0.82, 0.78, 0.81, 0.79]))
    assert trend.direction is TrendDirection.STABLE
    assert trend.change_percentage == pytest.approx(-1.0)


def test_sessions_are_ordered_by_completion_time():
    sessions = list(reversed(_sessions([0.5, 0.6, 0.9, 0.95])))
    trend = calculate_performance_trend(sessions)
    assert trend.direction is TrendDirection.IMPROVING
    assert trend.early_average == pytest.approx(0.55)
    assert trend.late_average == pytest.approx(0.925)


def test_too_few_sessions_are_stable():
    assert calculate_performance_trend([]).direction is TrendDirection.STABLE
    single = calculate_performance_trend(_sessions([0.4]))
    assert single.direction is TrendDirection.STABLE
    assert single.change_percentage == 0.0


def test_threshold_is_configurable():
    sessions = _sessions([0.80, 0.85])
    assert calculate_performance_trend(sessions).direction is TrendDirection.IMPROVING
    relaxed = calculate_performance_trend(sessions, TrendSettings(stability_threshold=10.0))
    assert relaxed.direction is TrendDirection.STABLE


def test_session_record_satisfies_protocol_and_average():
    sessions = _sessions([0.5, 1.0])
    assert all(isinstance(s, SessionLike) for s in sessions)
    assert average_accuracy(sessions) == pytest.approx(0.75)
    assert average_accuracy([]) == 0.0
