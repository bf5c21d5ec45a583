from __future__ import annotations

from statistics import mean
from typing import Iterable, List, Sequence

from .config import TrendSettings
from .models import PerformanceTrend, SessionLike, TrendDirection


def average_accuracy(sessions: Iterable[SessionLike]) -> float:
    """Mean accuracy over sessions, 0.0 when there are none."""
    values = [session.accuracy for session in sessions]
    return mean(values) if values else 0.0


def calculate_performance_trend(
    recent_sessions: Sequence[SessionLike], settings: TrendSettings | None = None
) -> PerformanceTrend:
    """
    Compare the early half of a chronologically ordered session run with the
    late half. With an odd count the middle session belongs to neither half.
    ``change_percentage`` is the signed difference in percentage points.
    """
    settings = settings or TrendSettings()
    ordered: List[SessionLike] = sorted(recent_sessions, key=lambda s: s.completed_at)
    count = len(ordered)
    if count < 2:
        return PerformanceTrend(
            direction=TrendDirection.STABLE,
            change_percentage=0.0,
            early_average=average_accuracy(ordered),
            late_average=average_accuracy(ordered),
            session_count=count,
        )

    half = count // 2
    early = average_accuracy(ordered[:half])
    late = average_accuracy(ordered[-half:])
    change = (late - early) * 100.0

    if change > settings.stability_threshold:
        direction = TrendDirection.IMPROVING
    elif change < -settings.stability_threshold:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE

    return PerformanceTrend(
        direction=direction,
        change_percentage=change,
        early_average=early,
        late_average=late,
        session_count=count,
    )
