from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping

import yaml

from .models import MistakeSeverity

logger = logging.getLogger(__name__)


def _default_severity_penalties() -> Dict[str, int]:
    return {
        MistakeSeverity.MINOR.value: 5,
        MistakeSeverity.MODERATE.value: 15,
        MistakeSeverity.MAJOR.value: 30,
    }


@dataclass(slots=True)
class ComparisonSettings:
    """Configuration block for the text comparison engine."""

    phonetic_matcher: str = "vietnamese"
    extra_confusable_pairs: List[List[str]] = field(default_factory=list)
    max_edit_distance: int = 1
    min_word_length: int = 3


@dataclass(slots=True)
class ScoringSettings:
    """Tunable constants for the scoring engine."""

    perfect_score_bonus: int = 100
    streak_points_per_session: int = 10
    min_streak_for_bonus: int = 2
    attempt_penalty_rate: float = 0.15
    time_bonus_cap: int = 20
    severity_penalties: Dict[str, int] = field(
        default_factory=_default_severity_penalties
    )
    adaptive_bonus_scale: float = 200.0
    experience_multiplier: float = 1.5
    max_score: int = 1000

    def severity_penalty(self, severity: MistakeSeverity) -> int:
        """Return the point cost configured for a severity."""
        return int(self.severity_penalties[severity.value])


@dataclass(slots=True)
class TrendSettings:
    """Configuration for performance trend classification."""

    stability_threshold: float = 3.0


@dataclass(slots=True)
class ScorerConfig:
    """Configuration options for comparison, scoring and trend analysis."""

    comparison: ComparisonSettings = field(default_factory=ComparisonSettings)
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    trends: TrendSettings = field(default_factory=TrendSettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))


_SECTION_TYPES: Dict[str, type] = {
    "comparison": ComparisonSettings,
    "scoring": ScoringSettings,
    "trends": TrendSettings,
}


def _build_section(name: str, value: Any) -> Any:
    section_type = _SECTION_TYPES[name]
    if isinstance(value, section_type):
        return value
    if not isinstance(value, Mapping):
        raise ValueError(f"Configuration section '{name}' must be a mapping.")
    allowed = {item.name for item in fields(section_type)}
    unknown = sorted(set(value) - allowed)
    if unknown:
        logger.warning("Ignoring unknown %s settings: %s", name, ", ".join(unknown))
    filtered = {key: value[key] for key in value if key in allowed}
    if name == "scoring" and "severity_penalties" in filtered:
        filtered["severity_penalties"] = _merge_severity_penalties(
            filtered["severity_penalties"]
        )
    return section_type(**filtered)


def _merge_severity_penalties(data: Any) -> Dict[str, int]:
    if not isinstance(data, Mapping):
        raise ValueError("severity_penalties must be a mapping of severity to points.")
    merged = _default_severity_penalties()
    valid = {severity.value for severity in MistakeSeverity}
    for key, points in data.items():
        normalized = str(key).strip().lower()
        if normalized not in valid:
            raise ValueError(f"Unknown mistake severity '{key}'.")
        merged[normalized] = int(points)
    return merged


def config_from_dict(data: Mapping[str, Any] | None) -> ScorerConfig:
    """Build a ScorerConfig from a dictionary-like input."""
    if data is None:
        return ScorerConfig()
    kwargs = {
        name: _build_section(name, data[name])
        for name in _SECTION_TYPES
        if name in data and data[name] is not None
    }
    return ScorerConfig(**kwargs)


def config_from_yaml(path: str | Path) -> ScorerConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    logger.debug("Loaded configuration from %s", path)
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> ScorerConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return ScorerConfig()
    return config_from_yaml(path)
