# ABOUTME: Holds the tunable constants of the preparation and skill scores.
# ABOUTME: Loads overrides from YAML so weights can be tuned without code changes.

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Tuple

import yaml

VOLUME_BASES = ("unique_questions", "unique_correct")


@dataclass(frozen=True)
class ScoringWeights:
    """Composer weights; must sum to 1."""

    volume: float = 0.45
    accuracy: float = 0.30
    recency: float = 0.15
    coverage: float = 0.10

    def __post_init__(self) -> None:
        values = (self.volume, self.accuracy, self.recency, self.coverage)
        if any(v < 0 for v in values):
            raise ValueError(f"Scoring weights must be non-negative, got {values}.")
        if abs(sum(values) - 1.0) > 1e-6:
            raise ValueError(f"Scoring weights must sum to 1.0, got {sum(values):.6f}.")


@dataclass(frozen=True)
class ScoringConfig:
    """Configuration for the preparation score."""

    weights: ScoringWeights = field(default_factory=ScoringWeights)
    accuracy_tau_days: float = 30.0
    recency_max_days: float = 30.0
    min_unique: int = 50
    max_unique: int = 300
    volume_ref_ratio: float = 0.6
    fallback_bank_size: int = 1000
    coverage_mix: float = 0.5
    weight_epsilon: float = 1e-4
    volume_basis: str = "unique_questions"

    def __post_init__(self) -> None:
        if self.accuracy_tau_days <= 0 or self.recency_max_days <= 0:
            raise ValueError("Decay and recency horizons must be positive.")
        if self.max_unique <= self.min_unique:
            raise ValueError(
                f"max_unique ({self.max_unique}) must exceed min_unique ({self.min_unique})."
            )
        if self.volume_ref_ratio <= 0 or self.fallback_bank_size <= 0:
            raise ValueError("Volume reference ratio and fallback bank size must be positive.")
        if not 0.0 <= self.coverage_mix <= 1.0:
            raise ValueError(f"coverage_mix must lie in [0, 1], got {self.coverage_mix}.")
        if self.volume_basis not in VOLUME_BASES:
            raise ValueError(
                f"Unsupported volume_basis '{self.volume_basis}'. Expected one of: {', '.join(VOLUME_BASES)}."
            )


@dataclass(frozen=True)
class SkillScoringConfig:
    """Configuration for the skill-score variant."""

    decay_tau_days: float = 21.0
    volume_k: float = 300.0
    official_bonus: float = 1.25
    custom_weight: float = 1.0
    recent_days: float = 14.0
    trend_slope: float = 0.5
    trend_min: float = 0.8
    trend_max: float = 1.1
    min_trend_mass: float = 1.0
    low_activity_mass: float = 50.0
    weight_epsilon: float = 0.001

    def __post_init__(self) -> None:
        if self.decay_tau_days <= 0 or self.volume_k <= 0 or self.low_activity_mass <= 0:
            raise ValueError("Decay, volume scale and low-activity mass must be positive.")
        if self.trend_min > self.trend_max:
            raise ValueError(f"trend_min ({self.trend_min}) exceeds trend_max ({self.trend_max}).")


DEFAULT_CONFIG = ScoringConfig()
DEFAULT_SKILL_CONFIG = SkillScoringConfig()


def load_scoring_config(config_path: Path) -> Tuple[ScoringConfig, SkillScoringConfig]:
    """
    Load preparation and skill scoring configs from a YAML file.

    Expected layout::

        preparation:
          weights: {volume: 0.45, accuracy: 0.30, recency: 0.15, coverage: 0.10}
          accuracy_tau_days: 30
        skill:
          decay_tau_days: 21

    Missing sections or keys fall back to the defaults.
    """

    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}

    prep_cfg = dict(cfg.get("preparation") or {})
    _reject_unknown_keys(prep_cfg, ScoringConfig, "preparation")
    weights_cfg = prep_cfg.pop("weights", None) or {}
    _reject_unknown_keys(weights_cfg, ScoringWeights, "preparation.weights")
    preparation = ScoringConfig(weights=ScoringWeights(**weights_cfg), **prep_cfg)

    skill_cfg = cfg.get("skill") or {}
    _reject_unknown_keys(skill_cfg, SkillScoringConfig, "skill")
    skill = SkillScoringConfig(**skill_cfg)

    return preparation, skill


def _reject_unknown_keys(section: Mapping[str, Any], cls: type, name: str) -> None:
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ValueError(f"Unknown keys in '{name}' config section: {', '.join(unknown)}.")
