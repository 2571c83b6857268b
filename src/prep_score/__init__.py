# ABOUTME: Exposes the preparation-score engine entrypoints.
# ABOUTME: Groups configuration, aggregation, component scorers and the composer.

from .config import (
    DEFAULT_CONFIG,
    DEFAULT_SKILL_CONFIG,
    ScoringConfig,
    ScoringWeights,
    SkillScoringConfig,
    load_scoring_config,
)
from .scoring import compute_score, score_answers
from .skill import compute_skill_score

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_SKILL_CONFIG",
    "ScoringConfig",
    "ScoringWeights",
    "SkillScoringConfig",
    "load_scoring_config",
    "compute_score",
    "score_answers",
    "compute_skill_score",
]
