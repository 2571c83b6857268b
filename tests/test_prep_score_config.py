# ABOUTME: Validates scoring configuration dataclasses and YAML loading.
# ABOUTME: Ensures invalid tuning values are rejected before any scoring runs.

from pathlib import Path

import pytest

from src.prep_score.config import (
    DEFAULT_CONFIG,
    DEFAULT_SKILL_CONFIG,
    ScoringConfig,
    ScoringWeights,
    SkillScoringConfig,
    load_scoring_config,
)

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_default_weights_sum_to_one():
    w = DEFAULT_CONFIG.weights
    assert (w.volume, w.accuracy, w.recency, w.coverage) == (0.45, 0.30, 0.15, 0.10)


def test_weights_must_sum_to_one():
    with pytest.raises(ValueError):
        ScoringWeights(volume=0.5, accuracy=0.5, recency=0.5, coverage=0.0)


def test_weights_must_be_non_negative():
    with pytest.raises(ValueError):
        ScoringWeights(volume=1.2, accuracy=-0.2, recency=0.0, coverage=0.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_unique": 300, "max_unique": 300},
        {"accuracy_tau_days": 0},
        {"recency_max_days": -1},
        {"volume_basis": "total_answers"},
        {"coverage_mix": 1.5},
    ],
)
def test_scoring_config_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        ScoringConfig(**kwargs)


def test_skill_config_rejects_inverted_trend_bounds():
    with pytest.raises(ValueError):
        SkillScoringConfig(trend_min=1.2, trend_max=1.1)


def test_shipped_config_matches_defaults():
    preparation, skill = load_scoring_config(REPO_ROOT / "configs" / "prep_score.yaml")
    assert preparation == DEFAULT_CONFIG
    assert skill == DEFAULT_SKILL_CONFIG


def test_load_scoring_config_applies_overrides(tmp_path):
    path = tmp_path / "scoring.yaml"
    path.write_text(
        """
preparation:
  weights: {volume: 0.25, accuracy: 0.50, recency: 0.15, coverage: 0.10}
  min_unique: 20
  volume_basis: unique_correct
skill:
  decay_tau_days: 14
""",
        encoding="utf-8",
    )

    preparation, skill = load_scoring_config(path)

    assert preparation.weights.accuracy == 0.50
    assert preparation.min_unique == 20
    assert preparation.max_unique == 300
    assert preparation.volume_basis == "unique_correct"
    assert skill.decay_tau_days == 14
    assert skill.volume_k == 300


def test_load_scoring_config_handles_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_scoring_config(path) == (DEFAULT_CONFIG, DEFAULT_SKILL_CONFIG)


def test_load_scoring_config_rejects_unknown_keys(tmp_path):
    path = tmp_path / "typo.yaml"
    path.write_text("preparation:\n  min_uniq: 20\n", encoding="utf-8")
    with pytest.raises(ValueError, match="min_uniq"):
        load_scoring_config(path)
