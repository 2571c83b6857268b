# ABOUTME: Component scorers mapping answer statistics to normalized [0, 1] sub-scores.
# ABOUTME: Covers volume, time-weighted accuracy, recency, coverage and the reliability gate.

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from .aggregation import age_in_days
from .config import DEFAULT_CONFIG, ScoringConfig


def clamp(x: float, low: float, high: float) -> float:
    return max(low, min(high, x))


def safe_bank_size(bank_size: int, config: ScoringConfig = DEFAULT_CONFIG) -> int:
    """Bank size with the fallback reference substituted for non-positive values."""
    return bank_size if bank_size > 0 else config.fallback_bank_size


def volume_score(distinct_count: int, bank_size: int, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    """
    Exponential saturation on distinct questions relative to the bank.

    Near-linear for small ratios and approaching 1 as the reference volume
    (``volume_ref_ratio`` of the bank) is exceeded.
    """

    v_ref = config.volume_ref_ratio * safe_bank_size(bank_size, config)
    raw = distinct_count / v_ref
    return clamp(1.0 - math.exp(-raw), 0.0, 1.0)


def accuracy_score(weighted_correct: float, weighted_total: float, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    """Decay-weighted share of correct answers; 0 when the total weight is negligible."""
    if weighted_total < config.weight_epsilon:
        return 0.0
    return clamp(weighted_correct / weighted_total, 0.0, 1.0)


def recency_score(last_attempt_at: Optional[datetime], now: datetime, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    """Linear decay from 1 (active now) to 0 after ``recency_max_days`` idle."""
    if last_attempt_at is None:
        return 0.0
    days_since_last = age_in_days(last_attempt_at, now)
    return 1.0 - clamp(days_since_last / config.recency_max_days, 0.0, 1.0)


def coverage_score(
    unique_questions: int,
    total_answers: int,
    bank_size: int,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> float:
    """Mix of bank coverage and answer diversity (unique / total)."""
    if total_answers <= 0:
        return 0.0
    coverage_raw = clamp(unique_questions / safe_bank_size(bank_size, config), 0.0, 1.0)
    diversity_raw = clamp(unique_questions / total_answers, 0.0, 1.0)
    return config.coverage_mix * coverage_raw + (1.0 - config.coverage_mix) * diversity_raw


def reliability_gate(unique_questions: int, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    """Zero up to ``min_unique`` distinct questions, then a linear ramp saturating at ``max_unique``."""
    if unique_questions <= config.min_unique:
        return 0.0
    span = config.max_unique - config.min_unique
    return clamp((unique_questions - config.min_unique) / span, 0.0, 1.0)
