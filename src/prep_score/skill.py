# ABOUTME: Skill-score variant weighting official simulations and recent trend.
# ABOUTME: Alternative configuration of the same volume/accuracy/trend scoring design.

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional, Sequence

from src.common.schemas import AnswerEvent, SkillScoreResult

from .aggregation import age_in_days, decay_weight, utc_now
from .components import clamp
from .config import DEFAULT_SKILL_CONFIG, SkillScoringConfig


def compute_skill_score(
    answers: Sequence[AnswerEvent],
    now: Optional[datetime] = None,
    config: SkillScoringConfig = DEFAULT_SKILL_CONFIG,
) -> SkillScoreResult:
    """
    Score candidate strength on a 0-100 scale from weighted accuracy, volume and trend.

    Each answer is weighted by time decay and by type (official simulations
    count ``official_bonus`` times a custom quiz answer). The effective
    volume is the summed weight, so stale history contributes little.
    """

    if not answers:
        return SkillScoreResult(score=0.0, accuracy_weighted=0.0, volume_factor=0.0, trend_multiplier=1.0)

    if now is None:
        now = utc_now()

    weighted_total = 0.0
    weighted_correct = 0.0
    recent_mass = recent_correct = 0.0
    old_mass = old_correct = 0.0

    for answer in answers:
        age = age_in_days(answer.timestamp, now)
        type_weight = config.official_bonus if answer.is_official else config.custom_weight
        w = decay_weight(age, config.decay_tau_days) * type_weight

        weighted_total += w
        if answer.is_correct:
            weighted_correct += w

        if age < config.recent_days:
            recent_mass += w
            if answer.is_correct:
                recent_correct += w
        else:
            old_mass += w
            if answer.is_correct:
                old_correct += w

    accuracy = weighted_correct / weighted_total if weighted_total > config.weight_epsilon else 0.0
    volume = 1.0 - math.exp(-weighted_total / config.volume_k)

    # Neutral trend unless both windows carry enough evidence.
    trend = 1.0
    if recent_mass > config.min_trend_mass and old_mass > config.min_trend_mass:
        delta = recent_correct / recent_mass - old_correct / old_mass
        trend = clamp(1.0 + config.trend_slope * delta, config.trend_min, config.trend_max)

    score = 100.0 * accuracy * volume * trend
    if weighted_total < config.low_activity_mass:
        score *= math.sqrt(weighted_total / config.low_activity_mass)
    score = clamp(score, 0.0, 100.0)

    return SkillScoreResult(
        score=_round_to(score, 2),
        accuracy_weighted=_round_to(accuracy, 4),
        volume_factor=_round_to(volume, 4),
        trend_multiplier=_round_to(trend, 4),
    )


def _round_to(value: float, digits: int) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale
