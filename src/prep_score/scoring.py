# ABOUTME: Composes component sub-scores into the gated 0-100 preparation score.
# ABOUTME: Pure function of the answer history, the bank size and the injected "now".

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Optional

from src.common.schemas import AnswerEvent, ScoreInput, ScoreResult

from .aggregation import aggregate_answers, utc_now
from .components import (
    accuracy_score,
    clamp,
    coverage_score,
    recency_score,
    reliability_gate,
    volume_score,
)
from .config import DEFAULT_CONFIG, ScoringConfig


def compute_score(
    score_input: ScoreInput,
    now: Optional[datetime] = None,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> ScoreResult:
    """
    Compute the preparation score for one answer history.

    Steps:
    - Aggregate events into counts, decay-weighted correctness and last activity.
    - Score volume, accuracy, recency and coverage, each in [0, 1].
    - Combine them with the configured weights and multiply by the reliability gate.
    - Scale to an integer in [0, 100].

    ``now`` defaults to the current UTC time. Accuracy and recency depend on it,
    so the same history scores lower as it ages; ``computed_at`` records the
    instant used.
    """

    if now is None:
        now = utc_now()

    stats = aggregate_answers(score_input.answers, now, config.accuracy_tau_days)
    if stats.total_answers == 0:
        return ScoreResult(
            score=0,
            volume_score=0.0,
            accuracy_score=0.0,
            recency_score=0.0,
            coverage_score=0.0,
            reliability=0.0,
            unique_questions=0,
            total_answers=0,
            unique_correct=0,
            computed_at=now,
        )

    bank_size = score_input.bank_size
    if config.volume_basis == "unique_correct":
        distinct = stats.unique_correct
    else:
        distinct = stats.unique_questions

    volume = volume_score(distinct, bank_size, config)
    accuracy = accuracy_score(stats.weighted_correct, stats.weighted_total, config)
    recency = recency_score(stats.last_attempt_at, now, config)
    coverage = coverage_score(stats.unique_questions, stats.total_answers, bank_size, config)
    reliability = reliability_gate(stats.unique_questions, config)

    weights = config.weights
    base01 = (
        weights.volume * volume
        + weights.accuracy * accuracy
        + weights.recency * recency
        + weights.coverage * coverage
    )
    final01 = clamp(base01 * reliability, 0.0, 1.0)

    return ScoreResult(
        score=_round_half_up(100 * final01),
        volume_score=volume,
        accuracy_score=accuracy,
        recency_score=recency,
        coverage_score=coverage,
        reliability=reliability,
        unique_questions=stats.unique_questions,
        total_answers=stats.total_answers,
        unique_correct=stats.unique_correct,
        computed_at=now,
    )


def score_answers(
    answers: Iterable[AnswerEvent],
    bank_size: int,
    now: Optional[datetime] = None,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> ScoreResult:
    """Convenience wrapper building the ScoreInput from loose arguments."""
    return compute_score(ScoreInput(answers=tuple(answers), bank_size=bank_size), now=now, config=config)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
