# ABOUTME: Collapses a raw answer history into the statistics the scorers consume.
# ABOUTME: Single pass over the events; never mutates the input collection.

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from src.common.schemas import AnswerEvent

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class AnswerStats:
    """Sufficient statistics of an answer history."""

    total_answers: int
    unique_questions: int
    unique_correct: int
    weighted_correct: float
    weighted_total: float
    last_attempt_at: Optional[datetime]


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def age_in_days(timestamp: datetime, now: datetime) -> float:
    """Days from ``timestamp`` to ``now``; future timestamps count as zero."""
    delta = ensure_utc(now) - ensure_utc(timestamp)
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)


def decay_weight(age_days: float, tau_days: float) -> float:
    return math.exp(-age_days / tau_days)


def aggregate_answers(answers: Iterable[AnswerEvent], now: datetime, tau_days: float) -> AnswerStats:
    """
    Reduce answer events to counts, decay-weighted correctness and last activity.

    Retries of the same question count individually in ``total_answers`` and
    once in ``unique_questions``.
    """

    total = 0
    seen = set()
    seen_correct = set()
    weighted_correct = 0.0
    weighted_total = 0.0
    last_attempt_at: Optional[datetime] = None

    for answer in answers:
        total += 1
        seen.add(answer.question_id)
        timestamp = ensure_utc(answer.timestamp)
        w = decay_weight(age_in_days(timestamp, now), tau_days)
        weighted_total += w
        if answer.is_correct:
            weighted_correct += w
            seen_correct.add(answer.question_id)
        if last_attempt_at is None or timestamp > last_attempt_at:
            last_attempt_at = timestamp

    return AnswerStats(
        total_answers=total,
        unique_questions=len(seen),
        unique_correct=len(seen_correct),
        weighted_correct=weighted_correct,
        weighted_total=weighted_total,
        last_attempt_at=last_attempt_at,
    )
