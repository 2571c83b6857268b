# ABOUTME: Computes XP awards and level progression for gamification.
# ABOUTME: One XP per correct answer; each level spans a fixed band of XP.

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .schemas import UserXpStats

XP_PER_LEVEL = 100


def xp_for_attempt(correct: Optional[int], answers: Optional[Iterable[Mapping[str, Any]]] = None) -> int:
    """
    XP earned by one attempt: the stored correct count when positive,
    otherwise the number of correct entries in ``answers``.
    """

    amount = int(correct or 0)
    if amount <= 0 and answers is not None:
        amount = sum(
            1
            for a in answers
            if isinstance(a, Mapping) and (a.get("isCorrect") or a.get("is_correct"))
        )
    return max(0, amount)


def compute_xp_stats(total_xp: Optional[int], season_xp: Optional[int] = 0) -> UserXpStats:
    """Level is ``total_xp // 100 + 1``; progress is the percentage through the current band."""
    total = max(0, int(total_xp or 0))
    season = max(0, int(season_xp or 0))

    level = total // XP_PER_LEVEL + 1
    band_start = (level - 1) * XP_PER_LEVEL
    progress = (total - band_start) / XP_PER_LEVEL * 100
    progress = min(100.0, max(0.0, progress))

    return UserXpStats(
        total_xp=total,
        season_xp=season,
        current_level=level,
        next_level_progress=int(round(progress)),
    )
