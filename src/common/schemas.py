# ABOUTME: Defines canonical data structures shared by the scoring engines.
# ABOUTME: Centralizes answer event, score result, and leaderboard schema definitions.

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Mapping, Optional, Sequence


@dataclass(frozen=True)
class AnswerEvent:
    """One recorded answer to one question, across any of a user's attempts."""

    question_id: str
    is_correct: bool
    timestamp: datetime
    is_official: bool = False


@dataclass(frozen=True)
class ScoreInput:
    """Answer history for one scope (e.g. one user on one quiz) plus its bank size."""

    answers: Sequence[AnswerEvent]
    bank_size: int


@dataclass(frozen=True)
class ScoreResult:
    """Preparation score with the component breakdown that explains it."""

    score: int
    volume_score: float
    accuracy_score: float
    recency_score: float
    coverage_score: float
    reliability: float
    unique_questions: int
    total_answers: int
    unique_correct: int = 0
    computed_at: Optional[datetime] = None

    def breakdown(self) -> Dict[str, float]:
        """Breakdown keyed like the persisted leaderboard columns."""
        return {
            "volume_factor": self.volume_score,
            "accuracy_weighted": self.accuracy_score,
            "recency_score": self.recency_score,
            "coverage_score": self.coverage_score,
            "reliability": self.reliability,
        }


@dataclass(frozen=True)
class SkillScoreResult:
    """Output of the skill-score variant (official bonus + trend)."""

    score: float
    accuracy_weighted: float
    volume_factor: float
    trend_multiplier: float


@dataclass(frozen=True)
class LeaderboardEntry:
    """A ranked row of a per-quiz leaderboard."""

    rank: int
    user_id: str
    score: float
    is_current_user: bool = False
    breakdown: Optional[Mapping[str, float]] = None


@dataclass(frozen=True)
class UserXpStats:
    """XP totals and level progression for profile display."""

    total_xp: int
    season_xp: int
    current_level: int
    next_level_progress: int
