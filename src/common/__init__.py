# ABOUTME: Makes the shared common package importable across engines.
# ABOUTME: Re-exports schema types and event normalization helpers for convenience.

from .schemas import AnswerEvent, LeaderboardEntry, ScoreInput, ScoreResult, SkillScoreResult, UserXpStats
from .events import answers_from_attempts, events_to_frame, frame_to_events

__all__ = [
    "AnswerEvent",
    "LeaderboardEntry",
    "ScoreInput",
    "ScoreResult",
    "SkillScoreResult",
    "UserXpStats",
    "answers_from_attempts",
    "events_to_frame",
    "frame_to_events",
]
