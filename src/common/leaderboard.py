# ABOUTME: Materializes per-quiz preparation-score leaderboards and XP leaderboards.
# ABOUTME: Scores every (quiz, user) group, ranks users, and looks up individual ranks.

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Union

import pandas as pd

from src.prep_score.aggregation import utc_now
from src.prep_score.config import DEFAULT_CONFIG, ScoringConfig
from src.prep_score.scoring import compute_score

from .events import frame_to_events, normalize_events_frame
from .schemas import LeaderboardEntry, ScoreInput

logger = logging.getLogger(__name__)

BREAKDOWN_COLUMNS = ["volume_factor", "accuracy_weighted", "recency_score", "coverage_score", "reliability"]
BOARD_COLUMNS = (
    ["rank", "quiz_id", "user_id", "score"]
    + BREAKDOWN_COLUMNS
    + ["unique_questions", "total_answers", "last_calculated_at"]
)

XP_BOARD_COLUMNS = ["rank", "user_id", "xp"]
DEFAULT_XP_LIMIT = 50

BankSize = Union[int, Mapping[str, int]]


def build_skill_leaderboard(
    events_df: pd.DataFrame,
    bank_size: BankSize,
    now: Optional[datetime] = None,
    config: ScoringConfig = DEFAULT_CONFIG,
    limit: Optional[int] = None,
) -> pd.DataFrame:
    """
    Score every user (per quiz when a ``quiz_id`` column is present) and rank them.

    ``bank_size`` is either one size for all quizzes or a mapping from quiz id
    to size; quizzes missing from the mapping fall back to the default
    reference. All users are scored against the same ``now`` so the board is
    a consistent snapshot. Ties are ordered by user id.
    """

    if events_df is None or events_df.empty:
        return pd.DataFrame(columns=BOARD_COLUMNS)
    if "user_id" not in events_df.columns:
        raise ValueError("Answer events are missing required columns: user_id.")

    if now is None:
        now = utc_now()

    events = normalize_events_frame(events_df)
    events = events.dropna(subset=["user_id"])
    if "quiz_id" not in events.columns:
        events["quiz_id"] = None
    events["user_id"] = events["user_id"].astype(str)

    rows: List[Dict] = []
    for (quiz_id, user_id), group in events.groupby(["quiz_id", "user_id"], sort=False, dropna=False):
        quiz_key = None if pd.isna(quiz_id) else str(quiz_id)
        result = compute_score(
            ScoreInput(answers=frame_to_events(group), bank_size=_bank_size_for(bank_size, quiz_key)),
            now=now,
            config=config,
        )
        row = {"quiz_id": quiz_key, "user_id": user_id, "score": result.score}
        row.update(result.breakdown())
        row["unique_questions"] = result.unique_questions
        row["total_answers"] = result.total_answers
        row["last_calculated_at"] = result.computed_at
        rows.append(row)

    logger.debug(f"Scored {len(rows)} leaderboard rows")
    if not rows:
        return pd.DataFrame(columns=BOARD_COLUMNS)

    board = pd.DataFrame(rows)
    board["_quiz_sort"] = board["quiz_id"].fillna("")
    board = board.sort_values(
        ["_quiz_sort", "score", "user_id"], ascending=[True, False, True], kind="mergesort"
    ).drop(columns="_quiz_sort")
    board["rank"] = board.groupby(board["quiz_id"].fillna(""), sort=False).cumcount() + 1

    if limit is not None:
        board = board[board["rank"] <= limit]

    return board[BOARD_COLUMNS].reset_index(drop=True)


def get_user_rank(board: pd.DataFrame, user_id: str, quiz_id: Optional[str] = None) -> Optional[LeaderboardEntry]:
    """
    Rank of one user: one plus the number of rows with a strictly higher score.

    Returns None when the user has no row. Raises ValueError when the board
    spans several quizzes containing the user and no ``quiz_id`` is given.
    """

    scoped = _scope(board, quiz_id)
    user_rows = scoped[scoped["user_id"] == user_id]
    if user_rows.empty:
        return None
    if len(user_rows) > 1:
        raise ValueError(f"User '{user_id}' appears in several quizzes; pass quiz_id to disambiguate.")

    user_row = user_rows.iloc[0]
    peers = scoped
    if "quiz_id" in scoped.columns:
        user_quiz = "" if pd.isna(user_row["quiz_id"]) else user_row["quiz_id"]
        peers = scoped[scoped["quiz_id"].fillna("") == user_quiz]
    higher = int((peers["score"] > user_row["score"]).sum())

    return LeaderboardEntry(
        rank=higher + 1,
        user_id=user_id,
        score=float(user_row["score"]),
        is_current_user=True,
        breakdown=_breakdown(user_row),
    )


def to_entries(board: pd.DataFrame, current_user_id: Optional[str] = None) -> List[LeaderboardEntry]:
    """Convert board rows to LeaderboardEntry objects in board order."""
    entries = []
    for _, row in board.iterrows():
        entries.append(
            LeaderboardEntry(
                rank=int(row["rank"]),
                user_id=str(row["user_id"]),
                score=float(row["score"]),
                is_current_user=current_user_id is not None and row["user_id"] == current_user_id,
                breakdown=_breakdown(row),
            )
        )
    return entries


def participants_count(board: pd.DataFrame, quiz_id: Optional[str] = None) -> int:
    return int(len(_scope(board, quiz_id)))


def _scope(board: pd.DataFrame, quiz_id: Optional[str]) -> pd.DataFrame:
    if quiz_id is None or "quiz_id" not in board.columns:
        return board
    return board[board["quiz_id"] == quiz_id]


def _bank_size_for(bank_size: BankSize, quiz_id: Optional[str]) -> int:
    if isinstance(bank_size, Mapping):
        return int(bank_size.get(quiz_id, 0) or 0)
    return int(bank_size)


def _breakdown(row: pd.Series) -> Dict[str, float]:
    return {col: float(row[col]) for col in BREAKDOWN_COLUMNS if col in row.index and pd.notna(row[col])}


def build_xp_leaderboard(
    xp_df: pd.DataFrame,
    season_id: Optional[str] = None,
    limit: Optional[int] = DEFAULT_XP_LIMIT,
) -> pd.DataFrame:
    """
    Rank users by XP, highest first, ties ordered by user id.

    Without ``season_id`` the board uses each user's all-time ``total_xp``.
    With a season it keeps rows whose ``season_id`` matches and ranks their
    ``xp``. Users with no XP value are left off the board.
    """

    scoped = _xp_scope(xp_df, season_id)
    if scoped.empty:
        return pd.DataFrame(columns=XP_BOARD_COLUMNS)

    board = scoped.sort_values(["xp", "user_id"], ascending=[False, True], kind="mergesort")
    board["rank"] = range(1, len(board) + 1)
    if limit is not None:
        board = board[board["rank"] <= limit]

    logger.debug(f"Ranked {len(board)} users by XP (season={season_id})")
    return board[XP_BOARD_COLUMNS].reset_index(drop=True)


def get_user_xp_rank(
    xp_df: pd.DataFrame, user_id: str, season_id: Optional[str] = None
) -> Optional[LeaderboardEntry]:
    """XP rank of one user: one plus the number of users with strictly more XP."""
    scoped = _xp_scope(xp_df, season_id)
    user_rows = scoped[scoped["user_id"] == user_id]
    if user_rows.empty:
        return None

    user_xp = user_rows["xp"].max()
    higher = int((scoped["xp"] > user_xp).sum())
    return LeaderboardEntry(rank=higher + 1, user_id=user_id, score=float(user_xp), is_current_user=True)


def xp_participants_count(xp_df: pd.DataFrame, season_id: Optional[str] = None) -> int:
    return int(len(_xp_scope(xp_df, season_id)))


def _xp_scope(xp_df: pd.DataFrame, season_id: Optional[str]) -> pd.DataFrame:
    # One row per user with a non-null "xp" column.
    if xp_df is None or xp_df.empty:
        return pd.DataFrame(columns=["user_id", "xp"])

    xp_column = "total_xp" if season_id is None else "xp"
    required = ["user_id", xp_column] + ([] if season_id is None else ["season_id"])
    missing = [col for col in required if col not in xp_df.columns]
    if missing:
        raise ValueError(f"XP rows are missing required columns: {', '.join(missing)}.")

    rows = xp_df
    if season_id is not None:
        rows = rows[rows["season_id"] == season_id]
    scoped = pd.DataFrame(
        {
            "user_id": rows["user_id"].astype(str),
            "xp": pd.to_numeric(rows[xp_column], errors="coerce"),
        }
    )
    scoped = scoped.dropna(subset=["xp"])
    return scoped.groupby("user_id", as_index=False)["xp"].max()
