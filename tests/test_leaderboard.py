# ABOUTME: Tests leaderboard materialization and rank lookups.
# ABOUTME: Builds synthetic answer frames for several users and quizzes.

from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from src.common.leaderboard import (
    BOARD_COLUMNS,
    XP_BOARD_COLUMNS,
    build_skill_leaderboard,
    build_xp_leaderboard,
    get_user_rank,
    get_user_xp_rank,
    participants_count,
    to_entries,
    xp_participants_count,
)

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _mk_events(user_id: str, unique: int, correct_ratio: float = 1.0, quiz_id=None, days_ago: float = 1.0):
    correct_count = int(unique * correct_ratio)
    df = pd.DataFrame(
        {
            "user_id": [user_id] * unique,
            "question_id": [f"q{i}" for i in range(unique)],
            "is_correct": [i < correct_count for i in range(unique)],
            "timestamp": [NOW - timedelta(days=days_ago)] * unique,
        }
    )
    if quiz_id is not None:
        df["quiz_id"] = quiz_id
    return df


def test_build_skill_leaderboard_ranks_by_score():
    events = pd.concat(
        [
            _mk_events("low", 10),
            _mk_events("high", 300),
            _mk_events("mid", 120, correct_ratio=0.5),
        ]
    )

    board = build_skill_leaderboard(events, bank_size=1000, now=NOW)

    assert list(board.columns) == BOARD_COLUMNS
    assert board["user_id"].tolist() == ["high", "mid", "low"]
    assert board["rank"].tolist() == [1, 2, 3]
    assert board.set_index("user_id").loc["low", "score"] == 0
    assert board.set_index("user_id").loc["high", "reliability"] == 1.0
    assert (board["last_calculated_at"] == NOW).all()


def test_build_skill_leaderboard_respects_limit():
    events = pd.concat([_mk_events("a", 300), _mk_events("b", 200), _mk_events("c", 100)])
    board = build_skill_leaderboard(events, bank_size=1000, now=NOW, limit=2)
    assert board["user_id"].tolist() == ["a", "b"]


def test_build_skill_leaderboard_ranks_each_quiz_separately():
    events = pd.concat(
        [
            _mk_events("u1", 300, quiz_id="quiz-a"),
            _mk_events("u2", 100, quiz_id="quiz-a"),
            _mk_events("u2", 300, quiz_id="quiz-b"),
        ]
    )

    board = build_skill_leaderboard(events, bank_size={"quiz-a": 400, "quiz-b": 300}, now=NOW)

    quiz_b = board[board["quiz_id"] == "quiz-b"]
    assert quiz_b["rank"].tolist() == [1]
    assert participants_count(board, "quiz-a") == 2
    assert participants_count(board) == 3

    entry = get_user_rank(board, "u2", quiz_id="quiz-a")
    assert entry.rank == 2
    assert entry.is_current_user
    with pytest.raises(ValueError):
        get_user_rank(board, "u2")


def test_get_user_rank_shares_rank_on_ties():
    events = pd.concat([_mk_events("a", 150), _mk_events("b", 150), _mk_events("c", 300)])
    board = build_skill_leaderboard(events, bank_size=1000, now=NOW)

    assert board["user_id"].tolist() == ["c", "a", "b"]
    assert get_user_rank(board, "a").rank == 2
    assert get_user_rank(board, "b").rank == 2
    assert set(get_user_rank(board, "b").breakdown) == {
        "volume_factor",
        "accuracy_weighted",
        "recency_score",
        "coverage_score",
        "reliability",
    }
    assert get_user_rank(board, "missing") is None


def test_to_entries_marks_current_user():
    events = pd.concat([_mk_events("a", 200), _mk_events("b", 100)])
    board = build_skill_leaderboard(events, bank_size=1000, now=NOW)

    entries = to_entries(board, current_user_id="b")

    assert [e.rank for e in entries] == [1, 2]
    assert [e.is_current_user for e in entries] == [False, True]


def test_build_skill_leaderboard_handles_empty_and_invalid_frames():
    empty = build_skill_leaderboard(pd.DataFrame(), bank_size=100, now=NOW)
    assert empty.empty
    assert list(empty.columns) == BOARD_COLUMNS

    no_users = pd.DataFrame({"question_id": ["q1"], "is_correct": [True], "timestamp": [NOW]})
    with pytest.raises(ValueError):
        build_skill_leaderboard(no_users, bank_size=100, now=NOW)


def _mk_xp_rows():
    return pd.DataFrame(
        {
            "user_id": ["a", "b", "c", "d", "e"],
            "total_xp": [120, 340, 120, None, 15],
        }
    )


def _mk_season_rows():
    return pd.DataFrame(
        {
            "user_id": ["a", "b", "c", "a"],
            "season_id": ["s1", "s1", "s1", "s2"],
            "xp": [50, 20, 50, 400],
        }
    )


def test_build_xp_leaderboard_ranks_all_time_xp():
    board = build_xp_leaderboard(_mk_xp_rows())

    assert list(board.columns) == XP_BOARD_COLUMNS
    assert board["user_id"].tolist() == ["b", "a", "c", "e"]
    assert board["rank"].tolist() == [1, 2, 3, 4]
    assert board["xp"].tolist() == [340, 120, 120, 15]
    assert build_xp_leaderboard(_mk_xp_rows(), limit=2)["user_id"].tolist() == ["b", "a"]


def test_build_xp_leaderboard_filters_by_season():
    board = build_xp_leaderboard(_mk_season_rows(), season_id="s1")

    assert board["user_id"].tolist() == ["a", "c", "b"]
    assert board["xp"].tolist() == [50, 50, 20]
    assert build_xp_leaderboard(_mk_season_rows(), season_id="missing").empty


def test_get_user_xp_rank_counts_strictly_higher_xp():
    rows = _mk_xp_rows()

    assert get_user_xp_rank(rows, "b").rank == 1
    assert get_user_xp_rank(rows, "a").rank == 2
    entry = get_user_xp_rank(rows, "c")
    assert entry.rank == 2
    assert entry.score == 120
    assert entry.is_current_user
    assert entry.breakdown is None
    assert get_user_xp_rank(rows, "e").rank == 4
    assert get_user_xp_rank(rows, "d") is None
    assert get_user_xp_rank(rows, "missing") is None

    seasonal = _mk_season_rows()
    assert get_user_xp_rank(seasonal, "b", season_id="s1").rank == 3
    assert get_user_xp_rank(seasonal, "a", season_id="s2").rank == 1


def test_xp_participants_count_skips_missing_xp():
    assert xp_participants_count(_mk_xp_rows()) == 4
    assert xp_participants_count(_mk_season_rows(), season_id="s1") == 3
    assert xp_participants_count(pd.DataFrame()) == 0


def test_xp_leaderboard_requires_columns():
    with pytest.raises(ValueError, match="total_xp"):
        build_xp_leaderboard(pd.DataFrame({"user_id": ["a"], "xp": [10]}))
    with pytest.raises(ValueError, match="season_id"):
        get_user_xp_rank(pd.DataFrame({"user_id": ["a"], "xp": [10]}), "a", season_id="s1")
