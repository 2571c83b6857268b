# ABOUTME: Normalizes stored quiz attempts and tabular data into canonical answer events.
# ABOUTME: Converts between AnswerEvent lists and pandas frames for batch scoring.

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from .schemas import AnswerEvent

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ["question_id", "is_correct", "timestamp", "is_official"]
REQUIRED_COLUMNS = ["question_id", "is_correct", "timestamp"]
QUESTION_ID_KEYS = ("questionId", "question_id", "id")


def answers_from_attempts(attempts: Iterable[Mapping[str, Any]]) -> List[AnswerEvent]:
    """
    Flatten stored quiz attempts into one AnswerEvent per answered question.

    Each attempt carries ``created_at`` and an ``answers`` list of mappings.
    Answers take their attempt's timestamp; answers without a question id and
    attempts without an answers list are skipped.
    """

    events: List[AnswerEvent] = []
    skipped = 0
    for attempt in attempts:
        answers = attempt.get("answers")
        if not isinstance(answers, list):
            continue
        timestamp = _parse_timestamp(attempt.get("created_at"))
        if timestamp is None:
            skipped += len(answers)
            continue
        is_official = bool(attempt.get("is_official", False))
        for answer in answers:
            question_id = _question_id(answer)
            if question_id is None:
                skipped += 1
                continue
            events.append(
                AnswerEvent(
                    question_id=question_id,
                    is_correct=_is_correct(answer),
                    timestamp=timestamp,
                    is_official=is_official,
                )
            )

    if skipped:
        logger.warning(f"Skipped {skipped} answers without a question id or timestamp")
    logger.debug(f"Flattened attempts into {len(events)} answer events")
    return events


def events_to_frame(events: Iterable[AnswerEvent], user_id: Optional[str] = None) -> pd.DataFrame:
    """Build a frame with one row per answer event."""
    rows = []
    for event in events:
        row = {
            "question_id": event.question_id,
            "is_correct": bool(event.is_correct),
            "timestamp": event.timestamp,
            "is_official": bool(event.is_official),
        }
        if user_id is not None:
            row["user_id"] = user_id
        rows.append(row)

    columns = (["user_id"] if user_id is not None else []) + EVENT_COLUMNS
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows, columns=columns)
    df["timestamp"] = _to_utc_timestamps(df["timestamp"])
    return df


def normalize_events_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Validate and coerce an answer-events frame.

    Timestamps are parsed as UTC; rows with unparseable timestamps or missing
    question ids are dropped. ``is_official`` defaults to False.
    """

    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise ValueError(f"Answer events are missing required columns: {', '.join(missing)}.")

    df = frame.copy()
    if not pd.api.types.is_datetime64_any_dtype(df["timestamp"]):
        df["timestamp"] = _to_utc_timestamps(df["timestamp"])
    elif df["timestamp"].dt.tz is None:
        df["timestamp"] = df["timestamp"].dt.tz_localize("UTC")

    if "is_official" not in df.columns:
        df["is_official"] = False
    df["is_official"] = df["is_official"].apply(_truthy)
    df["is_correct"] = df["is_correct"].apply(_truthy)

    before = len(df)
    df = df.dropna(subset=["question_id", "timestamp"])
    df["question_id"] = df["question_id"].astype(str)
    dropped = before - len(df)
    if dropped:
        logger.warning(f"Dropped {dropped} answer rows with missing question id or timestamp")
    return df


def frame_to_events(frame: pd.DataFrame) -> List[AnswerEvent]:
    """Convert an answer-events frame back into AnswerEvent objects."""
    df = normalize_events_frame(frame)
    return [
        AnswerEvent(
            question_id=row.question_id,
            is_correct=bool(row.is_correct),
            timestamp=row.timestamp.to_pydatetime(),
            is_official=bool(row.is_official),
        )
        for row in df.itertuples(index=False)
    ]


def _to_utc_timestamps(values: pd.Series) -> pd.Series:
    # Stored timestamps mix fractional-second precisions and offset spellings.
    return pd.to_datetime(values, utc=True, errors="coerce", format="ISO8601")


def _question_id(answer: Any) -> Optional[str]:
    if not isinstance(answer, Mapping):
        return None
    for key in QUESTION_ID_KEYS:
        value = answer.get(key)
        if value is not None and value != "":
            return str(value)
    return None


def _is_correct(answer: Mapping[str, Any]) -> bool:
    if "isCorrect" in answer:
        return bool(answer["isCorrect"])
    return bool(answer.get("is_correct", False))


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "t", "yes", "y"}
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    return bool(value)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    parsed = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()
