from datetime import datetime
from typing import Iterable

import pandas as pd

LOG_COLUMNS = [
    "log_type",
    "timestamp",
    "duration",
    "meal_type",
    "mood_level",
    "severity_level",
    "symptom_type",
    "digestion_quality",
    "supplement_name",
]
ACTIVITY_TYPES = ("Walk", "Playtime")


def logs_to_frame(logs: Iterable) -> pd.DataFrame:
    """Flatten log records (ORM rows or schemas) into a UTC-indexed DataFrame.

    Soft-deleted entries are dropped. ``minutes`` is the numeric duration,
    0 when missing or unparseable.
    """
    records = [
        {column: getattr(log, column, None) for column in LOG_COLUMNS}
        for log in logs
        if not getattr(log, "is_deleted", False)
    ]
    df = pd.DataFrame(records, columns=LOG_COLUMNS)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df["day"] = df["timestamp"].dt.date
    df["minutes"] = pd.to_numeric(df["duration"], errors="coerce").fillna(0)
    df["mood_level"] = pd.to_numeric(df["mood_level"], errors="coerce")
    df["severity_level"] = pd.to_numeric(df["severity_level"], errors="coerce")
    for column in ("log_type", "meal_type", "symptom_type", "digestion_quality", "supplement_name"):
        df[column] = df[column].fillna("").astype(str).str.strip()
    return df.sort_values("timestamp").reset_index(drop=True)


def to_timestamp(now: datetime) -> pd.Timestamp:
    stamp = pd.Timestamp(now)
    if stamp.tzinfo is None:
        return stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


def within(df: pd.DataFrame, now: pd.Timestamp, days: int, skip_days: int = 0) -> pd.DataFrame:
    """Rows from ``days`` ago up to ``skip_days`` ago (exclusive end when skipping)."""
    start = now - pd.Timedelta(days=days)
    mask = df["timestamp"] >= start
    if skip_days:
        mask &= df["timestamp"] < now - pd.Timedelta(days=skip_days)
    return df[mask]


def of_type(df: pd.DataFrame, *log_types: str) -> pd.DataFrame:
    return df[df["log_type"].isin(log_types)]
