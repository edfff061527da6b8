# ABOUTME: Defines canonical data structures shared by the video analytics pipeline.
# ABOUTME: Centralizes event, video attribute, and aggregated segment column contracts.

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

import pandas as pd

EVENT_COLUMNS = (
    "user_id",
    "video_id",
    "segment",
    "min_into_video",
    "count",
    "last_segment",
    "max_stop_position",
    "course_order",
    "video_name",
)

VIDEO_ATTRIBUTE_COLUMNS = (
    "video_id",
    "last_segment",
    "course_order",
    "vid_length",
    "video_name",
    "unique_views",
)

AGGREGATED_SEGMENT_COLUMNS = (
    "video_id",
    "min_into_video",
    "segment",
    "last_segment",
    "count",
    "course_order",
    "vid_length",
    "video_name",
    "unique_views",
    "watch_rate",
    "avg_watch_rate",
    "high_low",
    "up_until",
)

HIGH_WATCH_RATE = "High Watch Rate"
LOW_WATCH_RATE = "Low Watch Rate"
NORMAL_WATCH_RATE = "Normal"


class DataIntegrityError(ValueError):
    """Raised when input tables violate the pipeline's data contract."""


@dataclass(frozen=True)
class VideoEvent:
    """Canonical per-(user, video, segment) watch event."""

    user_id: Optional[str]
    video_id: str
    segment: int
    min_into_video: float
    count: int
    last_segment: int
    max_stop_position: float
    course_order: int
    video_name: str
    index_chapter: Optional[int] = None
    time: Optional[datetime] = None


def events_to_frame(events: Iterable[VideoEvent]) -> pd.DataFrame:
    """Convert VideoEvent records into the tabular layout consumed by the pipeline."""

    rows = [
        {
            "user_id": event.user_id,
            "video_id": event.video_id,
            "segment": event.segment,
            "min_into_video": event.min_into_video,
            "count": event.count,
            "last_segment": event.last_segment,
            "max_stop_position": event.max_stop_position,
            "course_order": event.course_order,
            "video_name": event.video_name,
            "index_chapter": event.index_chapter,
            "time": event.time,
        }
        for event in events
    ]
    if not rows:
        return pd.DataFrame(columns=list(EVENT_COLUMNS) + ["index_chapter", "time"])
    return pd.DataFrame(rows)


def require_columns(df: pd.DataFrame, columns: Iterable[str], table: str = "events") -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise DataIntegrityError(f"Missing required column(s) in {table}: {', '.join(missing)}")


def assert_constant_within(df: pd.DataFrame, key: str, columns: Iterable[str], table: str = "events") -> None:
    """
    Raise DataIntegrityError when any of `columns` takes more than one value within a `key` group.

    Nulls count as a value so a video with a name on some rows and none on others is rejected.
    """

    columns = [col for col in columns if col in df.columns]
    if df.empty or not columns:
        return
    distinct = df.groupby(key, sort=False)[columns].nunique(dropna=False)
    offenders = distinct[(distinct > 1).any(axis=1)]
    if offenders.empty:
        return
    details = []
    for key_value, row in offenders.iterrows():
        cols = [col for col in columns if row[col] > 1]
        details.append(f"{key_value} ({', '.join(cols)})")
    raise DataIntegrityError(
        f"Per-{key} metadata must be constant in {table}; inconsistent values for: {'; '.join(details)}"
    )
