# ABOUTME: Aggregates per-learner watch events into per-(video, segment) counts.
# ABOUTME: Joins distinct viewer counts to derive the raw watch rate of each segment.

from __future__ import annotations

import pandas as pd

from src.common.schemas import (
    EVENT_COLUMNS,
    DataIntegrityError,
    assert_constant_within,
    require_columns,
)

GROUP_KEYS = ["video_id", "min_into_video", "segment", "last_segment"]
VIDEO_METADATA_COLUMNS = ["course_order", "max_stop_position", "video_name", "last_segment"]
OBSERVED_COLUMNS = [
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
]


def aggregate_segments(events: pd.DataFrame) -> pd.DataFrame:
    """
    Sum watch counts per (video, segment) and attach watch rates.

    Steps:
    - Drop events without a user identifier.
    - Validate segment bounds, non-negative counts, and per-video metadata.
    - Group by (video_id, min_into_video, segment, last_segment) and sum `count`.
    - Join distinct viewers per video and compute `watch_rate = count / unique_views`.

    Rows belonging to videos without viewers are dropped.
    """

    require_columns(events, EVENT_COLUMNS)
    watched = events[events["user_id"].notna()].copy()
    if watched.empty:
        return pd.DataFrame(columns=OBSERVED_COLUMNS)

    _validate_segments(watched)
    assert_constant_within(watched, "video_id", VIDEO_METADATA_COLUMNS)

    watched["min_into_video"] = watched["min_into_video"].astype(float)
    watched["segment"] = watched["segment"].astype("int64")
    watched["last_segment"] = watched["last_segment"].astype("int64")
    grouped = (
        watched.groupby(GROUP_KEYS, sort=True)
        .agg(
            count=("count", "sum"),
            course_order=("course_order", "first"),
            vid_length=("max_stop_position", "first"),
            video_name=("video_name", "first"),
        )
        .reset_index()
    )

    duplicated = grouped.duplicated(subset=["video_id", "segment"], keep=False)
    if duplicated.any():
        pairs = grouped.loc[duplicated, ["video_id", "segment"]].drop_duplicates()
        listed = ", ".join(f"{row.video_id}/{row.segment}" for row in pairs.itertuples(index=False))
        raise DataIntegrityError(f"Segments observed at more than one min_into_video: {listed}")

    unique_views = get_unique_views(watched)
    grouped = grouped.merge(unique_views, on="video_id", how="left", validate="many_to_one")
    grouped["unique_views"] = grouped["unique_views"].fillna(0).astype("int64")

    # A rate is undefined without viewers.
    grouped = grouped[grouped["unique_views"] > 0].copy()
    grouped["watch_rate"] = (grouped["count"] / grouped["unique_views"]).round(2)

    return grouped[OBSERVED_COLUMNS].reset_index(drop=True)


def get_unique_views(events: pd.DataFrame) -> pd.DataFrame:
    """Distinct learners per video across the whole filtered event set."""

    if events.empty:
        return pd.DataFrame(columns=["video_id", "unique_views"])
    return (
        events.dropna(subset=["user_id"])
        .groupby("video_id")["user_id"]
        .nunique()
        .rename("unique_views")
        .reset_index()
        .sort_values("unique_views", kind="mergesort")
        .reset_index(drop=True)
    )


def _validate_segments(events: pd.DataFrame) -> None:
    segments = pd.to_numeric(events["segment"], errors="coerce")
    last_segments = pd.to_numeric(events["last_segment"], errors="coerce")
    counts = pd.to_numeric(events["count"], errors="coerce")
    minutes = pd.to_numeric(events["min_into_video"], errors="coerce")

    if events["video_id"].isna().any():
        raise DataIntegrityError("Watch events must carry a video_id.")
    if minutes.isna().any():
        bad = events.loc[minutes.isna(), "video_id"].unique().tolist()
        raise DataIntegrityError(f"min_into_video must be numeric and non-null for video(s): {bad}")
    if segments.isna().any() or (segments % 1 != 0).any() or (segments < 0).any():
        raise DataIntegrityError("Segment indices must be non-negative integers.")
    if last_segments.isna().any() or (segments > last_segments).any():
        bad = events.loc[segments > last_segments, "video_id"].unique().tolist()
        raise DataIntegrityError(f"Segment index exceeds last_segment for video(s): {bad}")
    if counts.isna().any() or (counts < 0).any():
        raise DataIntegrityError("Watch counts must be non-negative.")
