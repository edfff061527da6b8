# ABOUTME: Builds per-video rollups shown alongside the segment heatmaps.
# ABOUTME: Covers video lengths, average dwell time, furthest segment reached, and the summary table.

from __future__ import annotations

import numpy as np
import pandas as pd

from src.common.schemas import assert_constant_within, require_columns

from .config import DEFAULT_CONFIG, PipelineConfig

SUMMARY_COLUMNS = [
    "video_id",
    "video_name",
    "avg_watch_rate",
    "students",
    "video_length_minutes",
    "avg_time_spent_minutes",
    "time_spent_per_vid_length",
]

SUMMARY_DISPLAY_NAMES = {
    "video_name": "Video Name",
    "avg_watch_rate": "Avg Views per Student",
    "students": "Students",
    "video_length_minutes": "Video length (minutes)",
    "avg_time_spent_minutes": "Avg time spent (minutes)",
    "time_spent_per_vid_length": "Time spent / video length",
}


def get_video_lengths(events: pd.DataFrame, config: PipelineConfig = DEFAULT_CONFIG) -> pd.DataFrame:
    """Video duration in minutes, rounded to two decimals."""

    require_columns(events, ["video_id", "max_stop_position"])
    assert_constant_within(events, "video_id", ["max_stop_position"])
    lengths = events.groupby("video_id")["max_stop_position"].first()
    return (
        (lengths / config.seconds_in_minute)
        .round(2)
        .rename("video_length_minutes")
        .reset_index()
    )


def get_avg_time_spent(events: pd.DataFrame, config: PipelineConfig = DEFAULT_CONFIG) -> pd.DataFrame:
    """
    Average seconds a learner spent on each video.

    Each watched segment contributes one segment duration per view; per-learner totals
    are averaged across learners of the video.
    """

    require_columns(events, ["user_id", "video_id", "count"])
    watched = events.dropna(subset=["user_id"])
    if watched.empty:
        return pd.DataFrame(columns=["video_id", "avg_time_spent"])

    time_spent = (
        watched.groupby(["user_id", "video_id"])["count"].sum() * config.segment_size_seconds
    ).rename("time_spent")
    return (
        time_spent.reset_index()
        .groupby("video_id")["time_spent"]
        .mean()
        .rename("avg_time_spent")
        .reset_index()
    )


def get_avg_furthest_segment(events: pd.DataFrame) -> pd.DataFrame:
    """Mean over learners of the furthest segment each one watched, per video."""

    require_columns(events, ["user_id", "video_id", "segment", "count"])
    watched = events[events["user_id"].notna() & (events["count"] > 0)]
    if watched.empty:
        return pd.DataFrame(columns=["video_id", "avg_furthest_segment"])

    furthest = watched.groupby(["user_id", "video_id"])["segment"].max().rename("furthest_segment")
    return (
        furthest.reset_index()
        .groupby("video_id")["furthest_segment"]
        .mean()
        .rename("avg_furthest_segment")
        .reset_index()
    )


def get_summary_table(
    aggregated: pd.DataFrame,
    video_lengths: pd.DataFrame,
    avg_time_spent: pd.DataFrame,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> pd.DataFrame:
    """
    Per-video rollup for tabular display, latest videos in the course first.

    `time_spent_per_vid_length` is the average dwell time divided by the video length.
    """

    if aggregated.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    summary = (
        aggregated.groupby("video_id")
        .agg(
            avg_watch_rate=("watch_rate", "mean"),
            students=("unique_views", "first"),
            course_order=("course_order", "max"),
            video_name=("video_name", "first"),
        )
        .reset_index()
    )
    summary["avg_watch_rate"] = summary["avg_watch_rate"].round(2)

    summary = summary.merge(video_lengths, on="video_id", how="left", validate="one_to_one")
    summary = summary.merge(avg_time_spent, on="video_id", how="left", validate="one_to_one")

    summary["avg_time_spent_minutes"] = (summary["avg_time_spent"] / config.seconds_in_minute).round(2)
    ratio = (summary["avg_time_spent"] / config.seconds_in_minute) / summary["video_length_minutes"]
    summary["time_spent_per_vid_length"] = ratio.replace([np.inf, -np.inf], np.nan).round(2)

    summary = summary.sort_values("course_order", ascending=False, kind="mergesort")
    return summary[SUMMARY_COLUMNS].reset_index(drop=True)
