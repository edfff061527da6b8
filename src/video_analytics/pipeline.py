# ABOUTME: Chains aggregation, segment completion, normalization, and anomaly labeling.
# ABOUTME: Exposes get_aggregated_df, the table behind every segment heatmap.

from __future__ import annotations

from typing import Optional

import pandas as pd

from src.common.schemas import AGGREGATED_SEGMENT_COLUMNS

from .aggregation import aggregate_segments
from .anomaly import classify_segments
from .completion import complete_segments
from .config import DEFAULT_CONFIG, PipelineConfig
from .normalization import normalize_watch_rate
from .summary import get_avg_furthest_segment


def get_aggregated_df(
    events: pd.DataFrame,
    top_selection: Optional[int] = None,
    config: PipelineConfig = DEFAULT_CONFIG,
) -> pd.DataFrame:
    """
    Aggregate demographic-filtered watch events into one row per (video, segment).

    Adds `unique_views`, `watch_rate`, `avg_watch_rate`, `high_low`, and `up_until`.
    Every watched video gets a row for each segment from 0 to its `last_segment`,
    ordered by course order then segment. `top_selection` defaults to the config value.
    """

    if top_selection is None:
        top_selection = config.top_selection

    aggregated = aggregate_segments(events)
    completed = complete_segments(aggregated, config)
    normalized = normalize_watch_rate(completed)
    classified = classify_segments(normalized, top_selection)
    segments = add_up_until(classified, get_avg_furthest_segment(events))

    segments = segments.sort_values(["course_order", "segment"], kind="mergesort")
    return segments[list(AGGREGATED_SEGMENT_COLUMNS)].reset_index(drop=True)


def add_up_until(segments: pd.DataFrame, furthest: pd.DataFrame) -> pd.DataFrame:
    """Flag segments at or before the furthest point the average learner reached."""

    merged = segments.drop(columns=["up_until"], errors="ignore").merge(
        furthest[["video_id", "avg_furthest_segment"]],
        on="video_id",
        how="left",
        validate="many_to_one",
    )
    reached = merged["segment"].astype("float64") <= merged["avg_furthest_segment"].astype("float64")
    merged["up_until"] = reached.astype("int64")
    return merged.drop(columns=["avg_furthest_segment"])
