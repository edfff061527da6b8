# ABOUTME: Computes per-video average watch rates and dense course-order ranks.
# ABOUTME: Provides the shared get_rank helper used for ordering and residual ranking.

from __future__ import annotations

from typing import Iterable, Union

import pandas as pd


def get_rank(values: Union[pd.Series, Iterable]) -> pd.Series:
    """
    Rank each element by its value among the unique values of `values`.

    Ties share a rank and ranks are dense (1..k with no gaps). Nulls stay null.
    A Series input keeps its index so the result aligns with the source rows.
    """

    series = values if isinstance(values, pd.Series) else pd.Series(list(values))
    return series.rank(method="dense").astype("float64")


def normalize_watch_rate(completed: pd.DataFrame) -> pd.DataFrame:
    """
    Attach `avg_watch_rate` per video and densely re-rank `course_order`.

    Rows whose `video_name` is null are removed before ranking.
    """

    if completed.empty:
        normalized = completed.copy()
        normalized["avg_watch_rate"] = pd.Series(dtype="float64")
        return normalized

    avg_watch_rate = (
        completed.groupby("video_id")["watch_rate"]
        .mean()
        .round(2)
        .rename("avg_watch_rate")
        .reset_index()
    )

    normalized = completed.drop(columns=["avg_watch_rate"], errors="ignore").merge(
        avg_watch_rate,
        on="video_id",
        how="left",
        validate="many_to_one",
    )
    normalized = normalized[normalized["video_name"].notna()].reset_index(drop=True)
    normalized["course_order"] = get_rank(normalized["course_order"])
    return normalized
