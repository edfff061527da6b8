# ABOUTME: Backfills segments nobody watched so every video has a contiguous segment grid.
# ABOUTME: Synthesized rows carry video attributes, zero counts, and a zero watch rate.

from __future__ import annotations

from typing import Hashable

import pandas as pd

from src.common.schemas import VIDEO_ATTRIBUTE_COLUMNS, DataIntegrityError, assert_constant_within

from .config import DEFAULT_CONFIG, PipelineConfig

ATTRIBUTE_COLUMNS = [col for col in VIDEO_ATTRIBUTE_COLUMNS if col != "video_id"]


def expand_segments(video_id: Hashable, last_segment: int) -> pd.DataFrame:
    """One row per segment of a video, from `last_segment` down to 0."""

    last = int(last_segment)
    if last < 0:
        raise DataIntegrityError(f"Video {video_id} has a negative last_segment ({last_segment}).")
    segments = list(range(last, -1, -1))
    return pd.DataFrame({"video_id": [video_id] * len(segments), "segment": segments})


def get_video_attributes(aggregated: pd.DataFrame) -> pd.DataFrame:
    """Per-video static attributes projected from the aggregated segment table."""

    assert_constant_within(aggregated, "video_id", ATTRIBUTE_COLUMNS, table="aggregated segments")
    return (
        aggregated.groupby("video_id", sort=False)[ATTRIBUTE_COLUMNS]
        .first()
        .reset_index()
    )


def complete_segments(aggregated: pd.DataFrame, config: PipelineConfig = DEFAULT_CONFIG) -> pd.DataFrame:
    """
    Insert a zero-count row for every (video, segment) missing from `aggregated`.

    Missing segments are found with an anti-join keyed on (video_id, segment); their
    `min_into_video` is the midpoint of the segment window in minutes.
    """

    if aggregated.empty:
        return aggregated.copy()

    attributes = get_video_attributes(aggregated)
    expected = pd.concat(
        [expand_segments(row.video_id, row.last_segment) for row in attributes.itertuples(index=False)],
        ignore_index=True,
    )

    observed_keys = aggregated[["video_id", "segment"]].drop_duplicates()
    matched = expected.merge(observed_keys, on=["video_id", "segment"], how="left", indicator=True)
    missing = matched.loc[matched["_merge"] == "left_only", ["video_id", "segment"]]

    missing = missing.merge(attributes, on="video_id", how="left", validate="many_to_one")
    missing["min_into_video"] = config.segment_midpoint(missing["segment"].astype(float))
    missing["count"] = 0
    missing["watch_rate"] = 0.0

    if missing.empty:
        completed = aggregated.copy()
    else:
        completed = pd.concat([aggregated, missing.reindex(columns=aggregated.columns)], ignore_index=True)
    return completed.sort_values(["course_order", "segment"], kind="mergesort").reset_index(drop=True)
