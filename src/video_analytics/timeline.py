# ABOUTME: Counts distinct viewers per video per calendar day for the engagement-over-time view.
# ABOUTME: Fills a complete video x date grid so days without viewers show as zero.

from __future__ import annotations

import pandas as pd

from src.common.schemas import require_columns

TIMELINE_COLUMNS = ["video_name", "date", "index_video", "viewers"]


def get_video_time_table(events: pd.DataFrame, video_axis: pd.DataFrame) -> pd.DataFrame:
    """
    Distinct viewers of each video on each day between the first and last event.

    `video_axis` supplies `index_video` (the video's position on the plot axis) per
    `video_name`.
    """

    require_columns(events, ["user_id", "video_name", "time"])
    require_columns(video_axis, ["video_name", "index_video"], table="video axis")

    timed = events.copy()
    timed["date"] = pd.to_datetime(timed["time"], utc=True, errors="coerce").dt.tz_convert(None).dt.normalize()
    timed = timed.dropna(subset=["date", "video_name"])
    if timed.empty:
        return pd.DataFrame(columns=TIMELINE_COLUMNS)

    all_dates = pd.date_range(timed["date"].min(), timed["date"].max(), freq="D")
    all_videos = sorted(timed["video_name"].unique())
    grid = pd.MultiIndex.from_product([all_videos, all_dates], names=["video_name", "date"]).to_frame(index=False)

    axis = video_axis[["video_name", "index_video"]].drop_duplicates(subset=["video_name"])
    grid = grid.merge(axis, on="video_name", how="left", validate="many_to_one")

    viewers = (
        timed.dropna(subset=["user_id"])
        .groupby(["video_name", "date"])["user_id"]
        .nunique()
        .rename("viewers")
        .reset_index()
    )
    table = grid.merge(viewers, on=["video_name", "date"], how="left", validate="one_to_one")
    table["viewers"] = table["viewers"].fillna(0).astype("int64")
    return table[TIMELINE_COLUMNS]
