# ABOUTME: Tests the end-to-end aggregated segment table behind the heatmaps.
# ABOUTME: Covers completeness, watch-rate bounds, up-until flags, and the output schema.

import pandas as pd

from src.common.schemas import AGGREGATED_SEGMENT_COLUMNS, HIGH_WATCH_RATE, LOW_WATCH_RATE
from src.video_analytics.config import PipelineConfig
from src.video_analytics.pipeline import get_aggregated_df

from conftest import make_events


def test_scenario_fills_unwatched_segment_with_zero_rate(scenario_events):
    segments = get_aggregated_df(scenario_events, top_selection=25)

    assert list(segments.columns) == list(AGGREGATED_SEGMENT_COLUMNS)
    assert segments["segment"].tolist() == [0, 1, 2]
    assert segments["watch_rate"].tolist() == [1.0, 0.0, 0.4]
    assert segments["avg_watch_rate"].tolist() == [0.47, 0.47, 0.47]


def test_every_video_has_contiguous_segments(two_video_events):
    segments = get_aggregated_df(two_video_events, top_selection=2)

    for video_id, group in segments.groupby("video_id"):
        last_segment = int(group["last_segment"].iloc[0])
        assert sorted(group["segment"].tolist()) == list(range(last_segment + 1))

    ordered = segments.sort_values(["course_order", "segment"], kind="mergesort")
    assert segments.index.tolist() == ordered.index.tolist()
    assert segments["course_order"].unique().tolist() == [1.0, 2.0]


def test_watch_rates_are_never_negative(two_video_events):
    segments = get_aggregated_df(two_video_events, top_selection=2)

    assert (segments["watch_rate"] >= 0).all()
    assert (segments["avg_watch_rate"] >= 0).all()
    assert (segments.loc[segments["count"] == 0, "watch_rate"] == 0).all()


def test_high_and_low_are_exclusive(two_video_events):
    segments = get_aggregated_df(two_video_events, top_selection=1)

    assert segments["high_low"].isin([HIGH_WATCH_RATE, LOW_WATCH_RATE, "Normal"]).all()
    assert (segments["high_low"] == HIGH_WATCH_RATE).sum() >= 1
    assert (segments["high_low"] == LOW_WATCH_RATE).sum() >= 1


def test_up_until_marks_segments_reached_by_average_learner(scenario_events):
    # Four learners reach segment 2, six stop at 0: average furthest segment is 0.8.
    segments = get_aggregated_df(scenario_events, top_selection=25)

    assert segments["up_until"].tolist() == [1, 0, 0]


def test_default_top_selection_comes_from_config(scenario_events):
    segments = get_aggregated_df(scenario_events, config=PipelineConfig(top_selection=0))

    assert (segments["high_low"] == "Normal").all()


def test_videos_without_viewers_are_dropped(scenario_events):
    unwatched = make_events("v9", {"ghost": {0: 1}}, last_segment=3, course_order=5)
    unwatched["user_id"] = None
    events = pd.concat([scenario_events, unwatched], ignore_index=True)

    segments = get_aggregated_df(events, top_selection=5)

    assert set(segments["video_id"]) == {"v1"}


def test_empty_events_give_empty_table(scenario_events):
    segments = get_aggregated_df(scenario_events.iloc[0:0], top_selection=5)

    assert segments.empty
    assert list(segments.columns) == list(AGGREGATED_SEGMENT_COLUMNS)
