# ABOUTME: Shared synthetic watch-event fixtures for the video analytics tests.
# ABOUTME: Builds small event tables whose aggregates are easy to compute by hand.

from __future__ import annotations

from typing import Dict, List

import pandas as pd
import pytest


def segment_minutes(segment: int) -> float:
    return segment * 20 / 60 + 1 / 6


def make_events(
    video_id: str,
    counts_by_user: Dict[str, Dict[int, int]],
    last_segment: int,
    course_order: int = 1,
    video_name: str = None,
    max_stop_position: float = 60.0,
    index_chapter: int = 1,
) -> pd.DataFrame:
    """One event row per (user, segment) with the given watch counts."""

    rows: List[dict] = []
    for user_id, counts in counts_by_user.items():
        for segment, count in counts.items():
            rows.append(
                {
                    "user_id": user_id,
                    "video_id": video_id,
                    "segment": segment,
                    "min_into_video": segment_minutes(segment),
                    "count": count,
                    "last_segment": last_segment,
                    "max_stop_position": max_stop_position,
                    "course_order": course_order,
                    "video_name": video_name or f"Video {video_id}",
                    "index_chapter": index_chapter,
                }
            )
    return pd.DataFrame(rows)


@pytest.fixture
def scenario_events() -> pd.DataFrame:
    """
    Ten learners start video v1 (segments 0..2).

    Everyone watches segment 0 once, u0..u3 also watch segment 2, nobody watches segment 1.
    """

    counts = {f"u{i}": {0: 1} for i in range(10)}
    for i in range(4):
        counts[f"u{i}"][2] = 1
    return make_events("v1", counts, last_segment=2, video_name="Intro")


@pytest.fixture
def two_video_events() -> pd.DataFrame:
    later = make_events(
        "v2",
        {"a": {0: 2, 3: 1}, "b": {1: 1}},
        last_segment=4,
        course_order=30,
        video_name="Loops",
        max_stop_position=95.0,
    )
    earlier = make_events(
        "v1",
        {"a": {0: 1}, "c": {1: 1}},
        last_segment=1,
        course_order=10,
        video_name="Intro",
    )
    return pd.concat([later, earlier], ignore_index=True)
