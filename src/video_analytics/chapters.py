# ABOUTME: Resolves course chapter structure for filtering and plot annotations.
# ABOUTME: Computes chapter divider positions on the course-ordered video axis.

from __future__ import annotations

from typing import Iterable, List, Optional

import pandas as pd

from src.common.schemas import assert_constant_within, require_columns

from .normalization import get_rank

ALL_MODULES = "All"


def get_module_options(chapter_names: Iterable[str]) -> List[str]:
    return [ALL_MODULES] + list(chapter_names)


def filter_by_module(events: pd.DataFrame, module: str, course_structure: pd.DataFrame) -> pd.DataFrame:
    """Keep events belonging to the named chapter; `All` keeps everything."""

    if module == ALL_MODULES:
        return events
    require_columns(course_structure, ["index_chapter", "chapter"], table="course structure")
    require_columns(events, ["index_chapter"])

    chapter_ids = course_structure.loc[course_structure["chapter"] == module, "index_chapter"]
    if chapter_ids.empty:
        options = ", ".join(get_module_options(course_structure["chapter"].dropna().unique()))
        raise ValueError(f"Unknown module '{module}'. Expected one of: {options}.")
    return events[events["index_chapter"].isin(chapter_ids)].copy()


def get_ch_markers(events: pd.DataFrame) -> Optional[List[float]]:
    """
    Divider positions between the last video of a chapter and the first of the next.

    Positions count down from the densely ranked last video so they line up with a
    y-axis ordered by descending course order. Returns None when fewer than two
    chapters are present.
    """

    require_columns(events, ["video_id", "index_chapter", "course_order"])
    if events["index_chapter"].dropna().nunique() <= 1:
        return None

    assert_constant_within(events, "video_id", ["index_chapter", "course_order"])
    max_course_order = events["course_order"].dropna().nunique()

    videos = (
        events.groupby("video_id")
        .agg(index_chapter=("index_chapter", "first"), course_order=("course_order", "first"))
        .reset_index()
    )
    videos["course_order"] = get_rank(videos["course_order"])
    videos = videos.sort_values("course_order", kind="mergesort").reset_index(drop=True)

    current_chapter = videos["index_chapter"]
    next_chapter = current_chapter.shift(-1)
    last_in_chapter = current_chapter.notna() & next_chapter.notna() & (current_chapter != next_chapter)
    markers = max_course_order - videos.loc[last_in_chapter, "course_order"] + 0.5
    return list(dict.fromkeys(float(marker) for marker in markers))
