# ABOUTME: Flags segments whose watch rate deviates most from a fixed-form linear trend.
# ABOUTME: Fits watch_rate ~ course_order + min_into_video and labels the top/bottom residuals.

from __future__ import annotations

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from src.common.schemas import (
    HIGH_WATCH_RATE,
    LOW_WATCH_RATE,
    NORMAL_WATCH_RATE,
    DataIntegrityError,
)

from .normalization import get_rank

FEATURES = ["course_order", "min_into_video"]
TARGET = "watch_rate"
ROW_KEY = "row_key"


def fit_residuals(segments: pd.DataFrame) -> pd.DataFrame:
    """
    Fit the watch-rate trend and rank residuals in both directions.

    The returned frame shares the index of `segments`, which acts as the row key.
    """

    model_frame = segments[FEATURES + [TARGET]].astype("float64")
    if model_frame.isna().any().any():
        raise DataIntegrityError("Cannot fit watch-rate trend with null course_order, min_into_video, or watch_rate.")

    model = LinearRegression()
    model.fit(model_frame[FEATURES].to_numpy(), model_frame[TARGET].to_numpy())

    residuals = pd.DataFrame(
        {
            "fit": model.predict(model_frame[FEATURES].to_numpy()),
            "actual": model_frame[TARGET],
        },
        index=segments.index,
    )
    residuals["residual"] = residuals["actual"] - residuals["fit"]
    residuals["negative_rank"] = get_rank(residuals["residual"])
    residuals["positive_rank"] = get_rank(-residuals["residual"])
    return residuals


def label_residuals(residuals: pd.DataFrame, top_selection: int) -> pd.Series:
    """
    Label the `top_selection` highest residuals High and the lowest Low.

    High wins over Low when a segment qualifies for both. Ranks are dense, so tied
    residuals share a rank and more than `top_selection` rows can get a label; when
    every residual is equal, every row is High.
    """

    top_positive = residuals["positive_rank"] <= top_selection
    top_negative = residuals["negative_rank"] <= top_selection
    labels = np.select(
        [top_positive.to_numpy(), top_negative.to_numpy()],
        [HIGH_WATCH_RATE, LOW_WATCH_RATE],
        default=NORMAL_WATCH_RATE,
    )
    return pd.Series(labels, index=residuals.index, name="high_low")


def classify_segments(normalized: pd.DataFrame, top_selection: int) -> pd.DataFrame:
    """
    Add a `high_low` label to every segment of the normalized table.

    Labels are joined back on an explicit row key rather than by position.
    """

    _validate_top_selection(top_selection)

    keyed = normalized.drop(columns=["high_low"], errors="ignore").reset_index(drop=True)
    keyed.index.name = ROW_KEY
    if keyed.empty:
        keyed["high_low"] = pd.Series(dtype="object")
        keyed.index.name = None
        return keyed

    residuals = fit_residuals(keyed)
    labels = label_residuals(residuals, top_selection)

    classified = keyed.join(labels, how="left")
    classified.index.name = None
    return classified


def _validate_top_selection(top_selection) -> None:
    if isinstance(top_selection, bool) or not isinstance(top_selection, (int, np.integer)):
        raise ValueError(f"top_selection must be an integer, got {top_selection!r}.")
    if top_selection < 0:
        raise ValueError(f"top_selection must be non-negative, got {top_selection}.")
