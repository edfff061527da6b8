# ABOUTME: Formats aggregated segment and timeline tables as heatmap payloads for the dashboard.
# ABOUTME: Writes one JSON file per heatmap with hover text, legend, axis breaks, and chapter lines.

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from src.common.schemas import HIGH_WATCH_RATE, LOW_WATCH_RATE, NORMAL_WATCH_RATE, require_columns

from .chapters import ALL_MODULES

SEGMENT_HEATMAPS: Dict[str, Dict] = {
    "segment_comparison": {
        "fill": "watch_rate",
        "x_label": "Position in video (minutes)",
        "legend": "Views per learner<br>who started the<br>video ('watch rate')",
        "color_scale": "viridis",
    },
    "video_comparison": {
        "fill": "unique_views",
        "x_label": "Length of video (minutes)",
        "legend": "Unique viewers",
        "color_scale": "viridis",
    },
    "high_low": {
        "fill": "high_low",
        "x_label": "Position in video (minutes)",
        "legend": "Legend",
        "color_scale": {
            HIGH_WATCH_RATE: "#F8E85D",
            LOW_WATCH_RATE: "#488C93",
            NORMAL_WATCH_RATE: "#3D0752",
        },
    },
    "up_until": {
        "fill": "up_until",
        "x_label": "Position in video (minutes)",
        "legend": None,
        "color_scale": {"low": "#DBDBDB", "high": "#87CEEB"},
    },
}
VIDEO_TIME_HEATMAP = "video_time"
HEATMAP_KINDS = tuple(SEGMENT_HEATMAPS) + (VIDEO_TIME_HEATMAP,)


def get_video_minute_breaks(max_minutes: float) -> List[float]:
    """Roughly ten evenly spaced x-axis ticks, never closer than one minute apart."""

    if max_minutes is None or (isinstance(max_minutes, float) and math.isnan(max_minutes)) or max_minutes < 0:
        return []
    step = max(round(max_minutes / 10), 1)
    breaks = []
    tick = 0
    while tick <= max_minutes:
        breaks.append(float(tick))
        tick += step
    return breaks


def build_segment_heatmap(
    segments: pd.DataFrame,
    kind: str,
    module: str = ALL_MODULES,
    ch_markers: Optional[Sequence[float]] = None,
) -> Dict:
    """
    Heatmap payload with one cell per (video, segment).

    Videos are ordered top to bottom by descending course order; chapter lines are
    only drawn when the whole course (`All`) is shown.
    """

    if kind not in SEGMENT_HEATMAPS:
        raise ValueError(f"Unsupported heatmap '{kind}'. Expected one of: {', '.join(SEGMENT_HEATMAPS)}.")
    spec = SEGMENT_HEATMAPS[kind]
    require_columns(
        segments,
        ["video_id", "video_name", "min_into_video", "course_order", "watch_rate", "count", "unique_views", spec["fill"]],
        table="aggregated segments",
    )

    data = []
    for record in segments.to_dict("records"):
        data.append(
            {
                "video_id": str(record["video_id"]),
                "x": _json_value(record["min_into_video"]),
                "y": _json_value(record["course_order"]),
                "fill": _json_value(record[spec["fill"]]),
                "text": _segment_hover_text(record),
            }
        )

    y_order = (
        segments[["video_id", "course_order"]]
        .drop_duplicates(subset=["video_id"])
        .sort_values("course_order", ascending=False, kind="mergesort")["video_id"]
        .astype(str)
        .tolist()
    )
    max_minutes = float(segments["min_into_video"].max()) if not segments.empty else float("nan")

    return {
        "data": data,
        "metadata": {
            "kind": kind,
            "x_label": spec["x_label"],
            "y_label": "Video",
            "legend": spec["legend"],
            "color_scale": spec["color_scale"],
            "x_breaks": get_video_minute_breaks(max_minutes),
            "y_order": y_order,
            "ch_markers": _markers_for_module(module, ch_markers),
        },
    }


def build_video_time_heatmap(
    video_time: pd.DataFrame,
    module: str = ALL_MODULES,
    ch_markers: Optional[Sequence[float]] = None,
) -> Dict:
    """Heatmap payload of distinct viewers per video per day."""

    require_columns(video_time, ["video_name", "date", "index_video", "viewers"], table="video time")

    data = []
    for row in video_time.itertuples(index=False):
        date = pd.Timestamp(row.date).date().isoformat()
        data.append(
            {
                "video_name": str(row.video_name),
                "x": date,
                "y": _json_value(row.index_video),
                "fill": int(row.viewers),
                "text": f"{row.video_name}<br>{date}<br>{int(row.viewers)} viewers",
            }
        )

    y_order = (
        video_time[["video_name", "index_video"]]
        .drop_duplicates(subset=["video_name"])
        .sort_values("index_video", ascending=False, kind="mergesort")["video_name"]
        .astype(str)
        .tolist()
    )

    return {
        "data": data,
        "metadata": {
            "kind": VIDEO_TIME_HEATMAP,
            "x_label": "Date",
            "y_label": "Video",
            "legend": "Unique viewers",
            "color_scale": "viridis",
            "y_order": y_order,
            "ch_markers": _markers_for_module(module, ch_markers),
        },
    }


def export_heatmaps(
    segments: pd.DataFrame,
    video_time: Optional[pd.DataFrame] = None,
    module: str = ALL_MODULES,
    ch_markers: Optional[Sequence[float]] = None,
) -> Dict[str, Dict]:
    payloads = {kind: build_segment_heatmap(segments, kind, module, ch_markers) for kind in SEGMENT_HEATMAPS}
    if video_time is not None:
        payloads[VIDEO_TIME_HEATMAP] = build_video_time_heatmap(video_time, module, ch_markers)
    return payloads


def write_heatmaps(payloads: Dict[str, Dict], output_dir: Path) -> List[Path]:
    """Write each payload to `<kind>.json` under `output_dir`."""

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for kind, payload in payloads.items():
        path = output_dir / f"{kind}.json"
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"[video-export] Wrote {len(payload['data'])} cells to {path}")
        written.append(path)
    return written


def _markers_for_module(module: str, ch_markers: Optional[Sequence[float]]) -> List[float]:
    if module != ALL_MODULES or not ch_markers:
        return []
    return [float(marker) for marker in ch_markers]


def _segment_hover_text(record: Dict) -> str:
    return (
        f"{record['video_name']}<br>"
        f"{record['watch_rate']} views per student<br>"
        f"{record['count']} times this segment was watched (raw)<br>"
        f"{record['unique_views']} students started this video"
    )


def _json_value(value):
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if pd.isna(value):
        return None
    if hasattr(value, "item"):
        value = value.item()
    return value
