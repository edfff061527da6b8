# ABOUTME: Segment-level video engagement analytics behind the dashboard heatmaps.
# ABOUTME: Re-exports the pipeline entrypoint and the helpers consumed by rendering code.

from .chapters import filter_by_module, get_ch_markers, get_module_options
from .config import PipelineConfig, load_pipeline_config
from .normalization import get_rank
from .pipeline import get_aggregated_df
from .summary import get_avg_time_spent, get_summary_table, get_video_lengths
from .timeline import get_video_time_table

__all__ = [
    "PipelineConfig",
    "filter_by_module",
    "get_aggregated_df",
    "get_avg_time_spent",
    "get_ch_markers",
    "get_module_options",
    "get_rank",
    "get_summary_table",
    "get_video_lengths",
    "get_video_time_table",
    "load_pipeline_config",
]
