# ABOUTME: Holds the named constants that parameterize the segment pipeline.
# ABOUTME: Loads overrides from the pipeline section of a YAML config file.

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml


@dataclass(frozen=True)
class PipelineConfig:
    """Segment geometry and highlighting settings."""

    segment_size_seconds: int = 20
    seconds_in_minute: int = 60
    top_selection: int = 25

    @property
    def segment_size_minutes(self) -> float:
        return self.segment_size_seconds / self.seconds_in_minute

    @property
    def midpoint_offset_minutes(self) -> float:
        # Plotted point sits at the middle of its segment window.
        return (self.segment_size_seconds / 2) / self.seconds_in_minute

    def segment_midpoint(self, segment):
        """Minutes into the video for the midpoint of `segment` (scalar or array-like)."""

        return segment * self.segment_size_minutes + self.midpoint_offset_minutes


DEFAULT_CONFIG = PipelineConfig()


def load_pipeline_config(config_path: Path) -> PipelineConfig:
    """Read the `pipeline` section of a YAML config, keeping defaults for absent keys."""

    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}

    pipeline_cfg = cfg.get("pipeline", {}) or {}
    known = {field.name for field in fields(PipelineConfig)}
    unknown = sorted(set(pipeline_cfg) - known)
    if unknown:
        raise ValueError(f"Unknown pipeline config key(s): {', '.join(unknown)}")

    config = PipelineConfig(**{key: int(value) for key, value in pipeline_cfg.items()})
    if config.segment_size_seconds <= 0 or config.seconds_in_minute <= 0:
        raise ValueError("segment_size_seconds and seconds_in_minute must be positive.")
    if config.top_selection < 0:
        raise ValueError("top_selection must be non-negative.")
    return config
