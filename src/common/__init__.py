# ABOUTME: Makes the shared common package importable across analytics modules.
# ABOUTME: Re-exports schema types and validation helpers for convenience.

from .schemas import (
    DataIntegrityError,
    VideoEvent,
    assert_constant_within,
    events_to_frame,
    require_columns,
)

__all__ = [
    "DataIntegrityError",
    "VideoEvent",
    "assert_constant_within",
    "events_to_frame",
    "require_columns",
]
