"""
Video Loop Module

Builds looped videos from a single clip with ffmpeg, optionally hiding the
join behind a cross-fade.
"""

from .filter_graph import FilterGraph, FilterStatement, build_crossfade_graph
from .planner import compute_repeat_count
from .types import Clip, LoopOptions, LoopRequest, TransitionSpec

__all__ = [
    "FilterGraph",
    "FilterStatement",
    "build_crossfade_graph",
    "compute_repeat_count",
    "Clip",
    "LoopOptions",
    "LoopRequest",
    "TransitionSpec",
]
