"""
Data classes for the looping pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

MODE_COUNT = "count"
MODE_LENGTH = "length"

# Two copies is the smallest loop that has a join to hide
MIN_REPEAT_COUNT = 2


@dataclass(frozen=True)
class Clip:
    """Source video and its probed length in whole seconds."""
    path: Path
    duration: int


@dataclass(frozen=True)
class LoopRequest:
    """Either a fixed repeat count or a minimum total duration."""
    mode: str
    count: Optional[int] = None
    target_seconds: Optional[int] = None

    @classmethod
    def fixed(cls, count: int) -> "LoopRequest":
        return cls(mode=MODE_COUNT, count=count)

    @classmethod
    def target(cls, seconds: int) -> "LoopRequest":
        return cls(mode=MODE_LENGTH, target_seconds=seconds)

    @property
    def is_fixed(self) -> bool:
        return self.mode == MODE_COUNT

    def suffix(self) -> str:
        """Output file suffix, e.g. ``loop-3`` or ``length-10`` (minutes)."""
        if self.is_fixed:
            return f"loop-{self.count}"
        return f"length-{int(self.target_seconds or 0) // 60}"


@dataclass(frozen=True)
class TransitionSpec:
    """Cross-fade settings shared by every clip of a run."""
    enabled: bool = False
    seconds: int = 2


@dataclass(frozen=True)
class LoopOptions:
    """Everything the CLI resolved for one invocation."""
    request: LoopRequest
    transition: TransitionSpec
    output_dir: Path
    dry_run: bool = False


def format_duration(seconds: int) -> str:
    """Loop length for log lines: ``M:SS`` under an hour, ``H:MM:SS`` above."""
    minutes, secs = divmod(max(int(seconds), 0), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
