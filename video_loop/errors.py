"""
Error taxonomy for video looping.

ValidationError aborts the whole run. Everything derived from ClipError is
local to one input clip: it is logged, the clip is skipped and the batch
carries on.
"""

from __future__ import annotations

from typing import List, Optional


class LoopError(Exception):
    """Base class for all looping errors"""
    pass


class ValidationError(LoopError):
    """Raised when the flag combination cannot produce any loop"""
    pass


class ClipError(LoopError):
    """Raised when a single clip cannot be looped"""
    pass


class NotAVideoError(ClipError):
    """Raised when an input path does not look like a video file"""
    pass


class InvalidTargetError(ClipError):
    """Raised when the requested target duration is not positive"""
    pass


class DegenerateClipError(ClipError):
    """Raised when the clip is not longer than the transition"""
    pass


class ProbeError(ClipError):
    """Raised when the clip duration cannot be read"""
    pass


class GraphError(ClipError):
    """Raised when a filter graph breaks its labelling rules"""
    pass


class EngineExecutionError(ClipError):
    """Raised when ffmpeg fails to start or exits non-zero."""

    def __init__(self, message: str, returncode: Optional[int] = None,
                 stderr_tail: str = "", command: Optional[List[str]] = None):
        super().__init__(message)
        self.returncode = returncode
        self.stderr_tail = stderr_tail
        self.command = list(command or [])
