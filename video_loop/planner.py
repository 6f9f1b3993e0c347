"""
Repeat-count planning.

A cross-faded loop of ``n`` copies of an ``L`` second clip with a ``t``
second transition runs ``n * (L - t) + t`` seconds: every copy but the last
gives up its tail to the dissolve. The plain concat path is the same formula
with ``t = 0``.
"""

from __future__ import annotations

import math

from loguru import logger

from .errors import DegenerateClipError, InvalidTargetError
from .types import LoopRequest


def compute_repeat_count(
    clip_duration: float,
    request: LoopRequest,
    transition_seconds: int = 0,
    verbose: bool = False,
) -> int:
    """Return how many copies of the clip the loop needs.

    Fixed-count requests are returned as-is; the caller has already rejected
    counts below two. Target-duration requests resolve to the smallest
    ``n >= 1`` with ``n * (clip_duration - t) + t >= target``. A clip no
    longer than the transition is rejected before the target is looked at.
    """
    if request.is_fixed:
        return int(request.count)

    # totalLength = count x (clip - transition) + transition
    denominator = float(clip_duration) - float(transition_seconds)
    if denominator <= 0:
        raise DegenerateClipError(
            f"Clip of {clip_duration}s is not longer than the {transition_seconds}s transition"
        )

    target = request.target_seconds or 0
    if target <= 0:
        raise InvalidTargetError(f"Required length must be positive, got {target}s")

    numerator = float(target) - float(transition_seconds)
    required = max(1, int(math.ceil(numerator / denominator)))

    if verbose:
        logger.info(f"Loop {required} times to reach {target}s")

    return required
