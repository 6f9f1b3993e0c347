#!/usr/bin/env python3
"""
Render orchestrator for looped videos.

Supports:
- Plain loops through the concat demuxer
- Cross-faded loops through a single filter graph
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Tuple

from loguru import logger

from . import ffmpeg_runner, probe
from .config import LoopConfig
from .errors import ClipError
from .filter_graph import build_crossfade_graph
from .planner import compute_repeat_count
from .types import MIN_REPEAT_COUNT, Clip, LoopOptions, LoopRequest, format_duration


@dataclass
class BatchResult:
    """Outcome of a batch run: outputs written and clips skipped."""
    succeeded: List[Tuple[Path, Path]] = field(default_factory=list)
    failed: List[Tuple[Path, ClipError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def output_path_for(source: Path, request: LoopRequest, output_dir: Path, extension: str = "mp4") -> Path:
    """``<stem>_loop-<count>.mp4`` or ``<stem>_length-<minutes>.mp4`` inside output_dir."""
    return output_dir / f"{source.stem}_{request.suffix()}.{extension}"


def _load_clip(source: Path, config: LoopConfig) -> Clip:
    return Clip(path=source, duration=probe.probe_duration(source, config))


def create_loop(source: Path, options: LoopOptions, config: LoopConfig) -> Path:
    """Render one looped video and return its path.

    Raises a ClipError subclass when this clip has to be skipped; the
    engine is never started for a clip that fails validation.
    """
    source = Path(source)
    probe.ensure_video_file(source)

    request = options.request
    transition = options.transition
    output = output_path_for(source, request, options.output_dir, config.output_extension)

    if transition.enabled:
        clip = _load_clip(source, config)
        count = compute_repeat_count(clip.duration, request, transition.seconds, verbose=config.verbose)
        if count < MIN_REPEAT_COUNT:
            logger.info(f"{source.name}: target reached with {count} copy, looping {MIN_REPEAT_COUNT} times")
            count = MIN_REPEAT_COUNT
        graph = build_crossfade_graph(
            count,
            transition.seconds,
            clip.duration,
            pix_fmt=config.alpha_pix_fmt,
            verbose=config.verbose,
        )
        expected = count * (clip.duration - transition.seconds) + transition.seconds
        logger.info(
            f"{source.name}: {count} copies with {transition.seconds}s cross-fade "
            f"(~{format_duration(expected)}) -> {output}"
        )
        if options.dry_run:
            cmd = ffmpeg_runner.build_filter_graph_command(source, graph, output, config)
            logger.info(f"[dry-run] {subprocess.list2cmdline(cmd)}")
            return output
        ffmpeg_runner.run_filter_graph(source, graph, output, config)
        return output

    if request.is_fixed:
        count = compute_repeat_count(0, request)
        logger.info(f"{source.name}: {count} copies -> {output}")
    else:
        clip = _load_clip(source, config)
        # Plain concat loses nothing at the joins, so no transition term
        count = compute_repeat_count(clip.duration, request, 0, verbose=config.verbose)
        logger.info(f"{source.name}: {count} copies (~{format_duration(count * clip.duration)}) -> {output}")

    with ffmpeg_runner.concat_list(source, count) as list_file:
        if options.dry_run:
            cmd = ffmpeg_runner.build_concat_command(list_file, output, config)
            logger.info(f"[dry-run] {subprocess.list2cmdline(cmd)}")
            return output
        ffmpeg_runner.run_concat(list_file, output, config)
    return output


def run_batch(sources: Iterable[Path], options: LoopOptions, config: LoopConfig) -> BatchResult:
    """Loop every source in order; a failing clip is logged and skipped."""
    result = BatchResult()
    for source in sources:
        source = Path(source)
        try:
            output = create_loop(source, options, config)
        except ClipError as e:
            logger.error(f"Skipping {source}: {e}")
            stderr_tail = getattr(e, "stderr_tail", "")
            if stderr_tail:
                logger.debug(f"ffmpeg stderr tail for {source.name}:\n{stderr_tail}")
            result.failed.append((source, e))
            continue
        result.succeeded.append((source, output))
    logger.info(f"Done: {len(result.succeeded)} succeeded, {len(result.failed)} failed")
    return result
