#!/usr/bin/env python3
"""
FFmpeg command builders and runner for looped renders.

Notes:
- Audio is always dropped (-an); loops are video-only
- ffmpeg stdout is inherited, stderr is streamed through and its tail kept
"""

from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import threading
from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from loguru import logger

from .config import LoopConfig
from .errors import EngineExecutionError
from .filter_graph import FilterGraph


def _base_command(config: LoopConfig) -> List[str]:
    # -n refuses to clobber instead of prompting on a stdin we never feed
    return [config.ffmpeg_path, '-hide_banner', '-y' if config.overwrite else '-n']


def _quote_concat_path(path: Path) -> str:
    """Single-quote a path for the concat demuxer."""
    return "'" + str(path).replace("'", "'\\''") + "'"


@contextmanager
def concat_list(source: Path, count: int) -> Iterator[Path]:
    """Write a concat demuxer list naming ``source`` ``count`` times.

    The list lives beside the source clip and is removed on every exit path.
    """
    line = f"file {_quote_concat_path(source.resolve())}\n"
    logger.debug(f"file is\n{line}")

    try:
        fd, name = tempfile.mkstemp(prefix=f"{source.stem}_", suffix='.txt', dir=str(source.parent))
    except OSError as e:
        raise EngineExecutionError(f"Cannot write concat list beside {source}: {e}")
    list_path = Path(name)
    try:
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(line * count)
        except OSError as e:
            raise EngineExecutionError(f"Cannot write concat list {list_path}: {e}")
        yield list_path
    finally:
        try:
            list_path.unlink()
        except FileNotFoundError:
            pass


def build_concat_command(list_file: Path, output: Path, config: LoopConfig) -> List[str]:
    return _base_command(config) + [
        '-f', 'concat',
        '-safe', '0',
        '-i', str(list_file),
        '-an',
        '-qscale:v', str(config.quality_scale),
        str(output),
    ]


def build_filter_graph_command(source: Path, graph: FilterGraph, output: Path, config: LoopConfig) -> List[str]:
    return _base_command(config) + [
        '-i', str(source),
        '-an',
        '-filter_complex', graph.serialize(),
        '-map', graph.map_label,
        str(output),
    ]


def run_ffmpeg(cmd: List[str], timeout: Optional[int] = None, tail_lines: int = 20) -> None:
    """Run FFmpeg, streaming stderr through for real-time progress visibility.

    Raises EngineExecutionError when ffmpeg cannot start, times out or exits
    non-zero; the last ``tail_lines`` stderr lines ride along on the error.
    """
    logger.debug(f"Running: {subprocess.list2cmdline(cmd)}")
    tail: deque = deque(maxlen=max(tail_lines, 1))
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=None,
            stderr=subprocess.PIPE,
            text=True,
            # metadata and file names are not always UTF-8
            errors="replace",
            bufsize=1,
        )
    except OSError as e:
        raise EngineExecutionError(f"Failed to start {cmd[0]}: {e}", command=cmd)

    # Reading stderr blocks until ffmpeg exits, so the timeout is a kill timer
    timed_out = threading.Event()

    def _kill() -> None:
        timed_out.set()
        proc.kill()

    timer = threading.Timer(timeout, _kill) if timeout else None
    if timer is not None:
        timer.start()
    try:
        # FFmpeg prints stats to stderr
        if proc.stderr is not None:
            for line in proc.stderr:
                sys.stderr.write(line)
                if tail_lines > 0:
                    tail.append(line.rstrip())
        code = proc.wait()
    except BaseException:
        proc.kill()
        proc.wait()
        raise
    finally:
        if timer is not None:
            timer.cancel()
        if proc.stderr is not None:
            proc.stderr.close()

    if timed_out.is_set():
        raise EngineExecutionError(
            f"{cmd[0]} timed out after {timeout}s",
            returncode=code,
            stderr_tail="\n".join(tail),
            command=cmd,
        )
    if code != 0:
        raise EngineExecutionError(
            f"{cmd[0]} exited with status {code}",
            returncode=code,
            stderr_tail="\n".join(tail),
            command=cmd,
        )


def run_concat(list_file: Path, output: Path, config: LoopConfig) -> None:
    run_ffmpeg(
        build_concat_command(list_file, output, config),
        timeout=config.ffmpeg_timeout,
        tail_lines=config.stderr_tail_lines,
    )


def run_filter_graph(source: Path, graph: FilterGraph, output: Path, config: LoopConfig) -> None:
    run_ffmpeg(
        build_filter_graph_command(source, graph, output, config),
        timeout=config.ffmpeg_timeout,
        tail_lines=config.stderr_tail_lines,
    )
