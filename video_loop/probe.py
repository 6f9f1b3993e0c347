"""
Video sniffing and duration probing via ffprobe.
"""

from __future__ import annotations

import mimetypes
import subprocess
from pathlib import Path

from loguru import logger

from .config import LoopConfig
from .errors import NotAVideoError, ProbeError

# video file extensions we recognize even when mimetypes does not
VIDEO_EXTENSIONS = ('.mp4', '.m4v', '.mov', '.mkv', '.webm', '.avi', '.wmv', '.flv', '.mpg', '.mpeg', '.ts', '.3gp', '.3g2')


def is_video_file(path: Path) -> bool:
    """True for an existing regular file whose name says it is a video."""
    if not path.is_file():
        return False
    if path.suffix.lower() in VIDEO_EXTENSIONS:
        return True
    mime, _ = mimetypes.guess_type(str(path))
    return bool(mime and mime.startswith('video/'))


def ensure_video_file(path: Path) -> None:
    if not path.exists():
        raise NotAVideoError(f"Input not found: {path}")
    if not is_video_file(path):
        raise NotAVideoError(f"Not a video file: {path}")


def probe_duration(path: Path, config: LoopConfig) -> int:
    """Return the container duration in whole seconds.

    Fractions are truncated; the graph builder trims on whole seconds.
    """
    cmd = [
        config.resolved_ffprobe,
        '-v', 'error',
        '-show_entries', 'format=duration',
        '-of', 'default=noprint_wrappers=1:nokey=1',
        str(path),
    ]
    try:
        res = subprocess.run(cmd, capture_output=True, text=True, timeout=config.probe_timeout)
    except subprocess.TimeoutExpired:
        raise ProbeError(f"ffprobe timed out after {config.probe_timeout}s on {path}")
    except OSError as e:
        raise ProbeError(f"Could not run {cmd[0]}: {e}")

    if res.returncode != 0:
        raise ProbeError(f"ffprobe failed on {path}: {(res.stderr or '').strip()}")

    out = (res.stdout or '').strip().splitlines()
    try:
        seconds = float(out[0]) if out else float('nan')
    except ValueError:
        raise ProbeError(f"Unexpected ffprobe duration for {path}: {out[0]!r}")
    if not seconds >= 0:
        raise ProbeError(f"No duration reported for {path}")

    logger.debug(f"Probed {path.name}: {seconds:.3f}s")
    return int(seconds)
