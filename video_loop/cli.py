#!/usr/bin/env python3
"""
CLI for building looped videos.

-c and -l are mutually exclusive. -c has precedence over -l.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .config import LoopConfig
from .errors import ValidationError
from .logging_config import setup_logging
from .render import run_batch
from .types import MIN_REPEAT_COUNT, LoopOptions, LoopRequest, TransitionSpec

DEFAULT_COUNT = 3
DEFAULT_TRANSITION = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="videoloop",
        description="Concatenate the same video multiple times to create a loop. Output format is mp4.",
        epilog="-c and -l are mutually exclusive. -c has precedence over -l.",
    )
    parser.add_argument("videos", nargs="+", type=Path, help="One or more video files to loop")
    parser.add_argument("-c", "--count", type=int, default=None,
                        help=f"Number of times to concatenate the video. Minimum {MIN_REPEAT_COUNT}. Default {DEFAULT_COUNT}.")
    parser.add_argument("-l", "--length", type=int, default=0,
                        help="Minimum minutes of the output video")
    parser.add_argument("-x", "--withCrossFade", dest="cross_fade", action="store_true",
                        help="Concatenate videos with cross fade transition")
    parser.add_argument("-t", "--transitionDuration", dest="transition", type=int, default=DEFAULT_TRANSITION,
                        help=f"Transition duration in seconds. Default {DEFAULT_TRANSITION}.")
    parser.add_argument("-o", "--outputDirectory", dest="output_dir", type=Path, default=None,
                        help="Output directory path. Default is current.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print loop counts, filter graphs and commands")
    parser.add_argument("-y", "--overwrite", action="store_true", help="Overwrite existing output files")
    parser.add_argument("--dry-run", action="store_true", help="Log the ffmpeg commands without running them")
    return parser


def resolve_request(count: Optional[int], length: int) -> LoopRequest:
    """Pick the loop mode; an explicit count wins over a length."""
    if count is not None:
        if count < MIN_REPEAT_COUNT:
            raise ValidationError(f"Loop count must be at least {MIN_REPEAT_COUNT}.")
        if length:
            logger.warning(f"Both --count and --length given; using count {count}")
        return LoopRequest.fixed(count)
    if length < 0:
        raise ValidationError("Length must be a positive number of minutes.")
    if length > 0:
        return LoopRequest.target(length * 60)
    return LoopRequest.fixed(DEFAULT_COUNT)


def resolve_options(args: argparse.Namespace) -> LoopOptions:
    if args.transition < 0:
        raise ValidationError("Transition duration cannot be negative.")
    request = resolve_request(args.count, args.length)
    output_dir = args.output_dir or Path.cwd()
    if output_dir.exists() and not output_dir.is_dir():
        raise ValidationError(f"Output path is not a directory: {output_dir}")
    return LoopOptions(
        request=request,
        transition=TransitionSpec(enabled=args.cross_fade, seconds=args.transition),
        output_dir=output_dir,
        dry_run=args.dry_run,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = LoopConfig.from_env()
    updates = {}
    if args.verbose:
        updates["verbose"] = True
    if args.overwrite:
        updates["overwrite"] = True
    if updates:
        config = config.model_copy(update=updates)

    setup_logging(config.log_level, config.log_format, verbose=config.verbose)

    try:
        options = resolve_options(args)
    except ValidationError as e:
        logger.error(str(e))
        return 2

    if not options.dry_run:
        options.output_dir.mkdir(parents=True, exist_ok=True)

    result = run_batch(args.videos, options, config)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
