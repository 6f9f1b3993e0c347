"""
Configuration management for videoloop
"""

import os
from typing import Optional

import pydantic
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


class LoopConfig(pydantic.BaseModel):
    """Runtime configuration for probing and ffmpeg invocation"""

    model_config = pydantic.ConfigDict(frozen=True)

    # FFmpeg settings
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: Optional[str] = None
    quality_scale: int = pydantic.Field(default=0, ge=0, le=31)  # -qscale:v for the concat path
    alpha_pix_fmt: str = "yuva420p"  # alpha-capable format for the fade streams
    output_extension: str = "mp4"
    overwrite: bool = False

    # Timeouts (seconds); ffmpeg itself runs unbounded unless set
    probe_timeout: int = pydantic.Field(default=10, ge=1, le=600)
    ffmpeg_timeout: Optional[int] = pydantic.Field(default=None, ge=1)

    # Lines of ffmpeg stderr kept for error reports
    stderr_tail_lines: int = pydantic.Field(default=20, ge=0, le=1000)

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # text | json
    verbose: bool = False

    @pydantic.field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"text", "json"}:
            raise ValueError(f"log_format must be 'text' or 'json', got {value!r}")
        return value

    @classmethod
    def from_env(cls) -> "LoopConfig":
        """Create config from environment variables"""
        timeout = os.getenv("FFMPEG_TIMEOUT")

        return cls(
            # FFmpeg settings
            ffmpeg_path=os.getenv("FFMPEG_PATH") or "ffmpeg",
            ffprobe_path=os.getenv("FFPROBE_PATH") or None,
            quality_scale=int(os.getenv("QUALITY_SCALE", "0")),
            alpha_pix_fmt=os.getenv("ALPHA_PIX_FMT", "yuva420p"),
            output_extension=os.getenv("OUTPUT_EXTENSION", "mp4"),
            overwrite=_env_bool("OVERWRITE"),

            # Timeouts
            probe_timeout=int(os.getenv("PROBE_TIMEOUT", "10")),
            ffmpeg_timeout=int(timeout) if timeout else None,
            stderr_tail_lines=int(os.getenv("STDERR_TAIL_LINES", "20")),

            # Logging
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            verbose=_env_bool("VERBOSE"),
        )

    @property
    def resolved_ffprobe(self) -> str:
        """ffprobe binary; defaults to the one sitting next to ffmpeg"""
        if self.ffprobe_path:
            return self.ffprobe_path
        head, sep, tail = self.ffmpeg_path.rpartition("ffmpeg")
        if not sep:
            return "ffprobe"
        return f"{head}ffprobe{tail}"
