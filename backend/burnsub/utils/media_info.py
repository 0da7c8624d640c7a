"""Media file information utilities using FFprobe."""

import json
import subprocess
from dataclasses import dataclass, field

from burnsub.config import get_settings
from burnsub.exceptions import ProbeError


@dataclass
class StreamInfo:
    """One stream reported by ffprobe."""

    index: int
    codec_type: str | None = None


@dataclass
class VideoInfo:
    """Stream list of a media file."""

    streams: list[StreamInfo] = field(default_factory=list)

    @property
    def has_audio(self) -> bool:
        # Anything beyond the video stream is treated as the audio track.
        return len(self.streams) > 1

    @classmethod
    def from_ffprobe(cls, data: dict) -> "VideoInfo":
        streams = [
            StreamInfo(index=int(stream.get("index", i)), codec_type=stream.get("codec_type"))
            for i, stream in enumerate(data.get("streams") or [])
        ]
        return cls(streams=streams)


def read_video_info(file_path: str, ffprobe_path: str | None = None) -> VideoInfo:
    """
    Read the stream list of a media file.

    Args:
        file_path: Path to media file
        ffprobe_path: ffprobe executable, defaults to the configured one

    Returns:
        VideoInfo with one entry per stream

    Raises:
        ProbeError: If ffprobe fails or its output can not be decoded
    """
    cmd = [
        ffprobe_path or get_settings().ffprobe_path,
        "-hide_banner",
        "-loglevel", "error",
        "-print_format", "json",
        "-show_streams",
        file_path,
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ProbeError(f"Could not run ffprobe: {e}") from e

    if result.returncode != 0:
        raise ProbeError(f"ffprobe failed: {result.stderr.strip()}")

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ProbeError(f"Could not decode ffprobe output: {e}") from e

    return VideoInfo.from_ffprobe(data)
