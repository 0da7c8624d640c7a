"""FFmpeg subprocess execution with time-based progress reporting.

ffmpeg prints ``Duration: HH:MM:SS.CC`` for its input once and then a
``time=HH:MM:SS.CC`` stats line while encoding. The parser turns these
into ``(elapsed_ms, total_ms)`` reports on a ProgressSink.
"""

import asyncio
import logging
import re
from collections import deque
from typing import AsyncIterator, Optional

from burnsub.config import get_settings
from burnsub.exceptions import ProcessError
from burnsub.render.progress import ProgressSink
from burnsub.utils.media_info import VideoInfo, read_video_info

logger = logging.getLogger(__name__)

DEFAULT_ARGS = ["-hide_banner", "-loglevel", "info", "-stats"]

_TIMESTAMP = r"(\d\d):(\d\d):(\d\d)\.(\d\d)"
_LINE_SPLIT = re.compile(rb"[\r\n]")


def parse_timestamp(line: str, prefix: str) -> Optional[int]:
    """Parse ``<prefix>HH:MM:SS.CC`` from a log line into milliseconds."""
    match = re.search(re.escape(prefix) + _TIMESTAMP, line)
    if match is None:
        return None

    hours, minutes, seconds, centis = (int(g) for g in match.groups())
    return ((hours * 60 + minutes) * 60 + seconds) * 1000 + centis * 10


class FFmpegProgressParser:
    """Stateful parser for ffmpeg's diagnostic output."""

    def __init__(self, sink: Optional[ProgressSink], tail_lines: int = 50):
        self.sink = sink
        self.total_ms: Optional[int] = None
        self._tail: deque[str] = deque(maxlen=tail_lines)

    def feed(self, line: str) -> None:
        self._tail.append(line)

        if self.sink is None:
            return

        if self.total_ms is None:
            self.total_ms = parse_timestamp(line, "Duration: ")
            return

        current_ms = parse_timestamp(line, "time=")
        if current_ms is not None:
            logger.debug(f"[FFMPEG] progress at {current_ms}ms of {self.total_ms}ms")
            self.sink.report(current_ms, self.total_ms)

    def finish(self) -> None:
        """Mark the step complete, even if no stats line was seen."""
        if self.sink is not None:
            self.sink.report(1, 1)

    @property
    def output(self) -> str:
        return "\n".join(self._tail)


async def iter_lines(stream: asyncio.StreamReader, chunk_size: int = 4096) -> AsyncIterator[str]:
    """Yield lines from ``stream``, splitting on ``\\n`` and ``\\r``."""
    buffer = b""
    while True:
        chunk = await stream.read(chunk_size)
        if not chunk:
            break

        buffer += chunk
        *lines, buffer = _LINE_SPLIT.split(buffer)
        for line in lines:
            if line:
                yield line.decode("utf-8", errors="replace")

    if buffer:
        yield buffer.decode("utf-8", errors="replace")


class FFmpegRunner:
    """Runs ffmpeg and ffprobe for the export pipeline."""

    def __init__(self, ffmpeg_path: Optional[str] = None, ffprobe_path: Optional[str] = None):
        settings = get_settings()
        self.ffmpeg_path = ffmpeg_path or settings.ffmpeg_path
        self.ffprobe_path = ffprobe_path or settings.ffprobe_path

    async def run(self, workspace: str, sink: Optional[ProgressSink], *args: str) -> None:
        """
        Run ffmpeg inside ``workspace``.

        Args:
            workspace: Working directory, relative file names resolve against it
            sink: Receives time based progress, finished with (1, 1) on exit
            args: ffmpeg arguments, appended to the default flags

        Raises:
            ProcessError: If ffmpeg can not be started or exits non-zero
        """
        cmd = [self.ffmpeg_path, *DEFAULT_ARGS, *args]
        logger.debug(f"[FFMPEG] {' '.join(args)}")

        parser = FFmpegProgressParser(sink)
        try:
            try:
                proc = await asyncio.create_subprocess_exec(
                    *cmd,
                    cwd=workspace,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise ProcessError("ffmpeg", -1, str(e)) from e

            async for line in iter_lines(proc.stderr):
                parser.feed(line)

            returncode = await proc.wait()
        finally:
            parser.finish()

        if returncode != 0:
            logger.warning(f"[FFMPEG] failed with exit status {returncode}, stderr was:\n{parser.output}")
            raise ProcessError("ffmpeg", returncode, parser.output)

    async def probe(self, file_path: str) -> VideoInfo:
        """Read stream information without blocking the event loop."""
        return await asyncio.to_thread(read_video_info, file_path, self.ffprobe_path)
