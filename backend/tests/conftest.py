"""
Pytest fixtures for burnsub backend tests.

Pipeline tests run against a FakeRunner that stands in for ffmpeg/ffprobe:
frame extraction writes small jpeg frames, each encode pass writes the
rendered file and the two-pass log files. Downloads go through
httpx.MockTransport.

CI/CD Note:
Tests that need a real ffmpeg binary are marked with @pytest.mark.requires_ffmpeg
and skipped when it is not on PATH.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

import httpx
import pytest
from PIL import Image

from burnsub.config import Settings
from burnsub.exceptions import ProbeError, ProcessError
from burnsub.render.pipeline import ExportPipeline
from burnsub.render.progress import ProgressSink
from burnsub.utils.media_info import StreamInfo, VideoInfo

SOURCE_BYTES = b"\x00" * 1000


def _ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None


requires_ffmpeg = pytest.mark.skipif(
    not _ffmpeg_available(),
    reason="ffmpeg not installed",
)

requires_posix_shell = pytest.mark.skipif(
    os.name != "posix",
    reason="fake media tools are shell scripts",
)


class RecordingSink:
    """ProgressSink that remembers every report."""

    def __init__(self):
        self.reports: list[tuple[int, int]] = []

    def report(self, current: int, total: int) -> None:
        self.reports.append((current, total))


class FakeRunner:
    """Stands in for FFmpegRunner without running any process."""

    def __init__(
        self,
        frame_count: int = 50,
        frame_size: tuple[int, int] = (320, 180),
        stream_count: int = 1,
        fail_pass: Optional[int] = None,
        fail_probe: bool = False,
        write_frames: bool = True,
    ):
        self.frame_count = frame_count
        self.frame_size = frame_size
        self.stream_count = stream_count
        self.fail_pass = fail_pass
        self.fail_probe = fail_probe
        self.write_frames = write_frames
        self.calls: list[list[str]] = []
        self.probes: list[str] = []

    @property
    def encode_calls(self) -> list[list[str]]:
        return [call for call in self.calls if "-pass" in call]

    async def run(self, workspace: str, sink: Optional[ProgressSink], *args: str) -> None:
        self.calls.append(list(args))
        ws = Path(workspace)
        try:
            if "-pass" in args:
                pass_number = int(args[args.index("-pass") + 1])
                if pass_number == self.fail_pass:
                    raise ProcessError("ffmpeg", 1, "x264 [error]: broken pass")
                (ws / "ffmpeg2pass-0.log").write_text("stats")
                (ws / "ffmpeg2pass-0.log.mbtree").write_bytes(b"tree")
                (ws / "rendered.mp4").write_bytes(b"rendered video")
            elif args and args[-1] == "frame-%06d.jpg" and self.write_frames:
                for number in range(1, self.frame_count + 1):
                    Image.new("RGB", self.frame_size, (40, 40, 40)).save(
                        ws / f"frame-{number:06d}.jpg", quality=90
                    )
        finally:
            if sink is not None:
                sink.report(1, 1)

    async def probe(self, file_path: str) -> VideoInfo:
        self.probes.append(file_path)
        if self.fail_probe:
            raise ProbeError("ffprobe failed: Invalid data found when processing input")
        return VideoInfo(streams=[StreamInfo(index=i) for i in range(self.stream_count)])


def video_transport(body: bytes = SOURCE_BYTES, status_code: int = 200) -> httpx.MockTransport:
    """Serves ``body`` for every request."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def temp_output_dir():
    """Temporary directory for test outputs."""
    with tempfile.TemporaryDirectory(prefix="burnsub_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_output_dir: Path) -> Settings:
    return Settings(
        _env_file=None,
        export_root=str(temp_output_dir / "export"),
        download_chunk_size=100,
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def pipeline(settings: Settings, fake_runner: FakeRunner) -> ExportPipeline:
    return ExportPipeline(settings, runner=fake_runner, transport=video_transport())


@pytest.fixture
def sample_frame(temp_output_dir: Path) -> Path:
    """A 1000x500 dark gray jpeg frame."""
    path = temp_output_dir / "frame-000001.jpg"
    Image.new("RGB", (1000, 500), (20, 20, 20)).save(path, quality=95)
    return path
