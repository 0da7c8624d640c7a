"""
Export pipeline for burning subtitles into a video.

This module drives one job through its stages:
1. Download the source video
2. Probe it for an audio stream (skipped for silent projects)
3. Extract downscaled frames with FFmpeg
4. Composite active subtitles onto each frame
5. Encode the frames, two-pass (pass 1)
6. Encode the frames, two-pass (pass 2, copying the source audio)
7. Remove everything from the workspace except the rendered file

Progress is tracked on the job's ProgressMeter, one step per stage that
does real work (download, extraction, rendering, both encode passes).
"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Protocol

import httpx
from PIL import Image

from burnsub.config import Settings, get_settings
from burnsub.exceptions import (
    DownloadError,
    EncodeError,
    FrameExtractionError,
    ProcessError,
    WorkspaceError,
)
from burnsub.render.ffmpeg import FFmpegRunner
from burnsub.render.progress import ProgressMeter, ProgressSink
from burnsub.render.subtitle_renderer import load_font, render_subtitles
from burnsub.utils.media_info import VideoInfo

if TYPE_CHECKING:
    from burnsub.models.job import ExportJob

logger = logging.getLogger(__name__)

# Progress steps
STEP_DOWNLOAD = 0
STEP_EXTRACT = 1
STEP_RENDER = 2
STEP_PASS_1 = 3
STEP_PASS_2 = 4
STEP_COUNT = 5

# Workspace file names
ORIGINAL_FILE = "original.mp4"
FRAME_PATTERN = "frame-%06d.jpg"
FRAME_GLOB = "frame-*.jpg"
RENDERED_FILE = "rendered.mp4"
PASSLOG_FILES = ("ffmpeg2pass-0.log", "ffmpeg2pass-0.log.mbtree")


class MediaRunner(Protocol):
    """Process seam of the pipeline, implemented by FFmpegRunner."""

    async def run(self, workspace: str, sink: Optional[ProgressSink], *args: str) -> None: ...

    async def probe(self, file_path: str) -> VideoInfo: ...


class ExportPipeline:
    """
    Turns a submitted project into a rendered video.

    One instance is shared by all jobs; per-job state lives on the job and
    in local variables of ``run``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        runner: Optional[MediaRunner] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.runner = runner or FFmpegRunner(self.settings.ffmpeg_path, self.settings.ffprobe_path)
        self._transport = transport

    def workspace_for(self, job_id: str) -> Path:
        return Path(self.settings.export_root) / job_id

    async def run(self, job: "ExportJob") -> str:
        """
        Execute all stages for ``job``.

        Returns:
            Path to the rendered video

        Raises:
            PipelineError: The first stage that failed, remaining stages are skipped
        """
        prefix = f"[EXPORT {job.id}]"
        start = time.monotonic()

        job.progress = ProgressMeter(STEP_COUNT)
        project = job.project
        workspace = self.workspace_for(job.id)

        try:
            workspace.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Could not create workspace {workspace}: {e}") from e

        try:
            logger.info(f"{prefix} Downloading original video")
            await self.download(project.video, workspace / ORIGINAL_FILE, job.progress.step(STEP_DOWNLOAD))

            # read video information first - fail early
            has_audio = False
            if not project.silent:
                logger.info(f"{prefix} Check for audio stream in original video")
                has_audio = await self._probe_audio(workspace / ORIGINAL_FILE)

            logger.info(f"{prefix} Converting video to frames")
            frames = await self.extract_frames(workspace, job.progress.step(STEP_EXTRACT))

            logger.info(f"{prefix} Rendering {len(project.subtitles)} subtitles onto {len(frames)} frames")
            await self.render_frames(job, frames, job.progress.step(STEP_RENDER))

            # internal until the job finished, see ExportJob.output_file
            job.set_output_file(str(workspace / RENDERED_FILE))
            await self.encode(workspace, has_audio, job.progress, prefix)

            logger.info(f"{prefix} Finished")
            return str(workspace / RENDERED_FILE)
        finally:
            logger.info(f"{prefix} Cleanup")
            self.cleanup(workspace)
            logger.info(f"{prefix} Export job took {time.monotonic() - start:.1f}s")

    async def download(self, url: str, target: Path, progress: ProgressSink) -> None:
        """Stream ``url`` into ``target``, reporting bytes when the length is known."""
        chunk_size = self.settings.download_chunk_size
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.settings.download_timeout_s,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    total = int(response.headers.get("content-length") or 0)

                    with open(target, "wb") as fp:
                        async for chunk in response.aiter_bytes(chunk_size):
                            fp.write(chunk)
                            # Content-Length counts the body as sent, before content decoding
                            if total > 0:
                                progress.report(response.num_bytes_downloaded, total)
        except (httpx.HTTPError, OSError, ValueError) as e:
            raise DownloadError(f"Could not download original video: {e}") from e

    async def _probe_audio(self, path: Path) -> bool:
        info = await self.runner.probe(str(path))
        return info.has_audio

    async def extract_frames(self, workspace: Path, progress: ProgressSink) -> list[str]:
        """Decode the original into numbered, downscaled jpeg frames."""
        settings = self.settings
        try:
            await self.runner.run(
                str(workspace),
                progress,
                "-i", ORIGINAL_FILE,
                "-vf", f"scale='min(iw,{settings.export_max_width})':-2,fps={settings.export_fps}:start_time=0",
                "-y",
                "-q:v", str(settings.frame_quality),
                "-an",
                FRAME_PATTERN,
            )
        except ProcessError as e:
            raise FrameExtractionError(f"Could not extract frames from video: {e}") from e

        # zero-padded names sort correctly as strings
        frames = sorted(str(p) for p in workspace.glob(FRAME_GLOB))
        if not frames:
            raise FrameExtractionError("Could not find the generated frames")
        return frames

    async def render_frames(self, job: "ExportJob", frames: list[str], progress: ProgressSink) -> None:
        """Burn the active subtitles into every frame that has any."""
        settings = self.settings
        try:
            with Image.open(frames[0]) as first:
                _, height = first.size
        except OSError as e:
            raise FrameExtractionError(f"Could not read image size from first frame: {e}") from e

        font_size = height / 16
        font = load_font(settings.font_path, font_size)

        frame_count = len(frames)
        for idx, frame in enumerate(frames):
            progress.report(idx, frame_count)

            subtitles = job.project.active_subtitles(idx / settings.export_fps)
            if not subtitles:
                continue

            await asyncio.to_thread(
                render_subtitles, frame, font, font_size, subtitles, settings.frame_jpeg_quality
            )

        progress.report(frame_count, frame_count)

    def encode_args(self, pass_number: int, has_audio: bool) -> list[str]:
        """ffmpeg arguments for one pass of the two-pass encode."""
        settings = self.settings
        with_audio = has_audio and pass_number == 2

        args = ["-r", str(settings.export_fps), "-i", FRAME_PATTERN]
        if with_audio:
            args += ["-i", ORIGINAL_FILE]

        args += ["-map", "0:v"]
        if with_audio:
            args += ["-map", "1:a", "-codec:a", "copy", "-shortest"]

        args += [
            "-b:v", settings.video_bitrate,
            "-codec:v", "libx264",
            "-profile:v", "high",
            "-level", "4.2",
            "-pass", str(pass_number),
            "-y", RENDERED_FILE,
        ]
        return args

    async def encode(self, workspace: Path, has_audio: bool, meter: ProgressMeter, prefix: str) -> None:
        for pass_number, step in ((1, STEP_PASS_1), (2, STEP_PASS_2)):
            logger.info(f"{prefix} Encode frames to video (pass {pass_number})")
            try:
                await self.runner.run(str(workspace), meter.step(step), *self.encode_args(pass_number, has_audio))
            except ProcessError as e:
                raise EncodeError(f"Error encoding the video in pass {pass_number}: {e}") from e

    def cleanup(self, workspace: Path) -> None:
        """Remove intermediate files, keeping only the rendered video."""
        paths = [workspace / ORIGINAL_FILE, *(workspace / name for name in PASSLOG_FILES)]
        paths += workspace.glob(FRAME_GLOB)

        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"[EXPORT] Could not remove {path}: {e}")


