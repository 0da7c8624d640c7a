from burnsub.render.ffmpeg import FFmpegProgressParser, FFmpegRunner
from burnsub.render.pipeline import ExportPipeline
from burnsub.render.progress import ProgressMeter, ProgressSink, StepProgress
from burnsub.render.subtitle_renderer import render_subtitles

__all__ = [
    "ExportPipeline",
    "FFmpegRunner",
    "FFmpegProgressParser",
    "ProgressMeter",
    "ProgressSink",
    "StepProgress",
    "render_subtitles",
]
