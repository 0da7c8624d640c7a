from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "burnsub"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Workspace root; every job gets <export_root>/<job_id>
    export_root: str = "temp/export"

    # FFmpeg
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Subtitle font. None uses Pillow's bundled scalable font.
    font_path: str | None = None

    # Scheduler
    export_concurrency: int = 2
    export_queue_size: int = 1024
    job_id_length: int = 12

    # Frame extraction
    export_fps: int = 25
    export_max_width: int = 848
    frame_quality: int = 5  # ffmpeg -q:v for extracted jpeg frames
    frame_jpeg_quality: int = 98  # Pillow quality when re-encoding annotated frames

    # Encoding
    video_bitrate: str = "600k"

    # Download
    download_chunk_size: int = 16 * 1024
    download_timeout_s: float = 60.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
