from __future__ import annotations

import os
from dataclasses import dataclass


def _env_truthy(value: str | None, default: bool = False) -> bool:
    raw = (value or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class AnalyzerSettings:
    """Runtime settings for upload, processing and storage."""

    mongo_uri: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db: str = os.getenv("MONGO_DB", "video-sentiment-analyzer")

    upload_root: str = os.getenv("UPLOAD_ROOT", "/data/uploads")
    work_root: str = os.getenv("WORK_ROOT", "/data/work")
    media_root: str = os.getenv("MEDIA_ROOT", "/data/media")
    media_base_url: str = os.getenv("MEDIA_BASE_URL", "/media")

    max_upload_bytes: int = int(os.getenv("MAX_FILE_SIZE", "104857600"))
    max_duration_s: float = float(os.getenv("MAX_DURATION_S", "120"))
    allowed_content_types: tuple[str, ...] = tuple(
        t.strip().lower()
        for t in os.getenv(
            "ALLOWED_CONTENT_TYPES",
            "video/mp4,video/webm,video/quicktime",
        ).split(",")
        if t.strip()
    )

    ffmpeg_bin: str = os.getenv("FFMPEG_BIN", "ffmpeg")
    ffprobe_bin: str = os.getenv("FFPROBE_BIN", "ffprobe")
    command_timeout_s: int = int(os.getenv("COMMAND_TIMEOUT_S", "1800"))
    transcode_size: str = os.getenv("TRANSCODE_SIZE", "1280x720")
    video_bitrate: str = os.getenv("VIDEO_BITRATE", "1000k")
    audio_bitrate: str = os.getenv("AUDIO_BITRATE", "128k")

    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    aws_access_key_id: str | None = os.getenv("AWS_ACCESS_KEY_ID") or None
    aws_secret_access_key: str | None = os.getenv("AWS_SECRET_ACCESS_KEY") or None
    s3_bucket: str | None = os.getenv("AWS_S3_BUCKET") or None
    s3_public_read: bool = _env_truthy(os.getenv("S3_PUBLIC_READ"), default=True)
    classifier_mode: str = os.getenv("CLASSIFIER_MODE", "auto").strip().lower()

    job_dispatch: str = os.getenv("JOB_DISPATCH", "background").strip().lower()
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    redis_stream: str = os.getenv("REDIS_STREAM_NAME", "analysis-jobs")
    redis_group: str = os.getenv("REDIS_CONSUMER_GROUP", "analysis-workers")

    cors_origins: tuple[str, ...] = tuple(
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
        if o.strip()
    )
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    metrics_port: int = int(os.getenv("METRICS_PORT", "9090"))

    @property
    def aws_configured(self) -> bool:
        return bool(self.aws_access_key_id)

    @property
    def s3_configured(self) -> bool:
        return self.aws_configured and bool(self.s3_bucket)
