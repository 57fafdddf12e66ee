"""Media tool seam used by the upload service and the job orchestrator."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .config import AnalyzerSettings
from .frames import extract_frames
from .probe import VideoMetadata, probe_video
from .transcode import ProgressCallback, compress_video


class MediaToolkit(Protocol):
    def probe(self, video_path: Path) -> VideoMetadata: ...

    def compress(
        self,
        input_path: Path,
        output_path: Path,
        duration_s: float,
        on_progress: ProgressCallback | None = None,
    ) -> Path: ...

    def extract_frames(self, video_path: Path, frame_dir: Path) -> list[Path]: ...


class FfmpegToolkit:
    """MediaToolkit backed by the ffmpeg/ffprobe binaries."""

    def __init__(self, settings: AnalyzerSettings) -> None:
        self.settings = settings

    def probe(self, video_path: Path) -> VideoMetadata:
        return probe_video(video_path, self.settings)

    def compress(
        self,
        input_path: Path,
        output_path: Path,
        duration_s: float,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        return compress_video(input_path, output_path, self.settings, duration_s, on_progress)

    def extract_frames(self, video_path: Path, frame_dir: Path) -> list[Path]:
        return extract_frames(video_path, frame_dir, self.settings)
