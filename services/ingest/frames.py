from __future__ import annotations

from pathlib import Path

from .commands import CommandError, run_command
from .config import AnalyzerSettings

FRAME_PATTERN = "frame_%06d.jpg"


def extract_frames(video_path: Path, frame_dir: Path, settings: AnalyzerSettings) -> list[Path]:
    """Write one JPEG per second of video and return them in frame order."""
    frame_dir.mkdir(parents=True, exist_ok=True)

    output_pattern = str(frame_dir / FRAME_PATTERN)
    command = [
        settings.ffmpeg_bin,
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-i",
        str(video_path),
        "-vf",
        "fps=1",
        output_pattern,
    ]
    run_command(command, settings.command_timeout_s)

    frames = sorted(frame_dir.glob("frame_*.jpg"))
    if not frames:
        raise CommandError("ffmpeg produced no frames")
    return frames
