from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .commands import CommandError, run_command
from .config import AnalyzerSettings

DEFAULT_FPS = 30.0


@dataclass(frozen=True)
class VideoMetadata:
    duration: float
    width: int | None = None
    height: int | None = None
    fps: float = DEFAULT_FPS


def parse_fps(value: str | None) -> float | None:
    """Parse ffprobe rates such as ``30000/1001`` or ``25``."""
    if not value:
        return None
    try:
        if "/" in value:
            num, den = value.split("/", 1)
            if float(den) == 0:
                return None
            return float(num) / float(den)
        return float(value)
    except ValueError:
        return None


def metadata_from_probe(probe: dict[str, Any]) -> VideoMetadata:
    streams = probe.get("streams") or []
    video_stream = next(
        (s for s in streams if isinstance(s, dict) and s.get("codec_type") == "video"),
        {},
    )
    raw_duration = (probe.get("format") or {}).get("duration") or video_stream.get("duration")
    try:
        duration = float(raw_duration)
    except (TypeError, ValueError) as exc:
        raise CommandError("ffprobe reported no duration") from exc

    return VideoMetadata(
        duration=duration,
        width=video_stream.get("width"),
        height=video_stream.get("height"),
        fps=parse_fps(video_stream.get("r_frame_rate")) or DEFAULT_FPS,
    )


def probe_video(video_path: Path, settings: AnalyzerSettings) -> VideoMetadata:
    command = [
        settings.ffprobe_bin,
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(video_path),
    ]
    result = run_command(command, settings.command_timeout_s)
    try:
        probe = json.loads(result.stdout or "{}")
    except json.JSONDecodeError as exc:
        raise CommandError(f"ffprobe returned invalid JSON: {exc}") from exc
    return metadata_from_probe(probe)
