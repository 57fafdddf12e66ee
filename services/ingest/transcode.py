from __future__ import annotations

import logging
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import Callable, Optional

from .commands import CommandError
from .config import AnalyzerSettings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def build_transcode_command(input_path: Path, output_path: Path, settings: AnalyzerSettings) -> list[str]:
    return [
        settings.ffmpeg_bin,
        "-hide_banner",
        "-loglevel",
        "error",
        "-nostats",
        "-y",
        "-i",
        str(input_path),
        "-c:v",
        "libx264",
        "-c:a",
        "aac",
        "-s",
        settings.transcode_size,
        "-b:v",
        settings.video_bitrate,
        "-b:a",
        settings.audio_bitrate,
        "-f",
        "mp4",
        "-progress",
        "pipe:1",
        str(output_path),
    ]


def parse_progress_line(line: str, duration_s: float) -> Optional[float]:
    """Turn one ``key=value`` line of ffmpeg ``-progress`` output into a 0..1 fraction."""
    key, sep, value = line.strip().partition("=")
    if not sep:
        return None
    if key == "progress" and value == "end":
        return 1.0
    if key not in {"out_time_us", "out_time_ms"} or duration_s <= 0:
        return None
    try:
        # ffmpeg reports both keys in microseconds.
        elapsed_s = int(value) / 1_000_000
    except ValueError:
        return None
    return max(0.0, min(1.0, elapsed_s / duration_s))


def compress_video(
    input_path: Path,
    output_path: Path,
    settings: AnalyzerSettings,
    duration_s: float,
    on_progress: ProgressCallback | None = None,
) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    command = build_transcode_command(input_path, output_path, settings)

    # stderr goes to a file so a chatty ffmpeg never blocks on a full pipe.
    with tempfile.TemporaryFile(mode="w+") as stderr_file:
        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=stderr_file,
                text=True,
            )
        except FileNotFoundError as exc:
            raise CommandError(f"{settings.ffmpeg_bin} is not installed") from exc

        expired = threading.Event()

        def _expire() -> None:
            expired.set()
            proc.kill()

        timer = threading.Timer(settings.command_timeout_s, _expire)
        timer.daemon = True
        timer.start()
        try:
            _stream_progress(proc, duration_s, on_progress)
            returncode = proc.wait()
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            timer.cancel()
            if proc.stdout is not None:
                proc.stdout.close()

        if expired.is_set() and returncode != 0:
            raise CommandError(f"ffmpeg timed out after {settings.command_timeout_s}s")
        if returncode != 0:
            stderr_file.seek(0)
            raise CommandError(f"ffmpeg transcode failed ({returncode}): {stderr_file.read().strip()}")

    logger.info("transcoded input=%s output=%s", input_path, output_path)
    return output_path


def _stream_progress(
    proc: subprocess.Popen,
    duration_s: float,
    on_progress: ProgressCallback | None,
) -> None:
    last = -1.0
    assert proc.stdout is not None
    for line in proc.stdout:
        fraction = parse_progress_line(line, duration_s)
        if fraction is None or fraction <= last:
            continue
        last = fraction
        if on_progress is not None:
            on_progress(fraction)
