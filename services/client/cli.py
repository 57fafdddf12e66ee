#!/usr/bin/env python3
"""Upload a video to the analyzer API, wait for the job and save the results."""

from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import time
from pathlib import Path
from typing import Any, Callable

import requests

LOGGER = logging.getLogger("client.cli")

POLL_INTERVAL_S = 1.0
MAX_POLL_ATTEMPTS = 300


class JobFailedError(RuntimeError):
    """Raised when the server reports the job as failed."""


class JobTimeoutError(TimeoutError):
    """Raised when the job is still running after the last poll attempt."""


class AnalyzerClient:
    def __init__(self, base_url: str, session: requests.Session | None = None, timeout_s: float = 60.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout_s, **kwargs)
        response.raise_for_status()
        return response.json()

    def upload(self, video_path: Path) -> dict[str, Any]:
        content_type = mimetypes.guess_type(video_path.name)[0] or "video/mp4"
        with video_path.open("rb") as fh:
            return self._request("POST", "/upload", files={"video": (video_path.name, fh, content_type)})

    def start_processing(self, video_id: str) -> str:
        return self._request("POST", f"/upload/{video_id}/process")["jobId"]

    def job_status(self, video_id: str, job_id: str) -> dict[str, Any]:
        return self._request("GET", f"/upload/{video_id}/status/{job_id}")

    def results(self, video_id: str) -> dict[str, Any]:
        return self._request("GET", f"/upload/{video_id}/results")

    def wait_for_job(
        self,
        video_id: str,
        job_id: str,
        interval_s: float = POLL_INTERVAL_S,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> dict[str, Any]:
        """Poll at a fixed interval until the job is terminal or attempts run out."""
        for attempt in range(1, max_attempts + 1):
            status = self.job_status(video_id, job_id)
            LOGGER.info("job_id=%s attempt=%s status=%s progress=%s", job_id, attempt, status.get("status"), status.get("progress"))
            if status.get("status") == "completed":
                return status
            if status.get("status") == "failed":
                raise JobFailedError(status.get("error") or "processing failed")
            if attempt < max_attempts:
                sleep(interval_s)
        raise JobTimeoutError(f"job {job_id} not finished after {max_attempts} attempts")

    def analyze(self, video_path: Path, **poll_kwargs: Any) -> dict[str, Any]:
        uploaded = self.upload(video_path)
        video_id = uploaded["videoId"]
        job_id = self.start_processing(video_id)
        self.wait_for_job(video_id, job_id, **poll_kwargs)
        return self.results(video_id)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("video", type=Path)
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--output", type=Path, default=None)
    parser.add_argument("--interval", type=float, default=POLL_INTERVAL_S)
    parser.add_argument("--max-attempts", type=int, default=MAX_POLL_ATTEMPTS)
    parser.add_argument("--log-level", default="INFO")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    client = AnalyzerClient(args.base_url)
    result = client.analyze(args.video, interval_s=args.interval, max_attempts=args.max_attempts)
    payload = json.dumps(result, indent=2)
    if args.output is None:
        print(payload)
        return
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(payload, encoding="utf-8")


if __name__ == "__main__":
    main()
