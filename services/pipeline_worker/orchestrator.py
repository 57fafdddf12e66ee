"""Job orchestrator driving one video through explicit stage transitions."""

from __future__ import annotations

import logging
import tempfile
import time
from enum import Enum
from pathlib import Path
from typing import Any

from prometheus_client import Counter, Histogram

from services.ingest.config import AnalyzerSettings
from services.ingest.toolkit import MediaToolkit
from services.sentiment.analyzer import FrameAnalyzer
from services.sentiment.classifier import frame_to_timestamp
from services.storage.mongo_repo import MongoRepository
from services.storage.object_store import ObjectStore
from services.storage.schemas import JobStatus, VideoRecord, VideoStatus

from .logs import json_log

job_duration_seconds = Histogram(
    "job_duration_seconds",
    "End-to-end job processing duration in seconds",
    ["status"],
)
frames_processed_total = Counter(
    "frames_processed_total",
    "Total number of classified frames",
)


class JobStage(str, Enum):
    PENDING = "pending"
    COMPRESSING = "compressing"
    UPLOADING = "uploading"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


TRANSITIONS: dict[JobStage, set[JobStage]] = {
    JobStage.PENDING: {JobStage.COMPRESSING, JobStage.FAILED},
    JobStage.COMPRESSING: {JobStage.UPLOADING, JobStage.FAILED},
    JobStage.UPLOADING: {JobStage.ANALYZING, JobStage.FAILED},
    JobStage.ANALYZING: {JobStage.COMPLETED, JobStage.FAILED},
    JobStage.COMPLETED: set(),
    JobStage.FAILED: set(),
}

# Progress band (start, end) owned by each stage.
STAGE_BANDS: dict[JobStage, tuple[int, int]] = {
    JobStage.COMPRESSING: (10, 30),
    JobStage.UPLOADING: (30, 40),
    JobStage.ANALYZING: (40, 99),
}


def status_for(stage: JobStage) -> JobStatus:
    if stage is JobStage.COMPLETED:
        return JobStatus.COMPLETED
    if stage is JobStage.FAILED:
        return JobStatus.FAILED
    return JobStatus.PROCESSING


class ProgressReporter:
    """Single writer of a job's stage and progress."""

    def __init__(self, repo: MongoRepository, job_id: str) -> None:
        self.repo = repo
        self.job_id = job_id
        self.stage = JobStage.PENDING
        self.progress = 0

    @property
    def terminal(self) -> bool:
        return not TRANSITIONS[self.stage]

    def enter(self, stage: JobStage, progress: int | None = None) -> None:
        if stage not in TRANSITIONS[self.stage]:
            raise ValueError(f"invalid transition {self.stage.value} -> {stage.value}")
        self.stage = stage
        if progress is None:
            progress = STAGE_BANDS.get(stage, (self.progress, self.progress))[0]
        self.progress = max(self.progress, int(progress))
        self.repo.update_job(
            self.job_id,
            status=status_for(stage),
            stage=stage.value,
            progress=self.progress,
        )

    def advance(self, fraction: float) -> None:
        """Move within the current stage's band; ``fraction`` is 0..1."""
        start, end = STAGE_BANDS[self.stage]
        fraction = max(0.0, min(1.0, fraction))
        progress = int(start + (end - start) * fraction)
        if progress <= self.progress:
            return
        self.progress = progress
        self.repo.update_job(self.job_id, progress=progress)

    def complete(self) -> None:
        self.enter(JobStage.COMPLETED, 100)

    def fail(self, error: str) -> None:
        if self.terminal:
            return
        self.stage = JobStage.FAILED
        self.repo.update_job(
            self.job_id,
            status=JobStatus.FAILED,
            stage=JobStage.FAILED.value,
            error=error,
        )


class PipelineOrchestrator:
    def __init__(
        self,
        repo: MongoRepository,
        toolkit: MediaToolkit,
        object_store: ObjectStore,
        analyzer: FrameAnalyzer,
        settings: AnalyzerSettings,
        logger: logging.Logger | None = None,
    ) -> None:
        self.repo = repo
        self.toolkit = toolkit
        self.object_store = object_store
        self.analyzer = analyzer
        self.settings = settings
        self.logger = logger or logging.getLogger("pipeline_worker")

    def run(self, video_id: str, job_id: str) -> JobStage:
        """Process one job to a terminal stage. Never raises."""
        started = time.monotonic()
        reporter = ProgressReporter(self.repo, job_id)
        json_log(self.logger, logging.INFO, "job_started", job_id=job_id, video_id=video_id)

        try:
            work_root = Path(self.settings.work_root)
            work_root.mkdir(parents=True, exist_ok=True)
            with tempfile.TemporaryDirectory(
                prefix=f"job-{job_id}-", dir=work_root, ignore_cleanup_errors=True
            ) as scratch:
                count = self._execute(video_id, job_id, Path(scratch), reporter)
            reporter.complete()
            json_log(self.logger, logging.INFO, "job_completed", job_id=job_id, video_id=video_id, samples=count)
        except Exception as exc:
            reporter.fail(str(exc))
            json_log(
                self.logger,
                logging.ERROR,
                "job_failed",
                job_id=job_id,
                video_id=video_id,
                stage=reporter.stage,
                error=str(exc),
            )

        status = status_for(reporter.stage).value
        job_duration_seconds.labels(status=status).observe(time.monotonic() - started)
        return reporter.stage

    def _execute(self, video_id: str, job_id: str, scratch: Path, reporter: ProgressReporter) -> int:
        video = self.repo.get_video(video_id)
        if video is None:
            raise LookupError(f"Video not found: {video_id}")

        reporter.enter(JobStage.COMPRESSING)
        self._stage_log(job_id, reporter)
        source = self._resolve_source(video, scratch)
        compressed = self.toolkit.compress(
            source,
            scratch / f"{video_id}.mp4",
            video.duration,
            on_progress=reporter.advance,
        )

        reporter.enter(JobStage.UPLOADING)
        self._stage_log(job_id, reporter)
        stored = self.object_store.upload_file(compressed, f"videos/{video_id}.mp4", "video/mp4")
        self.repo.update_video(
            video_id,
            storage_key=stored.key,
            storage_url=stored.url,
            status=VideoStatus.PROCESSED.value,
        )
        reporter.advance(1.0)

        reporter.enter(JobStage.ANALYZING)
        self._stage_log(job_id, reporter)
        frames = self.toolkit.extract_frames(compressed, scratch / "frames")
        samples = self._classify_frames(video_id, job_id, frames, reporter)

        return self.repo.replace_sentiment_samples(video_id, samples)

    def _resolve_source(self, video: VideoRecord, scratch: Path) -> Path:
        if video.local_path and Path(video.local_path).is_file():
            return Path(video.local_path)
        if not video.original_key:
            raise FileNotFoundError(f"No source file available for video {video.id}")
        suffix = Path(video.filename).suffix or ".mp4"
        return self.object_store.download_file(video.original_key, scratch / f"source{suffix}")

    def _classify_frames(
        self,
        video_id: str,
        job_id: str,
        frames: list[Path],
        reporter: ProgressReporter,
    ) -> list[dict[str, Any]]:
        samples: list[dict[str, Any]] = []
        total = len(frames)
        for index, frame_path in enumerate(frames, start=1):
            timestamp = frame_to_timestamp(index)
            result = self.analyzer.analyze_frame(frame_path.read_bytes(), frame_path.name, video_id, timestamp)
            samples.append({**result, "job_id": job_id, "frame_index": index})
            frames_processed_total.inc()
            reporter.advance(index / total)
            json_log(
                self.logger,
                logging.DEBUG,
                "frame_classified",
                job_id=job_id,
                frame=index,
                total=total,
                sentiment=result["sentiment"],
            )
        return samples

    def _stage_log(self, job_id: str, reporter: ProgressReporter) -> None:
        json_log(
            self.logger,
            logging.INFO,
            "job_stage",
            job_id=job_id,
            stage=reporter.stage,
            progress=reporter.progress,
        )
