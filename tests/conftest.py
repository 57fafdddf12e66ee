import os
import tempfile

# Module-level settings are read on import; keep them away from real services.
os.environ.pop("AWS_ACCESS_KEY_ID", None)
os.environ.pop("AWS_S3_BUCKET", None)
os.environ["CLASSIFIER_MODE"] = "mock"
os.environ["JOB_DISPATCH"] = "background"
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="media-"))

from pathlib import Path

import mongomock
import pytest
from fastapi.testclient import TestClient

from services.ingest.commands import CommandError
from services.ingest.config import AnalyzerSettings
from services.ingest.probe import VideoMetadata
from services.sentiment.classifier import MockEmotionClassifier
from services.storage.mongo_repo import MongoRepository
from services.storage.object_store import LocalObjectStore


class FakeToolkit:
    """Stands in for ffmpeg: one frame per whole second of ``duration``."""

    def __init__(self, duration: float = 15.0, fail_stage: str | None = None) -> None:
        self.duration = duration
        self.fail_stage = fail_stage
        self.compressed_from: list[Path] = []

    def probe(self, video_path):
        if self.fail_stage == "probe":
            raise CommandError("ffprobe exited with status 1: invalid data")
        return VideoMetadata(duration=self.duration, width=640, height=360, fps=30.0)

    def compress(self, input_path, output_path, duration_s, on_progress=None):
        if self.fail_stage == "compress":
            raise CommandError("ffmpeg transcode failed (1): broken input")
        self.compressed_from.append(Path(input_path))
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"compressed:" + Path(input_path).read_bytes())
        if on_progress is not None:
            for fraction in (0.25, 0.5, 0.5, 1.0):
                on_progress(fraction)
        return output_path

    def extract_frames(self, video_path, frame_dir):
        if self.fail_stage == "frames":
            raise CommandError("ffmpeg produced no frames")
        frame_dir.mkdir(parents=True, exist_ok=True)
        frames = []
        for index in range(1, int(self.duration) + 1):
            frame = frame_dir / f"frame_{index:06d}.jpg"
            frame.write_bytes(b"jpeg-%d" % index)
            frames.append(frame)
        return frames


@pytest.fixture()
def settings(tmp_path) -> AnalyzerSettings:
    return AnalyzerSettings(
        upload_root=str(tmp_path / "uploads"),
        work_root=str(tmp_path / "work"),
        media_root=str(tmp_path / "media"),
        aws_access_key_id=None,
        s3_bucket=None,
        classifier_mode="mock",
        job_dispatch="background",
    )


@pytest.fixture()
def repo() -> MongoRepository:
    repository = MongoRepository(mongomock.MongoClient()["video-sentiment-test"])
    repository.ensure_indexes()
    return repository


@pytest.fixture()
def object_store(settings) -> LocalObjectStore:
    return LocalObjectStore(Path(settings.media_root), settings.media_base_url)


@pytest.fixture()
def toolkit() -> FakeToolkit:
    return FakeToolkit()


@pytest.fixture()
def client(settings, repo, object_store, toolkit):
    from api import dependencies
    from api.main import app

    app.dependency_overrides[dependencies.get_settings] = lambda: settings
    app.dependency_overrides[dependencies.get_repo] = lambda: repo
    app.dependency_overrides[dependencies.get_object_store] = lambda: object_store
    app.dependency_overrides[dependencies.get_toolkit] = lambda: toolkit
    app.dependency_overrides[dependencies.get_classifier] = MockEmotionClassifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def uploaded_video(client) -> dict:
    response = client.post("/upload", files={"video": ("clip.mp4", b"fake-mp4-bytes", "video/mp4")})
    assert response.status_code == 200, response.text
    return response.json()
