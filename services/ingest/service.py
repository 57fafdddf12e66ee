from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import BinaryIO

from services.storage.mongo_repo import MongoRepository
from services.storage.object_store import ObjectStore
from services.storage.schemas import VideoRecord, VideoStatus

from .commands import CommandError
from .config import AnalyzerSettings
from .toolkit import MediaToolkit
from .validators import ValidationError, validate_content_type, validate_duration, validate_file_size

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class UploadService:
    """Validates an uploaded video and registers it as a Video record."""

    def __init__(
        self,
        repo: MongoRepository,
        toolkit: MediaToolkit,
        object_store: ObjectStore,
        settings: AnalyzerSettings | None = None,
    ) -> None:
        self.repo = repo
        self.toolkit = toolkit
        self.object_store = object_store
        self.settings = settings or AnalyzerSettings()

    def _save_limited(self, source: BinaryIO, target: Path) -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        size = 0
        with target.open("wb") as out:
            while chunk := source.read(CHUNK_SIZE):
                size += len(chunk)
                validate_file_size(size, self.settings.max_upload_bytes)
                out.write(chunk)
        return size

    def create_video(self, filename: str, content_type: str | None, source: BinaryIO) -> VideoRecord:
        validate_content_type(content_type, self.settings.allowed_content_types)

        video_id = str(uuid.uuid4())
        suffix = Path(filename or "").suffix.lower() or ".mp4"
        stored_name = f"{video_id}{suffix}"
        local_path = Path(self.settings.upload_root) / stored_name

        original = None
        try:
            size = self._save_limited(source, local_path)
            if size == 0:
                raise ValidationError("No video file provided")
            try:
                metadata = self.toolkit.probe(local_path)
            except CommandError as exc:
                raise ValidationError(f"Could not read video metadata: {exc}") from exc
            validate_duration(metadata.duration, self.settings.max_duration_s)

            original = self.object_store.upload_file(local_path, f"originals/{stored_name}", content_type or "")
            record = self.repo.insert_video(
                {
                    "_id": video_id,
                    "filename": stored_name,
                    "original_filename": filename or stored_name,
                    "file_size": size,
                    "duration": metadata.duration,
                    "width": metadata.width,
                    "height": metadata.height,
                    "fps": metadata.fps,
                    "local_path": str(local_path),
                    "original_key": original.key,
                    "status": VideoStatus.UPLOADED,
                }
            )
        except Exception:
            local_path.unlink(missing_ok=True)
            if original is not None:
                self.object_store.delete(original.key)
            raise

        logger.info("video_id=%s filename=%s size=%s duration=%.2f", video_id, filename, size, metadata.duration)
        return record
