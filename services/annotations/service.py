from __future__ import annotations

import logging
import math
import uuid
from typing import Any, Optional

from services.storage.mongo_repo import MongoRepository
from services.storage.schemas import DEFAULT_ANNOTATION_COLOR, ManualAnnotation, VideoRecord

logger = logging.getLogger(__name__)

ANNOTATION_TYPES = ("moment", "interval")


class AnnotationValidationError(ValueError):
    pass


class NotFoundError(LookupError):
    pass


def _clean(text: Optional[str]) -> Optional[str]:
    text = (text or "").strip()
    return text or None


def _check_range(value: float, name: str, duration: float) -> None:
    if math.isnan(value) or value < 0 or value > duration:
        raise AnnotationValidationError(f"{name} must be between 0 and {duration:g} seconds")


def validate_annotation(
    video: VideoRecord,
    type_: Optional[str],
    label: Optional[str],
    timestamp: Optional[float] = None,
    start_timestamp: Optional[float] = None,
    end_timestamp: Optional[float] = None,
) -> None:
    if not type_ or not _clean(label):
        raise AnnotationValidationError("Type and label are required fields")
    if type_ not in ANNOTATION_TYPES:
        raise AnnotationValidationError("Type must be either 'moment' or 'interval'")

    if type_ == "moment":
        if timestamp is None:
            raise AnnotationValidationError("Timestamp is required for moment annotations")
        if start_timestamp is not None or end_timestamp is not None:
            raise AnnotationValidationError(
                "Start and end timestamps should not be provided for moment annotations"
            )
        _check_range(timestamp, "Timestamp", video.duration)
        return

    if start_timestamp is None or end_timestamp is None:
        raise AnnotationValidationError("Start and end timestamps are required for interval annotations")
    if timestamp is not None:
        raise AnnotationValidationError("Timestamp should not be provided for interval annotations")
    if start_timestamp >= end_timestamp:
        raise AnnotationValidationError("Start timestamp must be before end timestamp")
    _check_range(start_timestamp, "Start timestamp", video.duration)
    _check_range(end_timestamp, "End timestamp", video.duration)


class AnnotationService:
    def __init__(self, repo: MongoRepository) -> None:
        self.repo = repo

    def _video(self, video_id: str) -> VideoRecord:
        video = self.repo.get_video(video_id)
        if video is None:
            raise NotFoundError("Video not found")
        return video

    def list_for_video(self, video_id: str) -> list[ManualAnnotation]:
        self._video(video_id)
        return self.repo.list_annotations(video_id)

    def get(self, video_id: str, annotation_id: str) -> ManualAnnotation:
        annotation = self.repo.get_annotation(video_id, annotation_id)
        if annotation is None:
            raise NotFoundError("Annotation not found")
        return annotation

    def create(
        self,
        video_id: str,
        *,
        type_: Optional[str],
        label: Optional[str],
        description: Optional[str] = None,
        color: Optional[str] = None,
        timestamp: Optional[float] = None,
        start_timestamp: Optional[float] = None,
        end_timestamp: Optional[float] = None,
    ) -> ManualAnnotation:
        video = self._video(video_id)
        validate_annotation(video, type_, label, timestamp, start_timestamp, end_timestamp)

        is_moment = type_ == "moment"
        annotation = self.repo.insert_annotation(
            {
                "_id": str(uuid.uuid4()),
                "video_id": video_id,
                "type": type_,
                "label": _clean(label),
                "description": _clean(description),
                "color": color or DEFAULT_ANNOTATION_COLOR,
                "timestamp": timestamp if is_moment else None,
                "start_timestamp": None if is_moment else start_timestamp,
                "end_timestamp": None if is_moment else end_timestamp,
            }
        )
        logger.info("annotation_id=%s video_id=%s type=%s created", annotation.id, video_id, type_)
        return annotation

    def update(
        self,
        video_id: str,
        annotation_id: str,
        *,
        label: Optional[str],
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> ManualAnnotation:
        current = self.get(video_id, annotation_id)
        if not _clean(label):
            raise AnnotationValidationError("Label is required")

        updated = self.repo.update_annotation(
            video_id,
            annotation_id,
            label=_clean(label),
            description=_clean(description),
            color=color or current.color,
        )
        if updated is None:
            raise NotFoundError("Annotation not found")
        return updated

    def delete(self, video_id: str, annotation_id: str) -> None:
        self.get(video_id, annotation_id)
        self.repo.delete_annotation(video_id, annotation_id)
        logger.info("annotation_id=%s video_id=%s deleted", annotation_id, video_id)

    def stats(self, video_id: str) -> dict[str, Any]:
        self._video(video_id)
        return self.repo.annotation_stats(video_id)
