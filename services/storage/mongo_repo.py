"""MongoDB storage repository for videos, analysis jobs, sentiment samples and annotations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from services.storage.schemas import (
    AnalysisJob,
    JobStatus,
    ManualAnnotation,
    SentimentSample,
    VideoRecord,
    VideoStatus,
)

VIDEOS_COLLECTION = "videos"
ANALYSIS_JOBS_COLLECTION = "analysis_jobs"
SENTIMENT_RESULTS_COLLECTION = "sentiment_results"
MANUAL_ANNOTATIONS_COLLECTION = "manual_annotations"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MongoRepository:
    """Storage abstraction around MongoDB, scoped per video id."""

    def __init__(self, db: Database):
        self.db = db
        self.videos: Collection = db[VIDEOS_COLLECTION]
        self.analysis_jobs: Collection = db[ANALYSIS_JOBS_COLLECTION]
        self.sentiment_results: Collection = db[SENTIMENT_RESULTS_COLLECTION]
        self.manual_annotations: Collection = db[MANUAL_ANNOTATIONS_COLLECTION]

    @classmethod
    def from_uri(cls, mongo_uri: str, db_name: str) -> "MongoRepository":
        client = MongoClient(mongo_uri, serverSelectionTimeoutMS=5000)
        return cls(client[db_name])

    def ensure_indexes(self) -> None:
        """Create indexes for per-video lookups and recency ordering."""
        self.videos.create_index([("status", ASCENDING)], name="idx_status")
        self.videos.create_index([("created_at", DESCENDING)], name="idx_created_at_desc")

        self.analysis_jobs.create_index([("video_id", ASCENDING)], name="idx_video_id")
        self.analysis_jobs.create_index([("status", ASCENDING)], name="idx_status")
        self.analysis_jobs.create_index([("created_at", DESCENDING)], name="idx_created_at_desc")

        self.sentiment_results.create_index([("video_id", ASCENDING)], name="idx_video_id")
        self.sentiment_results.create_index(
            [("video_id", ASCENDING), ("timestamp", ASCENDING)],
            name="idx_video_timestamp",
        )

        self.manual_annotations.create_index([("video_id", ASCENDING)], name="idx_video_id")
        self.manual_annotations.create_index(
            [("video_id", ASCENDING), ("type", ASCENDING)],
            name="idx_video_type",
        )
        self.manual_annotations.create_index([("created_at", DESCENDING)], name="idx_created_at_desc")

    def ping(self) -> tuple[bool, str | None]:
        try:
            self.db.command("ping")
            return True, None
        except Exception as exc:
            return False, str(exc)

    # videos

    def insert_video(self, payload: dict[str, Any]) -> VideoRecord:
        now = _now()
        payload.setdefault("created_at", now)
        payload.setdefault("updated_at", now)
        record = VideoRecord.model_validate(payload)
        self.videos.insert_one(record.model_dump(by_alias=True))
        return record

    def get_video(self, video_id: str) -> VideoRecord | None:
        doc = self.videos.find_one({"_id": video_id})
        return VideoRecord.model_validate(doc) if doc else None

    def update_video(self, video_id: str, **fields: Any) -> None:
        fields["updated_at"] = _now()
        self.videos.update_one({"_id": video_id}, {"$set": fields})

    def list_processed_videos(self) -> list[dict[str, Any]]:
        """Processed videos newest first, each with its sample count and a thumbnail."""
        items: list[dict[str, Any]] = []
        cursor = self.videos.find({"status": VideoStatus.PROCESSED.value}).sort([("created_at", DESCENDING)])
        for doc in cursor:
            video = VideoRecord.model_validate(doc)
            thumbnail = self.sentiment_results.find_one(
                {"video_id": video.id, "image_url": {"$ne": None}},
                sort=[("timestamp", ASCENDING)],
            )
            items.append(
                {
                    "video": video,
                    "sentiment_count": self.sentiment_results.count_documents({"video_id": video.id}),
                    "thumbnail_url": thumbnail["image_url"] if thumbnail else None,
                }
            )
        return items

    # jobs

    def insert_job(self, payload: dict[str, Any]) -> AnalysisJob:
        now = _now()
        payload.setdefault("started_at", now)
        payload.setdefault("created_at", now)
        payload.setdefault("updated_at", now)
        job = AnalysisJob.model_validate(payload)
        self.analysis_jobs.insert_one(job.model_dump(by_alias=True))
        return job

    def update_job(
        self,
        job_id: str,
        *,
        status: JobStatus | str | None = None,
        stage: str | None = None,
        progress: int | None = None,
        error: str | None = None,
    ) -> None:
        """Apply a job update; progress only ever moves forward."""
        now = _now()
        fields: dict[str, Any] = {"updated_at": now}
        if status is not None:
            status = JobStatus(status)
            fields["status"] = status.value
            if status in (JobStatus.COMPLETED, JobStatus.FAILED):
                fields["completed_at"] = now
        if stage is not None:
            fields["stage"] = stage
        if error is not None:
            fields["error"] = error

        update: dict[str, Any] = {"$set": fields}
        if progress is not None:
            update["$max"] = {"progress": max(0, min(100, int(progress)))}
        self.analysis_jobs.update_one({"_id": job_id}, update)

    def get_job(self, job_id: str, video_id: str | None = None) -> AnalysisJob | None:
        query: dict[str, Any] = {"_id": job_id}
        if video_id is not None:
            query["video_id"] = video_id
        doc = self.analysis_jobs.find_one(query)
        return AnalysisJob.model_validate(doc) if doc else None

    def get_latest_job(self, video_id: str) -> AnalysisJob | None:
        doc = self.analysis_jobs.find_one({"video_id": video_id}, sort=[("created_at", DESCENDING)])
        return AnalysisJob.model_validate(doc) if doc else None

    # sentiment samples

    def replace_sentiment_samples(self, video_id: str, samples: Iterable[dict[str, Any]]) -> int:
        """Swap a video's samples for a fresh batch from one job run."""
        now = _now()
        docs = []
        for sample in samples:
            sample = {**sample, "video_id": video_id}
            sample.setdefault("created_at", now)
            docs.append(SentimentSample.model_validate(sample).model_dump())

        self.sentiment_results.delete_many({"video_id": video_id})
        if docs:
            self.sentiment_results.insert_many(docs)
        return len(docs)

    def list_sentiment_samples(self, video_id: str) -> list[SentimentSample]:
        cursor = self.sentiment_results.find({"video_id": video_id}, {"_id": False}).sort(
            [("timestamp", ASCENDING)]
        )
        return [SentimentSample.model_validate(doc) for doc in cursor]

    # annotations

    def insert_annotation(self, payload: dict[str, Any]) -> ManualAnnotation:
        now = _now()
        payload.setdefault("created_at", now)
        payload.setdefault("updated_at", now)
        annotation = ManualAnnotation.model_validate(payload)
        self.manual_annotations.insert_one(annotation.model_dump(by_alias=True))
        return annotation

    def list_annotations(self, video_id: str) -> list[ManualAnnotation]:
        cursor = self.manual_annotations.find({"video_id": video_id}).sort([("created_at", DESCENDING)])
        return [ManualAnnotation.model_validate(doc) for doc in cursor]

    def get_annotation(self, video_id: str, annotation_id: str) -> ManualAnnotation | None:
        doc = self.manual_annotations.find_one({"_id": annotation_id, "video_id": video_id})
        return ManualAnnotation.model_validate(doc) if doc else None

    def update_annotation(self, video_id: str, annotation_id: str, **fields: Any) -> ManualAnnotation | None:
        fields["updated_at"] = _now()
        self.manual_annotations.update_one({"_id": annotation_id, "video_id": video_id}, {"$set": fields})
        return self.get_annotation(video_id, annotation_id)

    def delete_annotation(self, video_id: str, annotation_id: str) -> bool:
        result = self.manual_annotations.delete_one({"_id": annotation_id, "video_id": video_id})
        return result.deleted_count > 0

    def annotation_stats(self, video_id: str) -> dict[str, Any]:
        grouped = self.manual_annotations.aggregate(
            [
                {"$match": {"video_id": video_id}},
                {"$group": {"_id": "$type", "count": {"$sum": 1}, "labels": {"$addToSet": "$label"}}},
            ]
        )
        by_type = {
            row["_id"]: {"count": row["count"], "unique_labels": len(row["labels"])}
            for row in grouped
        }
        return {
            "total": self.manual_annotations.count_documents({"video_id": video_id}),
            "by_type": by_type,
        }
