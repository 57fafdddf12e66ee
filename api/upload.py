from __future__ import annotations

import logging
import uuid
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, UploadFile

from api.dependencies import get_dispatcher, get_object_store, get_repo, get_upload_service
from api.models import (
    HistoryItem,
    JobStatusResponse,
    MomentItem,
    ProcessResponse,
    ResultsResponse,
    SentimentPoint,
    SummaryResponse,
    UploadResponse,
)
from services.ingest.service import UploadService
from services.ingest.validators import ValidationError
from services.pipeline_worker.dispatch import JobDispatcher
from services.sentiment.stats import highlighted_moments, summarize_sentiments
from services.storage.mongo_repo import MongoRepository
from services.storage.object_store import ObjectStore
from services.storage.schemas import JobStatus, VideoRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])


def _require_video(repo: MongoRepository, video_id: str) -> VideoRecord:
    video = repo.get_video(video_id)
    if video is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


@router.post("", response_model=UploadResponse)
def upload_video(
    video: Optional[UploadFile] = File(None),
    service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    if video is None:
        raise HTTPException(status_code=400, detail="No video file provided")
    try:
        record = service.create_video(video.filename or "", video.content_type, video.file)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("upload failed filename=%s", video.filename)
        raise HTTPException(status_code=500, detail=f"Upload failed: {exc}") from exc

    return UploadResponse(
        video_id=record.id,
        filename=record.original_filename,
        duration=record.duration,
        size=record.file_size,
    )


@router.get("/history", response_model=list[HistoryItem])
def list_history(repo: MongoRepository = Depends(get_repo)) -> list[HistoryItem]:
    return [
        HistoryItem(
            id=item["video"].id,
            filename=item["video"].original_filename,
            duration=item["video"].duration,
            file_size=item["video"].file_size,
            sentiment_count=item["sentiment_count"],
            created_at=item["video"].created_at,
            thumbnail_url=item["thumbnail_url"],
        )
        for item in repo.list_processed_videos()
    ]


@router.post("/{video_id}/process", response_model=ProcessResponse)
def start_processing(
    video_id: str,
    background_tasks: BackgroundTasks,
    repo: MongoRepository = Depends(get_repo),
    dispatcher: JobDispatcher = Depends(get_dispatcher),
) -> ProcessResponse:
    _require_video(repo, video_id)
    job = repo.insert_job({"_id": str(uuid.uuid4()), "video_id": video_id, "status": JobStatus.PROCESSING})
    dispatcher.dispatch(video_id, job.id, background_tasks)
    return ProcessResponse(job_id=job.id)


@router.get("/{video_id}/status/{job_id}", response_model=JobStatusResponse)
def job_status(video_id: str, job_id: str, repo: MongoRepository = Depends(get_repo)) -> JobStatusResponse:
    job = repo.get_job(job_id, video_id=video_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse(status=job.status, progress=job.progress, error=job.error, stage=job.stage)


@router.get("/{video_id}/results", response_model=ResultsResponse)
def job_results(
    video_id: str,
    repo: MongoRepository = Depends(get_repo),
    object_store: ObjectStore = Depends(get_object_store),
) -> ResultsResponse:
    video = _require_video(repo, video_id)
    latest = repo.get_latest_job(video_id)

    url = video.storage_url
    if url is None and video.original_key:
        url = object_store.url_for(video.original_key)

    return ResultsResponse(
        id=video.id,
        filename=video.original_filename,
        duration=video.duration,
        url=url,
        sentiments=[
            SentimentPoint(
                timestamp=s.timestamp,
                sentiment=s.sentiment,
                confidence=s.confidence,
                image_url=s.image_url,
            )
            for s in repo.list_sentiment_samples(video_id)
        ],
        status=latest.status if latest else video.status,
        created_at=video.created_at,
    )


@router.get("/{video_id}/summary", response_model=SummaryResponse)
def sentiment_summary(video_id: str, repo: MongoRepository = Depends(get_repo)) -> SummaryResponse:
    _require_video(repo, video_id)
    summary = summarize_sentiments(repo.list_sentiment_samples(video_id))
    return SummaryResponse(video_id=video_id, **summary)


@router.get("/{video_id}/moments", response_model=list[MomentItem])
def sentiment_moments(
    video_id: str,
    sentiment: Optional[str] = Query(default=None),
    sort: Literal["confidence", "time"] = Query(default="confidence"),
    repo: MongoRepository = Depends(get_repo),
) -> list[MomentItem]:
    _require_video(repo, video_id)
    moments = highlighted_moments(repo.list_sentiment_samples(video_id), sentiment=sentiment, sort=sort)
    return [MomentItem.model_validate(m) for m in moments]
