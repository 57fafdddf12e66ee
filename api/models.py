"""Request/response models for the HTTP API (camelCase on the wire)."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResponse(ApiModel):
    success: bool = True
    video_id: str
    filename: str
    duration: float
    size: int


class ProcessResponse(ApiModel):
    success: bool = True
    job_id: str
    message: str = "Video processing started"


class JobStatusResponse(ApiModel):
    status: str
    progress: int
    error: Optional[str] = None
    stage: Optional[str] = None


class SentimentPoint(ApiModel):
    timestamp: str
    sentiment: str
    confidence: float
    image_url: Optional[str] = None


class ResultsResponse(ApiModel):
    id: str
    filename: str
    duration: float
    url: Optional[str] = None
    sentiments: list[SentimentPoint]
    status: str
    created_at: datetime


class HistoryItem(ApiModel):
    id: str
    filename: str
    duration: float
    file_size: int
    sentiment_count: int
    created_at: datetime
    thumbnail_url: Optional[str] = None


class SentimentStat(ApiModel):
    count: int
    total_confidence: float
    avg_confidence: float
    percentage: float
    frame_share: float


class SummaryResponse(ApiModel):
    video_id: str
    total: int
    dominant: Optional[str] = None
    sentiments: dict[str, SentimentStat]


class MomentItem(SentimentPoint):
    seconds: int


class AnnotationCreate(ApiModel):
    type: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    timestamp: Optional[float] = None
    start_timestamp: Optional[float] = None
    end_timestamp: Optional[float] = None

    @field_validator("timestamp", "start_timestamp", "end_timestamp", mode="before")
    @classmethod
    def _non_numeric_as_nan(cls, value: Any) -> Any:
        # Unparseable values fail the range check with a 400, not a 422.
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return math.nan


class AnnotationUpdate(ApiModel):
    label: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class AnnotationOut(ApiModel):
    id: str
    video_id: str
    type: str
    label: str
    description: Optional[str] = None
    color: str
    timestamp: Optional[float] = None
    start_timestamp: Optional[float] = None
    end_timestamp: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class AnnotationResponse(ApiModel):
    success: bool = True
    annotation: AnnotationOut


class AnnotationListResponse(ApiModel):
    success: bool = True
    annotations: list[AnnotationOut]


class TypeStats(ApiModel):
    count: int
    unique_labels: int


class AnnotationStats(ApiModel):
    total: int
    by_type: dict[str, TypeStats]


class AnnotationStatsResponse(ApiModel):
    success: bool = True
    stats: AnnotationStats


class MessageResponse(ApiModel):
    success: bool = True
    message: str
