"""Pydantic schemas mirroring MongoDB document shapes."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Sentiment = Literal["happy", "neutral", "sad", "angry", "surprised", "fearful"]
AnnotationType = Literal["moment", "interval"]

DEFAULT_ANNOTATION_COLOR = "#FF6B35"


class VideoStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSED = "processed"


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)


class VideoRecord(_Document):
    id: str = Field(alias="_id")
    filename: str
    original_filename: str
    file_size: int
    duration: float
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[float] = None
    local_path: Optional[str] = None
    original_key: Optional[str] = None
    storage_key: Optional[str] = None
    storage_url: Optional[str] = None
    status: VideoStatus = VideoStatus.UPLOADED
    created_at: datetime
    updated_at: datetime


class AnalysisJob(_Document):
    id: str = Field(alias="_id")
    video_id: str
    status: JobStatus = JobStatus.PROCESSING
    stage: str = "pending"
    progress: int = Field(default=0, ge=0, le=100)
    error: Optional[str] = None
    started_at: datetime
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class SentimentSample(_Document):
    video_id: str
    job_id: Optional[str] = None
    frame_index: int = Field(ge=1)
    timestamp: str
    sentiment: Sentiment
    confidence: float = Field(ge=0.0, le=1.0)
    image_url: Optional[str] = None
    created_at: datetime


class ManualAnnotation(_Document):
    id: str = Field(alias="_id")
    video_id: str
    type: AnnotationType
    label: str
    description: Optional[str] = None
    color: str = DEFAULT_ANNOTATION_COLOR
    timestamp: Optional[float] = None
    start_timestamp: Optional[float] = None
    end_timestamp: Optional[float] = None
    created_at: datetime
    updated_at: datetime
