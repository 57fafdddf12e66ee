"""Per-frame emotion classification.

Two strategies share one interface: a deterministic mock driven by the
frame timestamp, and AWS Rekognition face analysis. The choice is made once
by ``build_classifier``; Rekognition falls back to the mock whenever a call
fails so a batch of frames always completes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

import boto3
from prometheus_client import Counter

from services.ingest.config import AnalyzerSettings

logger = logging.getLogger(__name__)

classifier_errors_total = Counter(
    "classifier_errors_total",
    "Total number of emotion classifier errors replaced by mock output",
    ["provider"],
)

EMOTIONS: tuple[str, ...] = ("happy", "neutral", "sad", "angry", "surprised", "fearful")
MOCK_WEIGHTS: tuple[float, ...] = (0.30, 0.25, 0.15, 0.10, 0.15, 0.05)

REKOGNITION_EMOTIONS: dict[str, str] = {
    "HAPPY": "happy",
    "SAD": "sad",
    "ANGRY": "angry",
    "SURPRISED": "surprised",
    "FEAR": "fearful",
    "DISGUSTED": "angry",
    "CONFUSED": "neutral",
    "CALM": "neutral",
}

NO_FACE_CONFIDENCE = 0.1


@dataclass(frozen=True)
class EmotionResult:
    sentiment: str
    confidence: float


class EmotionClassifier(Protocol):
    name: str

    def classify(self, image: bytes, timestamp: str) -> EmotionResult: ...


def frame_to_timestamp(frame_number: int) -> str:
    """Format a 1-based frame number (one frame per second) as ``HH:MM:SS``."""
    hours, remainder = divmod(int(frame_number), 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def timestamp_to_seconds(timestamp: str) -> int:
    total = 0
    for part in timestamp.split(":"):
        total = total * 60 + int(part or 0)
    return total


def mock_random(timestamp: str) -> float:
    digits = re.sub(r"\D", "", timestamp)
    seed = int(digits) if digits else 0
    seed = seed or 1
    return ((seed * 9301 + 49297) % 233280) / 233280


def mock_emotion(timestamp: str) -> EmotionResult:
    random = mock_random(timestamp)
    selected = "neutral"
    cumulative = 0.0
    for emotion, weight in zip(EMOTIONS, MOCK_WEIGHTS):
        cumulative += weight
        if random <= cumulative:
            selected = emotion
            break
    return EmotionResult(sentiment=selected, confidence=0.70 + random * 0.25)


class MockEmotionClassifier:
    name = "mock"

    def classify(self, image: bytes, timestamp: str) -> EmotionResult:
        return mock_emotion(timestamp)


def map_rekognition_response(response: dict[str, Any]) -> EmotionResult:
    faces = response.get("FaceDetails") or []
    emotions = (faces[0].get("Emotions") if faces else None) or []
    if not emotions:
        return EmotionResult(sentiment="neutral", confidence=NO_FACE_CONFIDENCE)

    # Ties go to the later entry.
    primary = emotions[0]
    for emotion in emotions[1:]:
        if float(emotion.get("Confidence") or 0.0) >= float(primary.get("Confidence") or 0.0):
            primary = emotion
    sentiment = REKOGNITION_EMOTIONS.get(str(primary.get("Type") or "").upper(), "neutral")
    confidence = round(float(primary.get("Confidence") or 0.0) / 100, 2)
    return EmotionResult(sentiment=sentiment, confidence=max(0.0, min(1.0, confidence)))


class RekognitionEmotionClassifier:
    name = "rekognition"

    def __init__(self, client: Any, fallback: EmotionClassifier | None = None) -> None:
        self.client = client
        self.fallback = fallback or MockEmotionClassifier()

    @classmethod
    def from_settings(cls, settings: AnalyzerSettings) -> "RekognitionEmotionClassifier":
        client = boto3.client(
            "rekognition",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
        return cls(client)

    def classify(self, image: bytes, timestamp: str) -> EmotionResult:
        try:
            response = self.client.detect_faces(Image={"Bytes": image}, Attributes=["ALL"])
            return map_rekognition_response(response)
        except Exception as exc:
            classifier_errors_total.labels(provider=self.name).inc()
            logger.warning("rekognition failed timestamp=%s error=%s; using mock", timestamp, exc)
            return self.fallback.classify(image, timestamp)


def build_classifier(settings: AnalyzerSettings) -> EmotionClassifier:
    mode = settings.classifier_mode
    if mode == "rekognition" or (mode == "auto" and settings.aws_configured):
        logger.info("emotion classifier: rekognition region=%s", settings.aws_region)
        return RekognitionEmotionClassifier.from_settings(settings)
    if mode not in {"auto", "mock"}:
        raise ValueError(f"unknown CLASSIFIER_MODE {mode!r}")
    logger.info("emotion classifier: mock")
    return MockEmotionClassifier()
