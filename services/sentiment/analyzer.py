from __future__ import annotations

import logging
from typing import Any

from services.sentiment.classifier import EmotionClassifier
from services.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


class FrameAnalyzer:
    """Uploads a frame screenshot, then classifies it."""

    def __init__(self, classifier: EmotionClassifier, object_store: ObjectStore) -> None:
        self.classifier = classifier
        self.object_store = object_store

    def analyze_frame(self, image: bytes, frame_filename: str, video_id: str, timestamp: str) -> dict[str, Any]:
        image_url = None
        key = f"screenshots/{video_id}/{frame_filename}"
        try:
            image_url = self.object_store.upload_bytes(image, key, "image/jpeg").url
        except Exception as exc:
            logger.warning("screenshot upload failed key=%s error=%s", key, exc)

        result = self.classifier.classify(image, timestamp)
        return {
            "timestamp": timestamp,
            "sentiment": result.sentiment,
            "confidence": result.confidence,
            "image_url": image_url,
        }
