"""Aggregate views over a video's sentiment timeline."""

from __future__ import annotations

from typing import Any, Iterable, Literal

from services.sentiment.classifier import timestamp_to_seconds
from services.storage.schemas import SentimentSample

MomentSort = Literal["confidence", "time"]


def summarize_sentiments(samples: Iterable[SentimentSample]) -> dict[str, Any]:
    """Per-sentiment counts and confidence shares.

    ``percentage`` divides each sentiment's summed confidence by the summed
    confidence of every sample; ``frame_share`` divides by the sample count.
    """
    stats: dict[str, dict[str, float]] = {}
    total = 0
    for sample in samples:
        total += 1
        entry = stats.setdefault(sample.sentiment, {"count": 0, "total_confidence": 0.0})
        entry["count"] += 1
        entry["total_confidence"] += sample.confidence

    confidence_sum = sum(entry["total_confidence"] for entry in stats.values())
    for entry in stats.values():
        entry["avg_confidence"] = entry["total_confidence"] / entry["count"]
        entry["percentage"] = (entry["total_confidence"] / confidence_sum * 100) if confidence_sum else 0.0
        entry["frame_share"] = entry["count"] / total * 100

    dominant = max(stats, key=lambda s: stats[s]["percentage"]) if stats else None
    return {"total": total, "dominant": dominant, "sentiments": stats}


def highlighted_moments(
    samples: Iterable[SentimentSample],
    sentiment: str | None = None,
    sort: MomentSort = "confidence",
) -> list[dict[str, Any]]:
    moments = [
        {**sample.model_dump(), "seconds": timestamp_to_seconds(sample.timestamp)}
        for sample in samples
        if sentiment is None or sample.sentiment == sentiment
    ]
    if sort == "time":
        moments.sort(key=lambda m: m["seconds"])
    else:
        moments.sort(key=lambda m: (-m["confidence"], m["seconds"]))
    return moments
