from datetime import datetime, timezone

import pytest

from services.sentiment.stats import highlighted_moments, summarize_sentiments
from services.storage.schemas import SentimentSample


def _samples(*rows):
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return [
        SentimentSample(
            video_id="v",
            frame_index=index,
            timestamp=f"00:00:{index:02d}",
            sentiment=sentiment,
            confidence=confidence,
            created_at=now,
        )
        for index, (sentiment, confidence) in enumerate(rows, start=1)
    ]


def test_summary_weights_percentage_by_confidence() -> None:
    samples = _samples(("happy", 0.9), ("happy", 0.9), ("sad", 0.2))

    summary = summarize_sentiments(samples)

    assert summary["total"] == 3
    assert summary["dominant"] == "happy"
    happy = summary["sentiments"]["happy"]
    assert happy["count"] == 2
    assert happy["avg_confidence"] == pytest.approx(0.9)
    assert happy["percentage"] == pytest.approx(1.8 / 2.0 * 100)
    assert happy["frame_share"] == pytest.approx(2 / 3 * 100)
    assert summary["sentiments"]["sad"]["percentage"] == pytest.approx(10.0)


def test_summary_of_empty_timeline() -> None:
    assert summarize_sentiments([]) == {"total": 0, "dominant": None, "sentiments": {}}


def test_moments_sorted_by_confidence_then_time() -> None:
    samples = _samples(("happy", 0.8), ("sad", 0.9), ("happy", 0.8), ("angry", 0.75))

    moments = highlighted_moments(samples)

    assert [(m["timestamp"], m["confidence"]) for m in moments] == [
        ("00:00:02", 0.9),
        ("00:00:01", 0.8),
        ("00:00:03", 0.8),
        ("00:00:04", 0.75),
    ]


def test_moments_filtered_by_sentiment_in_time_order() -> None:
    samples = _samples(("happy", 0.7), ("sad", 0.9), ("happy", 0.95))

    moments = highlighted_moments(samples, sentiment="happy", sort="time")

    assert [m["seconds"] for m in moments] == [1, 3]
    assert {m["sentiment"] for m in moments} == {"happy"}
