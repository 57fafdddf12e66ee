import pytest


def _create(client, video_id: str, **payload):
    return client.post(f"/annotations/{video_id}", json=payload)


def test_create_moment_with_default_color(client, uploaded_video) -> None:
    video_id = uploaded_video["videoId"]

    response = _create(client, video_id, type="moment", label="  Big laugh ", timestamp=4.5)

    assert response.status_code == 201
    annotation = response.json()["annotation"]
    assert annotation["videoId"] == video_id
    assert annotation["type"] == "moment"
    assert annotation["label"] == "Big laugh"
    assert annotation["timestamp"] == 4.5
    assert annotation["startTimestamp"] is None
    assert annotation["color"] == "#FF6B35"


def test_create_interval(client, uploaded_video) -> None:
    response = _create(
        client,
        uploaded_video["videoId"],
        type="interval",
        label="speech",
        description="intro",
        color="#00FF00",
        startTimestamp=1,
        endTimestamp=6,
    )

    assert response.status_code == 201
    annotation = response.json()["annotation"]
    assert annotation["startTimestamp"] == 1
    assert annotation["endTimestamp"] == 6
    assert annotation["timestamp"] is None
    assert annotation["description"] == "intro"
    assert annotation["color"] == "#00FF00"


@pytest.mark.parametrize(
    "payload, detail",
    [
        ({"label": "x", "timestamp": 1}, "Type and label are required fields"),
        ({"type": "moment", "label": "   ", "timestamp": 1}, "Type and label are required fields"),
        ({"type": "region", "label": "x"}, "Type must be either 'moment' or 'interval'"),
        ({"type": "moment", "label": "x"}, "Timestamp is required for moment annotations"),
        (
            {"type": "moment", "label": "x", "timestamp": 1, "startTimestamp": 0},
            "Start and end timestamps should not be provided for moment annotations",
        ),
        ({"type": "moment", "label": "x", "timestamp": 16}, "Timestamp must be between 0 and 15 seconds"),
        ({"type": "moment", "label": "x", "timestamp": -1}, "Timestamp must be between 0 and 15 seconds"),
        (
            {"type": "interval", "label": "x", "startTimestamp": 1},
            "Start and end timestamps are required for interval annotations",
        ),
        (
            {"type": "interval", "label": "x", "startTimestamp": 1, "endTimestamp": 2, "timestamp": 1},
            "Timestamp should not be provided for interval annotations",
        ),
        (
            {"type": "interval", "label": "x", "startTimestamp": 5, "endTimestamp": 5},
            "Start timestamp must be before end timestamp",
        ),
        (
            {"type": "interval", "label": "x", "startTimestamp": 6, "endTimestamp": 2},
            "Start timestamp must be before end timestamp",
        ),
        (
            {"type": "interval", "label": "x", "startTimestamp": 10, "endTimestamp": 20},
            "End timestamp must be between 0 and 15 seconds",
        ),
    ],
)
def test_create_validation_errors(client, uploaded_video, repo, payload, detail) -> None:
    response = _create(client, uploaded_video["videoId"], **payload)

    assert response.status_code == 400
    assert response.json()["detail"] == detail
    assert repo.manual_annotations.count_documents({}) == 0


def test_boundaries_are_inclusive(client, uploaded_video) -> None:
    video_id = uploaded_video["videoId"]
    assert _create(client, video_id, type="moment", label="start", timestamp=0).status_code == 201
    assert _create(client, video_id, type="moment", label="end", timestamp=15).status_code == 201


def test_annotations_for_unknown_video_are_404(client) -> None:
    assert _create(client, "missing", type="moment", label="x", timestamp=1).status_code == 404
    assert client.get("/annotations/missing").status_code == 404
    assert client.get("/annotations/missing/stats").status_code == 404


def test_list_returns_video_annotations(client, uploaded_video) -> None:
    video_id = uploaded_video["videoId"]
    first = _create(client, video_id, type="moment", label="first", timestamp=1).json()["annotation"]
    second = _create(client, video_id, type="moment", label="second", timestamp=2).json()["annotation"]

    body = client.get(f"/annotations/{video_id}").json()

    assert body["success"] is True
    assert {a["id"] for a in body["annotations"]} == {first["id"], second["id"]}


def test_get_update_delete(client, uploaded_video) -> None:
    video_id = uploaded_video["videoId"]
    created = _create(client, video_id, type="moment", label="old", timestamp=3).json()["annotation"]
    url = f"/annotations/{video_id}/{created['id']}"

    assert client.get(url).json()["annotation"]["label"] == "old"

    updated = client.put(url, json={"label": "new", "description": "edited"})
    assert updated.status_code == 200
    annotation = updated.json()["annotation"]
    assert annotation["label"] == "new"
    assert annotation["description"] == "edited"
    assert annotation["color"] == created["color"]
    assert annotation["timestamp"] == 3

    deleted = client.delete(url)
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "message": "Annotation deleted successfully"}
    assert client.get(url).status_code == 404
    assert client.delete(url).status_code == 404


def test_update_requires_label(client, uploaded_video) -> None:
    video_id = uploaded_video["videoId"]
    created = _create(client, video_id, type="moment", label="keep", timestamp=3).json()["annotation"]

    response = client.put(f"/annotations/{video_id}/{created['id']}", json={"label": "  "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Label is required"


def test_update_unknown_annotation_is_404(client, uploaded_video) -> None:
    response = client.put(f"/annotations/{uploaded_video['videoId']}/nope", json={"label": "x"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Annotation not found"


def test_annotation_scoped_to_its_video(client, uploaded_video) -> None:
    other = client.post("/upload", files={"video": ("other.mp4", b"other", "video/mp4")}).json()
    created = _create(client, uploaded_video["videoId"], type="moment", label="x", timestamp=1).json()["annotation"]

    assert client.get(f"/annotations/{other['videoId']}/{created['id']}").status_code == 404
    assert client.get(f"/annotations/{other['videoId']}").json()["annotations"] == []


def test_stats(client, uploaded_video) -> None:
    video_id = uploaded_video["videoId"]
    _create(client, video_id, type="moment", label="laugh", timestamp=1)
    _create(client, video_id, type="moment", label="laugh", timestamp=2)
    _create(client, video_id, type="interval", label="speech", startTimestamp=1, endTimestamp=3)

    body = client.get(f"/annotations/{video_id}/stats").json()

    assert body["success"] is True
    assert body["stats"]["total"] == 3
    assert body["stats"]["byType"] == {
        "moment": {"count": 2, "uniqueLabels": 1},
        "interval": {"count": 1, "uniqueLabels": 1},
    }


def test_annotations_survive_reprocessing(client, uploaded_video) -> None:
    video_id = uploaded_video["videoId"]
    _create(client, video_id, type="moment", label="keep me", timestamp=2)

    client.post(f"/upload/{video_id}/process")
    client.post(f"/upload/{video_id}/process")

    annotations = client.get(f"/annotations/{video_id}").json()["annotations"]
    assert [a["label"] for a in annotations] == ["keep me"]
    assert len(client.get(f"/upload/{video_id}/results").json()["sentiments"]) == 15


@pytest.mark.parametrize(
    "payload, detail",
    [
        ({"type": "moment", "label": "x", "timestamp": "soon"}, "Timestamp must be between 0 and 15 seconds"),
        (
            {"type": "interval", "label": "x", "startTimestamp": "abc", "endTimestamp": 5},
            "Start timestamp must be between 0 and 15 seconds",
        ),
    ],
)
def test_non_numeric_timestamps_are_rejected_as_out_of_range(client, uploaded_video, payload, detail) -> None:
    response = _create(client, uploaded_video["videoId"], **payload)

    assert response.status_code == 400
    assert response.json()["detail"] == detail
