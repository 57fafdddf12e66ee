from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from services.ingest.config import AnalyzerSettings
from services.storage.object_store import LocalObjectStore, S3ObjectStore, build_object_store


class FakeS3:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = []

    def _error(self, operation):
        return ClientError({"Error": {"Code": "403", "Message": "Forbidden"}}, operation)

    def upload_file(self, filename, bucket, key, ExtraArgs=None):
        self.calls.append(("upload_file", bucket, key, ExtraArgs))

    def put_object(self, **kwargs):
        self.calls.append(("put_object", kwargs))

    def delete_object(self, **kwargs):
        if self.fail:
            raise self._error("DeleteObject")
        self.calls.append(("delete_object", kwargs))

    def head_bucket(self, **kwargs):
        if self.fail:
            raise self._error("HeadBucket")


def test_local_store_round_trip(tmp_path) -> None:
    store = LocalObjectStore(tmp_path / "media", "/media/")
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"video")

    stored = store.upload_file(source, "videos/v.mp4", "video/mp4")
    assert stored.url == "/media/videos/v.mp4"

    copy = store.download_file("videos/v.mp4", tmp_path / "scratch" / "copy.mp4")
    assert copy.read_bytes() == b"video"

    store.delete("videos/v.mp4")
    assert not (tmp_path / "media" / "videos" / "v.mp4").exists()
    store.delete("videos/v.mp4")


def test_local_store_rejects_escaping_keys(tmp_path) -> None:
    store = LocalObjectStore(tmp_path / "media")
    with pytest.raises(ValueError):
        store.upload_bytes(b"x", "../outside.jpg", "image/jpeg")


def test_local_store_missing_object(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        LocalObjectStore(tmp_path / "media").download_file("nope.mp4", tmp_path / "x.mp4")


def test_s3_store_urls_and_acl() -> None:
    client = FakeS3()
    store = S3ObjectStore(client, "bucket", "eu-west-1", public_read=True)

    stored = store.upload_bytes(b"jpg", "screenshots/v/frame_000001.jpg", "image/jpeg")

    assert stored.url == "https://bucket.s3.eu-west-1.amazonaws.com/screenshots/v/frame_000001.jpg"
    _, kwargs = client.calls[0]
    assert kwargs["ACL"] == "public-read"
    assert kwargs["ContentType"] == "image/jpeg"


def test_s3_store_private_upload(tmp_path) -> None:
    client = FakeS3()
    S3ObjectStore(client, "bucket", "us-east-1", public_read=False).upload_file(
        tmp_path / "v.mp4", "videos/v.mp4", "video/mp4"
    )
    assert client.calls[0][3] == {"ContentType": "video/mp4"}


def test_s3_store_errors_are_reported_not_raised() -> None:
    store = S3ObjectStore(FakeS3(fail=True), "bucket", "us-east-1")
    store.delete("videos/v.mp4")
    connected, reason = store.check_connection()
    assert connected is False
    assert "Forbidden" in reason


def test_build_object_store_without_bucket_is_local(tmp_path) -> None:
    settings = AnalyzerSettings(aws_access_key_id="key", s3_bucket=None, media_root=str(tmp_path))
    store = build_object_store(settings)
    assert isinstance(store, LocalObjectStore)
    assert store.root == Path(tmp_path)
