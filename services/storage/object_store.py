"""Object storage for transcoded videos, archived originals and frame screenshots."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from services.ingest.config import AnalyzerSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    key: str
    url: str


class ObjectStore(Protocol):
    def url_for(self, key: str) -> str: ...

    def upload_file(self, path: Path, key: str, content_type: str) -> StoredObject: ...

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> StoredObject: ...

    def download_file(self, key: str, dest: Path) -> Path: ...

    def delete(self, key: str) -> None: ...

    def check_connection(self) -> tuple[bool, str | None]: ...


class S3ObjectStore:
    def __init__(self, client: Any, bucket: str, region: str, public_read: bool = True) -> None:
        self.client = client
        self.bucket = bucket
        self.region = region
        self.public_read = public_read

    @classmethod
    def from_settings(cls, settings: AnalyzerSettings) -> "S3ObjectStore":
        client = boto3.client(
            "s3",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
        return cls(client, settings.s3_bucket or "", settings.aws_region, settings.s3_public_read)

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def _extra_args(self, content_type: str) -> dict[str, str]:
        extra = {"ContentType": content_type}
        if self.public_read:
            extra["ACL"] = "public-read"
        return extra

    def upload_file(self, path: Path, key: str, content_type: str) -> StoredObject:
        self.client.upload_file(str(path), self.bucket, key, ExtraArgs=self._extra_args(content_type))
        logger.info("s3 upload bucket=%s key=%s", self.bucket, key)
        return StoredObject(key=key, url=self.url_for(key))

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> StoredObject:
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **self._extra_args(content_type))
        return StoredObject(key=key, url=self.url_for(key))

    def download_file(self, key: str, dest: Path) -> Path:
        dest.parent.mkdir(parents=True, exist_ok=True)
        self.client.download_file(self.bucket, key, str(dest))
        return dest

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("s3 delete failed key=%s error=%s", key, exc)

    def check_connection(self) -> tuple[bool, str | None]:
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True, None
        except (BotoCoreError, ClientError) as exc:
            return False, str(exc)


class LocalObjectStore:
    """Directory-backed store; files are served by the API under ``base_url``."""

    def __init__(self, root: Path, base_url: str = "/media") -> None:
        self.root = root
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"key escapes storage root: {key}")
        return path

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def upload_file(self, path: Path, key: str, content_type: str) -> StoredObject:
        target = self._path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, target)
        return StoredObject(key=key, url=self.url_for(key))

    def upload_bytes(self, data: bytes, key: str, content_type: str) -> StoredObject:
        target = self._path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return StoredObject(key=key, url=self.url_for(key))

    def download_file(self, key: str, dest: Path) -> Path:
        source = self._path(key)
        if not source.is_file():
            raise FileNotFoundError(f"object not found: {key}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, dest)
        return dest

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except (OSError, ValueError) as exc:
            logger.warning("local delete failed key=%s error=%s", key, exc)

    def check_connection(self) -> tuple[bool, str | None]:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return False, str(exc)
        return True, "local storage"


def build_object_store(settings: AnalyzerSettings) -> ObjectStore:
    if settings.s3_configured:
        logger.info("object store: s3 bucket=%s", settings.s3_bucket)
        return S3ObjectStore.from_settings(settings)
    logger.info("object store: local root=%s", settings.media_root)
    return LocalObjectStore(Path(settings.media_root), settings.media_base_url)
