"""Dependency providers; tests swap them through ``app.dependency_overrides``."""

from __future__ import annotations

import logging
from functools import lru_cache

import redis
from fastapi import Depends
from pymongo.errors import PyMongoError

from services.annotations.service import AnnotationService
from services.ingest.config import AnalyzerSettings
from services.ingest.service import UploadService
from services.ingest.toolkit import FfmpegToolkit, MediaToolkit
from services.pipeline_worker.dispatch import BackgroundDispatcher, JobDispatcher, RedisStreamDispatcher
from services.pipeline_worker.orchestrator import PipelineOrchestrator
from services.sentiment.analyzer import FrameAnalyzer
from services.sentiment.classifier import EmotionClassifier, build_classifier
from services.storage.mongo_repo import MongoRepository
from services.storage.object_store import ObjectStore, build_object_store

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> AnalyzerSettings:
    return AnalyzerSettings()


@lru_cache(maxsize=1)
def get_repo() -> MongoRepository:
    settings = get_settings()
    repo = MongoRepository.from_uri(settings.mongo_uri, settings.mongo_db)
    try:
        repo.ensure_indexes()
    except PyMongoError as exc:
        logger.warning("index creation failed: %s", exc)
    return repo


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    return build_object_store(get_settings())


@lru_cache(maxsize=1)
def get_classifier() -> EmotionClassifier:
    return build_classifier(get_settings())


@lru_cache(maxsize=1)
def get_toolkit() -> MediaToolkit:
    return FfmpegToolkit(get_settings())


@lru_cache(maxsize=1)
def _redis_client() -> redis.Redis:
    return redis.from_url(get_settings().redis_url, decode_responses=True)


def get_upload_service(
    repo: MongoRepository = Depends(get_repo),
    toolkit: MediaToolkit = Depends(get_toolkit),
    object_store: ObjectStore = Depends(get_object_store),
    settings: AnalyzerSettings = Depends(get_settings),
) -> UploadService:
    return UploadService(repo, toolkit, object_store, settings)


def get_orchestrator(
    repo: MongoRepository = Depends(get_repo),
    toolkit: MediaToolkit = Depends(get_toolkit),
    object_store: ObjectStore = Depends(get_object_store),
    classifier: EmotionClassifier = Depends(get_classifier),
    settings: AnalyzerSettings = Depends(get_settings),
) -> PipelineOrchestrator:
    return PipelineOrchestrator(
        repo=repo,
        toolkit=toolkit,
        object_store=object_store,
        analyzer=FrameAnalyzer(classifier, object_store),
        settings=settings,
    )


def get_dispatcher(
    settings: AnalyzerSettings = Depends(get_settings),
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> JobDispatcher:
    if settings.job_dispatch == "redis":
        return RedisStreamDispatcher(_redis_client(), settings.redis_stream)
    if settings.job_dispatch != "background":
        raise ValueError(f"unknown JOB_DISPATCH {settings.job_dispatch!r}")
    return BackgroundDispatcher(orchestrator.run)


def get_annotation_service(repo: MongoRepository = Depends(get_repo)) -> AnnotationService:
    return AnnotationService(repo)
