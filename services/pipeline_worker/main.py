"""Pipeline worker consuming queued analysis jobs from a Redis stream."""
from __future__ import annotations

import logging
import os
from typing import Any

import redis
from prometheus_client import start_http_server

from services.ingest.config import AnalyzerSettings
from services.ingest.toolkit import FfmpegToolkit
from services.sentiment.analyzer import FrameAnalyzer
from services.sentiment.classifier import build_classifier
from services.storage.mongo_repo import MongoRepository
from services.storage.object_store import build_object_store

from .logs import json_log, setup_logger
from .orchestrator import PipelineOrchestrator


def build_orchestrator(
    settings: AnalyzerSettings,
    repo: MongoRepository,
    logger: logging.Logger | None = None,
) -> PipelineOrchestrator:
    object_store = build_object_store(settings)
    return PipelineOrchestrator(
        repo=repo,
        toolkit=FfmpegToolkit(settings),
        object_store=object_store,
        analyzer=FrameAnalyzer(build_classifier(settings), object_store),
        settings=settings,
        logger=logger,
    )


def handle_message(
    orchestrator: PipelineOrchestrator,
    logger: logging.Logger,
    fields: dict[str, Any],
) -> None:
    video_id = fields.get("video_id")
    job_id = fields.get("job_id")
    if not video_id or not job_id:
        json_log(logger, logging.ERROR, "message_rejected", fields=fields)
        return
    orchestrator.run(video_id, job_id)


def consume_forever(settings: AnalyzerSettings | None = None) -> None:
    settings = settings or AnalyzerSettings()
    logger = setup_logger("pipeline_worker", settings.log_level)
    start_http_server(settings.metrics_port)

    repo = MongoRepository.from_uri(settings.mongo_uri, settings.mongo_db)
    repo.ensure_indexes()
    orchestrator = build_orchestrator(settings, repo, logger)

    stream = settings.redis_stream
    group = settings.redis_group
    consumer = os.getenv("HOSTNAME", "pipeline-worker-0")

    client = redis.from_url(settings.redis_url, decode_responses=True)
    try:
        client.xgroup_create(stream, group, id="0", mkstream=True)
    except redis.ResponseError as err:
        if "BUSYGROUP" not in str(err):
            raise

    json_log(logger, logging.INFO, "worker_started", consumer=consumer, stream=stream, group=group)

    while True:
        items = client.xreadgroup(group, consumer, streams={stream: ">"}, count=1, block=5000)
        if not items:
            continue

        for _, messages in items:
            for msg_id, fields in messages:
                handle_message(orchestrator, logger, fields)
                client.xack(stream, group, msg_id)


if __name__ == "__main__":
    consume_forever()
