"""HTTP API for video upload, emotion analysis jobs, results and annotations."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app

from api.annotations import router as annotations_router
from api.dependencies import get_classifier, get_object_store, get_repo, get_settings
from api.upload import router as upload_router
from services.sentiment.classifier import EmotionClassifier
from services.storage.mongo_repo import MongoRepository
from services.storage.object_store import LocalObjectStore, ObjectStore

settings = get_settings()
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

app = FastAPI(title="Video Sentiment Analyzer API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(upload_router)
app.include_router(annotations_router)
app.mount("/metrics", make_asgi_app())

if isinstance(get_object_store(), LocalObjectStore):
    app.mount(settings.media_base_url, StaticFiles(directory=settings.media_root, check_dir=False), name="media")


@app.get("/health")
def health(
    repo: MongoRepository = Depends(get_repo),
    object_store: ObjectStore = Depends(get_object_store),
    classifier: EmotionClassifier = Depends(get_classifier),
) -> dict:
    """Connectivity of the database and object store."""
    db_connected, db_reason = repo.ping()
    store_connected, store_reason = object_store.check_connection()
    return {
        "status": "healthy" if db_connected and store_connected else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "database": {"connected": db_connected, "reason": db_reason},
            "objectStore": {"connected": store_connected, "reason": store_reason},
        },
        "classifier": classifier.name,
    }
