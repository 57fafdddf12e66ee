from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_annotation_service
from api.models import (
    AnnotationCreate,
    AnnotationListResponse,
    AnnotationOut,
    AnnotationResponse,
    AnnotationStatsResponse,
    AnnotationUpdate,
    MessageResponse,
)
from services.annotations.service import AnnotationService, AnnotationValidationError, NotFoundError
from services.storage.schemas import ManualAnnotation

router = APIRouter(prefix="/annotations", tags=["annotations"])


def _out(annotation: ManualAnnotation) -> AnnotationOut:
    return AnnotationOut.model_validate(annotation.model_dump())


@router.get("/{video_id}", response_model=AnnotationListResponse)
def list_annotations(
    video_id: str,
    service: AnnotationService = Depends(get_annotation_service),
) -> AnnotationListResponse:
    try:
        annotations = service.list_for_video(video_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return AnnotationListResponse(annotations=[_out(a) for a in annotations])


@router.post("/{video_id}", response_model=AnnotationResponse, status_code=201)
def create_annotation(
    video_id: str,
    payload: AnnotationCreate,
    service: AnnotationService = Depends(get_annotation_service),
) -> AnnotationResponse:
    try:
        annotation = service.create(
            video_id,
            type_=payload.type,
            label=payload.label,
            description=payload.description,
            color=payload.color,
            timestamp=payload.timestamp,
            start_timestamp=payload.start_timestamp,
            end_timestamp=payload.end_timestamp,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AnnotationValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return AnnotationResponse(annotation=_out(annotation))


@router.get("/{video_id}/stats", response_model=AnnotationStatsResponse)
def annotation_stats(
    video_id: str,
    service: AnnotationService = Depends(get_annotation_service),
) -> AnnotationStatsResponse:
    try:
        stats = service.stats(video_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return AnnotationStatsResponse.model_validate({"stats": stats})


@router.get("/{video_id}/{annotation_id}", response_model=AnnotationResponse)
def get_annotation(
    video_id: str,
    annotation_id: str,
    service: AnnotationService = Depends(get_annotation_service),
) -> AnnotationResponse:
    try:
        annotation = service.get(video_id, annotation_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return AnnotationResponse(annotation=_out(annotation))


@router.put("/{video_id}/{annotation_id}", response_model=AnnotationResponse)
def update_annotation(
    video_id: str,
    annotation_id: str,
    payload: AnnotationUpdate,
    service: AnnotationService = Depends(get_annotation_service),
) -> AnnotationResponse:
    try:
        annotation = service.update(
            video_id,
            annotation_id,
            label=payload.label,
            description=payload.description,
            color=payload.color,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except AnnotationValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return AnnotationResponse(annotation=_out(annotation))


@router.delete("/{video_id}/{annotation_id}", response_model=MessageResponse)
def delete_annotation(
    video_id: str,
    annotation_id: str,
    service: AnnotationService = Depends(get_annotation_service),
) -> MessageResponse:
    try:
        service.delete(video_id, annotation_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return MessageResponse(message="Annotation deleted successfully")
