from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request

from domain.errors import (
    ForbiddenDelete,
    ModelLoadFailed,
    PersistenceWriteFailed,
    UnknownModel,
    ValidationError,
)
from models.model_record import ModelRecord
from pipeline.session import SessionController
from storage.repository import ModelRepository
from ..api_models import (
    DetectionsResponse,
    HealthResponse,
    ImportRequest,
    ModelResponse,
    SelectionRequest,
    StatsResponse,
    ThresholdsRequest,
    ThresholdsResponse,
)

router = APIRouter()


def _session(request: Request) -> SessionController:
    return request.app.state.session


def _repository(request: Request) -> ModelRepository:
    return request.app.state.repository


def _model_response(record: ModelRecord, selected_id) -> dict:
    return {
        "id": str(record.id),
        "name": record.name,
        "display_name": record.display_name,
        "input_width": record.input_width,
        "input_height": record.input_height,
        "class_count": record.class_count,
        "is_builtin": record.is_builtin,
        "imported_at": record.imported_at.isoformat(),
        "selected": record.id == selected_id,
    }


@router.get("/models", response_model=List[ModelResponse])
def list_models(request: Request):
    session = _session(request)
    selected = session.config.selected_model_id
    return [_model_response(r, selected) for r in _repository(request).list_models()]


@router.post("/models/import", response_model=ModelResponse, status_code=201)
def import_model(body: ImportRequest, request: Request):
    repository = _repository(request)
    try:
        record = repository.import_from_paths(
            body.name, body.weights_path, body.config_path, body.names_path
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"kind": e.kind, "message": str(e)})
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=400, detail={"kind": "unreadable", "message": str(e)})
    except PersistenceWriteFailed as e:
        logging.error(f"Import failed: {e}")
        raise HTTPException(status_code=500, detail={"kind": e.kind, "message": str(e)})
    return _model_response(record, _session(request).config.selected_model_id)


@router.delete("/models/{model_id}", status_code=204)
def delete_model(model_id: str, request: Request):
    try:
        _repository(request).delete(model_id)
    except ForbiddenDelete as e:
        raise HTTPException(status_code=403, detail=str(e))
    except UnknownModel as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceWriteFailed as e:
        logging.error(f"Delete failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return None


@router.put("/selection", response_model=ModelResponse)
def select_model(body: SelectionRequest, request: Request):
    session = _session(request)
    try:
        record = session.model_selection_changed(body.model_id)
    except ModelLoadFailed as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _model_response(record, session.config.selected_model_id)


@router.put("/thresholds", response_model=ThresholdsResponse)
def set_thresholds(body: ThresholdsRequest, request: Request):
    _session(request).thresholds_changed(body.confidence, body.nms)
    return {"confidence": body.confidence, "nms": body.nms}


@router.get("/stats", response_model=StatsResponse)
def stats(request: Request):
    return _session(request).stats.to_dict()


@router.get("/detections", response_model=DetectionsResponse)
def detections(request: Request):
    update = _session(request).snapshot()
    return {
        "model_name": update.model_name,
        "video_size": list(update.video_size) if update.video_size else None,
        "detections": [d.to_dict() for d in update.detections],
    }


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    session = _session(request)
    repository = _repository(request)
    issues = repository.find_inconsistencies()
    return {
        "healthy": not issues and session.current_model is not None,
        "model_name": session.model_name,
        "detecting": session.is_detecting,
        "model_count": len(repository.list_models()),
        "issues": issues,
    }
