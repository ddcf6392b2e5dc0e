from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ModelResponse(BaseModel):
    id: str
    name: str
    display_name: str
    input_width: int
    input_height: int
    class_count: int
    is_builtin: bool
    imported_at: str
    selected: bool = Field(False, description="True if this is the active model")


class ImportRequest(BaseModel):
    """Paths are read on the server host."""
    name: str = ""
    weights_path: str
    config_path: str
    names_path: str


class SelectionRequest(BaseModel):
    model_id: str


class ThresholdsRequest(BaseModel):
    confidence: float = Field(..., ge=0.0, le=1.0, description="Minimum confidence kept")
    nms: float = Field(..., ge=0.0, le=1.0, description="NMS IoU threshold")


class ThresholdsResponse(BaseModel):
    confidence: float
    nms: float


class StatsResponse(BaseModel):
    detection_fps: float
    capture_fps: float
    inference_ms: float
    detection_count: int
    model_name: str


class BoxResponse(BaseModel):
    x: float
    y: float
    width: float
    height: float


class DetectionResponse(BaseModel):
    class_id: int
    class_name: str
    confidence: float
    bbox: BoxResponse


class DetectionsResponse(BaseModel):
    model_name: str
    video_size: Optional[List[int]] = Field(None, description="Oriented source size [width, height]")
    detections: List[DetectionResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    healthy: bool
    model_name: str
    detecting: bool
    model_count: int
    issues: List[str] = Field(default_factory=list, description="Storage inconsistencies")
