from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum


class ModelEventKind(str, Enum):
    IMPORTED = "imported"
    DELETED = "deleted"


@dataclass(frozen=True)
class ModelEvent:
    """Emitted by the model repository after a committed mutation."""

    kind: ModelEventKind
    model_id: uuid.UUID
