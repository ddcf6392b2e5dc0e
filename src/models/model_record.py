"""
ModelRecord: identity and metadata of an installed detector model.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

BUILTIN_MODEL_ID = uuid.UUID("00000000-0000-0000-0000-000000000000")

# Older installs persisted the built-in model by name instead of by id.
LEGACY_BUILTIN_ALIAS = "yolov4-tiny-coco"

DEFAULT_DISPLAY_NAME = "Unnamed Model"


@dataclass(frozen=True)
class ModelRecord:
    """
    Immutable metadata for one detector model.

    Attributes:
        id: Stable identifier; BUILTIN_MODEL_ID is reserved for the built-in model.
        name: User-supplied name (may be empty).
        weights_file: Bare file name of the weights payload.
        config_file: Bare file name of the network config payload.
        names_file: Bare file name of the class-names payload.
        input_width: Declared network input width.
        input_height: Declared network input height.
        class_count: Number of classes the model predicts.
        class_names: Ordered class labels.
        imported_at: When the model was imported (epoch for the built-in).
    """
    id: uuid.UUID
    name: str
    weights_file: str
    config_file: str
    names_file: str
    input_width: int
    input_height: int
    class_count: int
    class_names: Tuple[str, ...] = field(default_factory=tuple)
    imported_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_builtin(self) -> bool:
        return self.id == BUILTIN_MODEL_ID

    @property
    def display_name(self) -> str:
        return self.name if self.name else DEFAULT_DISPLAY_NAME

    @property
    def input_size(self) -> Tuple[int, int]:
        return (self.input_width, self.input_height)

    @property
    def input_size_description(self) -> str:
        return f"{self.input_width}x{self.input_height}"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelRecord":
        """Adapter: Create from a metadata document entry."""
        class_names = tuple(d.get("class_names") or ())
        imported_at = d.get("imported_at")
        return cls(
            id=uuid.UUID(str(d["id"])),
            name=d.get("name", ""),
            weights_file=d["weights_file"],
            config_file=d["config_file"],
            names_file=d["names_file"],
            input_width=int(d["input_width"]),
            input_height=int(d["input_height"]),
            class_count=int(d.get("class_count", len(class_names))),
            class_names=class_names,
            imported_at=(
                datetime.fromisoformat(imported_at)
                if imported_at
                else datetime.fromtimestamp(0, tz=timezone.utc)
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "weights_file": self.weights_file,
            "config_file": self.config_file,
            "names_file": self.names_file,
            "input_width": self.input_width,
            "input_height": self.input_height,
            "class_count": self.class_count,
            "class_names": list(self.class_names),
            "imported_at": self.imported_at.isoformat(),
        }


def parse_model_id(value: Optional[str]) -> Optional[uuid.UUID]:
    """
    Parse a persisted selection value into a model id.

    The legacy built-in alias maps to BUILTIN_MODEL_ID. Returns None for
    empty or malformed values.
    """
    if not value:
        return None
    if value == LEGACY_BUILTIN_ALIAS:
        return BUILTIN_MODEL_ID
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None
