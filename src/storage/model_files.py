"""
Parsing and validation of Darknet model file triples (.weights, .cfg, .names).

Validation runs entirely in memory so an import can be rejected before any
file or metadata is written.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from domain.errors import DimensionOutOfRange, NoClassNames, TooSmall, UnparsableConfig

MIN_WEIGHTS_BYTES = 1000
MIN_CONFIG_BYTES = 100
MIN_NAMES_BYTES = 10

MIN_INPUT_DIMENSION = 32
MAX_INPUT_DIMENSION = 2048

NET_SECTION = "[net]"


@dataclass(frozen=True)
class ValidationResult:
    """What a successful validation extracted from the model files."""
    width: int
    height: int
    class_names: Tuple[str, ...]


def _decode(data: Union[bytes, str]) -> Optional[str]:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def parse_config_dimensions(data: Union[bytes, str]) -> Optional[Tuple[int, int]]:
    """
    Extract the network input (width, height) from a Darknet config.

    Only assignments inside the [net] section count; the first width and the
    first height found there are used, and scanning stops once both are
    known. Returns None when the section is missing, the pair is incomplete,
    a value is not an integer, or the text cannot be decoded.
    """
    content = _decode(data)
    if content is None:
        return None

    width: Optional[int] = None
    height: Optional[int] = None
    in_net_section = False

    for line in content.splitlines():
        stripped = line.strip()

        if stripped == NET_SECTION:
            in_net_section = True
            continue
        if stripped.startswith("["):
            in_net_section = False
            continue
        if not in_net_section or "=" not in stripped:
            continue

        key, _, value = stripped.partition("=")
        key = key.strip()
        if key not in ("width", "height"):
            continue
        if (key == "width" and width is not None) or (key == "height" and height is not None):
            continue

        try:
            parsed = int(value.strip())
        except ValueError:
            return None

        if key == "width":
            width = parsed
        else:
            height = parsed

        if width is not None and height is not None:
            return (width, height)

    return None


def parse_class_names(data: Union[bytes, str]) -> List[str]:
    """Return the non-empty, trimmed lines of a .names file."""
    content = _decode(data)
    if content is None:
        return []
    return [line.strip() for line in content.splitlines() if line.strip()]


def validate_model_files(weights: bytes, config: bytes, names: bytes) -> ValidationResult:
    """
    Validate a model file triple.

    Checks run in a fixed order and the first failure is raised, so each
    failure maps to exactly one error kind.

    Raises:
        TooSmall: A payload is implausibly small.
        UnparsableConfig: Input dimensions cannot be read from the config.
        DimensionOutOfRange: Width or height falls outside [32, 2048].
        NoClassNames: The names file yields no class names.
    """
    if len(weights) < MIN_WEIGHTS_BYTES:
        raise TooSmall("weights", len(weights), MIN_WEIGHTS_BYTES)
    if len(config) < MIN_CONFIG_BYTES:
        raise TooSmall("config", len(config), MIN_CONFIG_BYTES)
    if len(names) < MIN_NAMES_BYTES:
        raise TooSmall("names", len(names), MIN_NAMES_BYTES)

    dimensions = parse_config_dimensions(config)
    if dimensions is None:
        raise UnparsableConfig()

    width, height = dimensions
    if not (MIN_INPUT_DIMENSION <= width <= MAX_INPUT_DIMENSION) or not (
        MIN_INPUT_DIMENSION <= height <= MAX_INPUT_DIMENSION
    ):
        raise DimensionOutOfRange(width, height, MIN_INPUT_DIMENSION, MAX_INPUT_DIMENSION)

    class_names = parse_class_names(names)
    if not class_names:
        raise NoClassNames()

    return ValidationResult(width=width, height=height, class_names=tuple(class_names))
