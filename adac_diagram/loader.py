"""Load architecture documents (YAML) into the `Architecture` model."""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from adac_diagram.models.architecture import Architecture


class ArchitectureLoadError(ValueError):
    """Raised when a document cannot be parsed or does not match the model."""


def parse_architecture(text: str) -> Architecture:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ArchitectureLoadError(f"Invalid YAML: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ArchitectureLoadError("Architecture document must be a mapping at the top level")
    try:
        return Architecture.model_validate(data)
    except ValidationError as exc:
        raise ArchitectureLoadError(f"Invalid architecture document: {exc}") from exc


def load_architecture(path: str | Path) -> Architecture:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    return parse_architecture(p.read_text(encoding="utf-8"))
