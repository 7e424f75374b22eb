"""Parsed architecture description consumed by the hierarchy resolver.

The document format itself (YAML) is handled by `adac_diagram.loader`;
these models only describe the shape once parsed.
"""
from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, Field


class AiTags(BaseModel):
    """Optional enrichment annotations added before graph construction."""

    icon: Optional[str] = None
    group: Optional[str] = None
    description: Optional[str] = None


class Application(BaseModel):
    id: str
    name: str = ""
    type: str = ""
    technology: Optional[str] = None
    ai_tags: Optional[AiTags] = None

    @property
    def kind(self) -> str:
        return self.type or "unknown"

    @property
    def label(self) -> str:
        return self.name or self.id


class Service(BaseModel):
    id: str
    type: str = ""
    subtype: Optional[str] = None
    service: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    runs: List[str] = []
    subnets: List[str] = []
    config: Optional[Dict[str, Any]] = None
    configuration: Optional[Dict[str, Any]] = None
    ai_tags: Optional[AiTags] = None

    @property
    def kind(self) -> str:
        return self.subtype or self.service or self.type or "unknown"

    @property
    def label(self) -> str:
        return self.name or self.id

    @property
    def settings(self) -> Dict[str, Any]:
        """Service configuration; documents use either `config` or `configuration`."""
        return self.config or self.configuration or {}

    @property
    def vpc(self) -> Optional[str]:
        value = self.settings.get("vpc")
        return value if isinstance(value, str) and value else None

    @property
    def availability_zone(self) -> Optional[str]:
        value = self.settings.get("availability_zone")
        return value if isinstance(value, str) and value else None

    @property
    def candidate_subnets(self) -> List[str]:
        configured = self.settings.get("subnets")
        if isinstance(configured, list) and configured:
            return [str(s) for s in configured]
        return list(self.subnets)

    @property
    def is_public(self) -> bool:
        cfg = self.settings
        return cfg.get("public_access") is True or cfg.get("public") is True


class Cloud(BaseModel):
    provider: str = ""
    services: List[Service] = []


class Infrastructure(BaseModel):
    clouds: List[Cloud] = []


class Connection(BaseModel):
    id: Optional[str] = None
    from_: str = Field(..., alias="from")
    to: str
    type: str = ""
    label: Optional[str] = None

    model_config = {
        "populate_by_name": True,
    }

    @property
    def edge_id(self) -> str:
        return self.id or f"{self.from_}->{self.to}"

    @property
    def text(self) -> str:
        return self.label or self.type


class Architecture(BaseModel):
    applications: List[Application] = []
    infrastructure: Infrastructure = Field(default_factory=Infrastructure)
    connections: List[Connection] = []
    layout: Optional[str] = None

    def services(self) -> Iterator[Service]:
        for cloud in self.infrastructure.clouds:
            yield from cloud.services

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
