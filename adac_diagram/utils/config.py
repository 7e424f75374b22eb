"""Application configuration.

Values come from `.env` and `ADAC_`-prefixed environment variables.
"""
from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from .env and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ADAC_",
        extra="ignore",
        populate_by_name=True,
    )

    default_layout_engine: str = Field(
        default="elk",
        validation_alias=AliasChoices("ADAC_LAYOUT", "ADAC_DEFAULT_LAYOUT_ENGINE"),
    )
    diagram_padding: float = 20.0
    dot_binary: str = "dot"
    node_binary: str = "node"
    elk_module: str = "elkjs"
    layout_timeout_seconds: float = 30.0
    icon_dir: str = "assets"
    catalog_path: Optional[str] = None
    log_level: str = "INFO"


settings = Settings()
