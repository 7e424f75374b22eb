"""Input model exports."""
from adac_diagram.models.architecture import (
    AiTags,
    Application,
    Architecture,
    Cloud,
    Connection,
    Infrastructure,
    Service,
)

__all__ = [
    "AiTags",
    "Application",
    "Architecture",
    "Cloud",
    "Connection",
    "Infrastructure",
    "Service",
]
