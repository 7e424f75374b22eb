"""Resolve icon references to files on disk.

Icon references are paths relative to an asset directory. Lookups are
read-only, so results are cached for the life of the process. A missing
icon is not an error: the node simply renders without one.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from adac_diagram.graph.containment import ContainmentNode

logger = logging.getLogger(__name__)


@lru_cache(maxsize=512)
def resolve_icon_path(reference: str, base_dir: str) -> Optional[Path]:
    path = Path(base_dir) / reference
    if not path.is_file():
        logger.debug("Icon not found", extra={"icon": reference, "icon_dir": base_dir})
        return None
    return path.resolve()


def resolve_icons(root: ContainmentNode, base_dir: str) -> Dict[str, Optional[Path]]:
    """Icon file per node id; None for nodes without an icon or a missing file."""
    resolved: Dict[str, Optional[Path]] = {}
    for node in root.walk():
        if node.icon:
            resolved[node.id] = resolve_icon_path(node.icon, base_dir)
        else:
            resolved[node.id] = None
    return resolved
