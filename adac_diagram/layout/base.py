"""Layout oracle capability shared by both layout engines."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from adac_diagram.graph.containment import Diagram


class LayoutError(RuntimeError):
    """Raised when a layout oracle rejects or fails on a diagram."""

    def __init__(
        self,
        message: str,
        *,
        engine: Optional[str] = None,
        node_count: Optional[int] = None,
        edge_count: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.engine = engine
        self.node_count = node_count
        self.edge_count = edge_count

    def __str__(self) -> str:
        context = []
        if self.engine:
            context.append(f"engine={self.engine}")
        if self.node_count is not None:
            context.append(f"nodes={self.node_count}")
        if self.edge_count is not None:
            context.append(f"edges={self.edge_count}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class LayoutOracle(ABC):
    """Computes positions for a containment tree and its edges.

    `layout` returns a positioned copy of the diagram; the input is left
    untouched. Node `x`/`y` are relative to the direct parent, edge sections
    are expressed in the frame of the edge's container (root when `None`).
    """

    name: str = ""

    @abstractmethod
    def layout(self, diagram: Diagram) -> Diagram:
        raise NotImplementedError

    def fail(self, message: str, diagram: Diagram) -> LayoutError:
        return LayoutError(
            message,
            engine=self.name,
            node_count=diagram.node_count(),
            edge_count=len(diagram.edges),
        )
