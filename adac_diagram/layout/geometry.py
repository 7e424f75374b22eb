"""Segment/rectangle helpers for clipping edge endpoints to node borders."""
from __future__ import annotations

import math
from dataclasses import dataclass

from adac_diagram.graph.containment import Point

EPSILON = 0.1


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def contains(self, p: Point, tolerance: float = EPSILON) -> bool:
        return (
            self.x - tolerance <= p.x <= self.max_x + tolerance
            and self.y - tolerance <= p.y <= self.max_y + tolerance
        )

    def strictly_contains(self, p: Point) -> bool:
        return self.x < p.x < self.max_x and self.y < p.y < self.max_y

    def on_border(self, p: Point, tolerance: float = 1e-6) -> bool:
        if not self.contains(p, tolerance):
            return False
        return (
            abs(p.x - self.x) <= tolerance
            or abs(p.x - self.max_x) <= tolerance
            or abs(p.y - self.y) <= tolerance
            or abs(p.y - self.max_y) <= tolerance
        )


def clip_to_rect(outer: Point, inner: Point, rect: Rect) -> Point:
    """Point where the segment outer -> inner first meets *rect*.

    The segment is parameterised as outer + t * (inner - outer). Each of the
    four boundary lines yields a candidate t; the smallest t in [0, 1] whose
    point lies on the rectangle wins. Without such a t, or when it is the
    endpoint itself, *inner* is returned unchanged.
    """
    dx = inner.x - outer.x
    dy = inner.y - outer.y
    if dx == 0 and dy == 0:
        return inner

    best = math.inf
    candidates = []
    if dx != 0:
        candidates.append((rect.x - outer.x) / dx)
        candidates.append((rect.max_x - outer.x) / dx)
    if dy != 0:
        candidates.append((rect.y - outer.y) / dy)
        candidates.append((rect.max_y - outer.y) / dy)

    for t in candidates:
        if not 0 <= t <= 1:
            continue
        hit = Point(outer.x + t * dx, outer.y + t * dy)
        if rect.contains(hit) and t < best:
            best = t

    if best == math.inf or best >= 1:
        return inner
    return Point(outer.x + best * dx, outer.y + best * dy)
