from __future__ import annotations

import pytest

from adac_diagram.graph.containment import Point
from adac_diagram.layout.geometry import Rect, clip_to_rect


def _on_segment(p: Point, a: Point, b: Point) -> bool:
    cross = (b.x - a.x) * (p.y - a.y) - (b.y - a.y) * (p.x - a.x)
    within = min(a.x, b.x) - 1e-6 <= p.x <= max(a.x, b.x) + 1e-6 and min(a.y, b.y) - 1e-6 <= p.y <= max(a.y, b.y) + 1e-6
    return abs(cross) < 1e-6 and within


@pytest.mark.parametrize(
    "outer, inner",
    [
        (Point(200, 50), Point(50, 50)),
        (Point(50, -100), Point(50, 50)),
        (Point(-30, -40), Point(40, 60)),
        (Point(180, 130), Point(10, 10)),
    ],
)
def test_clipped_point_lies_on_border_and_segment(outer, inner):
    rect = Rect(0, 0, 100, 100)
    assert rect.strictly_contains(inner)
    clipped = clip_to_rect(outer, inner, rect)
    assert rect.on_border(clipped, tolerance=1e-6)
    assert _on_segment(clipped, outer, inner)


def test_horizontal_entry_hits_near_side():
    clipped = clip_to_rect(Point(200, 50), Point(50, 50), Rect(0, 0, 100, 100))
    assert clipped.x == pytest.approx(100.0)
    assert clipped.y == pytest.approx(50.0)


def test_segment_fully_inside_is_unchanged():
    inner = Point(40, 40)
    assert clip_to_rect(Point(60, 60), inner, Rect(0, 0, 100, 100)) == inner


def test_degenerate_segment_is_unchanged():
    p = Point(5, 5)
    assert clip_to_rect(p, p, Rect(0, 0, 10, 10)) == p


def test_segment_missing_rect_is_unchanged():
    inner = Point(500, 500)
    assert clip_to_rect(Point(400, 400), inner, Rect(0, 0, 10, 10)) == inner


def test_rect_contains_with_tolerance():
    rect = Rect(10, 10, 20, 20)
    assert rect.contains(Point(9.95, 30.05))
    assert not rect.contains(Point(9.8, 20))
    assert not rect.strictly_contains(Point(10, 20))
