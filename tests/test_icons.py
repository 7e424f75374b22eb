from __future__ import annotations

from adac_diagram.graph.containment import ContainmentNode, make_root
from adac_diagram.icons import resolve_icon_path, resolve_icons


def test_resolves_existing_icons_and_skips_missing(tmp_path):
    resolve_icon_path.cache_clear()
    (tmp_path / "general").mkdir()
    icon = tmp_path / "general" / "user.svg"
    icon.write_text("<svg/>", encoding="utf-8")

    root = make_root()
    root.children = [
        ContainmentNode(id="u", icon="general/user.svg"),
        ContainmentNode(id="x", icon="general/missing.svg"),
        ContainmentNode(id="plain"),
    ]
    resolved = resolve_icons(root, str(tmp_path))
    assert resolved["u"] == icon.resolve()
    assert resolved["x"] is None
    assert resolved["plain"] is None


def test_lookups_are_cached(tmp_path):
    resolve_icon_path.cache_clear()
    resolve_icon_path("a.svg", str(tmp_path))
    resolve_icon_path("a.svg", str(tmp_path))
    assert resolve_icon_path.cache_info().hits == 1
