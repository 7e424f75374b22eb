from __future__ import annotations

import dataclasses

import pytest

from adac_diagram.graph.catalog import DEFAULT_CATALOG, ICON_MAP, catalog_from_mapping, load_catalog


def test_default_lookups():
    assert DEFAULT_CATALOG.icon("vpc") == ICON_MAP["vpc"]
    assert DEFAULT_CATALOG.icon("no-such-kind") is None
    assert DEFAULT_CATALOG.icon(None) is None
    assert DEFAULT_CATALOG.size("boundary") == (400.0, 400.0)
    assert DEFAULT_CATALOG.size("unheard-of") == DEFAULT_CATALOG.size("leaf")
    assert DEFAULT_CATALOG.is_external("Browser")
    assert DEFAULT_CATALOG.is_compute("ecs-fargate")


def test_technology_and_endpoint_icons():
    assert DEFAULT_CATALOG.technology_icon("Vue 3") == ICON_MAP["frontend"]
    assert DEFAULT_CATALOG.technology_icon("Go") is None
    assert DEFAULT_CATALOG.endpoint_icon("mobile-client") == ICON_MAP["client"]
    assert DEFAULT_CATALOG.endpoint_icon("partner-feed") == ICON_MAP["internet"]


def test_catalog_is_read_only():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DEFAULT_CATALOG.default_endpoint_icon = "user"
    with pytest.raises(TypeError):
        DEFAULT_CATALOG.icons["vpc"] = "x.svg"


def test_overlay_merges_icons_and_replaces_kind_sets():
    catalog = catalog_from_mapping(
        {
            "icons": {"vnet": "azure/vnet.svg"},
            "boundary_kinds": ["VNet"],
            "sizes": {"leaf": [64, 48]},
        }
    )
    assert catalog.icon("vnet") == "azure/vnet.svg"
    assert catalog.icon("vpc") == ICON_MAP["vpc"]
    assert catalog.is_boundary("vnet")
    assert not catalog.is_boundary("vpc")
    assert catalog.size("leaf") == (64.0, 48.0)
    assert DEFAULT_CATALOG.icon("vnet") is None


def test_load_catalog_from_yaml(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text("external_kinds: [robot]\ndefault_endpoint_icon: user\n", encoding="utf-8")
    catalog = load_catalog(path)
    assert catalog.is_external("robot")
    assert catalog.endpoint_icon("somewhere") == ICON_MAP["user"]


def test_load_catalog_rejects_non_mapping(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_catalog(path)
