"""CLI interface."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
import yaml

from adac_diagram.graph.catalog import DEFAULT_CATALOG, KindCatalog, load_catalog
from adac_diagram.graph.containment import ContainmentNode
from adac_diagram.graph.resolver import resolve_hierarchy
from adac_diagram.icons import resolve_icons
from adac_diagram.layout.base import LayoutError
from adac_diagram.layout.router import ENGINES, build_oracles
from adac_diagram.loader import ArchitectureLoadError, load_architecture
from adac_diagram.pipeline import generate_diagram
from adac_diagram.utils.config import settings

app = typer.Typer(add_completion=False)

_DOCUMENT_SUFFIXES = (".yaml", ".yml")


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _catalog(path: Optional[str]) -> KindCatalog:
    source = path or settings.catalog_path
    if not source:
        return DEFAULT_CATALOG
    return load_catalog(source)


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _print_tree(node: ContainmentNode, depth: int = 0) -> None:
    label = f" ({node.label})" if node.label and node.label != node.id else ""
    typer.echo(f"{'  ' * depth}{node.id} [{node.kind.value}]{label}")
    for child in node.children:
        _print_tree(child, depth + 1)


@app.command()
def layout(
    input_path: Path = typer.Argument(..., help="Architecture YAML document."),
    engine: Optional[str] = typer.Option(None, "--engine", "-e", help="Layout engine: elk or dot."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout."),
    padding: Optional[float] = typer.Option(None, "--padding", help="Padding around the drawing."),
    catalog: Optional[str] = typer.Option(None, "--catalog", help="YAML kind/icon catalog."),
    icon_dir: Optional[str] = typer.Option(None, "--icon-dir", help="Directory icon references resolve against."),
):
    """Resolve, lay out and normalize a document; emit the diagram as JSON."""
    _configure_logging()
    config = settings.model_copy(update={"diagram_padding": padding}) if padding is not None else settings
    try:
        architecture = load_architecture(input_path)
        result = generate_diagram(
            architecture,
            layout_override=engine,
            catalog=_catalog(catalog),
            oracles=build_oracles(config),
            config=config,
        )
    except (OSError, ValueError, yaml.YAMLError, LayoutError) as exc:
        _fail(str(exc))
        return

    payload = result.to_dict()
    icons = resolve_icons(result.diagram.root, icon_dir or settings.icon_dir)
    payload["icons"] = {nid: str(path) for nid, path in icons.items() if path is not None}
    text = json.dumps(payload, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Wrote {output}")
    else:
        typer.echo(text)


@app.command()
def tree(
    input_path: Path = typer.Argument(..., help="Architecture YAML document."),
    catalog: Optional[str] = typer.Option(None, "--catalog", help="YAML kind/icon catalog."),
):
    """Print the resolved containment hierarchy without running a layout."""
    _configure_logging()
    try:
        architecture = load_architecture(input_path)
        diagram = resolve_hierarchy(architecture, _catalog(catalog))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        _fail(str(exc))
        return
    _print_tree(diagram.root)
    for edge in diagram.edges:
        level = edge.container or diagram.root.id
        typer.echo(f"{edge.source} -> {edge.target} @ {level}")


@app.command()
def batch(
    directory: Path = typer.Argument(..., help="Directory of architecture YAML documents."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write diagrams and report.json here."),
):
    """Run every engine over every document and report the outcome."""
    _configure_logging()
    if not directory.is_dir():
        _fail(f"Not a directory: {directory}")
        return
    documents = sorted(p for p in directory.iterdir() if p.suffix.lower() in _DOCUMENT_SUFFIXES)
    oracles = build_oracles(settings)
    report: List[Dict[str, object]] = []
    failures = 0

    for doc in documents:
        try:
            architecture = load_architecture(doc)
        except ArchitectureLoadError as exc:
            failures += 1
            report.append({"file": doc.name, "engine": None, "ok": False, "error": str(exc)})
            typer.echo(f"FAIL {doc.name}: {exc}")
            continue
        for engine in ENGINES:
            entry: Dict[str, object] = {"file": doc.name, "engine": engine}
            try:
                result = generate_diagram(architecture, layout_override=engine, oracles=oracles)
            except LayoutError as exc:
                failures += 1
                entry.update(ok=False, error=str(exc))
                typer.echo(f"FAIL {doc.name} [{engine}]: {exc}")
            else:
                entry.update(ok=True, width=result.diagram.width, height=result.diagram.height)
                typer.echo(f"OK   {doc.name} [{engine}]")
                if output:
                    output.mkdir(parents=True, exist_ok=True)
                    target = output / f"{doc.stem}.{engine}.json"
                    target.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
            report.append(entry)

    if output:
        output.mkdir(parents=True, exist_ok=True)
        (output / "report.json").write_text(json.dumps(report, indent=2), encoding="utf-8")
    typer.echo(f"{len(report) - failures} succeeded, {failures} failed")
    if failures:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
