from __future__ import annotations

import json
import pathlib
from typing import List, Optional

import typer
import structlog
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import load_config, BlacklineConfig
from .engine.geometry import points_to_pixels
from .engine.registry import Area, coerce_area
from .errors import InvalidArea, RedactionError
from .visual.redactor import apply_redactions, create_redacted_preview, inspect_document

console = Console()
log = structlog.get_logger()
app = typer.Typer(add_completion=False, no_args_is_help=True, help="blackline — permanent PDF redaction")


def version_callback(value: bool):
    if value:
        from . import __version__
        console.print(f"blackline {__version__}")
        raise typer.Exit()


@app.callback()
def common(
    ctx: typer.Context,
    config: Optional[pathlib.Path] = typer.Option(None, "--config", help="Path to .blackline.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logs"),
    version: Optional[bool] = typer.Option(None, "--version", callback=version_callback, is_eager=True),
):
    """Global options (config, verbosity)."""
    structlog.configure(processors=[structlog.processors.JSONRenderer()])
    ctx.obj = {"config": load_config(config) if config else BlacklineConfig(), "verbose": verbose}
    if verbose:
        log.info("verbose_enabled")


def read_areas(path: pathlib.Path) -> List[Area]:
    """Areas from a JSON file: a list of areas, or an object with an "areas" list."""
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise typer.BadParameter(f"Cannot read areas from {path}: {e}")
    if isinstance(data, dict):
        data = data.get("areas", [])
    if not isinstance(data, list):
        raise typer.BadParameter("Areas file must hold a JSON list")
    return [coerce_area(item) for item in data]


def areas_from_points(areas: List[Area], sizes) -> List[Area]:
    """Reinterpret rects given in PDF points (bottom-left origin) as page-sized pixel rects."""
    converted = []
    for area in areas:
        if not 0 <= area.page_index < len(sizes):
            raise InvalidArea(f"Area references page {area.page_index} but the document has {len(sizes)} pages")
        size = sizes[area.page_index]
        rect = points_to_pixels(area.rect, size, size)
        converted.append(Area(area.page_index, rect.x, rect.y, rect.width, rect.height,
                              capture_width=size.width, capture_height=size.height))
    return converted


def _fail(error: RedactionError) -> None:
    log.error("redaction_failed", error=type(error).__name__, detail=str(error))
    console.print(f"[red]{type(error).__name__}:[/red] {escape(str(error))}")
    raise typer.Exit(code=1)


@app.command()
def inspect(src: pathlib.Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF to inspect")):
    """Show page count and page sizes in PDF points."""
    try:
        sizes = inspect_document(src.read_bytes())
    except RedactionError as e:
        _fail(e)
    table = Table(title=f"{src.name}: {len(sizes)} pages")
    table.add_column("Page", justify="right")
    table.add_column("Width (pt)", justify="right")
    table.add_column("Height (pt)", justify="right")
    for index, size in enumerate(sizes):
        table.add_row(str(index), f"{size.width:.1f}", f"{size.height:.1f}")
    console.print(table)


@app.command()
def apply(
    ctx: typer.Context,
    src: pathlib.Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF to redact"),
    areas: pathlib.Path = typer.Option(..., "--areas", help="JSON file with the areas to redact"),
    out: pathlib.Path = typer.Option(..., "--out", help="Destination for the redacted PDF"),
    oversample: Optional[float] = typer.Option(None, "--oversample", min=0.1, help="Raster resolution factor"),
    points: bool = typer.Option(False, "--points", help="Rects are PDF points (bottom-left origin)"),
):
    """Permanently redact the marked areas of SRC into OUT."""
    cfg: BlacklineConfig = ctx.obj["config"]
    if oversample:
        cfg = cfg.model_copy(update={"raster": cfg.raster.model_copy(update={"oversample": oversample})})
    source = src.read_bytes()
    try:
        marked = read_areas(areas)
        if points:
            marked = areas_from_points(marked, inspect_document(source))
        redacted = apply_redactions(source, marked, config=cfg)
    except RedactionError as e:
        _fail(e)
    out.write_bytes(redacted)
    pages = sorted({area.page_index for area in marked})
    log.info("redaction_applied", src=str(src), out=str(out), areas=len(marked), pages=pages)
    console.print(f"[green]Redacted {len(pages)} page(s)[/green] → {out}")


@app.command()
def preview(
    ctx: typer.Context,
    src: pathlib.Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF to preview"),
    page: int = typer.Option(0, "--page", help="Zero-based page index"),
    out: pathlib.Path = typer.Option(..., "--out", help="Destination PNG"),
    areas: Optional[pathlib.Path] = typer.Option(None, "--areas", help="JSON file with areas to paint"),
    scale: Optional[float] = typer.Option(None, "--scale", min=0.05, help="Pixels per PDF point"),
):
    """Render one page with its masks painted on, without producing a PDF."""
    cfg: BlacklineConfig = ctx.obj["config"]
    try:
        marked = read_areas(areas) if areas else []
        image = create_redacted_preview(src.read_bytes(), page, marked, scale=scale, config=cfg)
    except RedactionError as e:
        _fail(e)
    out.write_bytes(image)
    console.print(f"[green]Preview written:[/green] {out}")
