from __future__ import annotations

import pathlib
import sys
from typing import List, Optional, Tuple

import typer
import structlog
from rich.console import Console

from .artifacts import (
    ImageArtifact,
    TextArtifact,
    UnsupportedArtifactError,
    load_artifact,
    pasted_text_artifact,
    write_export,
)
from .config import load_config, BlurifyConfig
from .engine.session import ImageSession, TextSession
from .visual.compositor import SourceUnavailableError

console = Console()
log = structlog.get_logger()
app = typer.Typer(add_completion=False, no_args_is_help=True, help="blurify — irreversible image and text redaction")

# Source argument that reads pasted text from stdin.
STDIN = "-"


def version_callback(value: bool):
    if value:
        from . import __version__
        console.print(f"blurify {__version__}")
        raise typer.Exit()


def parse_box(spec: str) -> Tuple[float, float, float, float]:
    """'x,y,w,h' in display pixels; w/h may be negative."""
    parts = spec.split(",")
    if len(parts) != 4:
        raise typer.BadParameter(f"box must be x,y,w,h, got {spec!r}")
    try:
        x, y, w, h = (float(p) for p in parts)
    except ValueError:
        raise typer.BadParameter(f"box must be numeric, got {spec!r}")
    return x, y, w, h


def parse_range(spec: str) -> Tuple[int, int]:
    """'start:end' character offsets, end exclusive."""
    start, sep, end = spec.partition(":")
    if not sep:
        raise typer.BadParameter(f"range must be start:end, got {spec!r}")
    try:
        return int(start), int(end)
    except ValueError:
        raise typer.BadParameter(f"range offsets must be integers, got {spec!r}")


def parse_size(spec: str) -> Tuple[float, float]:
    """'WxH' display size, both sides positive."""
    w, sep, h = spec.lower().partition("x")
    try:
        if not sep:
            raise ValueError
        width, height = float(w), float(h)
    except ValueError:
        raise typer.BadParameter(f"display size must be WIDTHxHEIGHT, got {spec!r}")
    if width <= 0 or height <= 0:
        raise typer.BadParameter(f"display size must be positive, got {spec!r}")
    return width, height


def _load(src: pathlib.Path, cfg: BlurifyConfig):
    if str(src) == STDIN:
        return pasted_text_artifact(sys.stdin.read())
    try:
        return load_artifact(src, cfg.ingest.text_suffixes, cfg.ingest.encoding)
    except UnsupportedArtifactError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


def _text_session(src: pathlib.Path, ranges: Optional[List[str]], cfg: BlurifyConfig) -> TextSession:
    artifact = _load(src, cfg)
    if not isinstance(artifact, TextArtifact):
        raise typer.BadParameter(f"{src.name} is not a text document")
    session = TextSession(artifact)
    for spec in ranges or []:
        start, end = parse_range(spec)
        if session.ranges.add_range(start, end) is None:
            console.print(f"[yellow]Skipped range {spec} (empty or outside 0..{artifact.length})[/yellow]")
    return session


@app.callback()
def common(
    ctx: typer.Context,
    config: Optional[pathlib.Path] = typer.Option(None, "--config", help="Path to .blurify.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logs"),
    version: Optional[bool] = typer.Option(None, "--version", callback=version_callback, is_eager=True),
):
    """Global options (config, verbosity)."""
    structlog.configure(processors=[structlog.processors.JSONRenderer()])
    ctx.obj = {"config": load_config(config) if config else BlurifyConfig()}
    if verbose:
        log.info("verbose_enabled")


@app.command()
def image(
    ctx: typer.Context,
    src: pathlib.Path = typer.Argument(..., help="Image to redact"),
    out: pathlib.Path = typer.Option(..., "--out", help="Destination directory"),
    box: Optional[List[str]] = typer.Option(None, "--box", help="Region to blur as x,y,w,h (repeatable)"),
    display: Optional[str] = typer.Option(None, "--display", help="Size the boxes were drawn at, WxH (default: natural size)"),
):
    """Blur rectangular regions of an image."""
    cfg: BlurifyConfig = ctx.obj["config"]
    artifact = _load(src, cfg)
    if not isinstance(artifact, ImageArtifact):
        raise typer.BadParameter(f"{src.name} is not an image")

    display_size = parse_size(display) if display else None
    session = ImageSession(artifact, display_size=display_size)
    for spec in box or []:
        if session.regions.commit(*parse_box(spec)) is None:
            console.print(f"[yellow]Skipped box {spec} (too small)[/yellow]")

    try:
        result = session.export()
    except SourceUnavailableError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    dest = write_export(result, out, image_format=cfg.export.image_format)
    log.info("image_exported", regions=result.redacted_count, path=str(dest))
    console.print(f"[green]Blurred {result.redacted_count} region(s)[/green] → {dest}")


@app.command()
def text(
    ctx: typer.Context,
    src: pathlib.Path = typer.Argument(..., help="Text document to redact (- reads stdin)"),
    out: pathlib.Path = typer.Option(..., "--out", help="Destination directory"),
    range_: Optional[List[str]] = typer.Option(None, "--range", help="Characters to redact as start:end (repeatable)"),
):
    """Replace character ranges of a text document with solid blocks."""
    cfg: BlurifyConfig = ctx.obj["config"]
    session = _text_session(src, range_, cfg)
    result = session.export()
    dest = write_export(result, out, encoding=cfg.ingest.encoding)
    log.info("text_exported", ranges=result.redacted_count, path=str(dest))
    console.print(f"[green]Redacted {result.redacted_count} range(s)[/green] → {dest}")


@app.command()
def preview(
    ctx: typer.Context,
    src: pathlib.Path = typer.Argument(..., help="Text document to preview (- reads stdin)"),
    range_: Optional[List[str]] = typer.Option(None, "--range", help="Characters to redact as start:end (repeatable)"),
    html: Optional[pathlib.Path] = typer.Option(None, "--html", help="Write an HTML preview to this path"),
):
    """Show a text document with the given ranges blacked out."""
    cfg: BlurifyConfig = ctx.obj["config"]
    session = _text_session(src, range_, cfg)
    if html:
        html.parent.mkdir(parents=True, exist_ok=True)
        html.write_text(session.preview_html(), encoding="utf-8")
        console.print(f"[green]Preview written:[/green] {html}")
        return
    console.print(session.preview_text(cfg.preview.wrap_width), markup=False, highlight=False, soft_wrap=True)
