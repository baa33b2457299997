# SPDX-License-Identifier: Apache-2.0
"""Command line interface for facetrace."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from facetrace import __version__
from facetrace.config import Config, load_config
from facetrace.errors import FacetraceError
from facetrace.logging_utils import configure_logging
from facetrace.pipeline.integration import Pipeline
from facetrace.schemas import PipelineStatus
from facetrace.vision.assets import download_asset

app = typer.Typer(add_completion=False)
console = Console()

BACKENDS = ("mediapipe", "haar")
STYLES = ("points", "outline")


@app.callback()
def main() -> None:
    """facetrace command line interface."""


def _setup(
    config_path: Optional[Path],
    backend: Optional[str],
    camera: Optional[str],
    style: Optional[str] = None,
) -> Config:
    config = load_config(config_path)
    if backend:
        if backend not in BACKENDS:
            raise typer.BadParameter(f"backend must be one of {', '.join(BACKENDS)}")
        config.model.backend = backend
    if camera is not None:
        config.camera.device = camera
    if style:
        if style not in STYLES:
            raise typer.BadParameter(f"style must be one of {', '.join(STYLES)}")
        config.render.style = style
    configure_logging(config.logging.level, config.logging.json_logs)
    return config


def _print_status(status: PipelineStatus, json_path: Optional[Path] = None) -> None:
    if json_path is not None:
        status.to_json(json_path)
    table = Table(title="facetrace")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for name, value in status.model_dump().items():
        table.add_row(name, "-" if value is None else str(value))
    console.print(table)


@app.command("demo")
def demo(
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file"),
    backend: Optional[str] = typer.Option(None, help="Landmark backend: mediapipe or haar"),
    camera: Optional[str] = typer.Option(None, help="Camera index or video file"),
    style: Optional[str] = typer.Option(None, help="Landmark style: points or outline"),
    status_json: Optional[Path] = typer.Option(None, "--status-json", help="Write the final status as JSON"),
) -> None:  # pragma: no cover - needs a display
    """Open the camera preview with live landmarks."""
    from facetrace.ui import run_preview

    config = _setup(config_path, backend, camera, style)
    pipeline = Pipeline(config)
    try:
        asyncio.run(run_preview(pipeline, console))
    except FacetraceError as exc:
        _print_status(pipeline.status(), status_json)
        console.print(f"[red]Error: {exc}")
        raise typer.Exit(code=1)
    _print_status(pipeline.status(), status_json)


@app.command("record")
def record(
    seconds: float = typer.Option(5.0, help="Recording length in seconds"),
    output: Optional[Path] = typer.Option(None, help="Output .webm path"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file"),
    backend: Optional[str] = typer.Option(None, help="Landmark backend: mediapipe or haar"),
    camera: Optional[str] = typer.Option(None, help="Camera index or video file"),
    style: Optional[str] = typer.Option(None, help="Landmark style: points or outline"),
    status_json: Optional[Path] = typer.Option(None, "--status-json", help="Write the final status as JSON"),
) -> None:
    """Record an annotated clip without opening a window."""
    from facetrace.ui import record_clip

    config = _setup(config_path, backend, camera, style)
    pipeline = Pipeline(config)
    try:
        path = asyncio.run(record_clip(pipeline, seconds, output))
    except FacetraceError as exc:
        _print_status(pipeline.status(), status_json)
        console.print(f"[red]Error: {exc}")
        raise typer.Exit(code=1)
    _print_status(pipeline.status(), status_json)
    console.print(f"facetrace v{__version__} - recording saved ({path})")


@app.command("fetch-model")
def fetch_model(
    output: Optional[Path] = typer.Option(None, help="Where to store the model asset"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML settings file"),
) -> None:
    """Download the face landmark model to its local path."""
    config = _setup(config_path, None, None)
    url = config.model.asset_url
    if not url:
        console.print("[red]Error: no model URL configured")
        raise typer.Exit(code=1)
    target = output or config.model.asset_path
    try:
        path = download_asset(url, target, timeout=config.model.download_timeout_s)
    except FacetraceError as exc:
        console.print(f"[red]Error: {exc}")
        raise typer.Exit(code=1)
    console.print(f"Model saved to {path}")


if __name__ == "__main__":  # pragma: no cover
    app()
