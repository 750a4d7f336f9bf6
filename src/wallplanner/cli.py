"""Command Line Interface for Wall Planner.

This module provides a small CLI for inspecting wall plans: detected rooms,
mitered wall outlines, snap results, and applying edit operations.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.model import Point, SceneError
from .engine.api import analyze
from .engine.api import apply as apply_operation
from .engine.snapping import SnapOptions, find_snap_candidate
from .engine.validators import InvalidOperation
from .io.parser import load_scene, save_scene
from .tracing import NULL_TRACE, LoggingTrace, TraceHook

app = typer.Typer(
    name="wallplanner",
    help="A CLI tool for wall plan geometry: rooms, wall outlines and snapping",
    no_args_is_help=True,
)
console = Console()

SQ_UNITS_PER_SQ_METER = 1_000_000.0


def _setup_logging(verbose: bool) -> TraceHook:
    if not verbose:
        return NULL_TRACE
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return LoggingTrace(logging.getLogger("wallplanner.trace"))


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def _parse_point(value: str) -> Point:
    try:
        x, y = (float(part) for part in value.split(","))
    except ValueError:
        raise typer.BadParameter(f"Expected 'x,y', got '{value}'") from None
    return Point(x, y)


@app.command()
def rooms(
    scene: Path = typer.Option(..., "--scene", "-s", help="Path to scene JSON file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Trace engine decisions"),
):
    """Detect rooms and list them by ascending area."""
    trace = _setup_logging(verbose)
    try:
        result = analyze(load_scene(scene), trace=trace)
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON - {e}")
    except (SceneError, ValueError) as e:
        _fail(str(e))

    if not result.rooms:
        console.print("[yellow]No rooms detected[/yellow]")
        return

    table = Table(title=f"Rooms in {scene.name}")
    table.add_column("#", justify="right")
    table.add_column("Room", style="cyan")
    table.add_column("Area (m²)", justify="right")
    table.add_column("Perimeter", justify="right")
    table.add_column("Walls")
    for room in result.rooms:
        table.add_row(
            str(room.number),
            room.id,
            f"{room.area / SQ_UNITS_PER_SQ_METER:.2f}",
            f"{room.perimeter:.0f}",
            ", ".join(room.boundary),
        )
    console.print(table)
    console.print(f"{len(result.rooms)} rooms, {result.components} connected wall groups")


@app.command()
def walls(
    scene: Path = typer.Option(..., "--scene", "-s", help="Path to scene JSON file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Trace engine decisions"),
):
    """Print the mitered outline of every wall."""
    trace = _setup_logging(verbose)
    try:
        result = analyze(load_scene(scene), trace=trace)
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON - {e}")
    except (SceneError, ValueError) as e:
        _fail(str(e))

    table = Table(title=f"Walls in {scene.name}")
    table.add_column("Wall", style="cyan")
    table.add_column("Outline")
    for wall_id, polygon in result.wall_polygons.items():
        table.add_row(wall_id, " ".join(f"({p.x:.1f}, {p.y:.1f})" for p in polygon))
    console.print(table)


@app.command()
def snap(
    scene: Path = typer.Option(..., "--scene", "-s", help="Path to scene JSON file"),
    x: float = typer.Argument(..., help="Pointer X in scene units"),
    y: float = typer.Argument(..., help="Pointer Y in scene units"),
    angle_origin: Optional[str] = typer.Option(None, "--angle-origin", help="Constrain to 15° rays from 'x,y'"),
    guidelines: bool = typer.Option(False, "--guidelines", "-g", help="Snap to node alignment guidelines"),
    pixels_per_unit: float = typer.Option(0.1, "--ppu", help="View scale in pixels per scene unit"),
):
    """Snap a pointer position against the scene."""
    try:
        loaded = load_scene(scene)
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON - {e}")
    except ValueError as e:
        _fail(str(e))

    origin = _parse_point(angle_origin) if angle_origin else None
    options = SnapOptions(
        snap_to_angles=origin is not None,
        snap_to_guidelines=guidelines,
        angle_origin=origin,
        guideline_origin=origin,
        pixels_per_unit=pixels_per_unit,
    )
    result = find_snap_candidate(Point(x, y), loaded, options)
    if not result.snapped:
        console.print(f"Not snapped: ({x:.1f}, {y:.1f})")
        return

    candidate = result.candidate
    source = f" on {candidate.entity_id}" if candidate.entity_id else ""
    console.print(
        f"[green]Snapped[/green] to ({result.point.x:.1f}, {result.point.y:.1f}) "
        f"by [bold]{candidate.kind.name.lower()}[/bold]{source}"
    )


@app.command()
def apply(
    scene: Path = typer.Option(..., "--scene", "-s", help="Path to scene JSON file"),
    operation: Path = typer.Option(..., "--op", help="Path to operation JSON file"),
    output: Path = typer.Option(..., "--out", help="Path to output scene JSON file"),
):
    """Apply an edit operation (or a list of them) and save the result."""
    try:
        current = load_scene(scene)
        with open(operation, encoding="utf-8") as f:
            operations = json.load(f)
        if isinstance(operations, dict):
            operations = [operations]
        for op in operations:
            current = apply_operation(current, op)
    except FileNotFoundError as e:
        _fail(f"File not found - {e}")
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON - {e}")
    except (SceneError, InvalidOperation, ValueError) as e:
        _fail(str(e))

    output.parent.mkdir(parents=True, exist_ok=True)
    save_scene(current, output)
    console.print(f"[green]Saved[/green] {output} with {len(current.rooms)} rooms")


if __name__ == "__main__":
    app()
