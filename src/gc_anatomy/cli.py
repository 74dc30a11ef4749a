#!/usr/bin/env python3
"""gc-anatomy - per-cycle heap accounting from JFR recordings.

Reads the JSON printed by ``jfr print --json recording.jfr`` and shows, for
every GC cycle:
- Heap occupancy before/after, split into old, tenured, young and survivors
- Collection type (G1 Normal / Prepare Mixed / Concurrent Start / Mixed)
- Collector name, cause and pause times
- Tenuring distribution per cycle
- Optional JSON export of the chart series
"""

from __future__ import annotations

import sys
from collections.abc import Collection
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from gc_anatomy import __version__
from gc_anatomy.candles import UNASSIGNED_GC_ID, Candle
from gc_anatomy.events import CollectionType
from gc_anatomy.logging_config import setup_logging
from gc_anatomy.recording import (
    Graphs,
    RecordingAnalysis,
    RecordingFormatError,
    load_recording,
    parse_collection_type_filter,
)
from gc_anatomy.series import SeriesLayout
from gc_anatomy.tenuring import TenuringSeries

# ============================================================
# RICH OUTPUT RENDERING
# ============================================================

GC_ANATOMY_THEME = Theme(
    {
        "critical": "bold red",
        "warning": "bold yellow",
        "success": "bold green",
        "info": "cyan",
        "metric": "white",
        "label": "dim white",
        "header": "bold magenta",
    }
)

console = Console(theme=GC_ANATOMY_THEME)


def format_bytes(size_bytes: int) -> str:
    """Format bytes to human-readable size."""
    if size_bytes < 0:
        return f"-{format_bytes(-size_bytes)}"
    if size_bytes >= 1024**3:
        return f"{size_bytes / (1024**3):.1f}G"
    elif size_bytes >= 1024**2:
        return f"{size_bytes / (1024**2):.1f}M"
    elif size_bytes >= 1024:
        return f"{size_bytes / 1024:.1f}K"
    return f"{size_bytes}B"


def format_pause(candle: Candle) -> str:
    if candle.longest_pause is None:
        return "-"
    return f"{candle.longest_pause.total_seconds() * 1000:.2f}ms"


def build_cycle_rows(
    candles: dict[int, Candle], exclude: Collection[CollectionType] = frozenset()
) -> list[dict[str, str]]:
    """Build one row per GC cycle, skipping the unassigned bucket and excluded types."""
    rows: list[dict[str, str]] = []
    for gc_id, candle in candles.items():
        if gc_id == UNASSIGNED_GC_ID or candle.collection_type in exclude:
            continue
        rows.append(
            {
                "gc_id": str(gc_id),
                "title": candle.title() or "-",
                "collector": candle.gc_name or "-",
                "cause": candle.cause or "-",
                "heap": f"{format_bytes(candle.before_gc)} -> {format_bytes(candle.after_gc)}",
                "young": (
                    f"{format_bytes(candle.young_before)} -> {format_bytes(candle.young_after)}"
                ),
                "survivors": (
                    f"{format_bytes(candle.survivors_before)} -> "
                    f"{format_bytes(candle.survivors_after)}"
                ),
                "tenured": format_bytes(candle.tenured),
                "threshold": str(candle.tenuring_threshold),
                "pause": format_pause(candle),
            }
        )
    return rows


def build_tenuring_rows(ages: list[TenuringSeries]) -> list[tuple[str, str, str, str]]:
    """Build tenuring summary rows: GC id, ages reported, oldest age, total bytes."""
    return [
        (
            str(series.gc_id),
            str(len(series.ages)),
            str(max(series.ages, default=0)),
            format_bytes(sum(series.sizes)),
        )
        for series in ages
    ]


def create_cycles_table(
    candles: dict[int, Candle], exclude: Collection[CollectionType] = frozenset()
) -> Table:
    table = Table(title="GC Cycles", header_style="header")
    table.add_column("GC", style="label", justify="right")
    table.add_column("Type")
    table.add_column("Collector")
    table.add_column("Cause")
    table.add_column("Heap", style="metric")
    table.add_column("Young", style="metric")
    table.add_column("Survivors", style="metric")
    table.add_column("Tenured", style="metric")
    table.add_column("Threshold", justify="right")
    table.add_column("Longest pause", justify="right")
    for row in build_cycle_rows(candles, exclude):
        table.add_row(*row.values())
    return table


def create_tenuring_table(ages: list[TenuringSeries]) -> Table:
    table = Table(title="Tenuring Distribution", header_style="header")
    table.add_column("GC", style="label", justify="right")
    table.add_column("Ages", justify="right")
    table.add_column("Oldest age", justify="right")
    table.add_column("Total size", style="metric", justify="right")
    for row in build_tenuring_rows(ages):
        table.add_row(*row)
    return table


def render_warning_banner(warnings: list[str]) -> Panel:
    """Render accounting inconsistencies in a prominent banner."""
    if not warnings:
        return Panel(
            Text(" Heap accounting is consistent", style="success"),
            title="Status",
            border_style="green",
        )

    warning_text = Text()
    for index, warning in enumerate(warnings):
        line_ending = "\n" if index < len(warnings) - 1 else ""
        warning_text.append(" ", style="warning")
        warning_text.append(warning + line_ending, style="warning")

    return Panel(
        warning_text,
        title=f"[warning]Warnings ({len(warnings)})[/warning]",
        border_style="yellow",
        expand=True,
    )


def render_rich_output(
    analysis: RecordingAnalysis, graphs: Graphs, exclude: Collection[CollectionType] = frozenset()
) -> None:
    """Render cycles, tenuring distribution and warnings to the console."""
    console.print()
    console.print(create_cycles_table(analysis.candles, exclude))
    console.print()
    console.print(create_tenuring_table(graphs.ages))
    console.print()
    console.print(render_warning_banner(graphs.heap.warnings))


def export_graphs(graphs: Graphs, output: Path) -> None:
    """Write the chart series as JSON."""
    output.write_text(graphs.model_dump_json(indent=2), encoding="utf-8")


# ============================================================
# CLI APPLICATION
# ============================================================

app = typer.Typer(
    name="gc-anatomy",
    help="Per-cycle generational heap accounting from JFR recordings",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.command()
def analyze(
    recording_file: Annotated[
        Path,
        typer.Argument(
            help="JSON produced by `jfr print --json recording.jfr`",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude",
            "-x",
            help="Collection type to leave out of the cycles table and heap series (repeatable), "
            "e.g. 'Normal' or 'Concurrent Start'",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Export the chart series to a JSON file (e.g., graphs.json)",
            file_okay=True,
            dir_okay=False,
        ),
    ] = None,
    stride: Annotated[
        float,
        typer.Option(
            "--stride",
            help="X-axis distance between consecutive cycles, must be positive (default: 2.3)",
        ),
    ] = 2.3,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only log errors"),
    ] = False,
) -> None:
    """Analyze a JFR recording printed as JSON.

    Exit codes: 0 = analysed, 1 = unreadable recording or invalid option.
    """
    setup_logging(verbose=verbose, quiet=quiet)

    try:
        layout = SeriesLayout(stride=stride)
    except ValidationError as e:
        message = escape(e.errors()[0]["msg"])
        console.print(f"[critical]ERROR: invalid --stride {stride}: {message}[/critical]")
        sys.exit(1)

    try:
        with Progress(
            SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console
        ) as progress:
            load_task = progress.add_task("[cyan]Decoding recording...", total=None)
            recording = load_recording(recording_file)
            progress.update(load_task, completed=100)

        if verbose:
            console.print(f"[info]Decoded {len(recording.events)} events[/info]")

        excluded = parse_collection_type_filter(exclude or [])
        analysis = RecordingAnalysis(recording, layout)
        graphs = analysis.graphs(excluded)

        render_rich_output(analysis, graphs, excluded)

        if output:
            export_graphs(graphs, output)
            console.print(f"\n[success] Series exported to {output}[/success]")

    except RecordingFormatError as e:
        console.print(f"[critical]ERROR: invalid recording: {escape(str(e))}[/critical]")
        sys.exit(1)
    except OSError as e:
        console.print(f"[critical]ERROR: {escape(str(e))}[/critical]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@app.command()
def version() -> None:
    """Display version."""
    console.print(f"gc-anatomy {__version__}")


if __name__ == "__main__":
    app()
