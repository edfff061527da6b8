# ABOUTME: Provides a CLI that runs the video segment pipeline over a filtered events table.
# ABOUTME: Prints watch-rate summaries and chapter markers, and writes heatmap payloads.

from collections import Counter
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from src.common.schemas import HIGH_WATCH_RATE, LOW_WATCH_RATE, NORMAL_WATCH_RATE
from src.video_analytics.chapters import ALL_MODULES, filter_by_module, get_ch_markers
from src.video_analytics.config import DEFAULT_CONFIG, PipelineConfig, load_pipeline_config
from src.video_analytics.export import export_heatmaps, write_heatmaps
from src.video_analytics.pipeline import get_aggregated_df
from src.video_analytics.summary import (
    SUMMARY_DISPLAY_NAMES,
    get_avg_time_spent,
    get_summary_table,
    get_video_lengths,
)
from src.video_analytics.timeline import get_video_time_table

console = Console()
app = typer.Typer(help="Aggregate video watch events into segment heatmaps and summaries.")


def _load_table(path: Path, option: str) -> pd.DataFrame:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}", param_hint=option)
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    raise typer.BadParameter(f"Expected a .parquet or .csv file, got {path.name}", param_hint=option)


def _write_table(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".csv":
        df.to_csv(path, index=False)
    else:
        df.to_parquet(path, index=False)


def _resolve_config(config: Optional[Path]) -> PipelineConfig:
    if config is None:
        return DEFAULT_CONFIG
    try:
        return load_pipeline_config(config)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _load_events(events_path: Path, module: str, course_structure_path: Optional[Path]) -> pd.DataFrame:
    events = _load_table(events_path, "--events-path")
    if module == ALL_MODULES:
        return events
    if course_structure_path is None:
        raise typer.BadParameter("A course structure table is needed to filter by module.", param_hint="--course-structure")
    course_structure = _load_table(course_structure_path, "--course-structure")
    return filter_by_module(events, module, course_structure)


def _fail(exc: Exception) -> None:
    console.print(f"[red]{exc}[/red]")
    raise typer.Exit(code=1)


@app.command()
def aggregate(
    events_path: Path = typer.Option(..., "--events-path", help="Demographic-filtered watch events (.parquet or .csv)."),
    output: Path = typer.Option(Path("reports/video_segments.parquet"), "--output", help="Where to write the segment table."),
    config: Optional[Path] = typer.Option(None, "--config", help="Pipeline config YAML."),
    top_selection: Optional[int] = typer.Option(None, "--top-selection", help="Segments to highlight at each extreme."),
    module: str = typer.Option(ALL_MODULES, "--module", help="Chapter name to restrict to, or 'All'."),
    course_structure: Optional[Path] = typer.Option(None, "--course-structure", help="Chapter table (index_chapter, chapter)."),
) -> None:
    """
    Build the aggregated segment table and report how many segments were highlighted.
    """
    pipeline_config = _resolve_config(config)
    try:
        events = _load_events(events_path, module, course_structure)
        typer.echo(f"[video] Aggregating {len(events)} events from {events_path}")
        segments = get_aggregated_df(events, top_selection, pipeline_config)
    except ValueError as exc:
        _fail(exc)

    _write_table(segments, output)
    labels = Counter(segments["high_low"])
    typer.echo(
        f"[video] Wrote {len(segments)} segments for {segments['video_id'].nunique()} videos to {output}"
    )
    console.print(
        f"[yellow]{HIGH_WATCH_RATE}: {labels.get(HIGH_WATCH_RATE, 0)}[/yellow]  "
        f"[cyan]{LOW_WATCH_RATE}: {labels.get(LOW_WATCH_RATE, 0)}[/cyan]  "
        f"{NORMAL_WATCH_RATE}: {labels.get(NORMAL_WATCH_RATE, 0)}"
    )


@app.command()
def summary(
    events_path: Path = typer.Option(..., "--events-path", help="Demographic-filtered watch events (.parquet or .csv)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Pipeline config YAML."),
    module: str = typer.Option(ALL_MODULES, "--module", help="Chapter name to restrict to, or 'All'."),
    course_structure: Optional[Path] = typer.Option(None, "--course-structure", help="Chapter table (index_chapter, chapter)."),
    output: Optional[Path] = typer.Option(None, "--output", help="Optional path to save the summary table."),
) -> None:
    """
    Show per-video watch rate, viewers, length, and dwell time.
    """
    pipeline_config = _resolve_config(config)
    try:
        events = _load_events(events_path, module, course_structure)
        segments = get_aggregated_df(events, config=pipeline_config)
        table = get_summary_table(
            segments,
            get_video_lengths(events, pipeline_config),
            get_avg_time_spent(events, pipeline_config),
            pipeline_config,
        )
    except ValueError as exc:
        _fail(exc)

    console.rule(f"[bold blue]Video Summary ({module})[/bold blue]")
    rich_table = Table(show_header=True, header_style="bold magenta")
    for column in SUMMARY_DISPLAY_NAMES.values():
        rich_table.add_column(column)
    for _, row in table.iterrows():
        rich_table.add_row(*("" if pd.isna(row[col]) else str(row[col]) for col in SUMMARY_DISPLAY_NAMES))
    console.print(rich_table)

    if output is not None:
        _write_table(table, output)
        typer.echo(f"[video] Summary saved to {output}")


@app.command()
def markers(
    events_path: Path = typer.Option(..., "--events-path", help="Watch events with index_chapter and course_order."),
) -> None:
    """
    Print where chapter divider lines fall on the course-ordered video axis.
    """
    events = _load_table(events_path, "--events-path")
    try:
        ch_markers = get_ch_markers(events)
    except ValueError as exc:
        _fail(exc)

    if ch_markers is None:
        console.print("[yellow]Single chapter: chapter markers not applicable[/yellow]")
        return
    console.print(f"[bold]Chapter markers:[/] {', '.join(f'{m:g}' for m in ch_markers)}")


@app.command()
def export(
    events_path: Path = typer.Option(..., "--events-path", help="Demographic-filtered watch events (.parquet or .csv)."),
    output_dir: Path = typer.Option(Path("reports/heatmaps"), "--output-dir", help="Directory for heatmap JSON files."),
    config: Optional[Path] = typer.Option(None, "--config", help="Pipeline config YAML."),
    top_selection: Optional[int] = typer.Option(None, "--top-selection", help="Segments to highlight at each extreme."),
    module: str = typer.Option(ALL_MODULES, "--module", help="Chapter name to restrict to, or 'All'."),
    course_structure: Optional[Path] = typer.Option(None, "--course-structure", help="Chapter table (index_chapter, chapter)."),
    video_axis: Optional[Path] = typer.Option(None, "--video-axis", help="Video axis table (video_name, index_video) for the timeline."),
) -> None:
    """
    Write heatmap payloads for every segment view, plus the viewers-over-time view when possible.
    """
    pipeline_config = _resolve_config(config)
    try:
        events = _load_events(events_path, module, course_structure)
        segments = get_aggregated_df(events, top_selection, pipeline_config)
        ch_markers = get_ch_markers(events) if "index_chapter" in events.columns else None
        video_time = None
        if video_axis is not None:
            video_time = get_video_time_table(events, _load_table(video_axis, "--video-axis"))
        payloads = export_heatmaps(segments, video_time, module, ch_markers)
    except ValueError as exc:
        _fail(exc)

    written = write_heatmaps(payloads, output_dir)
    console.print(f"[bold green]Exported {len(written)} heatmaps to {output_dir}[/bold green]")


if __name__ == "__main__":
    app()
