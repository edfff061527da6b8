# ABOUTME: Verifies the video report CLI exposes its commands and runs end to end.
# ABOUTME: Drives the Typer app with small CSV inputs written to a temp directory.

import json

import pandas as pd
from typer.testing import CliRunner

from scripts import video_report

from conftest import make_events

runner = CliRunner()


def test_video_report_registers_commands():
    command_names = {cmd.name or cmd.callback.__name__ for cmd in video_report.app.registered_commands}
    assert {"aggregate", "summary", "markers", "export"} <= command_names


def test_aggregate_writes_segment_table(tmp_path, scenario_events):
    events_path = tmp_path / "events.csv"
    scenario_events.to_csv(events_path, index=False)
    output = tmp_path / "segments.csv"

    result = runner.invoke(
        video_report.app,
        ["aggregate", "--events-path", str(events_path), "--output", str(output), "--top-selection", "1"],
    )

    assert result.exit_code == 0, result.output
    segments = pd.read_csv(output)
    assert segments["segment"].tolist() == [0, 1, 2]
    assert segments["watch_rate"].tolist() == [1.0, 0.0, 0.4]


def test_aggregate_reports_integrity_errors(tmp_path, scenario_events):
    events = scenario_events.copy()
    events.loc[0, "video_name"] = "Renamed"
    events_path = tmp_path / "events.csv"
    events.to_csv(events_path, index=False)

    result = runner.invoke(
        video_report.app,
        ["aggregate", "--events-path", str(events_path), "--output", str(tmp_path / "out.csv")],
    )

    assert result.exit_code == 1
    assert not (tmp_path / "out.csv").exists()


def test_markers_single_chapter_not_applicable(tmp_path, scenario_events):
    events_path = tmp_path / "events.csv"
    scenario_events.to_csv(events_path, index=False)

    result = runner.invoke(video_report.app, ["markers", "--events-path", str(events_path)])

    assert result.exit_code == 0, result.output
    assert "not applicable" in result.output


def test_export_filters_module_and_writes_payloads(tmp_path):
    events = pd.concat(
        [
            make_events("v1", {"a": {0: 1}, "b": {1: 1}}, last_segment=2, course_order=1, index_chapter=1),
            make_events("v2", {"a": {0: 1, 2: 1}}, last_segment=3, course_order=2, index_chapter=2),
        ],
        ignore_index=True,
    )
    events_path = tmp_path / "events.csv"
    events.to_csv(events_path, index=False)
    structure_path = tmp_path / "structure.csv"
    pd.DataFrame({"index_chapter": [1, 2], "chapter": ["Basics", "Loops"]}).to_csv(structure_path, index=False)
    output_dir = tmp_path / "heatmaps"

    result = runner.invoke(
        video_report.app,
        [
            "export",
            "--events-path",
            str(events_path),
            "--output-dir",
            str(output_dir),
            "--module",
            "Loops",
            "--course-structure",
            str(structure_path),
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads((output_dir / "segment_comparison.json").read_text(encoding="utf-8"))
    assert {cell["video_id"] for cell in payload["data"]} == {"v2"}
    assert payload["metadata"]["ch_markers"] == []


def test_summary_prints_table_and_saves(tmp_path, scenario_events):
    events_path = tmp_path / "events.parquet"
    scenario_events.to_parquet(events_path, index=False)
    output = tmp_path / "summary.csv"

    result = runner.invoke(
        video_report.app,
        ["summary", "--events-path", str(events_path), "--output", str(output)],
    )

    assert result.exit_code == 0, result.output
    assert "Intro" in result.output
    summary = pd.read_csv(output)
    assert summary["students"].tolist() == [10]
