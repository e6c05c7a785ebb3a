"""End-to-end CLI tests for daytrace commands.

Tests invoke the Typer CLI via CliRunner in temp directories and verify
exit codes, written artifacts, and error handling for bad inputs.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from daytrace.cli.main import app

runner = CliRunner()

NOW = "2025-06-16T00:00:00+00:00"


@pytest.fixture()
def built_timeline(tmp_path: Path) -> Path:
    result = runner.invoke(app, [
        "timeline", "build", "--synthetic",
        "--date", "2025-06-15", "--now", NOW,
        "--out-dir", str(tmp_path),
    ])
    assert result.exit_code == 0, result.output
    return tmp_path / "timeline_2025-06-15.json"


# ---------------------------------------------------------------------------
# daytrace timeline build
# ---------------------------------------------------------------------------


class TestTimelineBuild:
    def test_synthetic(self, built_timeline: Path) -> None:
        assert built_timeline.exists()
        data = json.loads(built_timeline.read_text())
        assert data["day"] == "2025-06-15"
        assert data["segments"]
        assert data["is_today"] is False

    def test_fingerprint_is_stable(self, tmp_path: Path) -> None:
        args = ["timeline", "build", "--synthetic", "--date", "2025-06-15", "--now", NOW]
        first = runner.invoke(app, [*args, "--out-dir", str(tmp_path / "a")])
        second = runner.invoke(app, [*args, "--out-dir", str(tmp_path / "b")])
        fp = [line for line in first.output.splitlines() if line.startswith("Fingerprint:")]
        assert fp and fp[0] in second.output
        assert (tmp_path / "a" / "timeline_2025-06-15.json").read_text() == (
            tmp_path / "b" / "timeline_2025-06-15.json"
        ).read_text()

    def test_events_and_categories_files(self, tmp_path: Path) -> None:
        events = tmp_path / "events.json"
        events.write_text(json.dumps([
            {"_id": "e1", "timestamp": 1_749_978_000_000, "ownerName": "Code", "type": "window", "categoryId": "work"},
            {"_id": "e2", "timestamp": 1_749_978_120_000, "ownerName": "Slack", "type": "window"},
            {"_id": "bad", "timestamp": "noon", "ownerName": "Broken"},
        ]))
        categories = tmp_path / "categories.json"
        categories.write_text(json.dumps([
            {"_id": "work", "name": "Work", "color": "#2563EB", "isProductive": True},
        ]))
        out = tmp_path / "out"
        result = runner.invoke(app, [
            "timeline", "build",
            "--events", str(events), "--categories", str(categories),
            "--now", NOW, "--out-dir", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert "1 dropped events" in result.output
        data = json.loads((out / "timeline_2025-06-15.json").read_text())
        assert data["metrics"]["productive_ms"] == 120_000

    def test_aw_export(self, tmp_path: Path) -> None:
        export = tmp_path / "aw.json"
        export.write_text(json.dumps({"buckets": {"w": {
            "type": "currentwindow",
            "events": [{"id": 1, "timestamp": "2025-06-15T09:00:00Z", "duration": 5, "data": {"app": "Code", "title": "x"}}],
        }}}))
        result = runner.invoke(app, [
            "timeline", "build", "--aw-export", str(export), "--now", NOW, "--out-dir", str(tmp_path),
        ])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "timeline_2025-06-15.json").exists()

    def test_aw_export_with_malformed_events(self, tmp_path: Path) -> None:
        export = tmp_path / "aw.json"
        export.write_text(json.dumps({"buckets": {"w": {
            "type": "currentwindow",
            "events": [
                {"id": 1, "data": {"app": "Code"}},
                {"id": 2, "timestamp": "2025-06-15T09:00:00Z", "data": {"app": "Code"}},
            ],
        }}}))
        result = runner.invoke(app, [
            "timeline", "build", "--aw-export", str(export), "--now", NOW, "--out-dir", str(tmp_path),
        ])
        assert result.exit_code == 0, result.output
        assert "Loaded 1 events" in result.output

    def test_aw_export_not_an_object(self, tmp_path: Path) -> None:
        export = tmp_path / "aw.json"
        export.write_text("[1, 2]")
        result = runner.invoke(app, ["timeline", "build", "--aw-export", str(export)])
        assert result.exit_code == 1

    def test_requires_exactly_one_source(self, tmp_path: Path) -> None:
        assert runner.invoke(app, ["timeline", "build"]).exit_code == 1
        both = runner.invoke(app, [
            "timeline", "build", "--synthetic", "--events", str(tmp_path / "e.json"),
        ])
        assert both.exit_code == 1

    def test_missing_events_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["timeline", "build", "--events", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_unreadable_events_file(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        result = runner.invoke(app, ["timeline", "build", "--events", str(bad)])
        assert result.exit_code == 1

    def test_invalid_config(self, tmp_path: Path) -> None:
        config = tmp_path / "timeline.yaml"
        config.write_text("slot_width_minutes: 7\n")
        result = runner.invoke(app, [
            "timeline", "build", "--synthetic", "--config", str(config), "--out-dir", str(tmp_path),
        ])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# daytrace report summary
# ---------------------------------------------------------------------------


class TestReportSummary:
    def test_prints_totals(self, built_timeline: Path) -> None:
        result = runner.invoke(app, ["report", "summary", "--timeline-file", str(built_timeline)])
        assert result.exit_code == 0, result.output
        assert "Summary for 2025-06-15" in result.output
        assert "Development" in result.output
        assert "Top applications:" in result.output

    def test_writes_csv_and_parquet(self, built_timeline: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, [
            "report", "summary", "--timeline-file", str(built_timeline),
            "--csv-dir", str(tmp_path / "csv"),
            "--parquet", str(tmp_path / "categories.parquet"),
        ])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "csv" / "segments_2025-06-15.csv").exists()
        assert (tmp_path / "csv" / "categories_2025-06-15.csv").exists()
        assert (tmp_path / "categories.parquet").exists()

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["report", "summary", "--timeline-file", str(tmp_path / "nope.json")])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# daytrace config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_init_then_validate(self, tmp_path: Path) -> None:
        path = tmp_path / "configs" / "timeline.yaml"
        init = runner.invoke(app, ["config", "init", "--out", str(path)])
        assert init.exit_code == 0, init.output
        assert path.exists()

        validate = runner.invoke(app, ["config", "validate", "--config", str(path)])
        assert validate.exit_code == 0
        assert "max_gap_ms=300000" in validate.output

    def test_init_refuses_overwrite(self, tmp_path: Path) -> None:
        path = tmp_path / "timeline.yaml"
        path.write_text("max_gap_ms: 1000\n")
        assert runner.invoke(app, ["config", "init", "--out", str(path)]).exit_code == 1
        assert runner.invoke(app, ["config", "init", "--out", str(path), "--force"]).exit_code == 0
        assert "300000" in path.read_text()

    def test_show_defaults(self) -> None:
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "max_gap_ms: 300000" in result.output
        assert "slot_width_minutes: 10" in result.output

    def test_validate_rejects_bad_values(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("max_gap_ms: -5\n")
        result = runner.invoke(app, ["config", "validate", "--config", str(path)])
        assert result.exit_code == 1

    def test_validate_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "validate", "--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1

    def test_verbose_flag(self) -> None:
        assert runner.invoke(app, ["--verbose", "config", "show"]).exit_code == 0
