"""Tests for extract_audio.cli module."""

from __future__ import annotations

import json
from pathlib import Path

import pyarrow as pa
from typer.testing import CliRunner

from extract_audio import __version__
from extract_audio.cli import app
from helpers import output_files, wav_bytes, write_parquet

runner = CliRunner()


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestExtractCommand:
    def test_extracts_files(self, scenario_parquet: Path, tmp_path: Path) -> None:
        out = tmp_path / "clips"
        result = runner.invoke(app, ["extract", "-i", str(scenario_parquet), "-o", str(out)])

        assert result.exit_code == 0
        assert "Wrote 2 files" in result.stdout
        assert output_files(out) == {
            "first.wav": wav_bytes(1),
            "00000001.wav": wav_bytes(2),
        }

    def test_arrow_format(self, clips_arrow: Path, tmp_path: Path) -> None:
        out = tmp_path / "clips"
        result = runner.invoke(
            app, ["extract", "-i", str(clips_arrow), "-o", str(out), "--format", "arrow"]
        )

        assert result.exit_code == 0
        assert len(output_files(out)) == 5

    def test_limit(self, clips_parquet: Path, tmp_path: Path) -> None:
        out = tmp_path / "clips"
        result = runner.invoke(
            app, ["extract", "-i", str(clips_parquet), "-o", str(out), "-n", "2"]
        )

        assert result.exit_code == 0
        assert sorted(output_files(out)) == ["clip_0.wav", "clip_1.wav"]

    def test_summary_json(self, scenario_parquet: Path, tmp_path: Path) -> None:
        summary_path = tmp_path / "summary.json"
        result = runner.invoke(
            app,
            [
                "extract",
                "-i",
                str(scenario_parquet),
                "-o",
                str(tmp_path / "clips"),
                "--summary-json",
                str(summary_path),
            ],
        )

        assert result.exit_code == 0
        summary = json.loads(summary_path.read_text(encoding="utf-8"))
        assert summary["written"] == 2
        assert summary["skipped_null"] == 1
        assert summary["state"] == "finished"

    def test_missing_payload_column_aborts(self, tmp_path: Path) -> None:
        path = tmp_path / "no_audio.parquet"
        write_parquet(path, pa.table({"id": ["a"], "duration": [1.0]}))

        result = runner.invoke(app, ["extract", "-i", str(path), "-o", str(tmp_path / "clips")])

        assert result.exit_code == 1
        assert "aborted" in result.stdout
        assert not (tmp_path / "clips").exists()

    def test_missing_input(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["extract", "-i", str(tmp_path / "missing.parquet"), "-o", str(tmp_path)]
        )

        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_unknown_format(self, scenario_parquet: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["extract", "-i", str(scenario_parquet), "-o", str(tmp_path), "-f", "csv"]
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout

    def test_config_file_column_override(self, tmp_path: Path) -> None:
        path = tmp_path / "two.parquet"
        write_parquet(
            path,
            pa.table(
                {
                    "left": pa.array([b"l"], pa.binary()),
                    "right": pa.array([b"r"], pa.binary()),
                    "id": ["a"],
                }
            ),
        )
        config_path = tmp_path / "extract-audio.yaml"
        config_path.write_text("payload_column: right\n")
        out = tmp_path / "clips"

        result = runner.invoke(
            app, ["extract", "-i", str(path), "-o", str(out), "-c", str(config_path)]
        )

        assert result.exit_code == 0
        assert output_files(out) == {"a": b"r"}


class TestInspectCommand:
    def test_shows_selected_columns(self, hf_parquet: Path) -> None:
        result = runner.invoke(app, ["inspect", "-i", str(hf_parquet)])

        assert result.exit_code == 0
        assert "audio.bytes" in result.stdout
        assert "audio.path" in result.stdout

    def test_unresolvable_schema(self, tmp_path: Path) -> None:
        path = tmp_path / "numbers.parquet"
        write_parquet(path, pa.table({"n": [1, 2]}))

        result = runner.invoke(app, ["inspect", "-i", str(path)])

        assert result.exit_code == 1

    def test_unreadable_input(self, clips_arrow: Path) -> None:
        result = runner.invoke(app, ["inspect", "-i", str(clips_arrow), "-f", "parquet"])
        assert result.exit_code == 1


class TestInitConfigCommand:
    def test_writes_default_file(self, tmp_path: Path) -> None:
        path = tmp_path / "extract-audio.yaml"
        result = runner.invoke(app, ["init-config", str(path)])

        assert result.exit_code == 0
        assert "batch_size" in path.read_text()

    def test_existing_file_needs_force(self, tmp_path: Path) -> None:
        path = tmp_path / "extract-audio.yaml"
        path.write_text("batch_size: 8\n")

        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 1
        assert "exists" in result.stdout
        assert path.read_text() == "batch_size: 8\n"

        result = runner.invoke(app, ["init-config", str(path), "--force"])
        assert result.exit_code == 0
        assert "batch_size: 1024" in path.read_text()
