"""Tests for extract_audio.writer module."""

from __future__ import annotations

import errno
import shutil
from pathlib import Path

import pytest

from extract_audio import writer as writer_module
from extract_audio.exceptions import OutputDirectoryError, WriteError
from extract_audio.rows import ExtractionUnit
from extract_audio.writer import OutputWriter
from helpers import output_files, wav_bytes


def unit(identifier: str, row_index: int, payload: bytes | None = None) -> ExtractionUnit:
    return ExtractionUnit(identifier, payload if payload is not None else wav_bytes(row_index), row_index)


class TestPrepare:
    def test_creates_nested_directory(self, tmp_path: Path) -> None:
        out = tmp_path / "a" / "b" / "clips"
        OutputWriter(out).prepare()
        assert out.is_dir()

    def test_existing_file_is_fatal(self, tmp_path: Path) -> None:
        out = tmp_path / "clips"
        out.write_text("not a directory")
        with pytest.raises(OutputDirectoryError):
            OutputWriter(out).prepare()


class TestWrite:
    def test_writes_payload_under_identifier(self, tmp_path: Path) -> None:
        w = OutputWriter(tmp_path)
        path = w.write(unit("clip.wav", 0))
        assert path == tmp_path / "clip.wav"
        assert path.read_bytes() == wav_bytes(0)

    def test_collision_appends_row_index(self, tmp_path: Path) -> None:
        w = OutputWriter(tmp_path)
        first = w.write(unit("clip.wav", 0))
        second = w.write(unit("clip.wav", 7))
        assert first.name == "clip.wav"
        assert second.name == "clip_7.wav"
        assert output_files(tmp_path) == {"clip.wav": wav_bytes(0), "clip_7.wav": wav_bytes(7)}

    def test_file_from_previous_run_is_replaced(self, tmp_path: Path) -> None:
        (tmp_path / "clip.wav").write_bytes(b"stale")
        path = OutputWriter(tmp_path).write(unit("clip.wav", 0))
        assert path.name == "clip.wav"
        assert path.read_bytes() == wav_bytes(0)

    def test_extension_inferred(self, tmp_path: Path) -> None:
        path = OutputWriter(tmp_path).write(unit("utt_001", 0))
        assert path.name == "utt_001.wav"

    def test_extension_inference_disabled(self, tmp_path: Path) -> None:
        path = OutputWriter(tmp_path, infer_extension=False).write(unit("utt_001", 0))
        assert path.name == "utt_001"

    def test_near_limit_multibyte_identifier(self, tmp_path: Path) -> None:
        identifier = "🎵" * 60 + ".wav"
        path = OutputWriter(tmp_path).write(unit(identifier, 0))
        assert path.name == identifier
        assert path.read_bytes() == wav_bytes(0)

    def test_unsafe_identifier_stays_inside_directory(self, tmp_path: Path) -> None:
        out = tmp_path / "clips"
        w = OutputWriter(out)
        w.prepare()
        path = w.write(unit("../../escape.wav", 0))
        assert path.parent == out
        assert not (tmp_path / "escape.wav").exists()


class TestWriteFailures:
    def test_single_failure_is_write_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def fail(path: Path, data: bytes) -> int:
            raise OSError(errno.EIO, "Input/output error")

        monkeypatch.setattr(writer_module, "write_bytes", fail)
        w = OutputWriter(tmp_path)

        with pytest.raises(WriteError) as exc_info:
            w.write(unit("clip.wav", 4))

        assert exc_info.value.row_index == 4
        assert "clip.wav" not in w.seen

    def test_disk_full_is_fatal(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(path: Path, data: bytes) -> int:
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr(writer_module, "write_bytes", fail)

        with pytest.raises(OutputDirectoryError):
            OutputWriter(tmp_path).write(unit("clip.wav", 0))

    def test_removed_directory_is_fatal(self, tmp_path: Path) -> None:
        out = tmp_path / "clips"
        w = OutputWriter(out)
        w.prepare()
        shutil.rmtree(out)

        with pytest.raises(OutputDirectoryError):
            w.write(unit("clip.wav", 0))
