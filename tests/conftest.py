"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pytest

from helpers import AUDIO_STRUCT, wav_bytes, write_arrow_file, write_parquet


@pytest.fixture
def clips_table() -> pa.Table:
    """Five named clips in a flat id/audio layout."""
    return pa.table(
        {
            "id": pa.array([f"clip_{i}.wav" for i in range(5)], pa.string()),
            "audio": pa.array([wav_bytes(i) for i in range(5)], pa.binary()),
            "duration": pa.array([1.5, 2.0, 0.5, 3.25, 1.0], pa.float64()),
        }
    )


@pytest.fixture
def scenario_table() -> pa.Table:
    """Three rows: one complete, one without identifier, one without payload."""
    return pa.table(
        {
            "id": pa.array(["first.wav", None, "third.wav"], pa.string()),
            "audio": pa.array([wav_bytes(1), wav_bytes(2), None], pa.binary()),
        }
    )


@pytest.fixture
def hf_table() -> pa.Table:
    """Hugging Face audio layout: audio struct with bytes and path, plus text."""
    audio = pa.array(
        [
            {"bytes": wav_bytes(10), "path": "utt_a.wav"},
            {"bytes": wav_bytes(11), "path": "utt_b.wav"},
            None,
            {"bytes": wav_bytes(13), "path": None},
        ],
        AUDIO_STRUCT,
    )
    return pa.table(
        {
            "audio": audio,
            "sentence": pa.array(["one", "two", "three", "four"], pa.string()),
        }
    )


@pytest.fixture
def clips_parquet(tmp_path: Path, clips_table: pa.Table) -> Path:
    return write_parquet(tmp_path / "clips.parquet", clips_table, row_group_size=2)


@pytest.fixture
def clips_arrow(tmp_path: Path, clips_table: pa.Table) -> Path:
    return write_arrow_file(tmp_path / "clips.arrow", clips_table, chunk_size=3)


@pytest.fixture
def scenario_parquet(tmp_path: Path, scenario_table: pa.Table) -> Path:
    return write_parquet(tmp_path / "scenario.parquet", scenario_table)


@pytest.fixture
def hf_parquet(tmp_path: Path, hf_table: pa.Table) -> Path:
    return write_parquet(tmp_path / "hf.parquet", hf_table)
