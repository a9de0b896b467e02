"""Helpers for building columnar test inputs."""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pyarrow.ipc
import pyarrow.parquet as pq

AUDIO_STRUCT = pa.struct([("bytes", pa.binary()), ("path", pa.string())])


def wav_bytes(seed: int = 0, size: int = 32) -> bytes:
    """Minimal RIFF/WAVE header followed by distinguishable sample bytes."""
    body = bytes((seed + i) % 256 for i in range(size))
    return b"RIFF" + (36 + size).to_bytes(4, "little") + b"WAVEfmt " + body


def write_parquet(path: Path, table: pa.Table, row_group_size: int | None = None) -> Path:
    pq.write_table(table, path, row_group_size=row_group_size)
    return path


def write_arrow_file(path: Path, table: pa.Table, chunk_size: int | None = None) -> Path:
    with pa.OSFile(str(path), "wb") as sink:
        with pa.ipc.new_file(sink, table.schema) as writer:
            for batch in table.to_batches(max_chunksize=chunk_size):
                writer.write_batch(batch)
    return path


def write_arrow_stream(path: Path, table: pa.Table, chunk_size: int | None = None) -> Path:
    with pa.OSFile(str(path), "wb") as sink:
        with pa.ipc.new_stream(sink, table.schema) as writer:
            for batch in table.to_batches(max_chunksize=chunk_size):
                writer.write_batch(batch)
    return path


def truncate(path: Path, n_bytes: int) -> Path:
    data = path.read_bytes()
    path.write_bytes(data[: len(data) - n_bytes])
    return path


def output_files(directory: Path) -> dict[str, bytes]:
    if not directory.exists():
        return {}
    return {p.name: p.read_bytes() for p in sorted(directory.iterdir()) if p.is_file()}
