"""
extract_audio.source - Open a columnar file and stream its record batches.

Arrow IPC (file or stream format) and Parquet are read through the same
BatchReader interface. Every batch handed downstream holds at most
``batch_size`` rows, whatever the native chunking of the file, so peak
memory does not grow with file size.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import BinaryIO

import pyarrow as pa
import pyarrow.ipc
import pyarrow.parquet as pq

from extract_audio.config import DEFAULT_BATCH_SIZE, ContainerFormat
from extract_audio.exceptions import CorruptSourceError, ReadError, SourceIOError
from extract_audio.logging import logger

ARROW_FILE_MAGIC = b"ARROW1"
STREAM_CONTINUATION = b"\xff\xff\xff\xff"
STREAM_END = STREAM_CONTINUATION + b"\x00\x00\x00\x00"
# Streams written before the continuation marker end on a bare zero length.
LEGACY_STREAM_END = b"\x00\x00\x00\x00"


def translate_error(path: Path, exc: Exception) -> ReadError:
    """Map an exception raised while decoding a container to a ReadError.

    OS errors carrying an errno are filesystem failures; everything else
    pyarrow raises (invalid data, bad thrift footer, short reads) means the
    container is malformed or truncated.
    """
    if isinstance(exc, OSError) and not isinstance(exc, pa.ArrowException) and exc.errno:
        return SourceIOError(str(path), exc.strerror or str(exc))
    return CorruptSourceError(str(path), str(exc) or type(exc).__name__)


def rechunk(batch: pa.RecordBatch, max_rows: int) -> Iterator[pa.RecordBatch]:
    """Split a record batch into zero-copy slices of at most ``max_rows`` rows."""
    for start in range(0, batch.num_rows, max_rows):
        yield batch.slice(start, max_rows)


class BatchReader(ABC):
    """Lazy, single-pass record batch reader over one open file."""

    container_format: ContainerFormat

    def __init__(self, path: Path, handle: BinaryIO, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.path = path
        self.batch_size = batch_size
        self._handle = handle
        self._consumed = False
        try:
            self.schema: pa.Schema = self._open()
        except (pa.ArrowException, OSError) as e:
            raise translate_error(path, e) from e

    @abstractmethod
    def _open(self) -> pa.Schema:
        """Parse the container header/footer and return its schema."""

    @abstractmethod
    def _native_batches(self, columns: Sequence[int] | None) -> Iterator[pa.RecordBatch]:
        """Yield batches in the container's own chunking, restricted to ``columns``."""

    def iter_batches(self, columns: Sequence[int] | None = None) -> Iterator[pa.RecordBatch]:
        """Yield bounded record batches in file order.

        Args:
            columns: Top-level column indices to keep, in output order.
                All columns are kept when None.

        Raises:
            CorruptSourceError: Malformed or truncated container
            SourceIOError: Filesystem failure mid-read
        """
        if self._consumed:
            raise RuntimeError(f"Batches of {self.path} have already been read")
        self._consumed = True

        batches = self._native_batches(columns)
        while True:
            try:
                batch = next(batches)
            except StopIteration:
                return
            except (pa.ArrowException, OSError) as e:
                raise translate_error(self.path, e) from e
            yield from rechunk(batch, self.batch_size)

    def close(self) -> None:
        self._handle.close()


class ArrowBatchReader(BatchReader):
    """Arrow IPC reader; the file format is detected by its magic bytes."""

    container_format = ContainerFormat.ARROW

    def _open(self) -> pa.Schema:
        magic = self._handle.read(len(ARROW_FILE_MAGIC))
        self._handle.seek(0)
        if magic == ARROW_FILE_MAGIC:
            self._reader = pa.ipc.open_file(self._handle)
            self._random_access = True
        else:
            self._reader = pa.ipc.open_stream(self._handle)
            self._random_access = False
            self._end_marker = (
                STREAM_END if magic[:4] == STREAM_CONTINUATION else LEGACY_STREAM_END
            )
        logger.debug(
            "Opened Arrow IPC %s format: %s",
            "file" if self._random_access else "stream",
            self.path,
        )
        return self._reader.schema

    def _native_batches(self, columns: Sequence[int] | None) -> Iterator[pa.RecordBatch]:
        if self._random_access:
            batches = (
                self._reader.get_batch(i) for i in range(self._reader.num_record_batches)
            )
        else:
            batches = iter(self._reader)
        for batch in batches:
            yield batch if columns is None else batch.select(list(columns))
        if not self._random_access:
            self._check_stream_end()

    def _check_stream_end(self) -> None:
        """Fail unless the stream stopped on its end-of-stream marker.

        pyarrow treats a clean EOF between messages as the end of the stream,
        so a stream cut off after a whole batch would otherwise read as complete.
        """
        marker = self._end_marker
        size = os.fstat(self._handle.fileno()).st_size
        self._handle.seek(max(size - len(marker), 0))
        if self._handle.read(len(marker)) != marker:
            raise CorruptSourceError(str(self.path), "stream ends without end-of-stream marker")


class ParquetBatchReader(BatchReader):
    """Parquet reader; row groups are decoded incrementally in ``batch_size`` chunks."""

    container_format = ContainerFormat.PARQUET

    def _open(self) -> pa.Schema:
        self._file = pq.ParquetFile(self._handle)
        metadata = self._file.metadata
        logger.debug(
            "Opened Parquet file: %s (%d rows, %d row groups)",
            self.path,
            metadata.num_rows,
            metadata.num_row_groups,
        )
        return self._file.schema_arrow

    def _native_batches(self, columns: Sequence[int] | None) -> Iterator[pa.RecordBatch]:
        if columns is None:
            yield from self._file.iter_batches(batch_size=self.batch_size)
            return

        names = [self.schema.names[i] for i in columns]
        if len(set(self.schema.names)) != len(self.schema.names):
            # Name-based projection is unreliable with duplicate column names.
            for batch in self._file.iter_batches(batch_size=self.batch_size):
                yield batch.select(list(columns))
            return

        for batch in self._file.iter_batches(batch_size=self.batch_size, columns=names):
            yield batch.select(names)


READERS: dict[ContainerFormat, type[BatchReader]] = {
    ContainerFormat.ARROW: ArrowBatchReader,
    ContainerFormat.PARQUET: ParquetBatchReader,
}


class ColumnarSource:
    """One input file opened in an explicitly selected container format."""

    def __init__(self, path: Path, container_format: ContainerFormat, reader: BatchReader):
        self.path = path
        self.container_format = container_format
        self.reader = reader

    @property
    def schema(self) -> pa.Schema:
        return self.reader.schema

    def batches(self, columns: Sequence[int] | None = None) -> Iterator[pa.RecordBatch]:
        return self.reader.iter_batches(columns)

    def close(self) -> None:
        self.reader.close()

    def __enter__(self) -> ColumnarSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_source(
    path: Path,
    container_format: ContainerFormat,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> ColumnarSource:
    """Open ``path`` as the given container format and read its schema.

    No auto-detection between Arrow and Parquet is attempted.

    Raises:
        SourceIOError: The file cannot be opened
        CorruptSourceError: The file is not a valid container of that format
    """
    if path.is_dir():
        raise SourceIOError(str(path), "is a directory")
    try:
        handle = open(path, "rb")
    except OSError as e:
        raise SourceIOError(str(path), e.strerror or str(e)) from e

    try:
        reader = READERS[container_format](path, handle, batch_size)
    except BaseException:
        handle.close()
        raise
    return ColumnarSource(path, container_format, reader)
