"""
extract_audio.pipeline - Run one extraction from input file to output directory.

State machine: INIT → SCHEMA_RESOLVED → STREAMING → FINISHED | ABORTED.
Schema, read and output-directory errors abort the run. Row errors and
single-file write errors are counted on the RunSummary and the run goes on.
Files already written when a run aborts are left in place.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from extract_audio.config import ExtractConfig
from extract_audio.exceptions import (
    DecodeFailureError,
    ExtractAudioError,
    NullPayloadError,
    OutputDirectoryError,
    ReadError,
    RowError,
    SchemaError,
    WriteError,
)
from extract_audio.logging import logger
from extract_audio.rows import extract_rows
from extract_audio.schema import ResolvedColumns, describe_schema, resolve_columns
from extract_audio.source import ColumnarSource, open_source
from extract_audio.writer import OutputWriter


class RunState(str, Enum):
    INIT = "init"
    SCHEMA_RESOLVED = "schema_resolved"
    STREAMING = "streaming"
    FINISHED = "finished"
    ABORTED = "aborted"


@dataclass
class RunSummary:
    """Counts and outcome of one run. Every row read lands in exactly one count."""

    input_path: str
    output_dir: str
    container_format: str
    state: RunState = RunState.INIT
    payload_column: str | None = None
    identifier_column: str | None = None
    batches: int = 0
    rows: int = 0
    written: int = 0
    skipped_null: int = 0
    decode_failed: int = 0
    write_failed: int = 0
    fallback_names: int = 0
    bytes_written: int = 0
    first_row_error: str | None = None
    fatal_error: ExtractAudioError | None = field(default=None, repr=False)

    @property
    def skipped(self) -> int:
        return self.skipped_null + self.decode_failed

    @property
    def ok(self) -> bool:
        return self.state is RunState.FINISHED

    def record_row_error(self, error: RowError) -> None:
        if isinstance(error, NullPayloadError):
            self.skipped_null += 1
        elif isinstance(error, DecodeFailureError):
            self.decode_failed += 1
        else:
            raise TypeError(f"Unhandled row error: {error!r}")
        if self.first_row_error is None:
            self.first_row_error = str(error)

    def record_write_error(self, error: WriteError) -> None:
        self.write_failed += 1
        if self.first_row_error is None:
            self.first_row_error = str(error)

    def abort(self, error: ExtractAudioError) -> RunSummary:
        self.state = RunState.ABORTED
        if self.fatal_error is None:
            self.fatal_error = error
        return self

    def as_dict(self) -> dict[str, Any]:
        return {
            "input": self.input_path,
            "output_dir": self.output_dir,
            "format": self.container_format,
            "state": self.state.value,
            "payload_column": self.payload_column,
            "identifier_column": self.identifier_column,
            "batches": self.batches,
            "rows": self.rows,
            "written": self.written,
            "skipped_null": self.skipped_null,
            "decode_failed": self.decode_failed,
            "write_failed": self.write_failed,
            "fallback_names": self.fallback_names,
            "bytes_written": self.bytes_written,
            "first_row_error": self.first_row_error,
            "fatal_error": str(self.fatal_error) if self.fatal_error else None,
        }


ProgressCallback = Callable[[RunSummary], None]


def _resolve(source: ColumnarSource, config: ExtractConfig) -> ResolvedColumns:
    return resolve_columns(
        source.schema,
        payload_names=config.payload_names,
        identifier_names=config.identifier_names,
        payload_column=config.payload_column,
        identifier_column=config.identifier_column,
    )


def _stream(
    source: ColumnarSource,
    columns: ResolvedColumns,
    writer: OutputWriter,
    summary: RunSummary,
    limit: int | None,
    on_batch: ProgressCallback | None,
) -> None:
    projected = columns.projected()
    offset = 0

    for batch in source.batches(columns.projection()):
        if limit is not None and offset + batch.num_rows > limit:
            batch = batch.slice(0, limit - offset)
        summary.batches += 1
        logger.debug("Batch %d: rows %d-%d", summary.batches, offset, offset + batch.num_rows - 1)

        for outcome in extract_rows(batch, projected, offset):
            summary.rows += 1
            if isinstance(outcome, RowError):
                summary.record_row_error(outcome)
                logger.debug("Skipped: %s", outcome)
                continue

            try:
                path = writer.write(outcome)
            except WriteError as e:
                summary.record_write_error(e)
                logger.debug("Write failed: %s", e)
                continue

            summary.written += 1
            summary.bytes_written += len(outcome.payload)
            if outcome.fallback:
                summary.fallback_names += 1
                logger.debug("Row %d: null identifier, using %s", outcome.row_index, path.name)

        offset += batch.num_rows
        if on_batch:
            on_batch(summary)
        if limit is not None and offset >= limit:
            logger.debug("Row limit %d reached", limit)
            break


def run_extraction(
    config: ExtractConfig,
    on_batch: ProgressCallback | None = None,
) -> RunSummary:
    """Extract every payload of ``config.input_path`` into ``config.output_dir``.

    Fatal errors are not raised; they end the run with state ABORTED and
    are stored on ``RunSummary.fatal_error``.

    Args:
        config: Validated run configuration
        on_batch: Optional callback invoked with the summary after each batch

    Returns:
        Final RunSummary
    """
    summary = RunSummary(
        input_path=str(config.input_path),
        output_dir=str(config.output_dir),
        container_format=config.container_format.value,
    )

    try:
        source = open_source(config.input_path, config.container_format, config.batch_size)
    except ReadError as e:
        logger.debug("Cannot open input: %s", e)
        return summary.abort(e)

    with source:
        try:
            columns = _resolve(source, config)
        except SchemaError as e:
            logger.debug("Schema resolution failed: %s", e)
            return summary.abort(e)

        summary.state = RunState.SCHEMA_RESOLVED
        summary.payload_column = columns.payload.label
        summary.identifier_column = columns.identifier.label
        logger.debug(
            "Payload column: %s, identifier column: %s",
            summary.payload_column,
            summary.identifier_column,
        )

        writer = OutputWriter(config.output_dir, infer_extension=config.infer_extension)
        try:
            writer.prepare()
            summary.state = RunState.STREAMING
            _stream(source, columns, writer, summary, config.limit, on_batch)
        except (ReadError, OutputDirectoryError) as e:
            logger.debug("Run aborted after %d rows: %s", summary.rows, e)
            return summary.abort(e)

    summary.state = RunState.FINISHED
    return summary


def inspect_source(config: ExtractConfig) -> dict[str, Any]:
    """Describe the input schema and the columns a run would use.

    Raises:
        ReadError: If the input cannot be opened
    """
    with open_source(config.input_path, config.container_format, config.batch_size) as source:
        result: dict[str, Any] = {
            "columns": describe_schema(source.schema),
            "payload": None,
            "identifier": None,
            "error": None,
        }
        try:
            columns = _resolve(source, config)
        except SchemaError as e:
            result["error"] = str(e)
        else:
            result["payload"] = columns.payload.label
            result["identifier"] = columns.identifier.label
    return result
