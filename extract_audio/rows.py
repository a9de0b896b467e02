"""
extract_audio.rows - Turn record batch rows into extraction units.

Each row yields either an ExtractionUnit or a RowError value. Row errors
are skips, not failures of the run, so they are yielded instead of raised.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import pyarrow as pa

from extract_audio.exceptions import DecodeFailureError, NullPayloadError, RowError
from extract_audio.logging import logger
from extract_audio.naming import fallback_identifier
from extract_audio.schema import ColumnRef, ResolvedColumns


@dataclass(frozen=True)
class ExtractionUnit:
    """One row's identifier and payload, ready to be written."""

    identifier: str
    payload: bytes
    row_index: int
    fallback: bool = False


class _Undecodable:
    __slots__ = ("detail",)

    def __init__(self, detail: str) -> None:
        self.detail = detail


def _column_array(batch: pa.RecordBatch, ref: ColumnRef) -> pa.Array:
    array = batch.column(ref.index)
    if ref.field is None:
        return array
    # flatten() applies the struct's own offset and validity to its children
    return array.flatten()[array.type.get_field_index(ref.field)]


def column_values(batch: pa.RecordBatch, ref: ColumnRef) -> list[Any]:
    """Python values of one column, with undecodable cells marked instead of raising."""
    array = _column_array(batch, ref)
    try:
        return array.to_pylist()
    except (pa.ArrowException, ValueError, TypeError, OverflowError) as e:
        logger.debug("Column %s failed bulk conversion (%s); converting per row", ref.label, e)

    values: list[Any] = []
    for i in range(len(array)):
        try:
            values.append(array[i].as_py())
        except (pa.ArrowException, ValueError, TypeError, OverflowError) as e:
            values.append(_Undecodable(str(e)))
    return values


def extract_rows(
    batch: pa.RecordBatch,
    columns: ResolvedColumns,
    offset: int = 0,
) -> Iterator[ExtractionUnit | RowError]:
    """Yield one result per row of ``batch``, in row order.

    Args:
        batch: Record batch to read
        columns: Payload and identifier columns, indexed against ``batch``
        offset: Number of rows of the source preceding this batch

    Yields:
        ExtractionUnit for usable rows, NullPayloadError or DecodeFailureError otherwise
    """
    payloads = column_values(batch, columns.payload)
    identifiers = column_values(batch, columns.identifier)

    for i, (payload, identifier) in enumerate(zip(payloads, identifiers)):
        row_index = offset + i

        if isinstance(payload, _Undecodable):
            yield DecodeFailureError(row_index, payload.detail)
            continue
        if payload is None:
            yield NullPayloadError(row_index)
            continue
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            yield DecodeFailureError(
                row_index, f"payload is {type(payload).__name__}, expected bytes"
            )
            continue

        if isinstance(identifier, _Undecodable):
            yield DecodeFailureError(row_index, identifier.detail)
            continue
        if identifier is not None and not isinstance(identifier, str):
            yield DecodeFailureError(
                row_index, f"identifier is {type(identifier).__name__}, expected str"
            )
            continue

        if identifier is None or not identifier.strip():
            yield ExtractionUnit(fallback_identifier(row_index), bytes(payload), row_index, True)
        else:
            yield ExtractionUnit(identifier, bytes(payload), row_index)
