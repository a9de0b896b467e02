"""
extract_audio.schema - Locate the payload and identifier columns.

Resolution order for each required column:
1. An explicit column selection (``name`` or ``struct.child``), if given.
2. The first allow-list name that matches a candidate of the right type.
3. The single candidate of the right type, if there is exactly one.

Several same-typed candidates with no name match is an error; the resolver
never picks one of them on its own. Struct columns take part through their
children, which covers the ``audio: struct<bytes: binary, path: string>``
layout used by Hugging Face datasets.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import pyarrow as pa

from extract_audio.exceptions import (
    AmbiguousColumnError,
    MissingColumnError,
    TypeMismatchError,
)

PAYLOAD = "payload"
IDENTIFIER = "identifier"

BINARY = "binary"
STRING = "string"
STRUCT = "struct"

NESTED_PAYLOAD_FIELD = "bytes"


@dataclass(frozen=True)
class ColumnRef:
    """A top-level column, or one child field of a top-level struct column."""

    index: int
    name: str
    field: str | None = None

    @property
    def label(self) -> str:
        return f"{self.name}.{self.field}" if self.field else self.name


@dataclass(frozen=True)
class ResolvedColumns:
    payload: ColumnRef
    identifier: ColumnRef

    def projection(self) -> list[int]:
        """Top-level column indices needed to extract rows, without duplicates."""
        indices = [self.payload.index]
        if self.identifier.index != self.payload.index:
            indices.append(self.identifier.index)
        return indices

    def projected(self) -> ResolvedColumns:
        """Same columns, re-indexed against a batch holding only ``projection()``."""
        positions = {index: pos for pos, index in enumerate(self.projection())}
        return ResolvedColumns(
            payload=ColumnRef(positions[self.payload.index], self.payload.name, self.payload.field),
            identifier=ColumnRef(
                positions[self.identifier.index], self.identifier.name, self.identifier.field
            ),
        )


def _value_type(data_type: pa.DataType) -> pa.DataType:
    if pa.types.is_dictionary(data_type):
        return data_type.value_type
    return data_type


def is_binary_type(data_type: pa.DataType) -> bool:
    t = _value_type(data_type)
    return (
        pa.types.is_binary(t)
        or pa.types.is_large_binary(t)
        or pa.types.is_fixed_size_binary(t)
        or pa.types.is_binary_view(t)
    )


def is_string_type(data_type: pa.DataType) -> bool:
    t = _value_type(data_type)
    return pa.types.is_string(t) or pa.types.is_large_string(t) or pa.types.is_string_view(t)


def classify(data_type: pa.DataType) -> str | None:
    """Semantic type of a column: binary, string, struct, or None for anything else."""
    if is_binary_type(data_type):
        return BINARY
    if is_string_type(data_type):
        return STRING
    if pa.types.is_struct(data_type):
        return STRUCT
    return None


_TYPE_CHECKS = {BINARY: is_binary_type, STRING: is_string_type}


def _struct_children(data_type: pa.StructType) -> list[pa.Field]:
    return [data_type.field(i) for i in range(data_type.num_fields)]


def nested_payload_field(data_type: pa.DataType) -> str | None:
    """Binary child of a struct: the one named ``bytes``, else the only binary child."""
    if not pa.types.is_struct(data_type):
        return None
    binary = [f.name for f in _struct_children(data_type) if is_binary_type(f.type)]
    if NESTED_PAYLOAD_FIELD in binary:
        return NESTED_PAYLOAD_FIELD
    if len(binary) == 1:
        return binary[0]
    return None


def nested_identifier_field(data_type: pa.DataType, names: Sequence[str]) -> str | None:
    """String child of a struct: first allow-listed name, else the only string child."""
    if not pa.types.is_struct(data_type):
        return None
    strings = [f.name for f in _struct_children(data_type) if is_string_type(f.type)]
    for name in names:
        if name in strings:
            return name
    if len(strings) == 1:
        return strings[0]
    return None


def payload_candidates(schema: pa.Schema) -> list[ColumnRef]:
    candidates = []
    for index, field in enumerate(schema):
        if is_binary_type(field.type):
            candidates.append(ColumnRef(index, field.name))
            continue
        child = nested_payload_field(field.type)
        if child is not None:
            candidates.append(ColumnRef(index, field.name, child))
    return candidates


def identifier_candidates(
    schema: pa.Schema, payload: ColumnRef, names: Sequence[str]
) -> list[ColumnRef]:
    candidates = [
        ColumnRef(index, field.name)
        for index, field in enumerate(schema)
        if is_string_type(field.type)
    ]
    if payload.field is not None:
        child = nested_identifier_field(schema.field(payload.index).type, names)
        if child is not None:
            candidates.append(ColumnRef(payload.index, payload.name, child))
    return candidates


def _labels(refs: Sequence[ColumnRef]) -> list[str]:
    return [ref.label for ref in refs]


def _match_by_name(
    kind: str, candidates: Sequence[ColumnRef], names: Sequence[str]
) -> ColumnRef | None:
    for name in names:
        top_level = [c for c in candidates if c.field is None and c.name == name]
        if len(top_level) > 1:
            raise AmbiguousColumnError(kind, _labels(top_level))
        if top_level:
            return top_level[0]
        nested = [c for c in candidates if c.field == name or (c.field and c.name == name)]
        if len(nested) > 1:
            raise AmbiguousColumnError(kind, _labels(nested))
        if nested:
            return nested[0]
    return None


def _select_explicit(
    kind: str, schema: pa.Schema, column: str, expected: str, candidates: Sequence[ColumnRef]
) -> ColumnRef:
    matches = [c for c in candidates if c.label == column or (c.field and c.name == column)]
    if len(matches) > 1:
        raise AmbiguousColumnError(kind, _labels(matches))
    if matches:
        return matches[0]

    top, _, child = column.partition(".")
    indices = [i for i, name in enumerate(schema.names) if name == column]
    if not indices and child:
        indices = [i for i, name in enumerate(schema.names) if name == top]
    if not indices:
        raise MissingColumnError(kind, column)

    if len(indices) > 1:
        raise AmbiguousColumnError(kind, [column] * len(indices))

    index = indices[0]
    data_type = schema.field(index).type
    if child and pa.types.is_struct(data_type):
        if data_type.get_field_index(child) < 0:
            raise MissingColumnError(kind, column)
        data_type = data_type.field(child).type
        if _TYPE_CHECKS[expected](data_type):
            return ColumnRef(index, top, child)
    raise TypeMismatchError(column, expected, str(data_type))


def _resolve(
    kind: str,
    schema: pa.Schema,
    candidates: list[ColumnRef],
    names: Sequence[str],
    expected: str,
    explicit: str | None,
) -> ColumnRef:
    if explicit:
        return _select_explicit(kind, schema, explicit, expected, candidates)

    matched = _match_by_name(kind, candidates, names)
    if matched is not None:
        return matched

    if len(candidates) == 1:
        return candidates[0]
    if len(candidates) > 1:
        raise AmbiguousColumnError(kind, _labels(candidates))

    for name in names:
        if name in schema.names:
            found = schema.field(name).type if schema.names.count(name) == 1 else "duplicate"
            raise TypeMismatchError(name, expected, str(found))
    raise MissingColumnError(kind)


def resolve_columns(
    schema: pa.Schema,
    payload_names: Sequence[str],
    identifier_names: Sequence[str],
    payload_column: str | None = None,
    identifier_column: str | None = None,
) -> ResolvedColumns:
    """Locate the payload and identifier columns of a schema.

    Args:
        schema: Arrow schema of the input file
        payload_names: Ordered allow-list of payload column names
        identifier_names: Ordered allow-list of identifier column names
        payload_column: Explicit payload column, bypassing name and type matching
        identifier_column: Explicit identifier column

    Returns:
        ResolvedColumns referencing columns of ``schema``

    Raises:
        MissingColumnError: No column of the required kind exists
        TypeMismatchError: The selected or name-matched column has the wrong type
        AmbiguousColumnError: Several candidates and nothing to choose between them
    """
    payload = _resolve(
        PAYLOAD,
        schema,
        payload_candidates(schema),
        payload_names,
        BINARY,
        payload_column,
    )
    identifier = _resolve(
        IDENTIFIER,
        schema,
        identifier_candidates(schema, payload, identifier_names),
        identifier_names,
        STRING,
        identifier_column,
    )
    return ResolvedColumns(payload=payload, identifier=identifier)


def describe_schema(schema: pa.Schema) -> list[dict[str, str]]:
    """Flatten a schema into rows of name, type and semantic class for display."""
    rows = []
    for field in schema:
        kind = classify(field.type)
        rows.append({"column": field.name, "type": str(field.type), "kind": kind or "-"})
        if kind == STRUCT:
            for child in _struct_children(field.type):
                rows.append(
                    {
                        "column": f"{field.name}.{child.name}",
                        "type": str(child.type),
                        "kind": classify(child.type) or "-",
                    }
                )
    return rows
