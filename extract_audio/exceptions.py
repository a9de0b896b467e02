"""
extract_audio.exceptions - Custom exception classes.

All extract-audio exceptions inherit from ExtractAudioError. Schema, read and
output-directory errors abort a run; row and per-file write errors are
counted and the run continues.
"""

from __future__ import annotations


class ExtractAudioError(Exception):
    """Base exception for all extract-audio errors."""

    pass


class ConfigError(ExtractAudioError):
    """Configuration loading or validation error."""

    pass


class ValidationError(ExtractAudioError):
    """Input or output location failed a pre-flight check."""

    pass


# Schema errors (fatal, raised before any row is read)


class SchemaError(ExtractAudioError):
    """Required column missing, ambiguous or of the wrong type."""

    pass


class MissingColumnError(SchemaError):
    def __init__(self, kind: str, column: str | None = None):
        self.kind = kind
        self.column = column
        if column:
            super().__init__(f"{kind} column '{column}' not found in schema")
        else:
            super().__init__(f"No {kind} column found in schema")


class TypeMismatchError(SchemaError):
    def __init__(self, column: str, expected: str, found: str):
        self.column = column
        self.expected = expected
        self.found = found
        super().__init__(f"Column '{column}' has type {found}, expected {expected}")


class AmbiguousColumnError(SchemaError):
    def __init__(self, kind: str, candidates: list[str]):
        self.kind = kind
        self.candidates = candidates
        super().__init__(
            f"Ambiguous {kind} column: candidates {', '.join(candidates)}; "
            f"select one explicitly"
        )


# Read errors (fatal)


class ReadError(ExtractAudioError):
    """Input container could not be read."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"{path}: {detail}")


class CorruptSourceError(ReadError):
    """Malformed or truncated container."""

    pass


class SourceIOError(ReadError):
    """Filesystem failure while opening or reading the input."""

    pass


# Row errors (recoverable, yielded by the row extractor rather than raised)


class RowError(ExtractAudioError):
    """A single row could not be turned into an extraction unit."""

    def __init__(self, row_index: int, message: str):
        self.row_index = row_index
        super().__init__(message)


class NullPayloadError(RowError):
    def __init__(self, row_index: int):
        super().__init__(row_index, f"Row {row_index}: payload is null")


class DecodeFailureError(RowError):
    def __init__(self, row_index: int, detail: str):
        self.detail = detail
        super().__init__(row_index, f"Row {row_index}: cannot decode value ({detail})")


# Write errors


class WriteError(ExtractAudioError):
    """Writing a single output file failed."""

    def __init__(self, path: str, row_index: int, detail: str):
        self.path = path
        self.row_index = row_index
        self.detail = detail
        super().__init__(f"Row {row_index}: failed to write {path}: {detail}")


class OutputDirectoryError(ExtractAudioError):
    """Output directory missing, not creatable or not writable."""

    def __init__(self, path: str, detail: str):
        self.path = path
        self.detail = detail
        super().__init__(f"Output directory {path}: {detail}")
