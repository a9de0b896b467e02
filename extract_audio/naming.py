"""
extract_audio.naming - Output filenames from row identifiers.

Pure functions: nothing here touches the filesystem. The caller owns the
set of names already used in the run.
"""

from __future__ import annotations

import re
from collections.abc import Set
from pathlib import PurePath

FALLBACK_WIDTH = 8
MAX_NAME_BYTES = 255

_UNSAFE_CHARS = re.compile(r'[/\\\x00-\x1f\x7f<>:"|?*]')


def fallback_identifier(row_index: int) -> str:
    """Deterministic name for a row without a usable identifier, e.g. ``00000042``."""
    return f"{row_index:0{FALLBACK_WIDTH}d}"


def _truncate(name: str, limit: int = MAX_NAME_BYTES) -> str:
    if len(name.encode("utf-8")) <= limit:
        return name
    suffix = PurePath(name).suffix
    if len(suffix.encode("utf-8")) >= limit // 2:
        suffix = ""
    stem = name[: len(name) - len(suffix)] if suffix else name
    budget = limit - len(suffix.encode("utf-8"))
    stem = stem.encode("utf-8")[:budget].decode("utf-8", errors="ignore")
    return stem + suffix


def sanitize_identifier(identifier: str) -> str:
    """Make an identifier safe to use as a single path component.

    Path separators, NUL and other control characters are replaced with
    ``_``. Returns an empty string when nothing usable remains.
    """
    name = _UNSAFE_CHARS.sub("_", identifier).strip()
    if name in {".", ".."} or not name.strip("._"):
        return ""
    return _truncate(name)


def guess_extension(payload: bytes) -> str | None:
    """Guess an audio file extension from the payload's magic bytes."""
    head = payload[:12]
    if head[:4] == b"RIFF" and head[8:12] == b"WAVE":
        return ".wav"
    if head[:4] == b"fLaC":
        return ".flac"
    if head[:4] == b"OggS":
        return ".ogg"
    if head[:4] == b"FORM" and head[8:12] in (b"AIFF", b"AIFC"):
        return ".aiff"
    if head[4:8] == b"ftyp":
        return ".m4a"
    if head[:4] == b"\x1aE\xdf\xa3":
        return ".webm"
    if head[:5] == b"#!AMR":
        return ".amr"
    if head[:3] == b"ID3":
        return ".mp3"
    if len(head) >= 2 and head[0] == 0xFF:
        if head[1] & 0xF6 == 0xF0:
            return ".aac"
        if head[1] & 0xE0 == 0xE0:
            return ".mp3"
    return None


def base_filename(
    identifier: str,
    row_index: int,
    payload: bytes | None = None,
) -> str:
    """Sanitized filename for a row before collision handling.

    When ``payload`` is given and the name has no extension, one sniffed
    from the payload is appended.
    """
    name = sanitize_identifier(identifier) or fallback_identifier(row_index)
    if payload is not None and not PurePath(name).suffix:
        extension = guess_extension(payload)
        if extension:
            name = _truncate(name, MAX_NAME_BYTES - len(extension)) + extension
    return name


def disambiguate(name: str, row_index: int, seen: Set[str]) -> str:
    """Return ``name``, or a variant with the row index appended if it is taken.

    ``clip.wav`` becomes ``clip_17.wav``; if that is taken as well a counter
    follows (``clip_17_2.wav``) until the name is unused.
    """
    if name not in seen:
        return name

    suffix = PurePath(name).suffix
    stem = name[: len(name) - len(suffix)] if suffix else name

    def variant(tag: str) -> str:
        budget = MAX_NAME_BYTES - len(f"{tag}{suffix}".encode("utf-8"))
        return _truncate(stem, budget) + tag + suffix

    candidate = variant(f"_{row_index}")
    counter = 2
    while candidate in seen:
        candidate = variant(f"_{row_index}_{counter}")
        counter += 1
    return candidate


def resolve_filename(
    identifier: str,
    row_index: int,
    seen: Set[str],
    payload: bytes | None = None,
) -> str:
    """Final, unique output filename for a row. ``seen`` is not modified."""
    return disambiguate(base_filename(identifier, row_index, payload), row_index, seen)
