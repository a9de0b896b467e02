"""
extract_audio.io - Atomic file writes for audio payloads and the JSON run summary.

Writes go to a hidden temp file in the destination directory and are then
renamed into place, so an interrupted write never leaves a truncated file
at the final path.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

STAGING_SUFFIX = ".partial"
STAGING_PREFIX_BYTES = 64


def _stage(path: Path, mode: str, encoding: str | None = None) -> Any:
    # Bounded in bytes so the staged name fits wherever the final name does.
    head = path.name.encode("utf-8")[:STAGING_PREFIX_BYTES].decode("utf-8", errors="ignore")
    return tempfile.NamedTemporaryFile(
        mode=mode,
        encoding=encoding,
        dir=path.parent,
        prefix=f".{head}.",
        suffix=STAGING_SUFFIX,
        delete=False,
    )


def write_bytes(path: Path, data: bytes) -> int:
    """Write bytes atomically.

    The parent directory must already exist.

    Args:
        path: Destination path
        data: Bytes to write

    Returns:
        Number of bytes written

    Raises:
        OSError: If staging or renaming fails; the staged file is removed
    """
    tmp = _stage(path, "wb")
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            tmp.write(data)
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return len(data)


def write_json(path: Path, data: dict[str, Any], indent: int = 2) -> None:
    """Write JSON file atomically with pretty formatting.

    Args:
        path: Destination path for JSON file
        data: Data to write
        indent: Indentation level for pretty printing (default: 2)
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = _stage(path, "w", encoding="utf-8")
    tmp_path = Path(tmp.name)
    try:
        with tmp:
            json.dump(data, tmp, indent=indent, ensure_ascii=False)
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
