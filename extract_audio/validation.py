"""
extract_audio.validation - Pre-flight checks on the input file and output location.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from extract_audio.exceptions import ValidationError


def validate_input_file(path: Path) -> dict[str, Any]:
    """Check that the input exists and is a non-empty regular file.

    Returns:
        Dict with 'path' and 'size_bytes'

    Raises:
        ValidationError: If the path is missing, a directory, or empty
    """
    if not path.exists():
        raise ValidationError(f"Input file not found: {path}")
    if not path.is_file():
        raise ValidationError(f"Input is not a regular file: {path}")

    size = path.stat().st_size
    if size == 0:
        raise ValidationError(f"Input file is empty: {path}")

    return {"path": str(path), "size_bytes": size}


def check_disk_space(path: Path, required_bytes: int) -> dict[str, Any]:
    """Check free space at ``path``, or its nearest existing ancestor.

    Returns:
        Dict with 'available_bytes', 'required_bytes', 'sufficient'

    Raises:
        ValidationError: If the free space cannot be determined
    """
    check_path = path
    while not check_path.exists() and check_path != check_path.parent:
        check_path = check_path.parent

    try:
        stat = shutil.disk_usage(check_path)
    except OSError as e:
        raise ValidationError(f"Cannot check disk space: {e}") from e

    return {
        "available_bytes": stat.free,
        "required_bytes": required_bytes,
        "sufficient": stat.free >= required_bytes,
    }
