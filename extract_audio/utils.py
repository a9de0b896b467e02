"""
extract_audio.utils - Shared utility functions.
"""

from __future__ import annotations


def format_size(size: float) -> str:
    """Format a byte count in human-readable form, e.g. ``1.5 MB``."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def plural(count: int, word: str) -> str:
    """``1 file``, ``2 files``."""
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
