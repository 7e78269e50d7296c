"""File reading helpers."""

from __future__ import annotations

from pathlib import Path

from ..logging import get_logger

__all__ = ["DataError", "safe_read_file", "read_optional"]

MAX_FILE_SIZE = 512 * 1024 * 1024


class DataError(RuntimeError):
    pass


def safe_read_file(path: Path, max_size: int = MAX_FILE_SIZE) -> bytes:
    if not path.exists():
        raise DataError(f"File not found: {path}")
    size = path.stat().st_size
    if size > max_size:
        raise DataError(f"File too large: {size}>{max_size}")
    return path.read_bytes()


def read_optional(path: Path, max_size: int = MAX_FILE_SIZE) -> bytes:
    """Read ``path`` if it exists; a missing file reads as zero bytes."""
    if not path.exists():
        get_logger().debug("Optional file absent: %s", path)
        return b""
    return safe_read_file(path, max_size)
