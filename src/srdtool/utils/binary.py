"""Small binary helpers: alignment math and NUL-terminated strings."""

from __future__ import annotations

__all__ = ["align_up", "padding_for", "split_cstring", "pack_cstring"]


def align_up(value: int, alignment: int) -> int:
    return (value + alignment - 1) // alignment * alignment


def padding_for(value: int, alignment: int) -> int:
    return (alignment - value % alignment) % alignment


def split_cstring(
    data: bytes, start: int = 0, encoding: str = "ascii"
) -> tuple[str, int, bool]:
    """Decode a NUL-terminated string starting at ``start``.

    Returns ``(text, next_offset, terminated)``; an unterminated string runs
    to the end of ``data``.
    """
    end = data.find(b"\x00", start)
    if end < 0:
        return data[start:].decode(encoding, "replace"), len(data), False
    return data[start:end].decode(encoding, "replace"), end + 1, True


def pack_cstring(text: str, encoding: str = "ascii") -> bytes:
    return text.encode(encoding) + b"\x00"
