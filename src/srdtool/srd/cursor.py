"""Buffer-backed byte cursor with explicit endianness.

Reads past the end raise :class:`~srdtool.errors.TruncatedReadError` rather
than returning short data, so callers either check ``remaining`` first or
catch the error and downgrade it to a warning.
"""

from __future__ import annotations

import os
import struct

from ..errors import E_TRUNCATED, TruncatedReadError
from ..utils.binary import padding_for, split_cstring

__all__ = ["ByteCursor"]

_U8 = struct.Struct("B")
_FMT = {
    ("u16", False): struct.Struct("<H"),
    ("u16", True): struct.Struct(">H"),
    ("i16", False): struct.Struct("<h"),
    ("i16", True): struct.Struct(">h"),
    ("u32", False): struct.Struct("<I"),
    ("u32", True): struct.Struct(">I"),
    ("i32", False): struct.Struct("<i"),
    ("i32", True): struct.Struct(">i"),
    ("f32", False): struct.Struct("<f"),
    ("f32", True): struct.Struct(">f"),
}


class ByteCursor:
    __slots__ = ("_buf", "_pos")

    def __init__(self, data: bytes | bytearray | memoryview | None = None):
        # No initial data means a growable write buffer.
        self._buf = bytearray() if data is None else data
        self._pos = 0

    def __len__(self) -> int:
        return len(self._buf)

    def tell(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return max(0, len(self._buf) - self._pos)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        if whence == os.SEEK_CUR:
            offset += self._pos
        elif whence == os.SEEK_END:
            offset += len(self._buf)
        if offset < 0:
            raise ValueError(f"seek before start of buffer: {offset}")
        self._pos = offset
        return self._pos

    def skip(self, size: int) -> None:
        self.seek(size, os.SEEK_CUR)

    def align(self, boundary: int) -> int:
        """Advance to the next multiple of ``boundary``; returns bytes skipped."""
        pad = padding_for(self._pos, boundary)
        self._pos += pad
        return pad

    # Reading -----------------------------------------------------------------
    def read(self, size: int, label: str = "bytes") -> bytes:
        start = self._pos
        end = start + size
        if size < 0 or end > len(self._buf):
            raise TruncatedReadError(
                code=E_TRUNCATED,
                message=f"Out of range read for {label}: {start}+{size}>{len(self._buf)}",
                context={"offset": start, "size": size, "length": len(self._buf)},
            )
        self._pos = end
        return bytes(self._buf[start:end])

    def read_rest(self) -> bytes:
        if self._pos >= len(self._buf):
            return b""
        return self.read(len(self._buf) - self._pos)

    def _unpack(self, kind: str, big: bool) -> int | float:
        fmt = _FMT[(kind, big)]
        return fmt.unpack(self.read(fmt.size, kind))[0]

    def u8(self) -> int:
        return self.read(1, "u8")[0]

    def u16(self, big: bool = False) -> int:
        return int(self._unpack("u16", big))

    def i16(self, big: bool = False) -> int:
        return int(self._unpack("i16", big))

    def u32(self, big: bool = False) -> int:
        return int(self._unpack("u32", big))

    def i32(self, big: bool = False) -> int:
        return int(self._unpack("i32", big))

    def f32(self, big: bool = False) -> float:
        return float(self._unpack("f32", big))

    def cstring(self, encoding: str = "ascii") -> tuple[str, bool]:
        """Read a NUL-terminated string; returns ``(text, terminated)``."""
        buf = self._buf
        if isinstance(buf, memoryview):
            buf = buf.tobytes()
        text, end, terminated = split_cstring(buf, self._pos, encoding)
        self._pos = end
        return text, terminated

    # Writing -----------------------------------------------------------------
    def write(self, data: bytes) -> None:
        if not isinstance(self._buf, bytearray):
            raise TypeError("cursor is read-only")
        end = self._pos + len(data)
        if self._pos > len(self._buf):
            self._buf.extend(b"\x00" * (self._pos - len(self._buf)))
        self._buf[self._pos : end] = data
        self._pos = end

    def write_u8(self, value: int) -> None:
        self.write(_U8.pack(value))

    def _pack(self, kind: str, value: int | float, big: bool) -> None:
        self.write(_FMT[(kind, big)].pack(value))

    def write_u16(self, value: int, big: bool = False) -> None:
        self._pack("u16", value, big)

    def write_i16(self, value: int, big: bool = False) -> None:
        self._pack("i16", value, big)

    def write_u32(self, value: int, big: bool = False) -> None:
        self._pack("u32", value, big)

    def write_i32(self, value: int, big: bool = False) -> None:
        self._pack("i32", value, big)

    def write_f32(self, value: float, big: bool = False) -> None:
        self._pack("f32", value, big)

    def write_padding(self, boundary: int) -> None:
        self.write(b"\x00" * padding_for(self._pos, boundary))

    def getvalue(self) -> bytes:
        return bytes(self._buf)
