"""Flat ``CPS.`` subfile archive.

Layout (little-endian)::

    "CPS."  unknown[0x24]  i32 file_count  i32 unknown  zero[0x10]
    "Root"  zero[0x0C]
    per subfile:
        i16 compression_flag  i16 unknown_flag
        i32 current_size  i32 original_size  i32 name_length  zero[0x10]
        name (Shift-JIS), NUL + padding to 16 (counting the NUL)
        data, padding to 16

Compression itself is not implemented here; callers inject a :class:`Codec`.
``$CMP``-wrapped archives need the console decompression pass first and are
rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol

from ..errors import E_SPC, E_UNSUPPORTED, FormatError, SpcError, format_error
from ..logging import get_logger
from ..srd.cursor import ByteCursor
from ..utils.binary import padding_for
from ..utils.io import safe_read_file
from ..utils.paths import safe_file_path

__all__ = [
    "Codec",
    "SpcSubfile",
    "SpcArchive",
    "FLAG_UNCOMPRESSED",
    "FLAG_COMPRESSED",
]

SPC_MAGIC = b"CPS."
CMP_MAGIC = b"$CMP"
TABLE_MAGIC = b"Root"
HEADER_UNKNOWN_SIZE = 0x24
ENTRY_ALIGNMENT = 0x10
NAME_ENCODING = "shift_jis"

FLAG_UNCOMPRESSED = 1
FLAG_COMPRESSED = 2
SMALL_FILE_FLAG = 4
LARGE_FILE_FLAG = 8
SMALL_FILE_LIMIT = 0xFFFF


class Codec(Protocol):
    def compress(self, data: bytes) -> bytes: ...

    def decompress(self, data: bytes) -> bytes: ...


@dataclass(slots=True)
class SpcSubfile:
    name: str
    data: bytes
    compression_flag: int = FLAG_UNCOMPRESSED
    unknown_flag: int = SMALL_FILE_FLAG
    original_size: int = 0

    @property
    def current_size(self) -> int:
        return len(self.data)

    @property
    def compressed(self) -> bool:
        return self.compression_flag == FLAG_COMPRESSED

    def contents(self, codec: Optional[Codec] = None, raw: bool = False) -> bytes:
        """Subfile bytes, decompressed through ``codec`` unless ``raw``."""
        if raw or not self.compressed:
            return self.data
        if codec is None:
            raise SpcError(
                code=E_SPC,
                message=f"Subfile '{self.name}' is compressed and no codec was given",
                context={"name": self.name, "original_size": self.original_size},
            )
        return codec.decompress(self.data)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "compression_flag": self.compression_flag,
            "unknown_flag": self.unknown_flag,
            "current_size": self.current_size,
            "original_size": self.original_size,
        }


def _name_padding(name_length: int) -> int:
    # The NUL terminator counts toward the alignment and is always written.
    return padding_for(name_length + 1, ENTRY_ALIGNMENT) + 1


@dataclass(slots=True)
class SpcArchive:
    subfiles: List[SpcSubfile] = field(default_factory=list)
    unknown1: bytes = bytes(HEADER_UNKNOWN_SIZE)
    unknown2: int = 0

    # Reading -----------------------------------------------------------------
    @classmethod
    def load(cls, data: bytes) -> "SpcArchive":
        cur = ByteCursor(data)
        magic = cur.read(4, "archive magic")
        if magic == CMP_MAGIC:
            raise FormatError(
                code=E_UNSUPPORTED,
                message="$CMP-compressed archives are not supported",
            )
        if magic != SPC_MAGIC:
            raise format_error(
                f"Invalid magic number, expected 'CPS.' but got {magic!r}"
            )
        unknown1 = cur.read(HEADER_UNKNOWN_SIZE, "archive header")
        file_count = cur.i32()
        unknown2 = cur.i32()
        cur.skip(0x10)
        table = cur.read(4, "table header")
        if table != TABLE_MAGIC:
            raise format_error(
                f"Invalid file table header, expected 'Root' but got {table!r}"
            )
        cur.skip(0x0C)

        archive = cls([], unknown1, unknown2)
        for index in range(max(file_count, 0)):
            archive.subfiles.append(_read_subfile(cur, index))
        get_logger().debug("Loaded SPC archive with %d subfiles", file_count)
        return archive

    @classmethod
    def from_path(cls, path: Path) -> "SpcArchive":
        return cls.load(safe_read_file(path))

    # Writing -----------------------------------------------------------------
    def to_bytes(self) -> bytes:
        cur = ByteCursor()
        cur.write(SPC_MAGIC)
        cur.write(self.unknown1)
        cur.write_i32(len(self.subfiles))
        cur.write_i32(self.unknown2)
        cur.write(bytes(0x10))
        cur.write(TABLE_MAGIC)
        cur.write(bytes(0x0C))
        for sub in self.subfiles:
            name = sub.name.encode(NAME_ENCODING)
            cur.write_i16(sub.compression_flag)
            cur.write_i16(sub.unknown_flag)
            cur.write_i32(sub.current_size)
            cur.write_i32(sub.original_size)
            cur.write_i32(len(name))
            cur.write(bytes(0x10))
            cur.write(name)
            cur.write(bytes(_name_padding(len(name))))
            cur.write(sub.data)
            cur.write(bytes(padding_for(sub.current_size, ENTRY_ALIGNMENT)))
        return cur.getvalue()

    def save(self, path: Path) -> int:
        data = self.to_bytes()
        path.write_bytes(data)
        return len(data)

    # Subfile access ----------------------------------------------------------
    def names(self) -> List[str]:
        return [s.name for s in self.subfiles]

    def find(self, name: str) -> Optional[SpcSubfile]:
        for sub in self.subfiles:
            if sub.name == name:
                return sub
        return None

    def extract(
        self,
        name: str,
        dest_dir: Path,
        codec: Optional[Codec] = None,
        raw: bool = False,
    ) -> Path:
        """Write subfile ``name`` into ``dest_dir``; returns the written path."""
        sub = self.find(name)
        if sub is None:
            raise SpcError(
                code=E_SPC,
                message=f"Unable to find a subfile called '{name}'",
                context={"name": name},
            )
        try:
            target = safe_file_path(dest_dir, name)
        except ValueError as e:
            raise SpcError(
                code=E_SPC,
                message=f"Subfile name '{name}' escapes the output directory",
                context={"name": name, "dest_dir": str(dest_dir)},
            ) from e
        data = sub.contents(codec, raw)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return target

    def insert(self, path: Path, codec: Optional[Codec] = None) -> SpcSubfile:
        """Add ``path`` as a subfile, replacing one with the same name."""
        if not path.is_file():
            raise SpcError(
                code=E_SPC,
                message=f"Source file '{path}' does not exist",
                context={"path": str(path)},
            )
        data = safe_read_file(path)
        size = len(data)
        sub = SpcSubfile(
            name=path.name,
            data=data,
            compression_flag=FLAG_UNCOMPRESSED,
            unknown_flag=(
                LARGE_FILE_FLAG if size > SMALL_FILE_LIMIT else SMALL_FILE_FLAG
            ),
            original_size=size,
        )
        if codec is not None:
            sub.data = codec.compress(data)
            sub.compression_flag = FLAG_COMPRESSED

        for i, existing in enumerate(self.subfiles):
            if existing.name == sub.name:
                self.subfiles[i] = sub
                get_logger().debug("Replaced subfile %s", sub.name)
                break
        else:
            self.subfiles.append(sub)
            get_logger().debug("Appended subfile %s", sub.name)
        return sub


def _read_subfile(cur: ByteCursor, index: int) -> SpcSubfile:
    compression_flag = cur.i16()
    unknown_flag = cur.i16()
    current_size = cur.i32()
    original_size = cur.i32()
    name_length = cur.i32()
    if current_size < 0 or name_length < 0:
        raise format_error(
            f"Subfile #{index} declares a negative size",
            {"current_size": current_size, "name_length": name_length},
        )
    cur.skip(0x10)
    name = cur.read(name_length, "subfile name").decode(NAME_ENCODING, "replace")
    cur.skip(_name_padding(name_length))
    data = cur.read(current_size, f"subfile '{name}' data")
    cur.skip(padding_for(current_size, ENTRY_ALIGNMENT))
    return SpcSubfile(name, data, compression_flag, unknown_flag, original_size)
