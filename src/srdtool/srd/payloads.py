"""Per-tag payload types and their decoders/encoders.

Every decoder takes the raw payload plus a :class:`Diagnostics` collector
and never raises on short input: fields that could not be read keep their
defaults, a ``W_SHORT_PAYLOAD`` warning is recorded, and unread bytes are
kept in ``extra`` so encodable payloads still re-emit byte-exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import (
    Diagnostics,
    TruncatedReadError,
    W_ALIGNMENT,
    W_MAGIC_MISMATCH,
    W_OFFSET_ORDER,
    W_SHORT_PAYLOAD,
)
from ..utils.binary import pack_cstring, split_cstring
from .constants import (
    FOLDER_MAGIC,
    FOLDER_NAME_ENCODING,
    MARKER_MAGIC,
    OFFSET_MASK,
    RESOURCE_INDEX_HEADER_SIZE,
    TAG_FOLDER,
    TAG_MARKER,
    TAG_RESOURCE_INDEX,
    TAG_TERMINATOR,
    TAG_VERTEX,
    VERTEX_HEADER_SIZE,
)
from .cursor import ByteCursor

__all__ = [
    "OpaquePayload",
    "MarkerPayload",
    "FolderNamePayload",
    "TerminatorPayload",
    "VertexBlockPayload",
    "ResourceIndexPayload",
    "decode_marker",
    "encode_marker",
    "decode_folder_name",
    "encode_folder_name",
    "decode_terminator",
    "encode_terminator",
    "decode_vertex_block",
    "decode_resource_index",
    "register_builtin",
]


def _hex(value: Optional[int]) -> Optional[str]:
    return None if value is None else f"0x{value:08X}"


def _read_fields(
    cur: ByteCursor,
    layout: Sequence[Tuple[str, str]],
    out: Dict[str, Any],
    diag: Diagnostics,
    label: str,
) -> bool:
    """Read ``(name, kind)`` pairs into ``out`` until the payload runs dry."""
    for name, kind in layout:
        try:
            out[name] = getattr(cur, kind)()
        except TruncatedReadError:
            diag.warn(
                W_SHORT_PAYLOAD,
                f"{label} payload ends at 0x{len(cur):X} before field '{name}'",
            )
            return False
    return True


@dataclass(frozen=True, slots=True)
class OpaquePayload:
    data: bytes

    def fields(self) -> Dict[str, Any]:
        return {"size": len(self.data)}


# $CFH ---------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MarkerPayload:
    magic: Optional[int] = None
    unknowns: Tuple[int, ...] = ()
    extra: bytes = b""

    @property
    def magic_ok(self) -> bool:
        return self.magic == MARKER_MAGIC

    def fields(self) -> Dict[str, Any]:
        return {
            "magic": _hex(self.magic),
            "magic_ok": self.magic_ok,
            "unknowns": list(self.unknowns),
        }


def _check_magic(
    diag: Diagnostics, tag: str, magic: Optional[int], expected: int
) -> None:
    if magic is not None and magic != expected:
        diag.warn(
            W_MAGIC_MISMATCH,
            f"Unexpected magic for {tag}: 0x{magic:08X} vs 0x{expected:08X}",
        )


def _read_magic_header(
    payload: bytes, diag: Diagnostics, tag: str, expected: int
) -> Tuple[ByteCursor, Optional[int], List[int], bool]:
    cur = ByteCursor(payload)
    magic: Optional[int] = None
    unknowns: List[int] = []
    try:
        magic = cur.u32(big=True)
        for _ in range(3):
            unknowns.append(cur.u32())
        complete = True
    except TruncatedReadError:
        diag.warn(
            W_SHORT_PAYLOAD,
            f"Invalid {tag} data length: {len(payload)} (expected at least 16)",
        )
        complete = False
    _check_magic(diag, tag, magic, expected)
    return cur, magic, unknowns, complete


def _write_magic_header(
    cur: ByteCursor, magic: Optional[int], unknowns: Sequence[int]
) -> None:
    if magic is not None:
        cur.write_u32(magic, big=True)
    for value in unknowns:
        cur.write_u32(value)


def decode_marker(payload: bytes, diag: Diagnostics) -> MarkerPayload:
    cur, magic, unknowns, _ = _read_magic_header(
        payload, diag, TAG_MARKER, MARKER_MAGIC
    )
    return MarkerPayload(magic, tuple(unknowns), cur.read_rest())


def encode_marker(value: MarkerPayload) -> bytes:
    cur = ByteCursor()
    _write_magic_header(cur, value.magic, value.unknowns)
    cur.write(value.extra)
    return cur.getvalue()


# $RSF ---------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FolderNamePayload:
    magic: Optional[int] = None
    unknowns: Tuple[int, ...] = ()
    folder_name: Optional[str] = None
    terminated: bool = True
    extra: bytes = b""

    @property
    def magic_ok(self) -> bool:
        return self.magic == FOLDER_MAGIC

    def fields(self) -> Dict[str, Any]:
        return {
            "magic": _hex(self.magic),
            "magic_ok": self.magic_ok,
            "unknowns": list(self.unknowns),
            "folder_name": self.folder_name,
        }


def decode_folder_name(payload: bytes, diag: Diagnostics) -> FolderNamePayload:
    cur, magic, unknowns, complete = _read_magic_header(
        payload, diag, TAG_FOLDER, FOLDER_MAGIC
    )
    if not complete:
        return FolderNamePayload(magic, tuple(unknowns), extra=cur.read_rest())
    name, terminated = cur.cstring(FOLDER_NAME_ENCODING)
    if not terminated:
        diag.warn(W_SHORT_PAYLOAD, "Folder name is not NUL-terminated")
    return FolderNamePayload(
        magic, tuple(unknowns), name, terminated, cur.read_rest()
    )


def encode_folder_name(value: FolderNamePayload) -> bytes:
    cur = ByteCursor()
    _write_magic_header(cur, value.magic, value.unknowns)
    if value.folder_name is not None:
        if value.terminated:
            cur.write(pack_cstring(value.folder_name, FOLDER_NAME_ENCODING))
        else:
            cur.write(value.folder_name.encode(FOLDER_NAME_ENCODING))
    cur.write(value.extra)
    return cur.getvalue()


# $CT0 ---------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TerminatorPayload:
    data: bytes = b""

    def fields(self) -> Dict[str, Any]:
        return {"size": len(self.data)} if self.data else {}


def decode_terminator(payload: bytes, diag: Diagnostics) -> TerminatorPayload:
    if payload:
        diag.warn(
            W_SHORT_PAYLOAD,
            f"{TAG_TERMINATOR} is header-only but carries {len(payload)} bytes",
        )
    return TerminatorPayload(payload)


def encode_terminator(value: TerminatorPayload) -> bytes:
    return value.data


# $VTX ---------------------------------------------------------------------

_VERTEX_HEADER_LAYOUT = (
    ("float_triplet_count", "i32"),
    ("unknown14", "i16"),
    ("unknown16", "i16"),
    ("vertex_count", "i32"),
    ("unknown1c", "i16"),
    ("unknown1e", "u8"),
    ("sub_block_count", "u8"),
    ("bind_bone_root_offset", "i16"),
    ("sub_block_list_offset", "i16"),
    ("float_list_offset", "i16"),
    ("bind_bone_list_offset", "i16"),
    ("unknown28", "i16"),
)


@dataclass(frozen=True, slots=True)
class VertexBlockPayload:
    float_triplet_count: int = 0
    unknown14: int = 0
    unknown16: int = 0
    vertex_count: int = 0
    unknown1c: int = 0
    unknown1e: int = 0
    sub_block_count: int = 0
    bind_bone_root_offset: int = 0
    sub_block_list_offset: int = 0
    float_list_offset: int = 0
    bind_bone_list_offset: int = 0
    unknown28: int = 0
    unknown_shorts: Tuple[int, ...] = ()
    sub_blocks: Tuple[Tuple[int, int], ...] = ()  # (offset, size) per stream
    bind_bone_root: Optional[int] = None
    bind_bones: Tuple[int, ...] = ()
    float_triplets: Tuple[Tuple[float, float, float], ...] = ()
    strings: Tuple[str, ...] = ()

    @property
    def combined_stride(self) -> int:
        return sum(size for _, size in self.sub_blocks)

    def fields(self) -> Dict[str, Any]:
        return {
            "vertex_count": self.vertex_count,
            "sub_block_count": self.sub_block_count,
            "float_triplet_count": self.float_triplet_count,
            "unknown14": self.unknown14,
            "unknown16": self.unknown16,
            "unknown1c": self.unknown1c,
            "unknown1e": self.unknown1e,
            "unknown28": self.unknown28,
            "sub_block_list_offset": self.sub_block_list_offset,
            "bind_bone_root_offset": self.bind_bone_root_offset,
            "bind_bone_list_offset": self.bind_bone_list_offset,
            "float_list_offset": self.float_list_offset,
            "unknown_shorts": list(self.unknown_shorts),
            "sub_blocks": [
                {"offset": off, "size": size} for off, size in self.sub_blocks
            ],
            "bind_bone_root": self.bind_bone_root,
            "bind_bones": list(self.bind_bones),
            "float_triplets": [list(t) for t in self.float_triplets],
            "strings": list(self.strings),
        }


def _check_offset_order(f: Dict[str, Any], diag: Diagnostics) -> None:
    order = [("header end", VERTEX_HEADER_SIZE)]
    order.append(("sub_block_list_offset", f["sub_block_list_offset"]))
    order.append(("bind_bone_root_offset", f["bind_bone_root_offset"]))
    if f["bind_bone_list_offset"]:
        order.append(("bind_bone_list_offset", f["bind_bone_list_offset"]))
    order.append(("float_list_offset", f["float_list_offset"]))
    for (prev_name, prev), (name, value) in zip(order, order[1:]):
        if value < prev:
            diag.warn(
                W_OFFSET_ORDER,
                f"{name} 0x{value:X} precedes {prev_name} 0x{prev:X}",
            )


def _seek(cur: ByteCursor, offset: int) -> None:
    # A negative table offset (already flagged) parks the cursor at the end
    # so the following reads come up short instead of rereading the header.
    cur.seek(offset if offset >= 0 else len(cur))


def _read_i16_run(
    cur: ByteCursor, stop: int, diag: Diagnostics, label: str
) -> List[int]:
    """Read i16 values from the cursor position up to ``stop``."""
    values: List[int] = []
    span = stop - cur.tell()
    if span % 2:
        diag.warn(W_ALIGNMENT, f"{label} spans an odd number of bytes ({span})")
    try:
        while cur.tell() + 2 <= stop:
            values.append(cur.i16())
    except TruncatedReadError:
        diag.warn(W_SHORT_PAYLOAD, f"{label} runs past the end of the payload")
    return values


def decode_vertex_block(payload: bytes, diag: Diagnostics) -> VertexBlockPayload:
    cur = ByteCursor(payload)
    f: Dict[str, Any] = {}
    if not _read_fields(cur, _VERTEX_HEADER_LAYOUT, f, diag, TAG_VERTEX):
        return VertexBlockPayload(**f)
    cur.align(16)
    _check_offset_order(f, diag)

    f["unknown_shorts"] = tuple(
        _read_i16_run(cur, f["sub_block_list_offset"], diag, "unknown short list")
    )

    _seek(cur, f["sub_block_list_offset"])
    sub_blocks: List[Tuple[int, int]] = []
    try:
        for _ in range(f["sub_block_count"]):
            sub_blocks.append((cur.i32(), cur.i32()))
    except TruncatedReadError:
        diag.warn(
            W_SHORT_PAYLOAD,
            f"sub-block list holds {len(sub_blocks)} of {f['sub_block_count']} entries",
        )
    f["sub_blocks"] = tuple(sub_blocks)

    _seek(cur, f["bind_bone_root_offset"])
    try:
        f["bind_bone_root"] = cur.i16()
    except TruncatedReadError:
        diag.warn(W_SHORT_PAYLOAD, "bind-bone root lies past the end of the payload")

    if f["bind_bone_list_offset"] != 0:
        _seek(cur, f["bind_bone_list_offset"])
    f["bind_bones"] = tuple(
        _read_i16_run(cur, f["float_list_offset"], diag, "bind-bone list")
    )

    _seek(cur, f["float_list_offset"])
    triplets: List[Tuple[float, float, float]] = []
    expected = max(0, f["float_triplet_count"]) // 2
    try:
        for _ in range(expected):
            triplets.append((cur.f32(), cur.f32(), cur.f32()))
    except TruncatedReadError:
        diag.warn(
            W_SHORT_PAYLOAD,
            f"float list holds {len(triplets)} of {expected} triplets",
        )
    f["float_triplets"] = tuple(triplets)

    strings: List[str] = []
    while cur.remaining:
        text, _ = cur.cstring("ascii")
        if text:
            strings.append(text)
    f["strings"] = tuple(strings)
    return VertexBlockPayload(**f)


# $RSI ---------------------------------------------------------------------

_RESOURCE_INDEX_LAYOUT = (
    ("unknown00", "u8"),
    ("unknown01", "u8"),
    ("unknown02", "u8"),
    ("unknown03", "u8"),
    ("resource_info_count", "u16"),
    ("resource_info_size", "u16"),
    ("string_list_offset", "u32"),
    ("unknown0c", "u32"),
)


@dataclass(frozen=True, slots=True)
class ResourceIndexPayload:
    unknown00: int = 0
    unknown01: int = 0
    unknown02: int = 0
    unknown03: int = 0
    resource_info_count: int = 0
    resource_info_size: int = 0
    string_list_offset: int = 0
    unknown0c: int = 0
    resource_data: bytes = b""
    resource_names: Tuple[str, ...] = ()

    def entries(self) -> List[Tuple[int, int]]:
        """(masked offset, length) from the first 8 bytes of every entry."""
        out: List[Tuple[int, int]] = []
        size = self.resource_info_size
        if size < 8:
            return out
        cur = ByteCursor(self.resource_data)
        for start in range(0, len(self.resource_data) - 7, size):
            cur.seek(start)
            out.append((cur.u32() & OFFSET_MASK, cur.u32()))
        return out

    def fields(self) -> Dict[str, Any]:
        return {
            "resource_names": list(self.resource_names),
            "resource_info_count": self.resource_info_count,
            "resource_info_size": self.resource_info_size,
            "string_list_offset": self.string_list_offset,
            "resources": [
                {"offset": off, "length": length}
                for off, length in self.entries()
            ],
        }


def decode_resource_index(
    payload: bytes, diag: Diagnostics
) -> ResourceIndexPayload:
    cur = ByteCursor(payload)
    f: Dict[str, Any] = {}
    if not _read_fields(cur, _RESOURCE_INDEX_LAYOUT, f, diag, TAG_RESOURCE_INDEX):
        return ResourceIndexPayload(**f)

    data_end = (
        RESOURCE_INDEX_HEADER_SIZE
        + f["resource_info_count"] * f["resource_info_size"]
    )
    if data_end > len(payload):
        diag.warn(
            W_SHORT_PAYLOAD,
            f"resource data needs 0x{data_end:X} bytes, payload has 0x{len(payload):X}",
        )
    f["resource_data"] = payload[RESOURCE_INDEX_HEADER_SIZE:data_end]

    names: List[str] = []
    offset = f["string_list_offset"]
    if offset:
        if offset < data_end:
            diag.warn(
                W_OFFSET_ORDER,
                f"string list at 0x{offset:X} overlaps resource data ending at 0x{data_end:X}",
            )
        while offset < len(payload):
            text, offset, _ = split_cstring(payload, offset)
            if text:
                names.append(text)
    f["resource_names"] = tuple(names)
    return ResourceIndexPayload(**f)


def register_builtin(registry) -> None:
    registry.register(TAG_MARKER, decode_marker, encode_marker)
    registry.register(TAG_FOLDER, decode_folder_name, encode_folder_name)
    registry.register(TAG_TERMINATOR, decode_terminator, encode_terminator)
    registry.register(TAG_VERTEX, decode_vertex_block)
    registry.register(TAG_RESOURCE_INDEX, decode_resource_index)
