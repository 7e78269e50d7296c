"""Byte builders for SrdTool tests.

Produces well-formed (or deliberately broken) SRD blocks and payloads so
tests never depend on game data files.

Usage:
    from srd_builders import block, vtx_payload, rsi_payload
    data = block("$VTX", vtx_payload(3, [(0, 32)]), children=block("$RSI", ...))
"""
from __future__ import annotations

import struct
from pathlib import Path
from typing import Iterable, Sequence, Tuple

HEADER = struct.Struct(">4sIIIIIII")


def pad16(data: bytes) -> bytes:
    return data + b"\x00" * ((16 - len(data) % 16) % 16)


def block(
    tag: str,
    payload: bytes = b"",
    children: bytes = b"",
    resource: Tuple[int, int, int] = (0, 0, 0),
    unknown0c: int = 0,
    trailing_pad: bool = True,
) -> bytes:
    """One serialized block; ``resource`` is (offset, length, selector)."""
    res_offset, res_length, selector = resource
    out = HEADER.pack(
        tag.encode("latin-1"),
        len(payload),
        len(children),
        unknown0c,
        res_offset,
        res_length,
        selector,
        0,
    )
    out += payload
    if children:
        out = pad16(out) + children
    # Files may end without the final alignment padding.
    return pad16(out) if trailing_pad else out


def cfh_payload(
    unknowns: Sequence[int] = (1, 2, 3), magic: int = 0x24434648
) -> bytes:
    return struct.pack(">I", magic) + struct.pack("<3I", *unknowns)


def rsf_payload(name: str, unknowns: Sequence[int] = (0x10, 0, 0)) -> bytes:
    return (
        struct.pack(">I", 0x24525346)
        + struct.pack("<3I", *unknowns)
        + name.encode("latin-1")
        + b"\x00"
    )


def vtx_payload(
    vertex_count: int,
    sub_blocks: Sequence[Tuple[int, int]],
    strings: Iterable[str] = (),
    floats: Sequence[Tuple[float, float, float]] = (),
    unknown_shorts: Sequence[int] = (),
    bind_bone_root: int = 0,
    bind_bones: Sequence[int] = (),
) -> bytes:
    """$VTX payload laid out in table order after the 0x20-byte header:
    unknown shorts, sub-block list, bind-bone root and list, floats, strings.
    """
    sub_list_offset = 0x20 + 2 * len(unknown_shorts)
    root_offset = sub_list_offset + 8 * len(sub_blocks)
    bone_list_offset = root_offset + 2 if bind_bones else 0
    float_offset = root_offset + 2 + 2 * len(bind_bones)
    header = struct.pack(
        "<ihhihBBhhhhh",
        2 * len(floats),
        0,
        0,
        vertex_count,
        0,
        0,
        len(sub_blocks),
        root_offset,
        sub_list_offset,
        float_offset,
        bone_list_offset,
        0,
    )
    out = header.ljust(0x20, b"\x00")
    for value in unknown_shorts:
        out += struct.pack("<h", value)
    for offset, size in sub_blocks:
        out += struct.pack("<ii", offset, size)
    out += struct.pack("<h", bind_bone_root)
    for bone in bind_bones:
        out += struct.pack("<h", bone)
    for triplet in floats:
        out += struct.pack("<3f", *triplet)
    for s in strings:
        out += s.encode("ascii") + b"\x00"
    return out


def rsi_payload(
    entries: Sequence[Tuple[int, int]],
    names: Iterable[str] = (),
    info_size: int = 16,
) -> bytes:
    """$RSI payload; each entry is (offset, length) padded to ``info_size``."""
    names = list(names)
    data = b"".join(
        struct.pack("<II", off, length).ljust(info_size, b"\x00")
        for off, length in entries
    )
    data_end = 0x10 + len(data)
    string_offset = data_end if names else 0
    header = struct.pack(
        "<4BHHII", 0, 0, 0, 0, len(entries), info_size, string_offset, 0
    )
    strings = b"".join(n.encode("ascii") + b"\x00" for n in names)
    return header + data + strings


def vertex_record(
    pos: Tuple[float, float, float],
    normal: Tuple[float, float, float],
    uv: Tuple[float, float] | None = None,
    size: int | None = None,
) -> bytes:
    out = struct.pack("<3f", *pos) + struct.pack("<3f", *normal)
    if uv is not None:
        out += struct.pack("<2f", *uv)
    return out.ljust(size or len(out), b"\x00")


def faces(triangles: Sequence[Tuple[int, int, int]]) -> bytes:
    return b"".join(struct.pack("<3H", *t) for t in triangles)


def mesh_blocks(
    name: str,
    vertex_count: int,
    sub_blocks: Sequence[Tuple[int, int]],
    vertex_range: Tuple[int, int],
    face_range: Tuple[int, int],
) -> bytes:
    """A $VTX block whose first child is the matching $RSI block."""
    rsi = block("$RSI", rsi_payload([vertex_range, face_range], [name]))
    return block("$VTX", vtx_payload(vertex_count, sub_blocks), children=rsi)


def write_container(
    directory: Path, name: str, data: bytes, secondary: bytes | None = None
) -> Path:
    path = directory / name
    path.write_bytes(data)
    if secondary is not None:
        path.with_name(path.name + "v").write_bytes(secondary)
    return path
