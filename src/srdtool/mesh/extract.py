"""Rebuild mesh geometry from ``$VTX``/``$RSI`` block pairs.

A mesh is a ``$VTX`` block whose first child is a ``$RSI`` block. The
``$RSI`` resource data starts with the (offset, length) of the vertex data
in the geometry buffer and, at the next 16-byte entry, the (offset, length)
of its u16 triangle list. Vertex data is split into per-attribute streams
(sub-blocks), each with its own per-vertex stride:

* stream 0: position + normal, plus UV when it is the only stream
* stream 1: bone weights (not interpreted)
* stream 2: UV, present alongside a bone stream

Every read goes through :func:`resolve_range`, so a missing or short
geometry buffer fails only the mesh that needed it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ..errors import (
    Diagnostics,
    OutOfRangeError,
    TruncatedReadError,
    W_ALIGNMENT,
    W_SUBBLOCK,
    W_UNNAMED,
    W_UNPAIRED,
    out_of_range,
)
from ..srd.block import Block, Selector
from ..srd.constants import (
    OFFSET_MASK,
    RESOURCE_ENTRY_ALIGNMENT,
    TAG_RESOURCE_INDEX,
    TAG_VERTEX,
)
from ..srd.cursor import ByteCursor
from ..srd.parser import walk
from ..srd.payloads import ResourceIndexPayload, VertexBlockPayload
from ..srd.resolver import AuxBuffers, resolve_range

__all__ = [
    "MeshGeometry",
    "MeshPair",
    "MeshFailure",
    "MeshExtraction",
    "find_mesh_pairs",
    "extract_mesh",
    "extract_pairs",
    "extract_all",
    "mesh_name",
]

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

SUB_BLOCK_POSITION_NORMAL = 0
SUB_BLOCK_BONE_WEIGHTS = 1
SUB_BLOCK_UV = 2

POSITION_NORMAL_SIZE = 24
POSITION_NORMAL_UV_SIZE = 32
UV_SIZE = 8
FACE_SIZE = 6


@dataclass(slots=True)
class MeshGeometry:
    name: str
    positions: List[Vec3] = field(default_factory=list)
    normals: List[Vec3] = field(default_factory=list)
    uvs: List[Vec2] = field(default_factory=list)
    triangles: List[Tuple[int, int, int]] = field(default_factory=list)

    @property
    def vertex_count(self) -> int:
        return len(self.positions)


@dataclass(frozen=True, slots=True)
class MeshPair:
    vertex_block: Block
    index_block: Block
    ordinal: int

    @property
    def vertex(self) -> VertexBlockPayload:
        return self.vertex_block.payload

    @property
    def index(self) -> ResourceIndexPayload:
        return self.index_block.payload


@dataclass(frozen=True, slots=True)
class MeshFailure:
    name: str
    error: OutOfRangeError


@dataclass(slots=True)
class MeshExtraction:
    meshes: List[MeshGeometry] = field(default_factory=list)
    failures: List[MeshFailure] = field(default_factory=list)

    @property
    def vertex_total(self) -> int:
        return sum(m.vertex_count for m in self.meshes)


def find_mesh_pairs(
    blocks: Sequence[Block], diagnostics: Optional[Diagnostics] = None
) -> List[MeshPair]:
    """Vertex/resource-index pairs in depth-first file order."""
    diag = diagnostics if diagnostics is not None else Diagnostics()
    pairs: List[MeshPair] = []
    for _, block in walk(blocks):
        if block.tag != TAG_VERTEX:
            continue
        first = block.child(0)
        if (
            first is None
            or first.tag != TAG_RESOURCE_INDEX
            or not isinstance(first.payload, ResourceIndexPayload)
            or not isinstance(block.payload, VertexBlockPayload)
        ):
            diag.warn(
                W_UNPAIRED,
                f"{TAG_VERTEX} block #{len(pairs)} has no decoded "
                f"{TAG_RESOURCE_INDEX} first child; skipped",
            )
            continue
        pairs.append(MeshPair(block, first, len(pairs)))
    return pairs


def mesh_name(pair: MeshPair, diag: Diagnostics) -> str:
    names = pair.index.resource_names
    if names:
        return names[0]
    fallback = f"mesh_{pair.ordinal}"
    diag.warn(W_UNNAMED, f"Resource index has no names; using '{fallback}'")
    return fallback


def _read_range(blob: ByteCursor, label: str) -> Tuple[int, int]:
    try:
        return blob.u32() & OFFSET_MASK, blob.u32()
    except TruncatedReadError as e:
        raise out_of_range(
            f"resource data has no {label} entry at 0x{blob.tell():X}",
            {"resource_data_size": len(blob)},
        ) from e


def _check_vertex_count(
    vertex: VertexBlockPayload, length: int, diag: Diagnostics
) -> None:
    stride = vertex.combined_stride
    if stride <= 0:
        diag.warn(
            W_ALIGNMENT, f"Vertex sub-blocks declare a combined stride of {stride}"
        )
    elif length // stride != vertex.vertex_count:
        diag.warn(
            W_ALIGNMENT,
            "Total vertex block length and expected vertex count are misaligned: "
            f"{length} // {stride} != {vertex.vertex_count}",
        )


def _record_width(index: int, only_stream: bool) -> Optional[int]:
    if index == SUB_BLOCK_POSITION_NORMAL:
        return POSITION_NORMAL_UV_SIZE if only_stream else POSITION_NORMAL_SIZE
    if index == SUB_BLOCK_UV:
        return UV_SIZE
    return None


def _read_stream(
    mesh: MeshGeometry,
    index: int,
    stream: ByteCursor,
    count: int,
    stride: int,
    only_stream: bool,
) -> None:
    for v in range(count):
        stream.seek(v * stride)
        if index == SUB_BLOCK_POSITION_NORMAL:
            x, y, z = stream.f32(), stream.f32(), stream.f32()
            mesh.positions.append((-x, y, z))
            nx, ny, nz = stream.f32(), stream.f32(), stream.f32()
            mesh.normals.append((-nx, ny, nz))
            if only_stream:
                u, t = stream.f32(), stream.f32()
                mesh.uvs.append((u, -t))
        else:
            u, t = stream.f32(), stream.f32()
            mesh.uvs.append((u, -t))


def extract_mesh(
    vertex: VertexBlockPayload,
    index: ResourceIndexPayload,
    buffer: Optional[bytes],
    diagnostics: Optional[Diagnostics] = None,
    name: str = "mesh",
) -> MeshGeometry:
    """Decode one mesh from ``buffer`` (the selected geometry buffer).

    Raises :class:`OutOfRangeError` when a vertex stream or the face table
    lies outside ``buffer``; count/stride mismatches are only warnings.
    """
    diag = diagnostics if diagnostics is not None else Diagnostics()
    blob = ByteCursor(index.resource_data)
    vb_offset, vb_length = _read_range(blob, "vertex range")
    _check_vertex_count(vertex, vb_length, diag)

    mesh = MeshGeometry(name)
    count = max(vertex.vertex_count, 0)
    only_stream = vertex.sub_block_count == 1
    for s, (sub_offset, stride) in enumerate(vertex.sub_blocks):
        if s == SUB_BLOCK_BONE_WEIGHTS:
            continue
        width = _record_width(s, only_stream)
        if width is None:
            diag.warn(
                W_SUBBLOCK, f"Vertex sub-block {s} has no known layout; skipped"
            )
            continue
        if stride <= 0:
            diag.warn(
                W_ALIGNMENT, f"Vertex sub-block {s} has stride {stride}; skipped"
            )
            continue
        if width > stride:
            diag.warn(
                W_ALIGNMENT,
                f"Vertex sub-block {s} stride {stride} is smaller than "
                f"its {width}-byte record",
            )
        span = (count - 1) * stride + width if count else 0
        data = resolve_range(
            buffer, vb_offset + sub_offset, span, f"vertex sub-block {s}"
        )
        _read_stream(mesh, s, ByteCursor(data), count, stride, only_stream)

    blob.align(RESOURCE_ENTRY_ALIGNMENT)
    fb_offset, fb_length = _read_range(blob, "face range")
    if fb_length % FACE_SIZE:
        diag.warn(
            W_ALIGNMENT,
            f"Face table length {fb_length} is not a multiple of {FACE_SIZE}; "
            "trailing bytes ignored",
        )
    faces = ByteCursor(resolve_range(buffer, fb_offset, fb_length, "face table"))
    for _ in range(fb_length // FACE_SIZE):
        mesh.triangles.append((faces.u16(), faces.u16(), faces.u16()))
    return mesh


def extract_pairs(
    pairs: Sequence[MeshPair],
    buffer: Optional[bytes],
    diagnostics: Optional[Diagnostics] = None,
    progress: Optional[Callable[[str], None]] = None,
) -> MeshExtraction:
    """Extract ``pairs`` in order; failed meshes are recorded, not raised."""
    diag = diagnostics if diagnostics is not None else Diagnostics()
    result = MeshExtraction()
    for pair in pairs:
        name = mesh_name(pair, diag)
        with diag.scope(f"mesh[{pair.ordinal}]{name}"):
            try:
                result.meshes.append(
                    extract_mesh(pair.vertex, pair.index, buffer, diag, name)
                )
            except OutOfRangeError as e:
                diag.fail(e)
                result.failures.append(MeshFailure(name, e))
        if progress is not None:
            progress(name)
    return result


def extract_all(
    blocks: Sequence[Block],
    buffers: AuxBuffers,
    selector: Selector = Selector.SECONDARY,
    diagnostics: Optional[Diagnostics] = None,
) -> MeshExtraction:
    diag = diagnostics if diagnostics is not None else Diagnostics()
    pairs = find_mesh_pairs(blocks, diag)
    return extract_pairs(pairs, buffers.select(selector), diag)
