"""Wavefront OBJ text output.

Face indices are global and 1-based in OBJ, so every mesh's local indices
are shifted by the number of vertices already written. The shift is the
accumulator of a left-to-right fold over the meshes in file order.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Iterable, List, Tuple

from .extract import MeshGeometry

__all__ = ["format_float", "format_mesh", "fold_meshes", "render_obj", "write_obj"]

_F32 = struct.Struct("<f")


def _as_f32(value: float) -> float:
    return _F32.unpack(_F32.pack(value))[0]


def format_float(value: float) -> str:
    """Shortest decimal text that reads back as the same 32-bit float."""
    target = _as_f32(value)
    for digits in range(1, 10):
        text = f"{value:.{digits}g}"
        if _as_f32(float(text)) == target:
            return text
    return repr(value)


def _join(*values: float) -> str:
    return " ".join(format_float(v) for v in values)


def format_mesh(mesh: MeshGeometry, base: int) -> List[str]:
    """OBJ lines for one mesh whose first vertex follows ``base`` others."""
    lines = [f"o {mesh.name}"]
    lines.extend(f"v {_join(*p)}" for p in mesh.positions)
    lines.append("")
    lines.extend(f"vn {_join(*n)}" for n in mesh.normals)
    lines.append("")
    lines.extend(f"vt {_join(*t)}" for t in mesh.uvs)
    lines.append("")
    for tri in mesh.triangles:
        a, b, c = (i + 1 + base for i in tri)
        lines.append(f"f {a}/{a}/{a} {b}/{b}/{b} {c}/{c}/{c}")
    lines.append("")
    return lines


def fold_meshes(meshes: Iterable[MeshGeometry]) -> Tuple[List[str], int]:
    """Returns ``(lines, vertices_written)``."""
    lines: List[str] = []
    emitted = 0
    for mesh in meshes:
        lines.extend(format_mesh(mesh, emitted))
        # Grows by the v lines actually written, which is what OBJ indices
        # address; a mesh whose position stream was skipped adds none.
        emitted += mesh.vertex_count
    return lines, emitted


def render_obj(meshes: Iterable[MeshGeometry]) -> str:
    lines, _ = fold_meshes(meshes)
    return "\n".join(lines) + "\n" if lines else ""


def write_obj(meshes: Iterable[MeshGeometry], path: Path) -> int:
    text = render_obj(meshes)
    path.write_text(text, encoding="utf-8")
    return len(text.encode("utf-8"))
