import struct
from pathlib import Path

import pytest

from srdtool.mesh import (
    MeshGeometry,
    fold_meshes,
    format_float,
    format_mesh,
    render_obj,
    write_obj,
)


def _triangle(name: str, count: int = 3) -> MeshGeometry:
    mesh = MeshGeometry(name)
    for i in range(count):
        mesh.positions.append((float(i), 0.5, -1.0))
        mesh.normals.append((0.0, 1.0, 0.0))
        mesh.uvs.append((0.25, -0.5))
    mesh.triangles.append((0, 1, 2))
    return mesh


def _lines(text: str, prefix: str) -> list[str]:
    return [l for l in text.splitlines() if l.startswith(prefix)]


def test_single_mesh_lines():
    lines = format_mesh(_triangle("cube"), 0)
    assert lines[0] == "o cube"
    assert lines[1] == "v 0 0.5 -1"
    assert "vn 0 1 0" in lines
    assert "vt 0.25 -0.5" in lines
    assert "f 1/1/1 2/2/2 3/3/3" in lines


def test_face_indices_continue_across_meshes():
    text = render_obj([_triangle("a", 3), _triangle("b", 4), _triangle("c", 1)])
    assert _lines(text, "o ") == ["o a", "o b", "o c"]
    assert _lines(text, "f ") == [
        "f 1/1/1 2/2/2 3/3/3",
        "f 4/4/4 5/5/5 6/6/6",
        "f 8/8/8 9/9/9 10/10/10",
    ]
    assert len(_lines(text, "v ")) == 8


def test_fold_reports_vertices_written():
    _, emitted = fold_meshes([_triangle("a", 3), _triangle("b", 5)])
    assert emitted == 8


def test_mesh_without_positions_does_not_advance_indices():
    positionless = MeshGeometry("bones_only", triangles=[(0, 1, 2)])
    text = render_obj([_triangle("a", 3), positionless, _triangle("b", 3)])
    assert _lines(text, "f ") == [
        "f 1/1/1 2/2/2 3/3/3",
        "f 4/4/4 5/5/5 6/6/6",
        "f 4/4/4 5/5/5 6/6/6",
    ]
    assert len(_lines(text, "v ")) == 6


def test_empty_mesh_list_renders_nothing(tmp_path: Path):
    assert render_obj([]) == ""
    out = tmp_path / "empty.obj"
    assert write_obj([], out) == 0
    assert out.read_text(encoding="utf-8") == ""


def _f32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


@pytest.mark.parametrize(
    "value, text",
    [
        (1.0, "1"),
        (-0.5, "-0.5"),
        (_f32(0.1), "0.1"),
        (_f32(1e-7), "1e-07"),
        (_f32(123.456), "123.456"),
    ],
)
def test_floats_use_shortest_round_trip_text(value: float, text: str):
    assert format_float(value) == text


def test_small_magnitudes_survive_formatting():
    mesh = MeshGeometry("tiny", positions=[(_f32(1e-7), 0.0, _f32(-3.0e-9))])
    line = format_mesh(mesh, 0)[1]
    x, _, z = (float(t) for t in line.split()[1:])
    assert _f32(x) == _f32(1e-7)
    assert _f32(z) == _f32(-3.0e-9)
