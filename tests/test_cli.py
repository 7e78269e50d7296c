"""End-to-end CLI runs against synthetic containers and archives."""

from __future__ import annotations

import json
from pathlib import Path

import yaml

from srdtool.cli import main
from srdtool.errors import Diagnostics, W_ALIGNMENT
from srdtool.reporting import SilentReporter, get_reporter, set_reporter
from srdtool.spc import SpcArchive, SpcSubfile

from srd_builders import (
    block,
    cfh_payload,
    faces,
    mesh_blocks,
    vertex_record,
    write_container,
)

GEOMETRY = (
    vertex_record((1.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 1.0), 32)
    + vertex_record((0.0, 1.0, 0.0), (0.0, 0.0, 1.0), (1.0, 1.0), 32)
    + vertex_record((0.0, 0.0, 1.0), (0.0, 0.0, 1.0), (1.0, 0.0), 32)
    + faces([(0, 1, 2)])
)


def _container_bytes() -> bytes:
    return (
        block("$CFH", cfh_payload())
        + mesh_blocks("tri", 3, [(0, 32)], (0, 96), (96, 6))
        + mesh_blocks("tri2", 3, [(0, 32)], (0, 96), (96, 6))
        + block("$CT0")
    )


def test_blocks_text(tmp_path: Path, capsys):
    path = write_container(tmp_path, "model.srd", _container_bytes())
    assert main(["blocks", str(path)]) == 0
    out = capsys.readouterr().out
    assert "Block Type: $CFH" in out
    assert "  Block Type: $RSI" in out


def test_blocks_json_and_yaml(tmp_path: Path, capsys):
    path = write_container(tmp_path, "model.srd", _container_bytes())
    assert main(["blocks", str(path), "--format", "json"]) == 0
    doc = json.loads(capsys.readouterr().out)
    assert [b["tag"] for b in doc["blocks"]] == ["$CFH", "$VTX", "$VTX", "$CT0"]
    assert doc["diagnostics"] == []

    assert main(["blocks", str(path), "--format", "yaml"]) == 0
    doc = yaml.safe_load(capsys.readouterr().out)
    assert doc["file"] == "model.srd"
    assert doc["blocks"][1]["children"][0]["fields"]["resource_names"] == ["tri"]


def test_container_extension_is_required(tmp_path: Path, capsys):
    path = write_container(tmp_path, "model.bin", _container_bytes())
    assert main(["blocks", str(path)]) == 2
    assert "not an .srd container" in capsys.readouterr().err


def test_missing_file_fails(tmp_path: Path, capsys):
    assert main(["blocks", str(tmp_path / "absent.srd")]) == 1
    assert "File not found" in capsys.readouterr().err


def test_main_restores_the_previous_reporter(tmp_path: Path, capsys):
    quiet = SilentReporter()
    set_reporter(quiet)
    assert main(["blocks", str(tmp_path / "absent.srd")]) == 1
    capsys.readouterr()
    assert get_reporter() is quiet
    Diagnostics().warn(W_ALIGNMENT, "after the run")
    assert any("after the run" in w for w in quiet.warnings)


def test_corrupt_container_fails(tmp_path: Path, capsys):
    path = write_container(tmp_path, "bad.srd", b"$CFH" + bytes(8))
    assert main(["blocks", str(path)]) == 1
    assert "E_FORMAT" in capsys.readouterr().err


def test_extract_models_writes_obj(tmp_path: Path, capsys):
    path = write_container(tmp_path, "model.srd", _container_bytes(), GEOMETRY)
    assert main(["extract-models", str(path)]) == 0
    text = (tmp_path / "model.srd.obj").read_text(encoding="utf-8")
    assert [l for l in text.splitlines() if l.startswith("f ")] == [
        "f 1/1/1 2/2/2 3/3/3",
        "f 4/4/4 5/5/5 6/6/6",
    ]
    assert "v -1 0 0" in text
    err = capsys.readouterr().err
    assert "Extract summary: meshes=2 vertices=6 failed=0" in err


def test_extract_models_output_and_buffer_options(tmp_path: Path):
    path = write_container(tmp_path, "model.srd", _container_bytes())
    (tmp_path / "model.srdi").write_bytes(GEOMETRY)
    out = tmp_path / "custom.obj"
    code = main(
        ["extract-models", str(path), "-o", str(out), "--geometry-buffer", "i"]
    )
    assert code == 0
    assert out.read_text(encoding="utf-8").startswith("o tri\n")


def test_extract_models_without_buffer_reports_failures(tmp_path: Path, capsys):
    path = write_container(tmp_path, "model.srd", _container_bytes())
    assert main(["extract-models", str(path)]) == 1
    # The OBJ is still written, just without the failed meshes.
    assert (tmp_path / "model.srd.obj").read_text(encoding="utf-8") == ""
    assert "E_OUT_OF_RANGE" in capsys.readouterr().err


def test_json_reporter_emits_summary_events(tmp_path: Path, capsys):
    path = write_container(tmp_path, "model.srd", _container_bytes(), GEOMETRY)
    assert main(["-r", "json", "extract-models", str(path)]) == 0
    events = [json.loads(l) for l in capsys.readouterr().out.splitlines()]
    summaries = {
        e["summary_type"]: e for e in events if e["event"] == "summary"
    }
    assert summaries["parse"]["blocks"] == "6"
    assert summaries["extract"]["meshes"] == "2"
    ends = [e for e in events if e["event"] == "task_end"]
    assert {e["id"] for e in ends} == {"srd.parse", "mesh.extract", "obj.write"}
    progress = [e for e in events if e["event"] == "task_progress"]
    assert [p["current_item"] for p in progress] == ["tri", "tri2"]


def _write_archive(tmp_path: Path) -> Path:
    path = tmp_path / "pack.spc"
    archive = SpcArchive(
        [
            SpcSubfile("a.txt", b"hello", original_size=5),
            SpcSubfile("b.srd", b"\x02" * 20, original_size=20),
        ]
    )
    archive.save(path)
    return path


def test_spc_list(tmp_path: Path, capsys):
    path = _write_archive(tmp_path)
    assert main(["spc", "list", str(path)]) == 0
    captured = capsys.readouterr()
    assert captured.out.splitlines() == [
        "a.txt\t5\t5\tstored",
        "b.srd\t20\t20\tstored",
    ]
    assert "Archive summary: file=pack.spc subfiles=2 bytes=25" in captured.err


def test_spc_extract_and_insert(tmp_path: Path):
    path = _write_archive(tmp_path)
    dest = tmp_path / "out"
    assert main(["spc", "extract", str(path), "a.txt", "-d", str(dest)]) == 0
    assert (dest / "a.txt").read_bytes() == b"hello"

    new_file = tmp_path / "c.bin"
    new_file.write_bytes(b"\x09" * 3)
    updated = tmp_path / "updated.spc"
    assert main(["spc", "insert", str(path), str(new_file), "-o", str(updated)]) == 0
    assert SpcArchive.from_path(updated).names() == ["a.txt", "b.srd", "c.bin"]
    assert SpcArchive.from_path(path).names() == ["a.txt", "b.srd"]


def test_spc_extract_missing_subfile(tmp_path: Path, capsys):
    path = _write_archive(tmp_path)
    assert main(["spc", "extract", str(path), "nope"]) == 1
    assert "E_SPC" in capsys.readouterr().err
