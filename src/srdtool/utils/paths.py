"""Sibling file naming for SRD containers.

``foo.srd`` keeps its bulk data in ``foo.srdi`` ("I", primary) and
``foo.srdv`` ("V", secondary); extracted meshes land in ``foo.srd.obj``.
"""

from __future__ import annotations

from pathlib import Path

__all__ = [
    "PRIMARY_SUFFIX",
    "SECONDARY_SUFFIX",
    "OBJ_SUFFIX",
    "sibling_path",
    "aux_paths",
    "default_obj_path",
    "safe_file_path",
]

PRIMARY_SUFFIX = "i"
SECONDARY_SUFFIX = "v"
OBJ_SUFFIX = ".obj"


def sibling_path(container: Path, suffix: str) -> Path:
    return container.with_name(container.name + suffix)


def aux_paths(container: Path) -> tuple[Path, Path]:
    return (
        sibling_path(container, PRIMARY_SUFFIX),
        sibling_path(container, SECONDARY_SUFFIX),
    )


def default_obj_path(container: Path) -> Path:
    return sibling_path(container, OBJ_SUFFIX)


def safe_file_path(base_dir: Path, file_name: str) -> Path:
    base_dir = base_dir.resolve()
    resolved = (base_dir / file_name).resolve()
    resolved.relative_to(base_dir)  # raises ValueError if escapes
    return resolved
