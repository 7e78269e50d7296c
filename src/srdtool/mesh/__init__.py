"""Mesh extraction from SRD containers and OBJ serialization."""

from .extract import (
    MeshExtraction,
    MeshFailure,
    MeshGeometry,
    MeshPair,
    extract_all,
    extract_mesh,
    extract_pairs,
    find_mesh_pairs,
)
from .obj import fold_meshes, format_float, format_mesh, render_obj, write_obj

__all__ = [
    "MeshExtraction",
    "MeshFailure",
    "MeshGeometry",
    "MeshPair",
    "extract_all",
    "extract_mesh",
    "extract_pairs",
    "find_mesh_pairs",
    "fold_meshes",
    "format_float",
    "format_mesh",
    "render_obj",
    "write_obj",
]
