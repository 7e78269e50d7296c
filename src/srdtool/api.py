"""High-level API for SrdTool.

Each operation reports progress through the active reporter and ends with a
``"<Kind> summary: k=v ..."`` status line.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import Diagnostics
from .logging import get_logger
from .mesh import MeshExtraction, extract_pairs, find_mesh_pairs, write_obj
from .reporting import get_reporter, task
from .spc import Codec, SpcArchive, SpcSubfile
from .srd import (
    AuxBuffers,
    Block,
    BlockRegistry,
    Selector,
    dump_lines,
    parse,
    tree_to_dict,
    walk,
)
from .srd.constants import CONTAINER_EXTENSION
from .utils.io import safe_read_file
from .utils.paths import default_obj_path

__all__ = [
    "Container",
    "ExtractOptions",
    "ExtractResult",
    "DUMP_FORMATS",
    "check_container_path",
    "load_container",
    "dump_blocks",
    "extract_models",
    "list_archive",
    "extract_subfile",
    "insert_subfile",
]

DUMP_FORMATS = ("text", "json", "yaml")


@dataclass(slots=True)
class Container:
    path: Path
    blocks: Sequence[Block]
    diagnostics: Diagnostics
    size: int = 0

    @property
    def block_count(self) -> int:
        return sum(1 for _ in walk(self.blocks))


@dataclass(slots=True)
class ExtractOptions:
    container: Path
    output_path: Path | None = None
    # Which auxiliary buffer holds vertex/face data ("V" in shipped files)
    geometry_buffer: Selector = Selector.SECONDARY
    # Overrides for the <container>i / <container>v sibling files
    primary_path: Path | None = None
    secondary_path: Path | None = None


@dataclass(slots=True)
class ExtractResult:
    output_file: Path
    bytes_written: int
    extraction: MeshExtraction = field(default_factory=MeshExtraction)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def mesh_count(self) -> int:
        return len(self.extraction.meshes)

    @property
    def failed(self) -> int:
        return len(self.extraction.failures)


def check_container_path(path: Path) -> None:
    if path.suffix.lower() != CONTAINER_EXTENSION:
        raise ValueError(
            f"'{path.name}' is not an {CONTAINER_EXTENSION} container"
        )


def load_container(
    path: Path, registry: Optional[BlockRegistry] = None
) -> Container:
    rep = get_reporter()
    data = safe_read_file(path)
    diag = Diagnostics()
    with task("srd.parse", f"Parse {path.name}") as final:
        blocks = parse(data, registry, diag)
        container = Container(path, blocks, diag, len(data))
        final["blocks"] = container.block_count
        final["bytes"] = len(data)
    rep.status(
        "Parse summary: "
        + f"file={path.name} bytes={len(data)} top_level={len(blocks)} "
        + f"blocks={container.block_count} warnings={len(diag.warnings)}"
    )
    return container


def _dump_document(container: Container) -> Dict[str, Any]:
    return {
        "file": container.path.name,
        "size": container.size,
        "blocks": tree_to_dict(container.blocks),
        "diagnostics": [d.to_dict() for d in container.diagnostics.records],
    }


def dump_blocks(
    path: Path, fmt: str = "text", registry: Optional[BlockRegistry] = None
) -> str:
    """Render the block tree of ``path`` as text, JSON or YAML."""
    if fmt not in DUMP_FORMATS:
        raise ValueError(f"Unknown dump format '{fmt}'")
    container = load_container(path, registry)
    if fmt == "text":
        text = "\n".join(dump_lines(container.blocks))
    elif fmt == "json":
        text = json.dumps(_dump_document(container), indent=2)
    else:
        text = yaml.safe_dump(
            _dump_document(container), sort_keys=False, allow_unicode=True
        )
    get_reporter().status(
        f"Dump summary: format={fmt} blocks={container.block_count}"
    )
    return text


def extract_models(options: ExtractOptions) -> ExtractResult:
    logger = get_logger()
    rep = get_reporter()
    container = load_container(options.container)
    diag = container.diagnostics
    buffers = AuxBuffers.for_container(
        options.container, options.primary_path, options.secondary_path
    )
    buffer = buffers.select(options.geometry_buffer)
    logger.debug(
        "Geometry buffer %s: %d bytes",
        options.geometry_buffer.letter,
        len(buffer),
    )

    pairs = find_mesh_pairs(container.blocks, diag)
    with task("mesh.extract", "Extract meshes", total=len(pairs)) as final:
        extraction = extract_pairs(
            pairs,
            buffer,
            diag,
            progress=lambda name: rep.advance("mesh.extract", current_item=name),
        )
        final["meshes"] = len(extraction.meshes)
        final["vertices"] = extraction.vertex_total
        final["failed"] = len(extraction.failures)

    output = options.output_path or default_obj_path(options.container)
    with task("obj.write", f"Write {output.name}") as final:
        bytes_written = write_obj(extraction.meshes, output)
        final["bytes"] = bytes_written

    logger.info(
        "Wrote %s (%d meshes, %d vertices)",
        output.name,
        len(extraction.meshes),
        extraction.vertex_total,
    )
    rep.status(
        "Extract summary: "
        + f"meshes={len(extraction.meshes)} vertices={extraction.vertex_total} "
        + f"failed={len(extraction.failures)} output={output.name} "
        + f"buffer={options.geometry_buffer.letter}"
    )
    return ExtractResult(output, bytes_written, extraction, diag)


def list_archive(path: Path) -> List[SpcSubfile]:
    archive = SpcArchive.from_path(path)
    total = sum(s.current_size for s in archive.subfiles)
    get_reporter().status(
        "Archive summary: "
        + f"file={path.name} subfiles={len(archive.subfiles)} bytes={total}"
    )
    return list(archive.subfiles)


def extract_subfile(
    archive_path: Path,
    name: str,
    dest_dir: Path | None = None,
    codec: Codec | None = None,
    raw: bool = False,
) -> Path:
    archive = SpcArchive.from_path(archive_path)
    target_dir = dest_dir or archive_path.parent
    with task("spc.extract", f"Extract {name}") as final:
        written = archive.extract(name, target_dir, codec, raw)
        final["bytes"] = written.stat().st_size
    get_logger().info("Extracted %s to %s", name, written)
    return written


def insert_subfile(
    archive_path: Path,
    file_path: Path,
    output_path: Path | None = None,
    codec: Codec | None = None,
) -> Path:
    """Insert ``file_path`` into the archive; writes in place by default."""
    archive = SpcArchive.from_path(archive_path)
    target = output_path or archive_path
    with task("spc.insert", f"Insert {file_path.name}") as final:
        sub = archive.insert(file_path, codec)
        final["subfiles"] = len(archive.subfiles)
        final["bytes"] = archive.save(target)
    get_reporter().status(
        "Archive summary: "
        + f"file={target.name} subfiles={len(archive.subfiles)} "
        + f"inserted={sub.name} size={sub.current_size}"
    )
    return target
