"""Read-only block tree dump (text lines or plain dictionaries)."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from .block import Block

__all__ = ["block_fields", "dump_lines", "tree_to_dict"]


def block_fields(block: Block) -> Dict[str, Any]:
    fields = getattr(block.payload, "fields", None)
    return fields() if callable(fields) else {"size": block.payload_length}


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(_format_value(v) for v in value)
    if isinstance(value, dict):
        inner = ", ".join(f"{k}={_format_value(v)}" for k, v in value.items())
        return f"({inner})"
    return str(value)


def dump_lines(blocks: Sequence[Block], indent: str = "  ") -> List[str]:
    lines: List[str] = []
    _dump(blocks, 0, indent, lines)
    return lines


def _dump(
    blocks: Sequence[Block], level: int, indent: str, lines: List[str]
) -> None:
    pad = indent * level
    for block in blocks:
        suffix = "" if block.known else " (unknown block type)"
        lines.append(f"{pad}Block Type: {block.tag}{suffix}")
        inner = pad + indent
        lines.append(f"{inner}payload_length: {block.payload_length}")
        for key, value in block_fields(block).items():
            lines.append(f"{inner}{key}: {_format_value(value)}")
        if block.descriptor is not None:
            d = block.descriptor
            lines.append(
                f"{inner}resource: {d.selector.letter}"
                f"@0x{d.masked_offset:X}+0x{d.length:X}"
            )
        if block.children:
            lines.append(f"{inner}Child Blocks: {len(block.children):,}")
            _dump(block.children, level + 1, indent, lines)


def tree_to_dict(blocks: Sequence[Block]) -> List[Dict[str, Any]]:
    return [
        {
            "tag": b.tag,
            "known": b.known,
            "payload_length": b.payload_length,
            "fields": block_fields(b),
            "resource": b.descriptor.to_dict() if b.descriptor else None,
            "child_count": len(b.children),
            "children": tree_to_dict(b.children),
        }
        for b in blocks
    ]
