"""SRD block tree parser and serializer.

A container is a flat run of blocks; each block is a 32-byte big-endian
header, its payload, padding to 16 bytes, and an optional child region
holding a nested run of blocks (again padded to 16). Only a length that
reaches past its enclosing region is fatal (:class:`FormatError`); every
other anomaly is recorded in the diagnostics and parsing continues.
"""

from __future__ import annotations

from typing import Iterator, Optional, Sequence, Tuple

from ..errors import Diagnostics, W_SELECTOR, format_error
from ..logging import get_logger
from ..utils.binary import padding_for
from .block import Block, BlockHeader, ResourceDescriptor, Selector
from .constants import (
    BLOCK_ALIGNMENT,
    BLOCK_HEADER,
    BLOCK_HEADER_SIZE,
    TAG_SIZE,
)
from .cursor import ByteCursor
from .registry import BlockRegistry, default_registry

__all__ = ["parse", "serialize", "serialize_block", "walk"]


def parse(
    data: bytes,
    registry: Optional[BlockRegistry] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Tuple[Block, ...]:
    reg = registry or default_registry()
    diag = diagnostics if diagnostics is not None else Diagnostics()
    cur = ByteCursor(data)
    return _parse_region(cur, 0, len(data), reg, diag)


def _skip_padding(cur: ByteCursor, end: int) -> None:
    # Files may omit the padding after their last block.
    cur.skip(min(padding_for(cur.tell(), BLOCK_ALIGNMENT), end - cur.tell()))


def _is_zero_tail(cur: ByteCursor, end: int) -> bool:
    start = cur.tell()
    try:
        if any(cur.read(min(TAG_SIZE, end - start))):
            return False
        return not any(cur.read(end - cur.tell()))
    finally:
        cur.seek(start)


def _parse_region(
    cur: ByteCursor,
    start: int,
    end: int,
    registry: BlockRegistry,
    diag: Diagnostics,
) -> Tuple[Block, ...]:
    blocks = []
    cur.seek(start)
    while cur.tell() < end:
        if _is_zero_tail(cur, end):
            get_logger().debug(
                "Zero padding 0x%X..0x%X treated as end of region", cur.tell(), end
            )
            cur.seek(end)
            break
        if end - cur.tell() < BLOCK_HEADER_SIZE:
            raise format_error(
                "Truncated block header",
                {"offset": cur.tell(), "available": end - cur.tell()},
            )
        blocks.append(_parse_block(cur, end, registry, diag, len(blocks)))
    return tuple(blocks)


def _parse_block(
    cur: ByteCursor,
    end: int,
    registry: BlockRegistry,
    diag: Diagnostics,
    index: int,
) -> Block:
    offset = cur.tell()
    (
        raw_tag,
        payload_length,
        child_length,
        unknown0c,
        res_offset,
        res_length,
        res_selector,
        reserved,
    ) = BLOCK_HEADER.unpack(cur.read(BLOCK_HEADER_SIZE, "block header"))
    tag = raw_tag.decode("latin-1")
    ctx = {"tag": tag, "offset": offset}

    if payload_length > end - cur.tell():
        raise format_error(
            f"{tag} payload length {payload_length} overruns its region",
            {**ctx, "available": end - cur.tell()},
        )
    payload = cur.read(payload_length, f"{tag} payload")
    _skip_padding(cur, end)

    with diag.scope(f"[{index}]{tag}@0x{offset:X}"):
        children: Tuple[Block, ...] = ()
        if child_length:
            child_start = cur.tell()
            child_end = child_start + child_length
            if child_end > end:
                raise format_error(
                    f"{tag} child region length {child_length} overruns its region",
                    {**ctx, "available": end - child_start},
                )
            children = _parse_region(cur, child_start, child_end, registry, diag)
            cur.seek(child_end)
            _skip_padding(cur, end)

        header = BlockHeader(
            unknown0c, res_offset, res_length, res_selector, reserved
        )
        descriptor = _descriptor(header, diag)
        value = registry.decode(tag, payload, diag)

    return Block(
        tag=tag,
        payload_length=payload_length,
        payload=value,
        raw=payload,
        children=children,
        descriptor=descriptor,
        header=header,
        known=registry.is_known(tag),
    )


def _descriptor(
    header: BlockHeader, diag: Diagnostics
) -> Optional[ResourceDescriptor]:
    if not (
        header.resource_offset
        or header.resource_length
        or header.resource_selector
    ):
        return None
    try:
        selector = Selector(header.resource_selector)
    except ValueError:
        diag.warn(
            W_SELECTOR,
            f"Unknown resource selector {header.resource_selector}; descriptor ignored",
        )
        return None
    return ResourceDescriptor(
        selector, header.resource_offset, header.resource_length
    )


def serialize_block(
    block: Block, registry: Optional[BlockRegistry] = None
) -> bytes:
    reg = registry or default_registry()
    payload = reg.encode(block.tag, block.payload, block.raw)
    children = serialize(block.children, reg) if block.children else b""
    header = block.header
    res_offset, res_length, res_selector = (
        header.resource_offset,
        header.resource_length,
        header.resource_selector,
    )
    if block.descriptor is not None:
        res_offset = block.descriptor.offset
        res_length = block.descriptor.length
        res_selector = int(block.descriptor.selector)

    cur = ByteCursor()
    cur.write(
        BLOCK_HEADER.pack(
            block.tag.encode("latin-1"),
            len(payload),
            len(children),
            header.unknown0c,
            res_offset,
            res_length,
            res_selector,
            header.reserved,
        )
    )
    cur.write(payload)
    cur.write_padding(BLOCK_ALIGNMENT)
    if children:
        cur.write(children)
        cur.write_padding(BLOCK_ALIGNMENT)
    return cur.getvalue()


def serialize(
    blocks: Sequence[Block], registry: Optional[BlockRegistry] = None
) -> bytes:
    return b"".join(serialize_block(b, registry) for b in blocks)


def walk(
    blocks: Sequence[Block], depth: int = 0
) -> Iterator[Tuple[int, Block]]:
    """Depth-first ``(depth, block)`` pairs in file order."""
    for block in blocks:
        yield depth, block
        yield from walk(block.children, depth + 1)
