"""Block tree parsing, serialization and structural error handling."""

from __future__ import annotations

import pytest

from srdtool.errors import Diagnostics, FormatError, W_SELECTOR
from srdtool.srd import Selector, parse, serialize, walk
from srdtool.srd.payloads import (
    FolderNamePayload,
    MarkerPayload,
    OpaquePayload,
    ResourceIndexPayload,
    VertexBlockPayload,
)

from srd_builders import (
    HEADER,
    block,
    cfh_payload,
    mesh_blocks,
    rsf_payload,
)


def _sample_container() -> bytes:
    return (
        block("$CFH", cfh_payload())
        + block("$RSF", rsf_payload("chara"))
        + mesh_blocks("body", 2, [(0, 32)], (0, 64), (64, 6))
        + block("$ZZZ", b"\x01\x02\x03\x04\x05")
        + block("$CT0")
    )


def test_top_level_order_and_payload_types():
    blocks = parse(_sample_container())
    assert [b.tag for b in blocks] == ["$CFH", "$RSF", "$VTX", "$ZZZ", "$CT0"]
    assert isinstance(blocks[0].payload, MarkerPayload)
    assert isinstance(blocks[1].payload, FolderNamePayload)
    assert blocks[1].payload.folder_name == "chara"
    assert isinstance(blocks[2].payload, VertexBlockPayload)
    assert isinstance(blocks[3].payload, OpaquePayload)
    assert not blocks[3].known
    assert blocks[4].payload_length == 0


def test_children_are_nested_under_their_parent():
    blocks = parse(_sample_container())
    vtx = blocks[2]
    assert len(vtx.children) == 1
    rsi = vtx.child(0)
    assert rsi.tag == "$RSI"
    assert isinstance(rsi.payload, ResourceIndexPayload)
    assert rsi.payload.resource_names == ("body",)
    assert vtx.child(1) is None


def test_walk_is_depth_first_in_file_order():
    blocks = parse(_sample_container())
    visited = [(depth, b.tag) for depth, b in walk(blocks)]
    assert visited == [
        (0, "$CFH"),
        (0, "$RSF"),
        (0, "$VTX"),
        (1, "$RSI"),
        (0, "$ZZZ"),
        (0, "$CT0"),
    ]


def test_serialize_reproduces_input_bytes():
    data = _sample_container()
    assert serialize(parse(data)) == data


def test_serialize_keeps_non_ascii_folder_name():
    data = block("$CFH", cfh_payload()) + block("$RSF", rsf_payload("\x82\xa0"))
    blocks = parse(data)
    assert blocks[1].payload.folder_name == "\x82\xa0"
    assert serialize(blocks) == data


def test_missing_trailing_padding_is_tolerated():
    data = block("$CFH", cfh_payload()) + block(
        "$ABC", b"\x01\x02\x03", trailing_pad=False
    )
    blocks = parse(data)
    assert [b.tag for b in blocks] == ["$CFH", "$ABC"]
    assert blocks[1].raw == b"\x01\x02\x03"
    # Whole-block serialization always pads.
    out = serialize(blocks)
    assert out[: len(data)] == data
    assert len(out) % 16 == 0


def test_zero_tail_is_treated_as_padding():
    data = block("$CT0") + bytes(48)
    blocks = parse(data)
    assert [b.tag for b in blocks] == ["$CT0"]


def test_empty_input_has_no_blocks():
    assert parse(b"") == ()


def test_payload_overrun_is_fatal():
    data = HEADER.pack(b"$CFH", 100, 0, 0, 0, 0, 0, 0) + bytes(16)
    with pytest.raises(FormatError) as exc:
        parse(data)
    assert exc.value.context["tag"] == "$CFH"


def test_child_region_overrun_is_fatal():
    inner = block("$CT0")
    data = HEADER.pack(b"$VTX", 0, len(inner) + 64, 0, 0, 0, 0, 0) + inner
    with pytest.raises(FormatError):
        parse(data)


def test_truncated_header_is_fatal():
    data = block("$CT0") + b"$CFH" + bytes(8)
    with pytest.raises(FormatError):
        parse(data)


def test_resource_descriptor_keeps_raw_offset():
    data = block("$TXR", b"", resource=(0xE0000010, 0x40, 1))
    (blk,) = parse(data)
    d = blk.descriptor
    assert d is not None
    assert d.selector is Selector.SECONDARY
    assert d.offset == 0xE0000010
    assert d.masked_offset == 0x10
    assert d.reserved_bits == 0x7
    assert serialize([blk]) == data


def test_unknown_selector_is_a_warning():
    diag = Diagnostics()
    (blk,) = parse(block("$TXR", b"", resource=(0x10, 0x20, 5)), diagnostics=diag)
    assert blk.descriptor is None
    assert W_SELECTOR in diag.codes()
    assert "$TXR" in diag.records[0].path
    assert blk.header.resource_selector == 5
