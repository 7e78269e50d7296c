from srdtool.srd import dump_lines, parse, tree_to_dict

from srd_builders import block, cfh_payload, mesh_blocks


def _blocks():
    return parse(
        block("$CFH", cfh_payload((7, 8, 9)))
        + mesh_blocks("body", 2, [(0, 32)], (0, 64), (64, 6))
        + block("$QQQ", b"\x00" * 5, resource=(0x20000010, 0x30, 1))
    )


def test_text_dump_nests_children():
    lines = dump_lines(_blocks())
    assert lines[0] == "Block Type: $CFH"
    assert "  unknowns: 7, 8, 9" in lines
    assert "Block Type: $VTX" in lines
    assert "  Child Blocks: 1" in lines
    assert "  Block Type: $RSI" in lines
    assert "    resource_names: body" in lines


def test_text_dump_marks_unknown_tags():
    lines = dump_lines(_blocks())
    assert "Block Type: $QQQ (unknown block type)" in lines
    assert "  size: 5" in lines
    assert "  resource: v@0x10+0x30" in lines


def test_tree_to_dict_structure():
    tree = tree_to_dict(_blocks())
    assert [n["tag"] for n in tree] == ["$CFH", "$VTX", "$QQQ"]
    vtx = tree[1]
    assert vtx["child_count"] == 1
    assert vtx["fields"]["vertex_count"] == 2
    assert vtx["fields"]["sub_blocks"] == [{"offset": 0, "size": 32}]
    rsi = vtx["children"][0]
    assert rsi["fields"]["resources"] == [
        {"offset": 0, "length": 64},
        {"offset": 64, "length": 6},
    ]
    assert tree[2]["known"] is False
    assert tree[2]["resource"] == {
        "selector": "secondary",
        "offset": 0x10,
        "raw_offset": 0x20000010,
        "length": 0x30,
    }
