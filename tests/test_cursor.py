import struct

import pytest

from srdtool.errors import FormatError, TruncatedReadError
from srdtool.srd.cursor import ByteCursor


def test_reads_little_and_big_endian():
    data = struct.pack("<I", 0x11223344) + struct.pack(">I", 0x11223344)
    cur = ByteCursor(data)
    assert cur.u32() == 0x11223344
    assert cur.u32(big=True) == 0x11223344
    assert cur.remaining == 0


def test_signed_and_float_reads():
    cur = ByteCursor(struct.pack("<hif", -2, -70000, 1.5))
    assert cur.i16() == -2
    assert cur.i32() == -70000
    assert cur.f32() == pytest.approx(1.5)


def test_read_past_end_raises_truncated():
    cur = ByteCursor(b"\x01\x02")
    with pytest.raises(TruncatedReadError) as exc:
        cur.u32()
    # Truncation is a format error with the offending offset attached.
    assert isinstance(exc.value, FormatError)
    assert exc.value.context["offset"] == 0
    assert cur.tell() == 0


def test_cstring_terminated_and_unterminated():
    cur = ByteCursor(b"abc\x00def")
    assert cur.cstring() == ("abc", True)
    assert cur.tell() == 4
    assert cur.cstring() == ("def", False)
    assert cur.remaining == 0


def test_align_and_seek():
    cur = ByteCursor(bytes(64))
    cur.skip(5)
    assert cur.align(16) == 11
    assert cur.tell() == 16
    assert cur.align(16) == 0
    with pytest.raises(ValueError):
        cur.seek(-1)


def test_growable_writer_pads_to_alignment():
    cur = ByteCursor()
    cur.write_u32(0x24434648, big=True)
    cur.write_u16(7)
    cur.write_padding(16)
    out = cur.getvalue()
    assert len(out) == 16
    assert out[:4] == b"$CFH"
    assert out[4:6] == b"\x07\x00"
    assert out[6:] == bytes(10)


def test_read_only_cursor_rejects_writes():
    cur = ByteCursor(b"abcd")
    with pytest.raises(TypeError):
        cur.write(b"x")
