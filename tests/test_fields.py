"""Testy czytnika pól binarnych."""

from __future__ import annotations

import pytest

from volume_analyzer.layouts.fields import ByteOrder, FieldReader, i32, raw, u16, u32


def test_reader_respects_explicit_byte_order() -> None:
    data = bytes([0x01, 0x02, 0x03, 0x04])

    assert FieldReader(data).uint(0, 4) == 0x04030201
    assert FieldReader(data, ByteOrder.BIG).uint(0, 4) == 0x01020304
    assert FieldReader(data, ByteOrder.PDP).uint(0, 4) == 0x02010403


def test_pdp_order_only_affects_32bit_fields() -> None:
    reader = FieldReader(bytes([0x34, 0x12]), ByteOrder.PDP)

    assert reader.uint(0, 2) == 0x1234


def test_signed_read_and_base_offset() -> None:
    data = b"\x00" * 4 + (-5).to_bytes(4, "little", signed=True)
    reader = FieldReader(data, base=4)

    assert reader.read(i32("time", 0)) == -5
    assert reader.read(raw("bytes", 0, 2)) == data[4:6]


def test_read_all_scales_marked_fields_on_optical_media() -> None:
    data = (2048).to_bytes(2, "little") + (400).to_bytes(2, "little")
    fields = (u16("bytes_per_sector", 0), u16("sectors", 2, scaled=True))

    plain = FieldReader(data).read_all(fields)
    optical = FieldReader(data).read_all(fields, optical=True)

    assert plain == {"bytes_per_sector": 2048, "sectors": 400}
    assert optical == {"bytes_per_sector": 2048, "sectors": 100}


def test_out_of_bounds_read_is_rejected() -> None:
    with pytest.raises(ValueError):
        FieldReader(b"\x00\x00").read(u32("fsize", 0))
