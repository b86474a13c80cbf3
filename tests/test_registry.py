"""Testy rejestru układów."""

from __future__ import annotations

from volume_analyzer.layouts import LAYOUTS, ByteOrder, LayoutFamily, LayoutKind, layout


def test_every_kind_has_a_descriptor() -> None:
    assert set(LAYOUTS) == set(LayoutKind)


def test_families_are_disjoint() -> None:
    fat = {descriptor.kind for descriptor in LAYOUTS.values() if descriptor.family is LayoutFamily.FAT}
    sysv = {descriptor.kind for descriptor in LAYOUTS.values() if descriptor.family is LayoutFamily.SYSV}

    assert LayoutKind.FAT32 in fat
    assert LayoutKind.COHERENT in sysv
    assert not fat & sysv


def test_fat_descriptors_carry_boot_code_offsets() -> None:
    assert layout(LayoutKind.FAT32).boot_code_offset == 0x5A
    assert layout(LayoutKind.EBPB).boot_code_offset == 0x3E
    assert layout(LayoutKind.DOS20).boot_code_offset == 0x18
    assert layout(LayoutKind.MSX).forces_fat12


def test_coherent_defaults_to_pdp_order() -> None:
    descriptor = layout(LayoutKind.COHERENT)
    buffer = bytearray(0x200)
    buffer[2:6] = bytes([0x01, 0x00, 0x40, 0x00])

    assert descriptor.default_byte_order is ByteOrder.PDP
    assert descriptor.decode(bytes(buffer))["fsize"] == 0x00010040


def test_short_fat32_replaces_label_with_huge_sector_count() -> None:
    descriptor = layout(LayoutKind.SHORT_FAT32)

    assert "huge_sectors" in descriptor.fields
    assert "volume_label" not in descriptor.fields
    assert descriptor.fields["huge_sectors"].scaled
