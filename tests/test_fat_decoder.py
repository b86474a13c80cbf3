"""Testy dekodera znormalizowanego opisu wolumenu FAT."""

from __future__ import annotations

import pytest

from synthetic_data import (
    SECTOR,
    boot_sector,
    dec_rainbow_image,
    fat12_image,
    fat32_boot_sector,
    fsinfo_sector,
    legacy_floppy_image,
    put_sector,
)
from volume_analyzer.core.models import MediaKind, SectorGeometry
from volume_analyzer.drivers import MemorySectorSource
from volume_analyzer.fat import FatClassifier, FatSubtype, decode
from volume_analyzer.fat.classifier import ClassificationResult
from volume_analyzer.fat.decoder import ATARI_BOOT_CHECKSUM, atari_checksum
from volume_analyzer.layouts import LayoutKind, layout


def _classify(image: bytes, *, sector_size: int = SECTOR, media_kind: MediaKind = MediaKind.BLOCK_MEDIA):
    source = MemorySectorSource(bytes(image), sector_size=sector_size, media_kind=media_kind)
    geometry = SectorGeometry(sector_size, source.total_sectors, media_kind, 0, source.total_sectors - 1)
    result = FatClassifier().classify(source, geometry)
    assert isinstance(result, ClassificationResult)
    return result


def _direct(kind: LayoutKind, sector: bytes, total_sectors: int) -> ClassificationResult:
    geometry = SectorGeometry(SECTOR, total_sectors, MediaKind.BLOCK_MEDIA, 0, total_sectors - 1)
    return ClassificationResult(variant=layout(kind), raw_buffer=bytes(sector), geometry=geometry)


def test_msdos5_floppy_end_to_end() -> None:
    image = fat12_image(boot_sector(), total_sectors=2880)

    descriptor = decode(_classify(image))

    assert descriptor.variant is LayoutKind.EBPB
    assert descriptor.subtype is FatSubtype.FAT12
    assert descriptor.bytes_per_sector == 512
    assert descriptor.sectors_per_cluster == 4
    assert descriptor.total_clusters == 720
    assert descriptor.cluster_size_bytes == 2048
    assert descriptor.root_directory_sector == 19
    assert descriptor.root_directory_sectors == 14
    assert descriptor.volume_serial == "1234ABCD"
    assert descriptor.volume_label == b"NO NAME    "
    assert descriptor.fs_type_tag == b"FAT12   "
    assert descriptor.bootable is True
    assert descriptor.boot_code == bytes(image[0x3E:510])


@pytest.mark.parametrize(("sectors", "expected"), [(4088, FatSubtype.FAT12), (4089, FatSubtype.FAT16)])
def test_cluster_count_boundary(sectors: int, expected: FatSubtype) -> None:
    sector = boot_sector(sectors_per_cluster=1, sectors=sectors, sectors_per_fat=12)

    descriptor = decode(_direct(LayoutKind.EBPB, sector, 5000))

    assert descriptor.total_clusters == sectors
    assert descriptor.subtype is expected


def test_zero_sectors_per_cluster_is_treated_as_one() -> None:
    sector = boot_sector(sectors_per_cluster=0, sectors=100, sectors_per_fat=1)

    descriptor = decode(_direct(LayoutKind.DOS20, sector, 200))

    assert descriptor.sectors_per_cluster == 1
    assert descriptor.total_clusters == 100


def test_fat32_with_fsinfo() -> None:
    image = bytearray(256 * SECTOR)
    put_sector(image, 0, fat32_boot_sector(sectors_per_cluster=1, reserved=32, sectors_per_fat=2))
    put_sector(image, 1, fsinfo_sector(free_clusters=100, last_allocated=5))

    descriptor = decode(_classify(image))

    assert descriptor.subtype is FatSubtype.FAT32
    assert descriptor.sector_count == 256
    assert descriptor.sectors_per_fat == 2
    assert descriptor.root_directory_sector == 36
    assert descriptor.fat32 is not None
    assert descriptor.fat32.free_clusters == 100
    assert descriptor.fat32.last_allocated_cluster == 5
    assert descriptor.volume_serial == "CAFEBABE"


def test_fat32_version_marks_fat_plus() -> None:
    image = bytearray(256 * SECTOR)
    put_sector(image, 0, fat32_boot_sector(version=1))

    assert decode(_classify(image)).subtype is FatSubtype.FAT_PLUS


def test_fsinfo_with_bad_signature_is_ignored() -> None:
    image = bytearray(256 * SECTOR)
    put_sector(image, 0, fat32_boot_sector())
    put_sector(image, 1, b"\x00" * 4 + fsinfo_sector(free_clusters=1, last_allocated=5)[4:])

    descriptor = decode(_classify(image))

    assert descriptor.fat32 is not None
    assert descriptor.fat32.free_clusters is None


def test_optical_scaling() -> None:
    boot = boot_sector(sectors=256, sectors_per_fat=4, reserved=4, root_entries=64, sectors_per_cluster=4)
    image = bytearray(64 * 2048)
    image[0:SECTOR] = boot

    descriptor = decode(_classify(image, sector_size=2048, media_kind=MediaKind.OPTICAL_DISC))

    assert descriptor.bytes_per_sector == 2048
    assert descriptor.sectors_per_cluster == 1
    assert descriptor.reserved_sectors == 1
    assert descriptor.sectors_per_fat == 1
    assert descriptor.sector_count == 64
    assert descriptor.total_clusters == 64


@pytest.mark.parametrize("sectors_per_cluster", [1, 2, 4, 8])
def test_block_and_optical_media_agree_on_subtype(sectors_per_cluster: int) -> None:
    boot = boot_sector(sectors_per_cluster=sectors_per_cluster, sectors=8000, sectors_per_fat=32, root_entries=512)
    block_image = bytearray(8000 * SECTOR)
    block_image[0:SECTOR] = boot
    optical_image = bytearray(2000 * 2048)
    optical_image[0:SECTOR] = boot

    block = decode(_classify(block_image))
    optical = decode(_classify(optical_image, sector_size=2048, media_kind=MediaKind.OPTICAL_DISC))

    assert block.sector_count == 8000
    assert block.sector_count == optical.sector_count * 4
    assert block.total_clusters == optical.total_clusters == 8000 // sectors_per_cluster
    assert block.subtype is optical.subtype
    assert block.subtype is (FatSubtype.FAT16 if sectors_per_cluster == 1 else FatSubtype.FAT12)


def test_dec_rainbow_uses_preset_geometry() -> None:
    descriptor = decode(_classify(dec_rainbow_image()))

    assert descriptor.variant is LayoutKind.DEC_RAINBOW
    assert descriptor.subtype is FatSubtype.FAT12
    assert descriptor.sector_count == 800
    assert descriptor.media_descriptor == 0xFA
    assert descriptor.bootable is True


def test_legacy_floppy_uses_preset_geometry() -> None:
    descriptor = decode(_classify(legacy_floppy_image()))

    assert descriptor.media_descriptor == 0xFE
    assert descriptor.sector_count == 320
    assert descriptor.root_entries == 64
    assert descriptor.bootable is False


def test_missing_boot_signature_is_not_bootable() -> None:
    image = fat12_image(boot_sector(boot_signature=False), total_sectors=2880)

    assert decode(_classify(image)).bootable is False


def test_atari_checksum_makes_sector_bootable() -> None:
    sector = boot_sector(jump=b"\x60\x1C", oem=bytes(8), signature=0, sectors=64, sectors_per_fat=1, root_entries=16)
    sector[510:512] = b"\x00\x00"
    missing = (ATARI_BOOT_CHECKSUM - atari_checksum(bytes(sector))) & 0xFFFF
    sector[508:510] = missing.to_bytes(2, "big")

    descriptor = decode(_direct(LayoutKind.ATARI, sector, 64))

    assert atari_checksum(bytes(sector)) == ATARI_BOOT_CHECKSUM
    assert descriptor.subtype is FatSubtype.FAT12
    assert descriptor.bootable is True


def test_decode_is_pure() -> None:
    result = _classify(fat12_image(boot_sector(), total_sectors=2880))

    assert decode(result) == decode(result)
